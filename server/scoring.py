"""
Round scoring for Pinak.

Scoring runs once per round, when a player empties their hand:

    - Winner: points of every card in their runs + WINNER_BONUS
    - Everyone else: run points - hand points, doubled when the player
      never opened a run this round

In team mode the deltas are summed per team and each member's displayed
score mirrors the team total. The game ends when a player (or team)
reaches WIN_SCORE.
"""

from typing import Optional, TYPE_CHECKING

from constants import NUM_TEAMS, UNOPENED_PENALTY_MULTIPLIER, WIN_SCORE, WINNER_BONUS
from runs import run_points

if TYPE_CHECKING:
    from game import Player


def hand_points(player: "Player") -> int:
    return sum(c.points for c in player.hand)


def melded_points(player: "Player") -> int:
    return sum(run_points(run) for run in player.runs)


def player_round_delta(player: "Player", winner_id: Optional[str]) -> int:
    """Score change for one player at the end of a round."""
    if player.id == winner_id:
        return melded_points(player) + WINNER_BONUS

    net = melded_points(player) - hand_points(player)
    if not player.opened:
        net *= UNOPENED_PENALTY_MULTIPLIER
    return net


def round_deltas(players: list["Player"], winner_id: Optional[str]) -> dict[str, int]:
    """Score change for every player, keyed by stable player id."""
    return {p.id: player_round_delta(p, winner_id) for p in players}


def team_deltas(players: list["Player"], deltas: dict[str, int]) -> list[int]:
    """Sum per-player deltas into per-team deltas."""
    totals = [0] * NUM_TEAMS
    for player in players:
        if player.team is not None:
            totals[player.team] += deltas[player.id]
    return totals


def apply_round_scores(
    players: list["Player"],
    deltas: dict[str, int],
    team_mode: bool,
    team_scores: list[int],
) -> None:
    """
    Apply round deltas to cumulative scores.

    Args:
        players: All players in the game.
        deltas: Output of round_deltas().
        team_mode: Whether scores are kept per team.
        team_scores: Team totals, updated in place in team mode.
    """
    for player in players:
        player.last_delta = deltas[player.id]

    if not team_mode:
        for player in players:
            player.score += deltas[player.id]
        return

    for team, delta in enumerate(team_deltas(players, deltas)):
        team_scores[team] += delta
    mirror_team_scores(players, team_scores)


def mirror_team_scores(players: list["Player"], team_scores: list[int]) -> None:
    """Copy each team's authoritative score onto its members."""
    for player in players:
        if player.team is not None:
            player.score = team_scores[player.team]


def is_game_over(players: list["Player"], team_mode: bool, team_scores: list[int]) -> bool:
    """Check whether any player (or team) has reached the winning score."""
    if team_mode:
        return any(score >= WIN_SCORE for score in team_scores)
    return any(p.score >= WIN_SCORE for p in players)


def team_labels(players: list["Player"], team_scores: list[int]) -> list[dict]:
    """Team summaries for client display."""
    labels = []
    for team in range(NUM_TEAMS):
        members = [p.name for p in players if p.team == team]
        labels.append({
            "team": team,
            "label": f"Team {team + 1}",
            "members": members,
            "score": team_scores[team],
        })
    return labels


def standings(players: list["Player"]) -> list[dict]:
    """Players ordered by cumulative score, highest first."""
    ranked = sorted(players, key=lambda p: -p.score)
    return [
        {"id": p.id, "name": p.name, "team": p.team, "score": p.score, "last_delta": p.last_delta}
        for p in ranked
    ]
