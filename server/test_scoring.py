"""
Test suite for round scoring.

Covers:
- Winner bonus and run points
- Unopened penalty doubling
- Team aggregation and score mirroring
- Game-over threshold and standings

Run with: pytest test_scoring.py -v
"""

from cards import Card, Rank, Suit
from constants import WIN_SCORE, WINNER_BONUS
from game import Player
from scoring import (
    apply_round_scores,
    hand_points,
    is_game_over,
    melded_points,
    round_deltas,
    standings,
    team_deltas,
    team_labels,
)


def c(rank: Rank, suit: Suit = Suit.SPADES) -> Card:
    return Card(suit, rank)


def cards_worth_one(count: int) -> list[Card]:
    ranks = [Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX, Rank.SEVEN, Rank.EIGHT, Rank.NINE, Rank.TEN]
    return [c(ranks[i % len(ranks)], Suit.CLUBS) for i in range(count)]


class TestPoints:

    def test_hand_points(self):
        player = Player(id="a", name="A", hand=[c(Rank.ACE), c(Rank.TWO), c(Rank.KING)])
        assert hand_points(player) == 5

    def test_melded_points(self):
        player = Player(id="a", name="A", runs=[
            [c(Rank.QUEEN), c(Rank.KING), c(Rank.ACE)],
            [c(Rank.THREE, Suit.HEARTS), c(Rank.FOUR, Suit.HEARTS), c(Rank.FIVE, Suit.HEARTS)],
        ])
        assert melded_points(player) == 7


class TestRoundDeltas:

    def test_two_player_scenario(self):
        """A goes out with a 6-point run; B never opened and holds 9 points."""
        winner = Player(id="a", name="A", opened=True, runs=[
            [c(Rank.TEN), c(Rank.JACK), c(Rank.QUEEN), c(Rank.KING), c(Rank.ACE)],
        ])
        loser = Player(id="b", name="B", hand=[*cards_worth_one(7), c(Rank.ACE, Suit.HEARTS)])
        assert melded_points(winner) == 6
        assert hand_points(loser) == 9

        deltas = round_deltas([winner, loser], "a")
        assert deltas == {"a": 16, "b": -18}

        apply_round_scores([winner, loser], deltas, team_mode=False, team_scores=[0, 0])
        assert winner.score == 16
        assert loser.score == -18
        assert winner.last_delta == 16

    def test_opened_loser_is_not_doubled(self):
        loser = Player(id="b", name="B", opened=True,
                       runs=[[c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE)]],
                       hand=cards_worth_one(5))
        assert round_deltas([loser], "a") == {"b": -2}

    def test_opened_loser_can_gain(self):
        loser = Player(id="b", name="B", opened=True,
                       runs=[[c(Rank.QUEEN), c(Rank.KING), c(Rank.ACE)]],
                       hand=cards_worth_one(1))
        assert round_deltas([loser], "a") == {"b": 3}

    def test_winner_without_runs_gets_bonus(self):
        winner = Player(id="a", name="A")
        assert round_deltas([winner], "a") == {"a": WINNER_BONUS}


class TestTeamScoring:

    def make_team_players(self):
        return [
            Player(id="a", name="A", team=0),
            Player(id="b", name="B", team=1),
            Player(id="c", name="C", team=0),
            Player(id="d", name="D", team=1),
        ]

    def test_team_deltas_sum_members(self):
        players = self.make_team_players()
        deltas = {"a": 16, "b": -4, "c": -6, "d": 3}
        assert team_deltas(players, deltas) == [10, -1]

    def test_scores_mirror_team_total(self):
        players = self.make_team_players()
        team_scores = [5, 7]
        deltas = {"a": 16, "b": -4, "c": -6, "d": 3}
        apply_round_scores(players, deltas, team_mode=True, team_scores=team_scores)
        assert team_scores == [15, 6]
        for player in players:
            assert player.score == team_scores[player.team]
        assert players[0].last_delta == 16

    def test_team_labels(self):
        players = self.make_team_players()
        labels = team_labels(players, [12, 3])
        assert labels[0] == {"team": 0, "label": "Team 1", "members": ["A", "C"], "score": 12}
        assert labels[1]["members"] == ["B", "D"]


class TestGameOver:

    def test_individual_threshold(self):
        players = [Player(id="a", name="A", score=WIN_SCORE - 1), Player(id="b", name="B")]
        assert not is_game_over(players, False, [0, 0])
        players[0].score = WIN_SCORE
        assert is_game_over(players, False, [0, 0])

    def test_team_threshold_uses_team_scores(self):
        players = [Player(id="a", name="A", team=0, score=WIN_SCORE)]
        assert not is_game_over(players, True, [0, 0])
        assert is_game_over(players, True, [0, WIN_SCORE])

    def test_standings_highest_first(self):
        players = [
            Player(id="a", name="A", score=3),
            Player(id="b", name="B", score=40),
            Player(id="c", name="C", score=-8),
        ]
        assert [row["id"] for row in standings(players)] == ["b", "a", "c"]
