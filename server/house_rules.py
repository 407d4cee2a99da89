"""
Mandatory meld house rule.

Once the closed pile runs out, the hand can no longer be replenished from
the stock, so a player who has drawn must play every meld they can before
discarding or ending the turn. The gate engages only when:

    - the closed pile is empty,
    - the open pile holds at least one card, and
    - the player has already drawn this turn.

It then blocks discard/end-turn while the player can either open a new run
from their hand or add to a run they are allowed to touch.
"""

from itertools import combinations
from typing import TYPE_CHECKING

from cards import Card
from runs import count_wildcards, valid_run

if TYPE_CHECKING:
    from game import Game, Player


def can_open_run(hand: list[Card]) -> bool:
    """
    Check whether any new run can be opened from a hand.

    Every valid run contains a valid 3-card run (three consecutive real
    cards, or the two real cards around the gap plus the wildcard, or two
    adjacent real cards plus the wildcard), so checking 3-card
    combinations is enough.
    """
    real = [c for c in hand if not c.is_wild]
    wildcard = next((c for c in hand if c.is_wild), None)

    by_suit: dict = {}
    for card in real:
        by_suit.setdefault(card.suit, []).append(card)

    for suited in by_suit.values():
        for triple in combinations(suited, 3):
            if valid_run(list(triple)):
                return True
        if wildcard is not None:
            for pair in combinations(suited, 2):
                if valid_run([*pair, wildcard]):
                    return True
    return False


def can_add_to_run(hand: list[Card], run: list[Card]) -> bool:
    """
    Check whether any hand card can legally extend a run.

    A wildcard never travels alone: it may only be added together with a
    real card, and only to a run that has no wildcard yet.
    """
    real = [c for c in hand if not c.is_wild]
    wildcard = next((c for c in hand if c.is_wild), None)
    run_has_wildcard = count_wildcards(run) > 0

    for card in real:
        if valid_run([*run, card]):
            return True
        if wildcard is not None and not run_has_wildcard:
            if valid_run([*run, card, wildcard]):
                return True
    return False


def addable_runs(game: "Game", player: "Player") -> list[list[Card]]:
    """Runs the player may add to: their own, plus teammates' in team mode."""
    if not player.opened:
        return []
    runs = list(player.runs)
    if game.team_mode:
        for other in game.players:
            if other.id != player.id and other.team == player.team:
                runs.extend(other.runs)
    return runs


def mandatory_gate_engaged(game: "Game", player: "Player") -> bool:
    """Whether the mandatory meld rule applies to this player right now."""
    closed_empty = game.deck is None or game.deck.is_empty()
    return closed_empty and bool(game.open_pile) and player.can_discard


def must_play_mandatory_melds_now(game: "Game", player: "Player") -> bool:
    """
    Check whether the player is blocked from discarding or ending the turn.

    Args:
        game: The game being played.
        player: The player attempting to discard or end their turn.

    Returns:
        True if a legal meld is available and must be played first.
    """
    if not mandatory_gate_engaged(game, player):
        return False

    if can_open_run(player.hand):
        return True

    return any(can_add_to_run(player.hand, run) for run in addable_runs(game, player))
