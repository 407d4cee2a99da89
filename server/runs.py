"""
Run validation and normalization.

A run is at least 3 cards: at least 2 real cards of one suit forming a
sequence in RUN_ORDER, plus at most one wildcard that may bridge a single
missing rank. Validity is a predicate over an unordered multiset; the
stored form of a run is always its normalized ordering, so later
additions are checked against the combined multiset and re-normalized.
"""

from typing import Iterable

from cards import Card, rank_index

MIN_RUN_LENGTH = 3
MAX_WILDCARDS_PER_RUN = 1


def count_wildcards(cards: Iterable[Card]) -> int:
    return sum(1 for c in cards if c.is_wild)


def valid_run(cards: list[Card]) -> bool:
    """
    Check whether a multiset of cards forms a legal run.

    Args:
        cards: Cards in any order.

    Returns:
        True if the cards can be arranged into a run.
    """
    if len(cards) < MIN_RUN_LENGTH:
        return False

    real = [c for c in cards if not c.is_wild]
    wildcards = len(cards) - len(real)
    if wildcards > MAX_WILDCARDS_PER_RUN or len(real) < 2:
        return False

    suit = real[0].suit
    if any(c.suit != suit for c in real):
        return False

    indices = sorted(rank_index(c.rank) for c in real)
    gaps = 0
    for low, high in zip(indices, indices[1:]):
        diff = high - low - 1
        if diff < 0:
            # Repeated rank
            return False
        gaps += diff

    return gaps <= wildcards


def normalize_run(cards: list[Card]) -> list[Card]:
    """
    Produce the canonical left-to-right ordering of a valid run.

    Real cards are laid out by rank; a wildcard fills the missing rank if
    there is one, otherwise it goes at the end. Wildcards take the run's
    suit as their display suit.

    Args:
        cards: A multiset for which valid_run() holds.

    Returns:
        A new list in canonical order.
    """
    real = sorted((c for c in cards if not c.is_wild), key=lambda c: rank_index(c.rank))
    wildcards = [c for c in cards if c.is_wild]
    if not real:
        return list(cards)

    suit = real[0].suit
    for wildcard in wildcards:
        wildcard.display_suit = suit

    by_index = {rank_index(c.rank): c for c in real}
    low = rank_index(real[0].rank)
    high = rank_index(real[-1].rank)

    ordered: list[Card] = []
    for idx in range(low, high + 1):
        card = by_index.get(idx)
        if card is not None:
            ordered.append(card)
        elif wildcards:
            ordered.append(wildcards.pop(0))

    ordered.extend(wildcards)
    return ordered


def run_points(run: list[Card]) -> int:
    """Total point value of the cards in a run."""
    return sum(c.points for c in run)
