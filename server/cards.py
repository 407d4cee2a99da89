"""
Card and deck model for Pinak.

A Pinak deck is a single standard 52-card deck. Every 2 is a wildcard: it
can stand in for one missing rank inside a run and never counts as a low
card. Runs are ordered 3 < 4 < ... < 10 < J < Q < K < A.
"""

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from constants import WILDCARD_RANK, get_card_points


class Suit(Enum):
    """Card suits for a standard deck."""

    SPADES = "spades"
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"


class Rank(Enum):
    """
    Card ranks with their display values.

    TWO is the wildcard rank and has no position in RUN_ORDER.
    """

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"

    @property
    def is_wild(self) -> bool:
        return self.value == WILDCARD_RANK


# Total order used for runs. The wildcard rank has no position here.
RUN_ORDER: tuple[Rank, ...] = (
    Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX, Rank.SEVEN, Rank.EIGHT,
    Rank.NINE, Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING, Rank.ACE,
)
RANK_INDEX: dict[Rank, int] = {rank: i for i, rank in enumerate(RUN_ORDER)}


def rank_index(rank: Rank) -> Optional[int]:
    """Position of a rank in the run order, or None for the wildcard rank."""
    return RANK_INDEX.get(rank)


def _new_card_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Card:
    """
    A playing card.

    Attributes:
        suit: The card's real suit.
        rank: The card's rank.
        id: Unique identity, stable for the lifetime of the deck.
        display_suit: Suit shown for a wildcard placed in a run. Cosmetic
            only; never used for validation.
    """

    suit: Suit
    rank: Rank
    id: str = field(default_factory=_new_card_id)
    display_suit: Optional[Suit] = None

    @property
    def is_wild(self) -> bool:
        return self.rank.is_wild

    @property
    def points(self) -> int:
        return get_card_points(self.rank.value)

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        shown = self.display_suit or self.suit
        return {
            "id": self.id,
            "rank": self.rank.value,
            "suit": shown.value,
            "points": self.points,
            "wild": self.is_wild,
        }

    def __str__(self) -> str:
        return f"{self.rank.value}{self.suit.value[0].upper()}"


# Placeholder sent in place of every card of a hidden hand
HIDDEN_CARD: dict = {"hidden": True}


class Deck:
    """
    A shuffled 52-card deck, used as the closed (face-down) pile.

    The deck can be initialized with a seed for deterministic shuffling,
    which the event log records so a round's deal can be reproduced.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        """
        Build and shuffle a fresh deck.

        Args:
            seed: Optional random seed for a deterministic shuffle.
                  If None, a random seed is generated and stored.
        """
        self.cards: list[Card] = [Card(suit, rank) for suit in Suit for rank in Rank]
        self.seed: int = seed if seed is not None else random.randint(0, 2**31 - 1)
        self.shuffle()

    def shuffle(self) -> None:
        """Randomize card order using the deck's seed."""
        random.Random(self.seed).shuffle(self.cards)

    def draw(self) -> Optional[Card]:
        """
        Draw the top card from the deck.

        Returns:
            The drawn Card, or None if deck is empty.
        """
        if self.cards:
            return self.cards.pop()
        return None

    def deal(self, count: int) -> list[Card]:
        """Draw up to `count` cards from the top."""
        dealt = []
        for _ in range(count):
            card = self.draw()
            if card is None:
                break
            dealt.append(card)
        return dealt

    def cards_remaining(self) -> int:
        """Return the number of cards left in the deck."""
        return len(self.cards)

    def is_empty(self) -> bool:
        return not self.cards
