"""
Event definitions for the Pinak game log.

Every accepted action appends an immutable event to its game's log. The
log is informational: clients show the recent tail, and nothing in the
rules engine reads it back. Events carry only public information, so a
closed-pile draw records that a card was drawn but never which one.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EventType(str, Enum):
    """All possible event types in a Pinak game."""

    # Lifecycle events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    PLAYER_RECONNECTED = "player_reconnected"
    GAME_STARTED = "game_started"
    ROUND_STARTED = "round_started"
    ROUND_ENDED = "round_ended"
    GAME_ENDED = "game_ended"

    # Gameplay events
    CARD_DRAWN = "card_drawn"
    CARD_DISCARDED = "card_discarded"
    RUN_OPENED = "run_opened"
    RUN_EXTENDED = "run_extended"
    TURN_ENDED = "turn_ended"


@dataclass
class GameEvent:
    """
    A single entry in a game's append-only log.

    Attributes:
        event_type: The type of event (from EventType enum).
        room_id: Room the event belongs to.
        sequence_num: Monotonically increasing sequence number within the room.
        timestamp: When the event occurred (UTC).
        player_id: Stable ID of the player who triggered the event (if any).
        data: Event-specific payload data.
    """

    event_type: EventType
    room_id: str
    sequence_num: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    player_id: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize event to dictionary for JSON transport."""
        return {
            "event_type": self.event_type.value,
            "room_id": self.room_id,
            "sequence_num": self.sequence_num,
            "timestamp": self.timestamp.isoformat(),
            "player_id": self.player_id,
            "data": self.data,
        }
