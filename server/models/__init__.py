"""Models package for the Pinak server."""

from .events import EventType, GameEvent

__all__ = [
    "EventType",
    "GameEvent",
]
