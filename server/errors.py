"""
Rejection kinds for Pinak commands.

Every rejected command raises GameError before touching any state. The
handler layer turns it into an "error" message for the issuing connection.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """All recoverable, user-facing rejection kinds."""

    # Turn / phase
    NOT_YOUR_TURN = "not_your_turn"
    ROUND_OR_GAME_OVER = "round_or_game_over"
    ALREADY_DRAWN_THIS_TURN = "already_drawn_this_turn"
    MUST_DRAW_FIRST = "must_draw_first"
    MUST_DISCARD_FIRST = "must_discard_first"
    DISCARD_FORBIDDEN_RESTRICTED_CARD = "discard_forbidden_restricted_card"
    MANDATORY_MELD_PENDING = "mandatory_meld_pending"
    PILE_EMPTY = "pile_empty"
    HAND_NOT_EMPTY = "hand_not_empty"
    ROUND_NOT_OVER = "round_not_over"
    GAME_NOT_OVER = "game_not_over"

    # Cards / runs
    INVALID_CARD_SELECTION = "invalid_card_selection"
    INVALID_RUN_SHAPE = "invalid_run_shape"
    INVALID_ADD_TARGET = "invalid_add_target"

    # Rooms / sessions
    ROOM_FULL = "room_full"
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_EXISTS = "room_exists"
    TEAM_FULL = "team_full"
    GAME_IN_PROGRESS = "game_in_progress"
    NOT_ENOUGH_PLAYERS = "not_enough_players"
    NOT_HOST = "not_host"
    NOT_IN_ROOM = "not_in_room"
    UNKNOWN_PLAYER = "unknown_player"
    INVALID_COMMAND = "invalid_command"


class GameError(Exception):
    """A rejected command. State is unchanged when this is raised."""

    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"[{kind.value}] {message}")

    def to_message(self) -> dict:
        """Build the client-facing error message."""
        return {"type": "error", "kind": self.kind.value, "message": self.message}
