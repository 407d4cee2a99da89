"""
Test suite for inbound command parsing.

Every client payload must parse into exactly one command variant or be
rejected with INVALID_COMMAND before reaching a handler.

Run with: pytest test_commands.py -v
"""

import pytest

from commands import AddToRun, CreateRoom, Discard, DrawOpen, JoinRoom, OpenRun, parse_command
from errors import ErrorKind, GameError


class TestParseCommand:

    def test_create_room_defaults(self):
        cmd = parse_command({"type": "create_room"})
        assert isinstance(cmd, CreateRoom)
        assert cmd.room_id == ""
        assert cmd.player_name == "Player"
        assert cmd.team_mode is False
        assert cmd.player_id is None

    def test_join_room(self):
        cmd = parse_command({
            "type": "join_room",
            "room_id": " abcd ",
            "player_name": "Ana",
            "team": 1,
        })
        assert isinstance(cmd, JoinRoom)
        assert cmd.room_id == "abcd"
        assert cmd.team == 1

    def test_draw_open_count_defaults_to_one(self):
        cmd = parse_command({"type": "draw_open", "room_id": "ABCD"})
        assert isinstance(cmd, DrawOpen)
        assert cmd.count == 1

    def test_add_to_run(self):
        cmd = parse_command({
            "type": "add_to_run",
            "room_id": "ABCD",
            "target_player": "p2",
            "run_index": 0,
            "card_ids": ["x", "y"],
        })
        assert isinstance(cmd, AddToRun)
        assert cmd.card_ids == ["x", "y"]

    def test_unknown_fields_ignored(self):
        cmd = parse_command({"type": "discard", "room_id": "ABCD", "index": 2, "extra": True})
        assert isinstance(cmd, Discard)
        assert cmd.index == 2

    def test_open_run_ids(self):
        cmd = parse_command({"type": "open_run", "room_id": "ABCD", "card_ids": ["a", "b", "c"]})
        assert isinstance(cmd, OpenRun)

    @pytest.mark.parametrize("payload", [
        {"type": "fly_away", "room_id": "ABCD"},
        {"room_id": "ABCD"},
        {"type": "discard", "room_id": "ABCD"},
        {"type": "discard", "room_id": "ABCD", "index": -1},
        {"type": "discard", "room_id": "ABCD", "index": "first"},
        {"type": "draw_open", "room_id": "ABCD", "count": 0},
        {"type": "open_run", "room_id": "ABCD", "card_ids": []},
        {"type": "open_run", "room_id": "ABCD", "card_ids": "abc"},
        {"type": "draw_closed"},
        {"type": "draw_closed", "room_id": ""},
        {"type": "join_room", "room_id": "ABCD", "team": 2},
        ["not", "an", "object"],
        "draw_closed",
        None,
    ])
    def test_rejected(self, payload):
        with pytest.raises(GameError) as exc_info:
            parse_command(payload)
        assert exc_info.value.kind == ErrorKind.INVALID_COMMAND

    def test_error_message_shape(self):
        with pytest.raises(GameError) as exc_info:
            parse_command({"type": "discard", "room_id": "ABCD"})
        message = exc_info.value.to_message()
        assert message["type"] == "error"
        assert message["kind"] == "invalid_command"
        assert "index" in message["message"]
