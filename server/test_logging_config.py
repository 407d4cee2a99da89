"""
Test suite for log formatting and context propagation.

Run with: pytest test_logging_config.py -v
"""

import json
import logging

from logging_config import (
    DevelopmentFormatter,
    JSONFormatter,
    connection_id_var,
    get_logger,
    room_id_var,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("pinak.test", logging.INFO, __file__, 10, "drew a card", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "pinak.test"
        assert entry["message"] == "drew a card"
        assert "room_id" not in entry

    def test_extras_included(self):
        record = make_record(room_id="ABCD", player_id="p1", error_kind="not_your_turn")
        entry = json.loads(JSONFormatter().format(record))
        assert entry["room_id"] == "ABCD"
        assert entry["player_id"] == "p1"
        assert entry["error_kind"] == "not_your_turn"

    def test_context_vars_included(self):
        conn_token = connection_id_var.set("conn-42")
        room_token = room_id_var.set("ROOM")
        try:
            entry = json.loads(JSONFormatter().format(make_record()))
        finally:
            connection_id_var.reset(conn_token)
            room_id_var.reset(room_token)
        assert entry["connection_id"] == "conn-42"
        assert entry["room_id"] == "ROOM"


class TestDevelopmentFormatter:

    def test_context_tags(self):
        line = DevelopmentFormatter().format(make_record(room_id="ABCD", player_id="player-123456789"))
        assert "room=ABCD" in line
        assert "player=player-1" in line
        assert line.endswith("drew a card")


class TestContextLogger:

    def test_with_context_merges(self):
        logger = get_logger("pinak.test").with_context(room_id="ABCD").with_context(player_id="p1")
        assert logger.extra == {"room_id": "ABCD", "player_id": "p1"}

    def test_context_reaches_record(self, caplog):
        with caplog.at_level(logging.INFO, logger="pinak.test"):
            get_logger("pinak.test").with_context(room_id="ABCD", player_id="p1").info("went out")
        (record,) = caplog.records
        assert record.room_id == "ABCD"
        assert record.player_id == "p1"
