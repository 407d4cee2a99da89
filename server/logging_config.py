"""
Logging setup for the Pinak server.

Production emits one JSON object per line; every other environment gets a
colored single-line format. Both formatters attach the same context:
the connection and room from context variables set by the WebSocket
endpoint, plus room_id / player_id / error_kind passed through
ContextLogger.with_context().
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

connection_id_var: ContextVar[Optional[str]] = ContextVar("connection_id", default=None)
room_id_var: ContextVar[Optional[str]] = ContextVar("room_id", default=None)

# Record attributes copied into the log context when present
CONTEXT_FIELDS = ("room_id", "player_id", "error_kind")


def record_context(record: logging.LogRecord) -> dict:
    """Collect context for a record. Explicit extras win over context vars."""
    context = {}
    if connection_id_var.get():
        context["connection_id"] = connection_id_var.get()
    if room_id_var.get():
        context["room_id"] = room_id_var.get()
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value:
            context[name] = value
    return context


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored, compact output for local development."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    # Short labels and how many characters of each value to show
    LABELS = (("connection_id", "conn", 8), ("room_id", "room", None), ("player_id", "player", 8))

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        level = f"{color}{record.levelname:8}{self.RESET if color else ''}"
        clock = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        context = record_context(record)
        tags = [
            f"{label}={str(context[key])[:width] if width else context[key]}"
            for key, label, width in self.LABELS
            if key in context
        ]
        if "error_kind" in context:
            tags.append(f"kind={context['error_kind']}")
        where = f" [{', '.join(tags)}]" if tags else ""

        line = f"{clock} {level} {record.name}{where} - {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        environment: "production" selects JSON output.
    """
    handler = logging.StreamHandler(sys.stdout)
    formatter = JSONFormatter() if environment == "production" else DevelopmentFormatter()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("uvicorn.access", "uvicorn.error", "websockets", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={level}, environment={environment}")


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter carrying room/player context into every record.

    Usage:
        logger = get_logger(__name__)
        logger.with_context(room_id="ABCD", player_id="p1").info("drew a card")
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def with_context(self, **kwargs) -> "ContextLogger":
        """Return a new adapter with `kwargs` merged into the context."""
        return ContextLogger(self.logger, {**self.extra, **kwargs})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name))
