"""
Structured logging setup for the market maker.

Console lines go through rich, colored by severity. The optional file
handler writes one compact JSON object per record for later ingestion.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from rich.logging import RichHandler


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Bot events are already logged as JSON objects ({"event": ..., "pair": ...});
    their fields are lifted to the top level so each line is a flat event.
    Plain-text messages land under "msg".
    """

    def format(self, record: logging.LogRecord) -> str:
        line: Dict[str, Any] = {
            "ts": round(record.created, 3),
            "ts_iso": datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }
        message = record.getMessage()
        try:
            event = json.loads(message)
        except ValueError:
            event = None
        if isinstance(event, dict):
            line.update(event)
        else:
            line["msg"] = message
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, separators=(",", ":"), default=str)


def _file_handler(file_path: str, level: int | str) -> logging.Handler:
    handler = logging.FileHandler(file_path)
    handler.setFormatter(JsonFormatter())
    handler.setLevel(level)
    return handler


def build_logger(
    name: str = "marketbot",
    level: int | str = logging.INFO,
    file_path: Optional[str] = "marketbot.log",
) -> logging.Logger:
    """
    Build the bot logger.

    Args:
        name: Logger name
        level: Minimum log level (int or level name)
        file_path: Path to JSON log file (None to disable file logging)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Idempotent handler setup; a later call may still add the file handler
    if logger.handlers:
        for h in logger.handlers:
            h.setLevel(level)
        if file_path and not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            logger.addHandler(_file_handler(file_path, level))
        return logger

    stream_handler = RichHandler(
        rich_tracebacks=False,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
    )
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(stream_handler)

    if file_path:
        logger.addHandler(_file_handler(file_path, level))

    logger.propagate = False
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **data
) -> None:
    """
    Log a structured event with proper level.

    Usage:
        log_event(log, "pass_complete", pairs=2, created=5)
    """
    payload = {"event": event, **data}
    logger.log(level, json.dumps(payload))
