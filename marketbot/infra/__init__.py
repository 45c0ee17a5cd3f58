"""
Infrastructure package.

Logging setup and the per-pair event logger.
"""

from marketbot.infra.logging_cfg import build_logger, log_event
from marketbot.infra.pair_logger import PairLogger

__all__ = [
    "build_logger",
    "log_event",
    "PairLogger",
]
