from __future__ import annotations
"""
ExamGuard Logger

Centralized logging configuration and per-session event logging.
"""

import logging
import sys
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
PACKAGE_LOGGER = "examguard"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for command-line use.

    Package loggers keep their own handler; the root handler covers
    third-party libraries.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(fmt=DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    get_logger(PACKAGE_LOGGER).setLevel(log_level)

    # Reduce noise from other libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(
    name: str,
    level: int = logging.INFO,
    format_str: Optional[str] = None,
) -> logging.Logger:
    """
    Get a configured logger.

    The stdout handler lives on the ``examguard`` package logger, so module
    loggers (``examguard.engine.presence``, ...) share it.

    Args:
        name: Logger name (usually __name__)
        level: Logging level for the package logger
        format_str: Custom format string

    Returns:
        Logger instance
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_str or DEFAULT_FORMAT))
        package_logger.addHandler(handler)
        package_logger.setLevel(level)
        package_logger.propagate = False

    return logging.getLogger(name)


class SessionLogger:
    """Specialized logger for proctoring session events."""

    def __init__(self, session_id: str | None = None):
        self.logger = get_logger("examguard.session")
        self.session_id = session_id or "-"

    def log_violation(self, kind: str, count: int, max_violations: int):
        """Log a counted violation."""
        self.logger.warning(
            f"VIOLATION | {self.session_id} | {kind} | {count}/{max_violations}"
        )

    def log_disqualified(self, count: int):
        """Log entry into the disqualified state."""
        self.logger.error(f"DISQUALIFIED | {self.session_id} | violations={count}")

    def log_device(self, event: str, detail: str = ""):
        """Log camera/microphone lifecycle events."""
        self.logger.info(f"DEVICE | {self.session_id} | {event} {detail}".rstrip())

    def log_frame(self, frame_num: int, face_detected: bool, processing_time_ms: float):
        """Log one presence check."""
        self.logger.debug(
            f"FRAME | {self.session_id} | #{frame_num} | face={face_detected} | {processing_time_ms:.1f}ms"
        )
