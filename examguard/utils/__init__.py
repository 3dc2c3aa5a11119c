from __future__ import annotations
"""
ExamGuard Utilities Module

Logging and violation helpers.
"""

from examguard.utils.logger import get_logger, setup_logging, SessionLogger
from examguard.utils.violations import (
    ViolationKind,
    ViolationSeverity,
    ViolationMessage,
    get_violation_message,
    describe_violation,
    proctoring_rules,
    get_severity_for_count,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "SessionLogger",
    "ViolationKind",
    "ViolationSeverity",
    "ViolationMessage",
    "get_violation_message",
    "describe_violation",
    "proctoring_rules",
    "get_severity_for_count",
]
