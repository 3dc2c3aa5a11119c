"""
ExamGuard Configuration Module

Pydantic-based configuration following best practices.
"""

from examguard.cfg.config import (
    BaseConfig,
    PresenceConfig,
    ProctoringConfig,
    Settings,
    get_settings,
)

__all__ = [
    "BaseConfig",
    "PresenceConfig",
    "ProctoringConfig",
    "Settings",
    "get_settings",
]
