"""
ExamGuard - Webcam Proctoring Engine

Face-presence heuristic, tab/window focus tracking and violation accounting
for proctored exams and interviews.

Usage:
    from examguard import ProctoringSession, ProctoringConfig

    session = ProctoringSession(
        ProctoringConfig(max_violations=5, check_interval_ms=2000),
        on_violation=lambda kind: print("violation", kind),
        on_disqualify=lambda: print("disqualified"),
    )
    async with session:
        ...
    print(session.report().to_dict())

    # Classifier only
    from examguard import PresenceClassifier
    results = PresenceClassifier()(rgb_frame)
"""

__version__ = "0.1.0"

from examguard.cfg import PresenceConfig, ProctoringConfig, get_settings
from examguard.engine.accumulator import ViolationAccumulator
from examguard.engine.presence import PresenceClassifier
from examguard.engine.results import ProctoringState, SessionReport
from examguard.utils.violations import ViolationKind


# OpenCV-backed components (lazy loaded when accessed)
def __getattr__(name: str):
    """Lazy load capture-dependent components."""
    if name == "ProctoringSession":
        from examguard.service.proctoring import ProctoringSession
        return ProctoringSession
    elif name == "ManualFocusSource":
        from examguard.data.focus import ManualFocusSource
        return ManualFocusSource
    elif name == "MediaStream":
        from examguard.data.camera import MediaStream
        return MediaStream
    raise AttributeError(f"module 'examguard' has no attribute '{name}'")


# Public API
__all__ = [
    # Configs
    "PresenceConfig",
    "ProctoringConfig",
    "get_settings",
    # Engine
    "PresenceClassifier",
    "ViolationAccumulator",
    "ProctoringState",
    "SessionReport",
    "ViolationKind",
    # Lazy loaded
    "ProctoringSession",
    "ManualFocusSource",
    "MediaStream",
    # Version
    "__version__",
]
