from __future__ import annotations
"""
ExamGuard Engine - presence heuristic and violation accounting.

- BasePredictor: preprocess / inference / postprocess pipeline
- PresenceClassifier: skin-tone/brightness face-presence heuristic
- ViolationAccumulator: Active -> Disqualified state machine
"""

from examguard.engine.predictor import BasePredictor
from examguard.engine.results import (
    Results,
    PresenceResults,
    ProctoringState,
    ViolationEvent,
    SessionReport,
)
from examguard.engine.presence import PresenceClassifier, FrameError
from examguard.engine.accumulator import (
    ViolationAccumulator,
    apply_violation,
    apply_presence,
    apply_focus_lost,
    apply_focus_regained,
)

__all__ = [
    "BasePredictor",
    "Results",
    "PresenceResults",
    "ProctoringState",
    "ViolationEvent",
    "SessionReport",
    "PresenceClassifier",
    "FrameError",
    "ViolationAccumulator",
    "apply_violation",
    "apply_presence",
    "apply_focus_lost",
    "apply_focus_regained",
]
