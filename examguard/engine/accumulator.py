"""
Violation Accumulator

Two-state machine (Active -> Disqualified) turning presence and focus signals
into a violation count. Transitions are pure functions over an immutable
ProctoringState; ViolationAccumulator owns the current state and dispatches
host callbacks.

Disqualified is absorbing: once entered, violation events are ignored and the
count at the moment of transition is preserved.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from examguard.cfg.config import DEFAULT_MAX_VIOLATIONS
from examguard.engine.results import ProctoringState, ViolationEvent
from examguard.utils.logger import get_logger, SessionLogger
from examguard.utils.violations import ViolationKind

logger = get_logger(__name__)

ViolationCallback = Callable[[ViolationKind], None]
DisqualifyCallback = Callable[[], None]


# ============================================================================
# Pure transitions
# ============================================================================

def apply_violation(state: ProctoringState, max_violations: int) -> ProctoringState:
    """Count one violation; a disqualified state is returned unchanged."""
    if state.is_disqualified:
        return state
    violations = state.violations + 1
    return replace(
        state,
        violations=violations,
        is_disqualified=violations >= max_violations,
    )


def apply_presence(state: ProctoringState, face_detected: bool) -> tuple[ProctoringState, bool]:
    """
    Record a classification.

    Returns the new state and whether a ``no_face`` violation is due. Only the
    falling edge (detected -> not detected) counts; sustained absence does not.
    """
    lost = state.face_detected and not face_detected and not state.is_disqualified
    return replace(state, face_detected=face_detected), lost


def apply_focus_lost(state: ProctoringState) -> tuple[ProctoringState, bool]:
    """Tab hidden or window blurred; counts only while the camera is on."""
    counts = state.camera_enabled and not state.is_disqualified
    return replace(state, tab_focused=False), counts


def apply_focus_regained(state: ProctoringState) -> ProctoringState:
    return replace(state, tab_focused=True)


def apply_camera_started(state: ProctoringState) -> ProctoringState:
    return replace(state, camera_enabled=True, error=None)


def apply_camera_failed(state: ProctoringState, error: str) -> ProctoringState:
    return replace(state, camera_enabled=False, error=error)


def apply_camera_stopped(state: ProctoringState) -> ProctoringState:
    return replace(state, camera_enabled=False)


# ============================================================================
# Dispatcher
# ============================================================================

class ViolationAccumulator:
    """
    Owns the session state and applies transitions to it.

    ``on_violation(kind)`` fires for every counted violation, including the
    one that disqualifies. ``on_disqualify()`` fires exactly once, on entry
    to the disqualified state. Exceptions raised by either callback are
    logged and do not propagate.

    Example:
        >>> acc = ViolationAccumulator(max_violations=2, on_disqualify=end_exam)
        >>> acc.record("tab_switch")
        True
        >>> acc.state.violations
        1
    """

    def __init__(
        self,
        max_violations: int = DEFAULT_MAX_VIOLATIONS,
        on_violation: Optional[ViolationCallback] = None,
        on_disqualify: Optional[DisqualifyCallback] = None,
        session_logger: Optional[SessionLogger] = None,
    ):
        if max_violations < 1:
            raise ValueError(f"max_violations must be at least 1, got {max_violations}")

        self._max_violations = max_violations
        self.on_violation = on_violation
        self.on_disqualify = on_disqualify
        self.session_logger = session_logger or SessionLogger()

        self.state = ProctoringState()
        self.counts: dict[ViolationKind, int] = {}

    @property
    def max_violations(self) -> int:
        return self._max_violations

    def dispatch(self, event: ViolationEvent) -> bool:
        """
        Apply a violation event.

        Args:
            event: Violation to count

        Returns:
            True if counted, False if ignored (already disqualified)
        """
        before = self.state
        after = apply_violation(before, self._max_violations)
        if after is before:
            logger.debug(f"Ignoring {event.kind.value}: session already disqualified")
            return False

        self.state = after
        self.counts[event.kind] = self.counts.get(event.kind, 0) + 1
        self.session_logger.log_violation(event.kind.value, after.violations, self._max_violations)
        self._notify(self.on_violation, event.kind)

        if after.is_disqualified:
            self.session_logger.log_disqualified(after.violations)
            self._notify(self.on_disqualify)
        return True

    def record(self, kind: ViolationKind | str, timestamp: Optional[datetime] = None) -> bool:
        """Build and dispatch a ViolationEvent."""
        event = ViolationEvent(kind=ViolationKind(kind), timestamp=timestamp or datetime.utcnow())
        return self.dispatch(event)

    def observe_presence(self, face_detected: bool) -> bool:
        """Feed one classification; returns True if it counted a violation."""
        self.state, lost = apply_presence(self.state, face_detected)
        if lost:
            return self.record(ViolationKind.NO_FACE)
        return False

    def focus_lost(self, kind: ViolationKind | str) -> bool:
        """Tab hidden / window blurred; returns True if it counted a violation."""
        self.state, counts = apply_focus_lost(self.state)
        if counts:
            return self.record(kind)
        return False

    def focus_regained(self):
        self.state = apply_focus_regained(self.state)

    def camera_started(self):
        self.state = apply_camera_started(self.state)

    def camera_failed(self, error: str):
        self.state = apply_camera_failed(self.state, error)

    def camera_stopped(self):
        self.state = apply_camera_stopped(self.state)

    def _notify(self, callback, *args):
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Proctoring callback raised; continuing")
