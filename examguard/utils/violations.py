from __future__ import annotations
"""
Violation Types and Constants

Defines proctoring violation kinds, severities, and the messages the host
exam screens show to candidates.
"""

from enum import Enum
from dataclasses import dataclass


class ViolationKind(str, Enum):
    """Signals that count toward disqualification."""
    NO_FACE = "no_face"
    TAB_SWITCH = "tab_switch"
    WINDOW_BLUR = "window_blur"


class ViolationSeverity(str, Enum):
    """Severity of the running violation count."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ViolationMessage:
    """Overlay text shown while a violation condition persists."""
    title: str
    description: str


VIOLATION_MESSAGES = {
    ViolationKind.NO_FACE: ViolationMessage(
        title="Face not detected!",
        description="Please position your face in the camera",
    ),
    ViolationKind.TAB_SWITCH: ViolationMessage(
        title="Tab switch detected!",
        description="Please stay on this tab",
    ),
    ViolationKind.WINDOW_BLUR: ViolationMessage(
        title="Window focus lost!",
        description="Please keep the test window focused",
    ),
}


def get_violation_message(kind: ViolationKind | str) -> ViolationMessage:
    """Get the overlay message for a violation kind."""
    return VIOLATION_MESSAGES[ViolationKind(kind)]


def describe_violation(kind: ViolationKind | str) -> str:
    """
    Toast text announcing a counted violation.

    Only the first underscore of the kind is replaced, so ``window_blur``
    reads "window blur".
    """
    return f"Proctoring violation detected: {ViolationKind(kind).value.replace('_', ' ', 1)}"


def proctoring_rules(max_violations: int) -> list[str]:
    """Rules shown on the instructions screen before a proctored test."""
    return [
        "Webcam must remain on throughout the test",
        "Your face must be visible at all times",
        "Do not switch tabs or windows",
        "Copy/paste is disabled",
        f"{max_violations} violations = automatic disqualification",
    ]


def get_severity_for_count(violations: int, max_violations: int) -> ViolationSeverity:
    """
    Determine badge severity from the running count.

    Args:
        violations: Violations counted so far
        max_violations: Disqualification threshold

    Returns:
        ViolationSeverity
    """
    if violations >= max_violations:
        return ViolationSeverity.CRITICAL
    if violations >= max_violations - 1 and violations > 0:
        return ViolationSeverity.HIGH
    if violations > 0:
        return ViolationSeverity.MEDIUM
    return ViolationSeverity.LOW
