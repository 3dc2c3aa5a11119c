"""
ExamGuard Engine - Results Classes

Data classes for classification results, session state and reports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from datetime import datetime

from examguard.utils.violations import ViolationKind


@dataclass
class Results:
    """
    Base class for prediction results.

    Attributes:
        timestamp: When the prediction was made
        source: Original input reference
        speed: Per-stage timing information (ms)
    """
    timestamp: datetime = field(default_factory=datetime.utcnow)
    source: Any = None
    speed: dict = field(default_factory=lambda: {
        "preprocess": 0.0,
        "inference": 0.0,
        "postprocess": 0.0,
    })

    @property
    def total_time_ms(self) -> float:
        """Total processing time in milliseconds."""
        return sum(self.speed.values())

    def to_dict(self) -> dict:
        """Convert results to dictionary."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "speed_ms": self.speed,
            "total_time_ms": self.total_time_ms,
        }


@dataclass
class PresenceResults(Results):
    """
    Results from the presence heuristic.

    Attributes:
        face_detected: Whether a face is plausibly present
        average_brightness: Mean brightness of the centre region (0-255)
        skin_tone_ratio: Share of skin-tone pixels in the centre region
        pixel_count: Number of pixels in the centre region
        region: Sampled region as (x, y, width, height)
    """
    face_detected: bool = False
    average_brightness: float = 0.0
    skin_tone_ratio: float = 0.0
    pixel_count: int = 0
    region: tuple = (0, 0, 0, 0)

    def to_dict(self) -> dict:
        base = super().to_dict()
        base.update({
            "face_detected": self.face_detected,
            "average_brightness": self.average_brightness,
            "skin_tone_ratio": self.skin_tone_ratio,
            "pixel_count": self.pixel_count,
            "region": list(self.region),
        })
        return base


@dataclass(frozen=True)
class ViolationEvent:
    """A single violation signal, consumed immediately by the accumulator."""
    kind: ViolationKind
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        object.__setattr__(self, "kind", ViolationKind(self.kind))


@dataclass(frozen=True)
class ProctoringState:
    """
    Snapshot of one proctored session.

    ``multiple_faces`` is reserved and always False.
    """
    camera_enabled: bool = False
    face_detected: bool = True
    multiple_faces: bool = False
    tab_focused: bool = True
    violations: int = 0
    is_disqualified: bool = False
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Host-facing snapshot (camelCase keys)."""
        return {
            "cameraEnabled": self.camera_enabled,
            "faceDetected": self.face_detected,
            "multipleFaces": self.multiple_faces,
            "tabFocused": self.tab_focused,
            "violations": self.violations,
            "isDisqualified": self.is_disqualified,
            "error": self.error,
        }


@dataclass
class SessionReport:
    """
    Final outcome of a session, handed to the host for persistence.

    Attributes:
        session_id: Host-assigned session identifier
        violations: Violations counted
        max_violations: Disqualification threshold
        is_disqualified: Whether the session ended disqualified
        violations_by_kind: Counted violations per kind
    """
    session_id: str
    violations: int
    max_violations: int
    is_disqualified: bool
    violations_by_kind: dict = field(default_factory=dict)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def passed(self) -> bool:
        return not self.is_disqualified

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "proctoring_violations": self.violations,
            "max_violations": self.max_violations,
            "is_disqualified": self.is_disqualified,
            "passed": self.passed,
            "violations_by_kind": {
                ViolationKind(k).value: v for k, v in self.violations_by_kind.items()
            },
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
        }
