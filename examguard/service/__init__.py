from __future__ import annotations
"""
ExamGuard Service

Proctoring session that integrates all components.
"""

from examguard.service.proctoring import ProctoringSession, StreamFactory

__all__ = [
    "ProctoringSession",
    "StreamFactory",
]
