"""
ExamGuard API

HTTP interface for the exam page.
"""

from examguard.api.server import app, start_server

__all__ = ["app", "start_server"]
