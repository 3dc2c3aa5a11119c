from __future__ import annotations
"""
FastAPI Server for ExamGuard

Local proctoring agent API. The exam page creates a session, forwards
browser focus events, polls the state and ends the session when the
attempt is over.
"""

from contextlib import asynccontextmanager
from enum import Enum
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from examguard.cfg import get_settings
from examguard.data.camera import MediaStream
from examguard.data.focus import ManualFocusSource
from examguard.service.proctoring import ProctoringSession
from examguard.utils import (
    get_logger,
    proctoring_rules,
    describe_violation,
    get_severity_for_count,
    get_violation_message,
)
from examguard.engine.results import ProctoringState
from examguard.utils.violations import ViolationKind

logger = get_logger(__name__)


class ActiveSession:
    """A registered session and the focus source the browser drives."""

    def __init__(self, session: ProctoringSession, focus: ManualFocusSource):
        self.session = session
        self.focus = focus


# Track active proctoring sessions
active_sessions: dict[str, ActiveSession] = {}


class FocusEvent(str, Enum):
    """Browser events forwarded by the exam page."""
    HIDDEN = "hidden"
    VISIBLE = "visible"
    BLUR = "blur"
    FOCUS = "focus"


class StartSessionRequest(BaseModel):
    """Request to start proctoring an attempt."""
    session_id: str
    max_violations: Optional[int] = Field(default=None, ge=1)
    check_interval_ms: Optional[int] = Field(default=None, gt=0)


class SessionResponse(BaseModel):
    """Session state snapshot."""
    success: bool
    session_id: str
    state: dict
    severity: str = "low"
    message: str = ""
    alert: Optional[dict] = None
    audio_level: Optional[float] = None


class FocusRequest(BaseModel):
    event: FocusEvent


class ViolationRequest(BaseModel):
    kind: ViolationKind


class FrameResponse(BaseModel):
    session_id: str
    image: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("🚀 ExamGuard API starting...")
    if not hasattr(app.state, "stream_factory"):
        app.state.stream_factory = MediaStream.acquire
    yield
    # Cleanup on shutdown
    logger.info("👋 Shutting down, releasing all cameras...")
    for session_id, active in list(active_sessions.items()):
        try:
            active.session.close()
        except Exception as e:
            logger.error(f"Error closing session {session_id}: {e}")
    active_sessions.clear()


app = FastAPI(
    title="ExamGuard Proctoring Agent",
    description="Webcam proctoring for exams and interviews",
    version="1.0.0",
    lifespan=lifespan,
)


def _get_active(session_id: str) -> ActiveSession:
    active = active_sessions.get(session_id)
    if active is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return active


def _alert(state: ProctoringState) -> Optional[dict]:
    """Overlay for the violation condition that currently holds, if any."""
    if state.is_disqualified:
        return None
    if state.camera_enabled and not state.face_detected:
        kind = ViolationKind.NO_FACE
    elif not state.tab_focused:
        kind = ViolationKind.TAB_SWITCH
    else:
        return None
    message = get_violation_message(kind)
    return {"kind": kind.value, "title": message.title, "description": message.description}


def _response(session: ProctoringSession, success: bool = True, message: str = "") -> SessionResponse:
    return SessionResponse(
        success=success,
        session_id=session.session_id,
        state=session.state.to_dict(),
        severity=get_severity_for_count(
            session.state.violations, session.accumulator.max_violations
        ).value,
        message=message,
        alert=_alert(session.state),
        audio_level=session.audio_level,
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "active_sessions": len(active_sessions)}


@app.get("/rules")
async def get_rules(max_violations: Optional[int] = None):
    """Proctoring rules for the instructions screen."""
    limit = max_violations or get_settings().max_violations
    return {"max_violations": limit, "rules": proctoring_rules(limit)}


@app.post("/sessions", response_model=SessionResponse)
async def start_session(payload: StartSessionRequest, request: Request):
    """
    Create a session and start the camera.

    Posting an existing session id retries the camera start.
    """
    active = active_sessions.get(payload.session_id)

    if active is None:
        config = get_settings().to_proctoring_config(
            max_violations=payload.max_violations,
            check_interval_ms=payload.check_interval_ms,
        )
        focus = ManualFocusSource()
        session = ProctoringSession(
            config,
            on_violation=lambda kind: logger.info(describe_violation(kind)),
            session_id=payload.session_id,
            stream_factory=request.app.state.stream_factory,
            focus_source=focus,
        )
        active = ActiveSession(session, focus)
        active_sessions[payload.session_id] = active

    session = active.session
    if session.state.camera_enabled:
        return _response(session, message="Already monitoring this session")

    started = await session.start_camera()
    if started:
        logger.info(f"✅ Started proctoring session: {session.session_id}")
        return _response(session, message="Camera started")
    return _response(session, success=False, message=session.state.error or "Camera unavailable")


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _response(_get_active(session_id).session)


@app.post("/sessions/{session_id}/focus", response_model=SessionResponse)
async def post_focus(session_id: str, payload: FocusRequest):
    """Forward a browser visibility/focus event."""
    active = _get_active(session_id)

    if payload.event is FocusEvent.HIDDEN:
        active.focus.visibility_changed(hidden=True)
    elif payload.event is FocusEvent.VISIBLE:
        active.focus.visibility_changed(hidden=False)
    elif payload.event is FocusEvent.BLUR:
        active.focus.blur()
    else:
        active.focus.focus()

    return _response(active.session)


@app.post("/sessions/{session_id}/violations", response_model=SessionResponse)
async def post_violation(session_id: str, payload: ViolationRequest):
    """Record a violation detected by the exam page itself."""
    session = _get_active(session_id).session
    counted = session.add_violation(payload.kind)
    return _response(session, success=counted, message="" if counted else "Session already disqualified")


@app.get("/sessions/{session_id}/frame", response_model=FrameResponse)
async def get_frame(session_id: str):
    """Current frame as a JPEG data URL, for audit logging by the host."""
    session = _get_active(session_id).session
    image = session.capture_frame()
    if image is None:
        raise HTTPException(status_code=404, detail="No frame available")
    return FrameResponse(session_id=session_id, image=image)


@app.delete("/sessions/{session_id}")
async def end_session(session_id: str):
    """End a session, release the camera and return the report."""
    active = _get_active(session_id)
    report = active.session.close()
    del active_sessions[session_id]
    logger.info(f"👋 Ended proctoring session: {session_id}")
    return report.to_dict()


def start_server(host: Optional[str] = None, port: Optional[int] = None):
    """Start the FastAPI server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "examguard.api.server:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=False,
    )


if __name__ == "__main__":
    start_server()
