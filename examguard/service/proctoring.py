from __future__ import annotations
"""
Proctoring Session

Owns one proctored activity: camera/microphone acquisition, the sampling
timer, presence checks, focus tracking and violation accounting.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Callable, Optional

from examguard.cfg import ProctoringConfig, get_settings
from examguard.data.camera import MediaStream, encode_jpeg_data_url
from examguard.data.focus import FocusMonitor, FocusSource
from examguard.data.sampler import FrameSample, FrameSampler
from examguard.engine.accumulator import ViolationAccumulator, ViolationCallback, DisqualifyCallback
from examguard.engine.presence import PresenceClassifier
from examguard.engine.results import PresenceResults, ProctoringState, SessionReport
from examguard.utils.logger import get_logger, SessionLogger
from examguard.utils.violations import ViolationKind

logger = get_logger(__name__)

StreamFactory = Callable[[ProctoringConfig], MediaStream]


class ProctoringSession:
    """
    Webcam proctoring for one exam or interview attempt.

    The camera is released on every exit path: stop_camera(), close(),
    disqualification, or leaving an ``async with`` block.

    Example:
        >>> session = ProctoringSession(
        ...     ProctoringConfig(max_violations=5),
        ...     on_violation=lambda kind: print(kind),
        ...     on_disqualify=submit_exam,
        ...     focus_source=focus,
        ... )
        >>> async with session:
        ...     await run_exam()
        >>> session.report().to_dict()
    """

    def __init__(
        self,
        config: Optional[ProctoringConfig] = None,
        on_violation: Optional[ViolationCallback] = None,
        on_disqualify: Optional[DisqualifyCallback] = None,
        session_id: Optional[str] = None,
        stream_factory: Optional[StreamFactory] = None,
        focus_source: Optional[FocusSource] = None,
        classifier: Optional[PresenceClassifier] = None,
    ):
        """
        Initialize a proctoring session.

        Args:
            config: Session configuration (defaults from Settings)
            on_violation: Called with the kind of every counted violation
            on_disqualify: Called once when the threshold is reached
            session_id: Host-assigned identifier
            stream_factory: Acquires the MediaStream (defaults to the webcam)
            focus_source: Delivers tab/window focus transitions
            classifier: Presence classifier (defaults to config.presence)
        """
        self.config = config or get_settings().to_proctoring_config()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.log = SessionLogger(self.session_id)
        self.on_disqualify = on_disqualify

        self.accumulator = ViolationAccumulator(
            max_violations=self.config.max_violations,
            on_violation=on_violation,
            on_disqualify=self._handle_disqualify,
            session_logger=self.log,
        )
        self.classifier = classifier or PresenceClassifier(self.config.presence)
        self.focus_monitor = FocusMonitor(self.accumulator)
        if focus_source is not None:
            self.focus_monitor.attach(focus_source)

        self._stream_factory = stream_factory or MediaStream.acquire
        self._stream: Optional[MediaStream] = None
        self._sampler: Optional[FrameSampler] = None
        self._start_lock: Optional[asyncio.Lock] = None
        self._closed = False

        self.last_presence: Optional[PresenceResults] = None
        self.started_at: Optional[datetime] = None
        self.ended_at: Optional[datetime] = None

    @property
    def state(self) -> ProctoringState:
        """Current state snapshot."""
        return self.accumulator.state

    @property
    def sampling(self) -> bool:
        return self._sampler is not None and self._sampler.running

    @property
    def audio_level(self) -> Optional[float]:
        """RMS level of the latest microphone block, or None without audio."""
        if self._stream is None:
            return None
        return self._stream.audio_level

    async def start_camera(self) -> bool:
        """
        Acquire the camera/microphone and start presence checks.

        Device failures are stored in ``state.error``; nothing is raised.
        Concurrent calls share one acquisition. If the caller is cancelled
        while the device is opening, the stream is released once it opens.

        Returns:
            True if the camera is active
        """
        if self._start_lock is None:
            self._start_lock = asyncio.Lock()

        async with self._start_lock:
            if self._closed or self.state.is_disqualified:
                logger.warning(f"Session {self.session_id} is finished; not starting camera")
                return False
            if self._stream is not None:
                return True
            return await self._acquire()

    async def _acquire(self) -> bool:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._stream_factory, self.config)
        try:
            stream = await asyncio.shield(future)
        except asyncio.CancelledError:
            future.add_done_callback(self._release_abandoned)
            raise
        except Exception as e:
            message = str(e) or "Camera access denied"
            self.accumulator.camera_failed(message)
            self.log.log_device("start failed", message)
            return False

        # Closed while the device was being acquired
        if self._closed:
            stream.stop()
            return False

        self._stream = stream
        self.accumulator.camera_started()
        self._sampler = FrameSampler(stream.read_frame, self.config.check_interval_ms, self._on_sample)
        self._sampler.start()

        if self.started_at is None:
            self.started_at = datetime.utcnow()
        self.log.log_device(
            "camera started",
            f"{self.config.frame_width}x{self.config.frame_height} every {self.config.check_interval_ms}ms",
        )
        return True

    def _release_abandoned(self, future: asyncio.Future):
        if future.cancelled() or future.exception() is not None:
            return
        future.result().stop()
        self.log.log_device("released", "start was cancelled")

    def stop_camera(self):
        """Stop all tracks and the sampling timer. Idempotent."""
        if self._sampler is not None:
            self._sampler.stop()
            self._sampler = None
        if self._stream is not None:
            self._stream.stop()
            self._stream = None
            self.log.log_device("camera stopped")
        self.accumulator.camera_stopped()

    def check_presence(self) -> Optional[PresenceResults]:
        """
        Run one presence check now.

        Returns:
            PresenceResults, or None if there was nothing to classify
        """
        if self._sampler is None:
            return None
        try:
            return self._sampler.tick()
        except Exception as e:
            logger.warning(f"⚠️ Frame capture failed, skipping check: {e}")
            return None

    def _on_sample(self, sample: FrameSample) -> Optional[PresenceResults]:
        try:
            results = self.classifier(sample)
        except Exception as e:
            logger.warning(f"⚠️ Presence check skipped for frame #{sample.frame_number}: {e}")
            return None

        self.last_presence = results
        self.log.log_frame(sample.frame_number, results.face_detected, results.total_time_ms)
        self.accumulator.observe_presence(results.face_detected)
        return results

    def capture_frame(self) -> Optional[str]:
        """
        Snapshot of the current frame as a JPEG data URL.

        Returns:
            ``data:image/jpeg;base64,...`` or None without an active stream
        """
        if self._stream is None or not self._stream.active:
            return None
        frame = self._stream.read_frame()
        if frame is None:
            return None
        return encode_jpeg_data_url(frame, self.config.jpeg_quality)

    def add_violation(self, kind: ViolationKind | str) -> bool:
        """Count a violation reported by the host (e.g. a paste attempt)."""
        return self.accumulator.record(kind)

    def attach_focus_source(self, source: FocusSource):
        self.focus_monitor.attach(source)

    def _handle_disqualify(self):
        self.stop_camera()
        if self.on_disqualify is not None:
            self.on_disqualify()

    def report(self) -> SessionReport:
        """Summary for the host to persist."""
        state = self.state
        return SessionReport(
            session_id=self.session_id,
            violations=state.violations,
            max_violations=self.accumulator.max_violations,
            is_disqualified=state.is_disqualified,
            violations_by_kind=dict(self.accumulator.counts),
            started_at=self.started_at,
            ended_at=self.ended_at,
        )

    def close(self) -> SessionReport:
        """Detach focus tracking, release devices and finish the session."""
        self._closed = True
        self.focus_monitor.detach()
        self.stop_camera()
        if self.ended_at is None:
            self.ended_at = datetime.utcnow()
        return self.report()

    async def __aenter__(self) -> "ProctoringSession":
        await self.start_camera()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
