from __future__ import annotations
"""
Frame Sampler

Recurring asyncio timer that grabs a frame from the active stream and hands
it to the presence check.
"""

import asyncio
from typing import Any, Callable, Optional
from datetime import datetime
from dataclasses import dataclass, field

import cv2
import numpy as np

from examguard.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class FrameSample:
    """A sampled video frame (RGB) with metadata."""
    pixels: np.ndarray
    width: int
    height: int
    timestamp: datetime = field(default_factory=datetime.utcnow)
    frame_number: int = 0


class FrameSampler:
    """
    Samples frames every ``interval_ms`` on the running event loop.

    The first sample is taken one interval after start(). Errors inside a
    tick are logged and the timer keeps running.

    Example:
        >>> sampler = FrameSampler(stream.read_frame, 2000, on_sample)
        >>> sampler.start()
        >>> ...
        >>> sampler.stop()
    """

    def __init__(
        self,
        read_frame: Callable[[], Optional[np.ndarray]],
        interval_ms: int,
        on_sample: Callable[[FrameSample], Any],
    ):
        """
        Initialize frame sampler.

        Args:
            read_frame: Returns the current BGR frame or None
            interval_ms: Sampling period in milliseconds
            on_sample: Receives each FrameSample; its return value is
                passed back from tick()
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self.read_frame = read_frame
        self.interval_ms = interval_ms
        self.on_sample = on_sample

        self.frame_count = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the timer on the running loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self):
        """Cancel the timer. Idempotent, and safe to call from inside a tick."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def sample(self) -> Optional[FrameSample]:
        """Grab and convert the current frame."""
        frame = self.read_frame()
        if frame is None or frame.size == 0:
            return None

        self.frame_count += 1
        return FrameSample(
            pixels=cv2.cvtColor(frame, cv2.COLOR_BGR2RGB),
            width=frame.shape[1],
            height=frame.shape[0],
            frame_number=self.frame_count,
        )

    def tick(self) -> Any:
        """Take one sample and hand it on. Returns on_sample's result."""
        sample = self.sample()
        if sample is None:
            logger.debug("No frame available; skipping tick")
            return None
        return self.on_sample(sample)

    async def _run(self):
        interval = self.interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            try:
                self.tick()
            except Exception as e:
                logger.warning(f"⚠️ Frame sampling failed, skipping tick: {e}")
