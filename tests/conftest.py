"""Shared fixtures: synthetic frames and fake capture tracks."""

import time
from typing import Optional

import numpy as np
import pytest

from examguard.cfg import ProctoringConfig
from examguard.data.camera import DeviceError, MediaStream, MediaTrack, VideoTrack

SKIN_RGB = (200, 150, 120)


def solid_frame(color, width=640, height=480) -> np.ndarray:
    frame = np.empty((height, width, 3), dtype=np.uint8)
    frame[:, :] = color
    return frame


def face_frame(width=640, height=480, background=(0, 0, 0), face=SKIN_RGB) -> np.ndarray:
    """RGB frame whose centre block is skin-coloured."""
    frame = solid_frame(background, width, height)
    frame[height // 4: height // 4 + height // 2, width // 4: width // 4 + width // 2] = face
    return frame


def to_bgr(frame: np.ndarray) -> np.ndarray:
    return np.ascontiguousarray(frame[..., ::-1])


class FakeCamera(VideoTrack):
    """Replays BGR frames; the last one repeats."""

    def __init__(self, frames=None, fail: Optional[str] = None):
        self.frames = list(frames or [])
        self.fail = fail
        self.opened = False
        self.close_calls = 0
        self.reads = 0

    def open(self):
        if self.fail is not None:
            raise DeviceError(self.fail)
        self.opened = True

    def read(self):
        if not self.opened or not self.frames:
            return None
        self.reads += 1
        if len(self.frames) > 1:
            return self.frames.pop(0)
        return self.frames[0]

    def close(self):
        self.close_calls += 1
        self.opened = False

    @property
    def is_open(self) -> bool:
        return self.opened


class FakeMicrophone(MediaTrack):
    kind = "audio"

    def __init__(self, fail: Optional[str] = None, level: float = 0.0):
        self.fail = fail
        self.opened = False
        self.level = level

    def open(self):
        if self.fail is not None:
            raise DeviceError(self.fail)
        self.opened = True

    def close(self):
        self.opened = False

    @property
    def is_open(self) -> bool:
        return self.opened


class StreamFactory:
    """Builds MediaStreams over fake tracks and remembers them."""

    def __init__(self, frames=None, fail: Optional[str] = None, delay: float = 0.0, level: float = 0.0):
        self.frames = frames
        self.fail = fail
        self.delay = delay
        self.level = level
        self.streams = []

    def __call__(self, config: ProctoringConfig) -> MediaStream:
        # Runs in a worker thread, like a real device open
        if self.delay:
            time.sleep(self.delay)
        stream = MediaStream(FakeCamera(self.frames, fail=self.fail), FakeMicrophone(level=self.level))
        stream.open()
        self.streams.append(stream)
        return stream


@pytest.fixture
def skin_bgr():
    return to_bgr(face_frame())


@pytest.fixture
def black_bgr():
    return solid_frame((0, 0, 0))
