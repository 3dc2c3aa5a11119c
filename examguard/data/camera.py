from __future__ import annotations
"""
Camera and Microphone Capture

Hardware tracks bundled into a MediaStream that is acquired and released as
one unit. Video frames come from OpenCV (BGR), audio from sounddevice.
"""

import base64
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from examguard.cfg import ProctoringConfig
from examguard.utils.logger import get_logger

logger = get_logger(__name__)


class DeviceError(RuntimeError):
    """Capture device is busy, missing, or access was denied."""


class MediaTrack(ABC):
    """A single hardware capture track."""

    kind: str = "unknown"

    @abstractmethod
    def open(self):
        """Acquire the device. Raises DeviceError on failure."""

    @abstractmethod
    def close(self):
        """Release the device. Must be safe to call more than once."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the device is currently held."""


class VideoTrack(MediaTrack):
    """A track that yields BGR frames."""

    kind = "video"

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Return the current frame, or None if no frame is available."""


class OpenCVCamera(VideoTrack):
    """
    Webcam track backed by cv2.VideoCapture.

    Frames are read into a reusable buffer; the array returned by read() is
    overwritten by the next read.
    """

    def __init__(self, index: int = 0, width: int = 640, height: int = 480):
        self.index = index
        self.width = width
        self.height = height
        self._cap: Optional[cv2.VideoCapture] = None
        self._buffer: Optional[np.ndarray] = None

    def open(self):
        cap = cv2.VideoCapture(self.index)
        if not cap.isOpened():
            cap.release()
            raise DeviceError(
                f"Could not open camera {self.index} (device busy, missing or permission denied)"
            )
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        if self._buffer is None:
            ok, frame = self._cap.read()
        else:
            ok, frame = self._cap.read(self._buffer)
        if not ok or frame is None or frame.size == 0:
            return None
        self._buffer = frame
        return frame

    def close(self):
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._buffer = None

    @property
    def is_open(self) -> bool:
        return self._cap is not None


class Microphone(MediaTrack):
    """
    Microphone track backed by a sounddevice InputStream.

    Only the RMS level of the latest block is kept; audio is not recorded.
    """

    kind = "audio"

    def __init__(self, sample_rate: int = 16000, channels: int = 1):
        self.sample_rate = sample_rate
        self.channels = channels
        self.level = 0.0
        self._stream = None

    def open(self):
        # PortAudio is loaded at import time
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise DeviceError(f"Microphone unavailable: {e}") from e

        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="float32",
                callback=self._callback,
            )
            stream.start()
        except Exception as e:
            raise DeviceError(f"Could not open microphone: {e}") from e
        self._stream = stream

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.debug(f"Microphone status: {status}")
        self.level = float(np.sqrt(np.mean(np.square(indata))))

    def close(self):
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        self.level = 0.0

    @property
    def is_open(self) -> bool:
        return self._stream is not None


class MediaStream:
    """
    Camera plus optional microphone, acquired and released together.

    Example:
        >>> stream = MediaStream.acquire(config)
        >>> frame = stream.read_frame()
        >>> stream.stop()
    """

    def __init__(self, video: VideoTrack, audio: Optional[MediaTrack] = None):
        self.video = video
        self.audio = audio

    @classmethod
    def acquire(cls, config: ProctoringConfig) -> "MediaStream":
        """Open the configured camera (and microphone)."""
        video = OpenCVCamera(config.camera_index, config.frame_width, config.frame_height)
        audio = Microphone(config.sample_rate) if config.capture_audio else None
        stream = cls(video, audio)
        stream.open()
        return stream

    @property
    def tracks(self) -> list[MediaTrack]:
        return [t for t in (self.video, self.audio) if t is not None]

    @property
    def active(self) -> bool:
        return self.video.is_open

    @property
    def audio_level(self) -> Optional[float]:
        if self.audio is None or not self.audio.is_open:
            return None
        return getattr(self.audio, "level", None)

    def open(self):
        self.video.open()
        if self.audio is not None:
            try:
                self.audio.open()
            except DeviceError:
                self.video.close()
                raise

    def read_frame(self) -> Optional[np.ndarray]:
        if not self.active:
            return None
        return self.video.read()

    def stop(self):
        """Stop every track. Idempotent."""
        for track in self.tracks:
            if track.is_open:
                track.close()


def encode_jpeg_data_url(frame: np.ndarray, quality: int = 80) -> Optional[str]:
    """
    Encode a BGR frame as a ``data:image/jpeg;base64,...`` URL.

    Returns None for empty frames or when encoding fails.
    """
    if frame is None or frame.size == 0 or frame.shape[0] == 0 or frame.shape[1] == 0:
        return None
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    if not ok:
        return None
    return "data:image/jpeg;base64," + base64.b64encode(buffer.tobytes()).decode("ascii")
