"""
ExamGuard Data Module

Capture devices, frame sampling and focus tracking.
"""

from examguard.data.camera import (
    DeviceError,
    MediaTrack,
    VideoTrack,
    OpenCVCamera,
    Microphone,
    MediaStream,
    encode_jpeg_data_url,
)
from examguard.data.sampler import FrameSample, FrameSampler
from examguard.data.focus import FocusSource, ManualFocusSource, FocusMonitor

__all__ = [
    # Capture
    "DeviceError",
    "MediaTrack",
    "VideoTrack",
    "OpenCVCamera",
    "Microphone",
    "MediaStream",
    "encode_jpeg_data_url",
    # Sampling
    "FrameSample",
    "FrameSampler",
    # Focus
    "FocusSource",
    "ManualFocusSource",
    "FocusMonitor",
]
