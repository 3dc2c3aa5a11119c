"""
Presence Classifier

Cheap, deterministic skin-tone/brightness heuristic deciding whether a face
is plausibly present in the centre of a webcam frame. It is not a trained
model and makes no accuracy claims.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
from numpy.typing import NDArray

from examguard.cfg import PresenceConfig
from examguard.engine.predictor import BasePredictor
from examguard.engine.results import PresenceResults


class FrameError(ValueError):
    """Raised when a frame cannot be classified."""


def center_region(frame: NDArray[np.uint8]) -> tuple[int, int, int, int]:
    """
    Middle half of the frame in both axes, as (x, y, width, height).

    Coordinates are truncated to whole pixels.
    """
    height, width = frame.shape[:2]
    return width // 4, height // 4, width // 2, height // 2


def skin_tone_mask(rgb: NDArray) -> NDArray[np.bool_]:
    """
    Per-pixel skin-tone rule.

    r > 60, g > 40, b > 20, r > g, r > b, |r - g| > 15 and r - b > 15.
    """
    rgb = rgb.astype(np.int16, copy=False)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    return (
        (r > 60) & (g > 40) & (b > 20)
        & (r > g) & (r > b)
        & (np.abs(r - g) > 15)
        & ((r - b) > 15)
    )


class PresenceClassifier(BasePredictor):
    """
    Face-presence heuristic over the centre of an RGB frame.

    Example:
        >>> classifier = PresenceClassifier()
        >>> results = classifier(frame_sample)
        >>> results.face_detected, results.skin_tone_ratio
    """

    def __init__(self, cfg: Optional[PresenceConfig] = None):
        super().__init__(cfg or PresenceConfig())

    def preprocess(self, source: Any) -> tuple[NDArray, tuple[int, int, int, int]]:
        """Crop the centre region out of a FrameSample or an RGB array."""
        frame = getattr(source, "pixels", source)
        frame = np.asarray(frame)

        if frame.ndim != 3 or frame.shape[2] < 3:
            raise FrameError(f"Expected an HxWx3 RGB frame, got shape {frame.shape}")

        x, y, w, h = center_region(frame)
        if w == 0 or h == 0:
            raise FrameError(f"Frame too small to sample: {frame.shape[1]}x{frame.shape[0]}")

        # Drop an alpha channel if present
        return frame[y:y + h, x:x + w, :3], (x, y, w, h)

    def inference(self, data: tuple[NDArray, tuple[int, int, int, int]]) -> dict:
        region, bounds = data
        pixels = region.astype(np.int16)
        pixel_count = pixels.shape[0] * pixels.shape[1]

        # Brightness is the mean of the three channels per pixel
        average_brightness = float(pixels.sum(dtype=np.int64)) / 3.0 / pixel_count
        skin_tone_ratio = float(np.count_nonzero(skin_tone_mask(pixels))) / pixel_count

        return {
            "average_brightness": average_brightness,
            "skin_tone_ratio": skin_tone_ratio,
            "pixel_count": pixel_count,
            "region": bounds,
        }

    def postprocess(self, preds: dict, source: Any) -> PresenceResults:
        cfg = self.cfg
        face_detected = (
            preds["skin_tone_ratio"] > cfg.skin_tone_ratio
            and cfg.min_brightness < preds["average_brightness"] < cfg.max_brightness
        )
        return PresenceResults(
            source=getattr(source, "frame_number", None),
            face_detected=bool(face_detected),
            average_brightness=preds["average_brightness"],
            skin_tone_ratio=preds["skin_tone_ratio"],
            pixel_count=preds["pixel_count"],
            region=preds["region"],
        )
