from __future__ import annotations
"""
ExamGuard Configuration Classes

Pydantic-based configuration with validation and defaults.
Single source of truth for all configuration values.
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from functools import lru_cache


# ============================================================================
# Constants - Single source of truth for default values
# ============================================================================

# Violation policy
DEFAULT_MAX_VIOLATIONS = 5
DEFAULT_CHECK_INTERVAL_MS = 2000

# Capture defaults
DEFAULT_CAMERA_INDEX = 0
DEFAULT_FRAME_WIDTH = 640
DEFAULT_FRAME_HEIGHT = 480
DEFAULT_CAPTURE_AUDIO = True
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_JPEG_QUALITY = 80

# Presence heuristic thresholds
DEFAULT_SKIN_TONE_RATIO = 0.05
DEFAULT_MIN_BRIGHTNESS = 30.0
DEFAULT_MAX_BRIGHTNESS = 240.0

# API defaults
DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8001


# ============================================================================
# Base Configuration
# ============================================================================

class BaseConfig(BaseModel):
    """Base configuration class for all ExamGuard configs."""

    class Config:
        extra = "allow"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.model_dump()})"


# ============================================================================
# Component Configurations (derived from Settings)
# ============================================================================

class PresenceConfig(BaseConfig):
    """Thresholds for the skin-tone/brightness presence heuristic."""

    skin_tone_ratio: float = Field(
        default=DEFAULT_SKIN_TONE_RATIO, ge=0.0, le=1.0,
        description="Minimum share of skin-tone pixels in the centre region",
    )
    min_brightness: float = Field(
        default=DEFAULT_MIN_BRIGHTNESS, ge=0.0, le=255.0,
        description="Average brightness must be strictly above this",
    )
    max_brightness: float = Field(
        default=DEFAULT_MAX_BRIGHTNESS, ge=0.0, le=255.0,
        description="Average brightness must be strictly below this",
    )


class ProctoringConfig(BaseConfig):
    """Configuration for one proctored session."""

    # Violation policy
    max_violations: int = Field(default=DEFAULT_MAX_VIOLATIONS, ge=1, description="Violations that disqualify")
    check_interval_ms: int = Field(default=DEFAULT_CHECK_INTERVAL_MS, gt=0, description="Presence check period (ms)")

    # Capture
    camera_index: int = Field(default=DEFAULT_CAMERA_INDEX, ge=0, description="OpenCV camera index")
    frame_width: int = Field(default=DEFAULT_FRAME_WIDTH, gt=0, description="Requested capture width")
    frame_height: int = Field(default=DEFAULT_FRAME_HEIGHT, gt=0, description="Requested capture height")
    capture_audio: bool = Field(default=DEFAULT_CAPTURE_AUDIO, description="Acquire the microphone with the camera")
    sample_rate: int = Field(default=DEFAULT_SAMPLE_RATE, gt=0, description="Microphone sample rate")
    jpeg_quality: int = Field(default=DEFAULT_JPEG_QUALITY, ge=1, le=100, description="Snapshot JPEG quality")

    # Classifier
    presence: PresenceConfig = Field(default_factory=PresenceConfig)


# ============================================================================
# Main Settings (Single Source of Truth with Environment Variable Support)
# ============================================================================

class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Every field can be overridden by the upper-cased environment variable of
    the same name (``MAX_VIOLATIONS=3``) or from a ``.env`` file. Session
    configs are derived from these settings.
    """

    # Violation policy
    max_violations: int = DEFAULT_MAX_VIOLATIONS
    check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS

    # Capture
    camera_index: int = DEFAULT_CAMERA_INDEX
    frame_width: int = DEFAULT_FRAME_WIDTH
    frame_height: int = DEFAULT_FRAME_HEIGHT
    capture_audio: bool = DEFAULT_CAPTURE_AUDIO
    sample_rate: int = DEFAULT_SAMPLE_RATE
    jpeg_quality: int = DEFAULT_JPEG_QUALITY

    # Presence thresholds
    skin_tone_ratio: float = DEFAULT_SKIN_TONE_RATIO
    min_brightness: float = DEFAULT_MIN_BRIGHTNESS
    max_brightness: float = DEFAULT_MAX_BRIGHTNESS

    # API / logging
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    def to_presence_config(self) -> PresenceConfig:
        """Convert settings to PresenceConfig."""
        return PresenceConfig(
            skin_tone_ratio=self.skin_tone_ratio,
            min_brightness=self.min_brightness,
            max_brightness=self.max_brightness,
        )

    def to_proctoring_config(self, **overrides) -> ProctoringConfig:
        """
        Convert settings to ProctoringConfig.

        Args:
            **overrides: Per-session values that win over the environment
                (e.g. ``max_violations`` chosen by the exam).
        """
        values = dict(
            max_violations=self.max_violations,
            check_interval_ms=self.check_interval_ms,
            camera_index=self.camera_index,
            frame_width=self.frame_width,
            frame_height=self.frame_height,
            capture_audio=self.capture_audio,
            sample_rate=self.sample_rate,
            jpeg_quality=self.jpeg_quality,
            presence=self.to_presence_config(),
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return ProctoringConfig(**values)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
