"""
Scrollshot - Default Configuration Constants

Centralized configuration for scroll capture and stitching.
Values can be overridden via environment variables.

Usage:
    from scrollshot.config.defaults import Defaults
    threshold = Defaults.CHANGE_THRESHOLD
"""

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, default))


@dataclass
class AppDefaults:
    """Application-wide default configuration."""

    # ==========================================================================
    # Server Settings
    # ==========================================================================
    SERVER_PORT: int = 8085
    SERVER_HOST: str = "0.0.0.0"
    LOG_LEVEL: str = "INFO"

    # ==========================================================================
    # Frame Comparison
    # ==========================================================================
    CHANGE_THRESHOLD: float = 1.8  # Score >= this means the frame changed
    DIFF_SAMPLE_GRID: int = 80  # Samples per axis (stride = size // grid)
    MAX_DIFFERENCE: float = 255.0  # Returned for empty bitmaps

    # ==========================================================================
    # Overlap Matching
    # ==========================================================================
    MIN_SCROLL_OVERLAP: int = 24
    MIN_SCROLL_NEW_CONTENT: int = 40
    OVERLAP_STEP: int = 2
    MAX_SCROLL_MATCH_ERROR: float = 42.0
    MATCH_BAND_START_PCT: int = 15
    MATCH_BAND_END_PCT: int = 85
    MATCH_COLUMN_SAMPLES: int = 70
    MATCH_ROW_SAMPLES: int = 80

    # ==========================================================================
    # Stitching
    # ==========================================================================
    MIN_SLICE_HEIGHT: int = 10
    MAX_SCROLL_FRAMES: int = 80  # Frame cap for a single stitch call
    MIN_FRAME_SIZE: int = 20
    MIN_CAPTURE_SIZE: int = 10

    # ==========================================================================
    # Scroll Session
    # ==========================================================================
    SCROLL_MAX_HEIGHT_PX: int = 20_000
    SCROLL_MAX_FRAMES: int = 300
    SCROLL_THROTTLE_MS: int = 100  # Advisory, caller cadence only
    SCROLL_MAX_CONSECUTIVE_FAILURES: int = 3
    SCROLL_SESSION_TIMEOUT_MS: int = 120_000  # Idle auto-cancel
    POLL_INTERVAL_MS: int = 200  # Advisory

    @classmethod
    def from_env(cls) -> "AppDefaults":
        """Create config from environment variables with defaults."""
        return cls(
            SERVER_PORT=_env_int("SERVER_PORT", cls.SERVER_PORT),
            SERVER_HOST=os.getenv("SERVER_HOST", cls.SERVER_HOST),
            LOG_LEVEL=os.getenv("LOG_LEVEL", cls.LOG_LEVEL).upper(),
            CHANGE_THRESHOLD=_env_float("CHANGE_THRESHOLD", cls.CHANGE_THRESHOLD),
            MAX_SCROLL_MATCH_ERROR=_env_float("MAX_SCROLL_MATCH_ERROR", cls.MAX_SCROLL_MATCH_ERROR),
            MAX_SCROLL_FRAMES=_env_int("MAX_SCROLL_FRAMES", cls.MAX_SCROLL_FRAMES),
            SCROLL_MAX_HEIGHT_PX=_env_int("SCROLL_MAX_HEIGHT_PX", cls.SCROLL_MAX_HEIGHT_PX),
            SCROLL_MAX_FRAMES=_env_int("SCROLL_MAX_FRAMES", cls.SCROLL_MAX_FRAMES),
            SCROLL_THROTTLE_MS=_env_int("SCROLL_THROTTLE_MS", cls.SCROLL_THROTTLE_MS),
            SCROLL_MAX_CONSECUTIVE_FAILURES=_env_int(
                "SCROLL_MAX_CONSECUTIVE_FAILURES", cls.SCROLL_MAX_CONSECUTIVE_FAILURES
            ),
            SCROLL_SESSION_TIMEOUT_MS=_env_int("SCROLL_SESSION_TIMEOUT_MS", cls.SCROLL_SESSION_TIMEOUT_MS),
        )


# Global defaults instance - can be overridden at runtime
Defaults = AppDefaults()


def load_defaults_from_env():
    """Reload defaults from environment variables."""
    global Defaults
    Defaults = AppDefaults.from_env()
    return Defaults


def get_defaults() -> AppDefaults:
    """Return the active defaults (reflects load_defaults_from_env)."""
    return Defaults
