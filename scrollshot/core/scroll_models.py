"""
Scroll Capture Models

Enums and result records exchanged between the scroll session, the poller,
the stitcher and the API layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from scrollshot.config import get_defaults
from scrollshot.utils.error_handler import ValidationFailedError

MAX_CONSECUTIVE_FAILURES_LIMIT = 255


class ScrollSessionState(str, Enum):
    READY = "ready"
    CAPTURING = "capturing"
    PAUSED = "paused"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ScrollSessionState.DONE, ScrollSessionState.ERROR)


class SkipReason(str, Enum):
    DUPLICATE = "duplicate"
    TOO_SMALL_DELTA = "too_small_delta"
    MATCH_FAILED = "match_failed"


class StopReason(str, Enum):
    USER = "user"
    TIMEOUT = "timeout"
    REACHED_MAX_HEIGHT = "reached_max_height"
    NO_NEW_CONTENT = "no_new_content"
    CONSECUTIVE_FAILURES = "consecutive_failures"


class AppendKind(str, Enum):
    ACCEPTED = "accepted"
    SKIPPED = "skipped"
    AUTO_STOPPED = "auto_stopped"


@dataclass(frozen=True)
class AppendResult:
    """Outcome of offering a frame to a ScrollSession."""

    kind: AppendKind
    dy: int = 0
    score: float = 0.0
    reason: Optional[Union[SkipReason, StopReason]] = None

    @classmethod
    def accepted(cls, dy: int, score: float) -> "AppendResult":
        return cls(AppendKind.ACCEPTED, dy=dy, score=score)

    @classmethod
    def skipped(cls, reason: SkipReason) -> "AppendResult":
        return cls(AppendKind.SKIPPED, reason=reason)

    @classmethod
    def auto_stopped(cls, reason: StopReason) -> "AppendResult":
        return cls(AppendKind.AUTO_STOPPED, reason=reason)

    @property
    def is_accepted(self) -> bool:
        return self.kind is AppendKind.ACCEPTED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.kind is AppendKind.ACCEPTED:
            data.update({"dy": self.dy, "score": self.score})
        else:
            data["reason"] = self.reason.value if self.reason else None
        return data


@dataclass(frozen=True)
class ScrollConfig:
    """Limits for one scroll capture session. Immutable once created."""

    max_height_px: int = field(default_factory=lambda: get_defaults().SCROLL_MAX_HEIGHT_PX)
    max_frames: int = field(default_factory=lambda: get_defaults().SCROLL_MAX_FRAMES)
    throttle_ms: int = field(default_factory=lambda: get_defaults().SCROLL_THROTTLE_MS)
    max_consecutive_failures: int = field(
        default_factory=lambda: get_defaults().SCROLL_MAX_CONSECUTIVE_FAILURES
    )

    def __post_init__(self):
        minimums = {"max_height_px": 1, "max_frames": 1, "throttle_ms": 0, "max_consecutive_failures": 1}
        for name, minimum in minimums.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                raise ValidationFailedError(
                    f"ScrollConfig.{name} must be an integer >= {minimum}, got {value!r}", field=name
                )
        # The session's failure counter saturates at this value
        if self.max_consecutive_failures > MAX_CONSECUTIVE_FAILURES_LIMIT:
            raise ValidationFailedError(
                f"ScrollConfig.max_consecutive_failures must be <= {MAX_CONSECUTIVE_FAILURES_LIMIT}, "
                f"got {self.max_consecutive_failures}",
                field="max_consecutive_failures",
            )


@dataclass(frozen=True)
class ScrollProgress:
    frames: int
    captured_height_px: int
    state: ScrollSessionState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frames": self.frames,
            "captured_height_px": self.captured_height_px,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class StitchResult:
    total_frames: int
    used_frames: int
    skipped_frames: int
    final_height: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_frames": self.total_frames,
            "used_frames": self.used_frames,
            "skipped_frames": self.skipped_frames,
            "final_height": self.final_height,
        }
