"""
Centralized Error Handling Module for Scrollshot

Provides the capture error hierarchy, the "<kind>:<message>" string protocol
used by capture collaborators, troubleshooting hints, and consistent API
error responses.
"""

import logging
import traceback
from enum import Enum
from typing import Dict, Any, Optional

from fastapi import status
from fastapi.responses import JSONResponse

logger = logging.getLogger("scrollshot")


class CaptureErrorKind(str, Enum):
    """Error kinds shared by the capture core and its collaborators."""

    PERMISSION = "permission"
    CANCELLED = "cancelled"
    CAPTURE_FAILED = "capture_failed"
    STITCH_FAILED = "stitch_failed"
    COMMAND_FAILED = "command_failed"
    VALIDATION_FAILED = "validation_failed"


class ScrollShotError(Exception):
    """Base exception for all Scrollshot errors"""

    kind = CaptureErrorKind.COMMAND_FAILED

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class PermissionDeniedError(ScrollShotError):
    """Raised when the capture backend lacks screen recording permission"""

    kind = CaptureErrorKind.PERMISSION

    def __init__(self, message: str = "Screen Recording permission required"):
        super().__init__(message, code="PERMISSION_DENIED")


class CaptureCancelledError(ScrollShotError):
    """Raised when a capture was cancelled by the user or the backend"""

    kind = CaptureErrorKind.CANCELLED

    def __init__(self, message: str = "Capture was cancelled"):
        super().__init__(message, code="CAPTURE_CANCELLED")


class CaptureFailedError(ScrollShotError):
    """Raised when a region cannot be captured or mapped to a monitor"""

    kind = CaptureErrorKind.CAPTURE_FAILED

    def __init__(self, message: str, monitor_id: Optional[int] = None):
        super().__init__(
            message, code="CAPTURE_FAILED", details={"monitor_id": monitor_id}
        )


class CommandFailedError(ScrollShotError):
    """Raised when an external command or collaborator fails"""

    kind = CaptureErrorKind.COMMAND_FAILED

    def __init__(self, message: str, command: Optional[str] = None):
        super().__init__(
            message, code="COMMAND_FAILED", details={"command": command}
        )


class ValidationFailedError(ScrollShotError):
    """Raised for malformed rectangles, bitmaps or dimension mismatches"""

    kind = CaptureErrorKind.VALIDATION_FAILED

    def __init__(self, message: str, field: Optional[str] = None, code: str = "VALIDATION_FAILED"):
        super().__init__(message, code=code, details={"field": field})


class StitchFailedError(ValidationFailedError):
    """Raised when too few usable frames remain to build a composite"""

    kind = CaptureErrorKind.STITCH_FAILED

    def __init__(self, message: str, used_frames: int = 0, skipped_frames: int = 0):
        super().__init__(message, code="STITCH_FAILED")
        self.details.update({"used_frames": used_frames, "skipped_frames": skipped_frames})


class MatchFailedError(ScrollShotError):
    """Raised when no acceptable overlap exists between two frames"""

    kind = CaptureErrorKind.STITCH_FAILED

    def __init__(self, message: str, best_error: Optional[float] = None):
        super().__init__(
            message, code="MATCH_FAILED", details={"best_error": best_error}
        )


_KIND_TO_ERROR = {
    CaptureErrorKind.PERMISSION: PermissionDeniedError,
    CaptureErrorKind.CANCELLED: CaptureCancelledError,
    CaptureErrorKind.CAPTURE_FAILED: CaptureFailedError,
    CaptureErrorKind.STITCH_FAILED: StitchFailedError,
    CaptureErrorKind.COMMAND_FAILED: CommandFailedError,
    CaptureErrorKind.VALIDATION_FAILED: ValidationFailedError,
}


# =============================================================================
# PREFIXED MESSAGE PROTOCOL - "<kind>:<message>"
# =============================================================================


def is_permission_error(message: str) -> bool:
    """Check whether a backend message describes a missing capture permission."""
    lower = message.lower()
    return (
        "permission" in lower
        or "denied" in lower
        or "not authorized" in lower
        or "could not create image from display" in lower
    )


def split_prefixed_message(message: str):
    """
    Split a "<kind>:<message>" string.

    Returns:
        Tuple of (CaptureErrorKind or None, remaining message)
    """
    head, sep, rest = message.partition(":")
    if sep:
        try:
            return CaptureErrorKind(head.strip()), rest.strip()
        except ValueError:
            pass
    return None, message


def error_from_message(message: str) -> ScrollShotError:
    """
    Build the matching exception for a collaborator's error string.

    Prefixed messages map to their kind. Unprefixed messages become
    PermissionDeniedError when they look like a permission failure and
    CommandFailedError otherwise.
    """
    kind, text = split_prefixed_message(message)
    if kind is None:
        kind = (
            CaptureErrorKind.PERMISSION
            if is_permission_error(text)
            else CaptureErrorKind.COMMAND_FAILED
        )
    return _KIND_TO_ERROR[kind](text)


def to_prefixed_message(error: Exception) -> str:
    """Render an exception as "<kind>:<message>" without double prefixes."""
    text = error.message if isinstance(error, ScrollShotError) else str(error)
    existing, _ = split_prefixed_message(text)
    if existing is not None:
        return text
    kind = error.kind if isinstance(error, ScrollShotError) else CaptureErrorKind.COMMAND_FAILED
    return f"{kind.value}:{text}"


# =============================================================================
# ERROR HINTS - User-friendly troubleshooting suggestions
# =============================================================================

ERROR_HINTS = {
    "permission": {
        "message": "Screen Recording permission required",
        "hint": "Grant Screen Recording permission in System Settings > Privacy & Security > Screen Recording, then restart the capture.",
        "docs": "/docs/permissions",
    },
    "cancelled": {
        "message": "Capture was cancelled",
        "hint": "Start a new scroll capture when ready.",
        "docs": "/docs/scroll-capture",
    },
    "timeout": {
        "message": "Scroll capture timed out",
        "hint": "The session was idle too long. Keep scrolling steadily or raise SCROLL_SESSION_TIMEOUT_MS.",
        "docs": "/docs/scroll-capture",
    },
    "capture": {
        "message": "Failed to capture region",
        "hint": "Make sure the selected area lies on a single monitor and is at least 10x10 pixels.",
        "docs": "/docs/capture-region",
    },
    "stitch": {
        "message": "Failed to stitch scroll frames",
        "hint": "Try slower scrolling and keep the region stable. Scroll further between captures so each frame adds new content.",
        "docs": "/docs/stitching",
    },
    "validation": {
        "message": "Invalid capture input",
        "hint": "Check the capture rectangle and that all frames share the same size.",
        "docs": "/docs/capture-region",
    },
}


def get_error_with_hint(error_type: str, original_message: str = "") -> dict:
    """
    Get error message with troubleshooting hint.

    Args:
        error_type: Key from ERROR_HINTS dictionary
        original_message: Original error message to include

    Returns:
        Dict with error, hint, and optional docs link
    """
    hint_info = ERROR_HINTS.get(error_type, {})
    return {
        "error": original_message or hint_info.get("message", "Unknown error"),
        "hint": hint_info.get("hint", ""),
        "docs": hint_info.get("docs", ""),
    }


def classify_error(error_message: str) -> str:
    """
    Classify an error message to determine the appropriate hint type.

    Args:
        error_message: The error message to classify

    Returns:
        Error type key for ERROR_HINTS lookup
    """
    msg = error_message.lower()

    if "cancelled" in msg or "canceled" in msg:
        return "cancelled"
    if is_permission_error(msg) or "access" in msg:
        return "permission"
    if "timed out" in msg or "timeout" in msg:
        return "timeout"
    if "stitch" in msg or "overlap" in msg or "matching failed" in msg or "unique frames" in msg:
        return "stitch"
    if "monitor" in msg or "capture" in msg:
        return "capture"
    if "too small" in msg or "dimension" in msg or "invalid" in msg:
        return "validation"

    return ""


# =============================================================================
# API RESPONSES
# =============================================================================

_STATUS_BY_KIND = {
    CaptureErrorKind.PERMISSION: status.HTTP_403_FORBIDDEN,
    CaptureErrorKind.CANCELLED: status.HTTP_409_CONFLICT,
    CaptureErrorKind.CAPTURE_FAILED: status.HTTP_502_BAD_GATEWAY,
    CaptureErrorKind.STITCH_FAILED: 422,
    CaptureErrorKind.COMMAND_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    CaptureErrorKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
}


def create_error_response(
    error: Exception,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    include_traceback: bool = False,
) -> JSONResponse:
    """
    Create a standardized error response

    Args:
        error: The exception that occurred
        status_code: HTTP status code
        include_traceback: Include full traceback in response (debug only)

    Returns:
        JSONResponse with error details
    """
    message = error.message if isinstance(error, ScrollShotError) else str(error)
    error_response = {
        "success": False,
        "error": {
            "message": message,
            "type": error.__class__.__name__,
            # "<kind>:<message>" form for clients that classify error strings
            "raw": to_prefixed_message(error),
        },
    }

    if isinstance(error, ScrollShotError):
        error_response["error"]["code"] = error.code
        error_response["error"]["kind"] = error.kind.value
        error_response["error"]["details"] = error.details

    hint = get_error_with_hint(classify_error(message), message)
    if hint["hint"]:
        error_response["error"]["hint"] = hint["hint"]

    if include_traceback:
        error_response["error"]["traceback"] = traceback.format_exc()

    if status_code >= 500:
        logger.error(f"{error.__class__.__name__}: {message}", exc_info=True)
    else:
        logger.warning(f"{error.__class__.__name__}: {message}")

    return JSONResponse(status_code=status_code, content=error_response)


def handle_api_error(error: Exception) -> JSONResponse:
    """
    Handle API errors with appropriate status codes

    Args:
        error: The exception to handle

    Returns:
        JSONResponse with appropriate status code
    """
    if isinstance(error, ScrollShotError):
        return create_error_response(error, _STATUS_BY_KIND[error.kind])

    if isinstance(error, ValueError):
        return create_error_response(error, status.HTTP_400_BAD_REQUEST)

    return create_error_response(error, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ErrorContext:
    """
    Context manager that re-raises collaborator exceptions as Scrollshot errors

    The exception text goes through error_from_message, so "<kind>:<message>"
    strings and permission failures keep their kind. Anything else is raised
    as raise_as("Failed to <operation>: <message>").

    Usage:
        with ErrorContext("capture monitor image", raise_as=CaptureFailedError):
            image = grab_monitor(monitor_id)
    """

    def __init__(self, operation: str, raise_as: type = CommandFailedError):
        self.operation = operation
        self.raise_as = raise_as

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None or not issubclass(exc_type, Exception):
            return False
        if isinstance(exc_val, ScrollShotError):
            return False

        logger.warning(f"Error during {self.operation}: {exc_val}")
        error = error_from_message(str(exc_val))
        if isinstance(error, CommandFailedError):
            raise self.raise_as(f"Failed to {self.operation}: {error.message}") from exc_val
        raise error from exc_val
