# tests/test_error_handler.py
import json

import pytest

from scrollshot.utils.error_handler import (
    CaptureCancelledError,
    CaptureFailedError,
    CommandFailedError,
    ErrorContext,
    MatchFailedError,
    PermissionDeniedError,
    StitchFailedError,
    ValidationFailedError,
    classify_error,
    error_from_message,
    get_error_with_hint,
    handle_api_error,
    is_permission_error,
    to_prefixed_message,
)


@pytest.mark.parametrize(
    "message",
    [
        "Screen Recording permission required",
        "Access denied by user",
        "The app is not authorized to capture",
        "could not create image from display 1",
    ],
)
def test_permission_keywords(message):
    assert is_permission_error(message)


def test_non_permission_message():
    assert not is_permission_error("Display disconnected")


def test_prefixed_messages_map_to_kind():
    error = error_from_message("capture_failed:Selected area is outside available monitors")
    assert isinstance(error, CaptureFailedError)
    assert error.message == "Selected area is outside available monitors"

    assert isinstance(error_from_message("cancelled:user pressed escape"), CaptureCancelledError)
    assert isinstance(error_from_message("stitch_failed:too few frames"), StitchFailedError)


def test_unprefixed_messages_are_classified():
    assert isinstance(error_from_message("TCC: not authorized"), PermissionDeniedError)
    error = error_from_message("screencapture exited with status 1")
    assert isinstance(error, CommandFailedError)
    assert error.message == "screencapture exited with status 1"


def test_prefix_is_never_doubled():
    assert to_prefixed_message(CaptureFailedError("no display")) == "capture_failed:no display"
    assert to_prefixed_message(CommandFailedError("permission:denied")) == "permission:denied"
    assert to_prefixed_message(RuntimeError("boom")) == "command_failed:boom"


def test_classify_error_hints():
    assert classify_error("Not enough unique frames after filtering similar ones.") == "stitch"
    assert classify_error("Capture was cancelled") == "cancelled"
    assert classify_error("Selected area is outside available monitors") == "capture"
    assert classify_error("something else") == ""
    assert get_error_with_hint("stitch", "x")["hint"]


@pytest.mark.parametrize(
    "error, status_code, kind",
    [
        (ValidationFailedError("bad rect"), 400, "validation_failed"),
        (StitchFailedError("Not enough unique frames"), 422, "stitch_failed"),
        (MatchFailedError("matching failed"), 422, "stitch_failed"),
        (PermissionDeniedError(), 403, "permission"),
        (CaptureCancelledError(), 409, "cancelled"),
        (CaptureFailedError("no monitor"), 502, "capture_failed"),
        (CommandFailedError("busy"), 500, "command_failed"),
    ],
)
def test_api_status_mapping(error, status_code, kind):
    response = handle_api_error(error)
    body = json.loads(response.body)

    assert response.status_code == status_code
    assert body["success"] is False
    assert body["error"]["kind"] == kind
    assert body["error"]["message"] == error.message
    assert body["error"]["raw"] == f"{kind}:{error.message}"


def test_foreign_errors_map_to_500():
    response = handle_api_error(RuntimeError("boom"))
    assert response.status_code == 500


def test_error_context_wraps_foreign_exceptions():
    with pytest.raises(CaptureFailedError, match="Failed to grab monitor: boom"):
        with ErrorContext("grab monitor", raise_as=CaptureFailedError):
            raise RuntimeError("boom")


def test_error_context_passes_scrollshot_errors_through():
    with pytest.raises(PermissionDeniedError):
        with ErrorContext("grab monitor"):
            raise PermissionDeniedError()


def test_error_context_keeps_prefixed_kind():
    with pytest.raises(CaptureCancelledError, match="picker dismissed"):
        with ErrorContext("grab monitor", raise_as=CaptureFailedError):
            raise RuntimeError("cancelled:picker dismissed")


def test_error_context_detects_permission_text():
    with pytest.raises(PermissionDeniedError):
        with ErrorContext("grab monitor", raise_as=CaptureFailedError):
            raise OSError("could not create image from display")


def test_error_response_carries_prefixed_message():
    body = json.loads(handle_api_error(RuntimeError("capture_failed:display asleep")).body)
    assert body["error"]["raw"] == "capture_failed:display asleep"
