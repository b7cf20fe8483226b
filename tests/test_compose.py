# tests/test_compose.py
import pytest

from scrollshot.core.scroll_models import SkipReason
from scrollshot.ss_modules.compose import Stitcher, StitchMode
from scrollshot.utils.error_handler import StitchFailedError, ValidationFailedError


def test_two_scrolled_frames_rebuild_the_page(make_frame):
    frames = [make_frame(160, 240, 0), make_frame(160, 240, 80)]

    outcome = Stitcher().stitch(frames)

    assert outcome.image.size == (160, 320)
    assert outcome.image == make_frame(160, 320, 0)
    assert outcome.result.to_dict() == {
        "total_frames": 2,
        "used_frames": 2,
        "skipped_frames": 0,
        "final_height": 320,
    }


def test_three_frames_stack_in_order(make_frame):
    frames = [make_frame(160, 240, s) for s in (0, 80, 160)]
    outcome = Stitcher().stitch(frames)
    assert outcome.image == make_frame(160, 400, 0)
    assert outcome.result.used_frames == 3


def test_duplicate_frame_is_skipped(make_frame):
    a = make_frame(160, 240, 0)
    frames = [a, a, make_frame(160, 240, 80)]

    outcome = Stitcher().stitch(frames)

    assert outcome.result.total_frames == 3
    assert outcome.result.used_frames == 2
    assert outcome.result.skipped_frames == 1
    assert outcome.result.final_height == 320
    assert outcome.skips[0].index == 1
    assert outcome.skips[0].reason is SkipReason.DUPLICATE


def test_unmatched_frame_is_skipped_without_advancing_reference(make_frame, make_noise):
    frames = [make_frame(160, 240, 0), make_noise(160, 240), make_frame(160, 240, 80)]

    outcome = Stitcher().stitch(frames)

    assert outcome.image == make_frame(160, 320, 0)
    assert [(s.index, s.reason) for s in outcome.skips] == [(1, SkipReason.MATCH_FAILED)]


def test_used_plus_skipped_equals_total(make_frame, make_noise):
    a = make_frame(160, 240, 0)
    frames = [a, a, make_noise(160, 240), make_frame(160, 240, 80), make_frame(160, 240, 80)]
    result = Stitcher().stitch(frames).result
    assert result.used_frames + result.skipped_frames == result.total_frames


def test_strict_needs_two_frames(make_frame):
    with pytest.raises(StitchFailedError):
        Stitcher().stitch([make_frame(160, 240, 0)])


def test_strict_fails_when_everything_is_duplicate(make_frame):
    a = make_frame(160, 240, 0)
    with pytest.raises(StitchFailedError, match="Not enough unique frames"):
        Stitcher().stitch([a, a, a])


def test_stitch_failure_is_also_a_validation_failure(make_frame):
    a = make_frame(160, 240, 0)
    with pytest.raises(ValidationFailedError):
        Stitcher().stitch([a, a])


def test_short_slices_are_skipped(make_frame):
    stitcher = Stitcher(min_slice_height=100)
    frames = [make_frame(160, 240, 0), make_frame(160, 240, 80)]
    with pytest.raises(StitchFailedError) as exc_info:
        stitcher.stitch(frames)
    assert exc_info.value.details["skipped_frames"] == 1


def test_strict_rejects_too_many_frames(make_frame):
    frames = [make_frame(160, 240, s) for s in (0, 80, 160)]
    with pytest.raises(ValidationFailedError) as exc_info:
        Stitcher(frame_cap=2).stitch(frames)
    assert not isinstance(exc_info.value, StitchFailedError)


def test_rejects_small_frames(make_frame):
    frames = [make_frame(19, 240, 0), make_frame(19, 240, 80)]
    with pytest.raises(ValidationFailedError, match="too small"):
        Stitcher().stitch(frames)


def test_rejects_mismatched_dimensions(make_frame):
    frames = [make_frame(160, 240, 0), make_frame(160, 200, 80)]
    with pytest.raises(ValidationFailedError, match="different dimensions"):
        Stitcher().stitch(frames, mode=StitchMode.LENIENT)


def test_lenient_single_frame_is_returned_as_is(make_frame):
    frame = make_frame(160, 240, 0)
    outcome = Stitcher().stitch([frame], mode=StitchMode.LENIENT)
    assert outcome.image == frame
    assert outcome.result.used_frames == 1


def test_lenient_falls_back_to_last_frame(make_frame, make_noise):
    noise = make_noise(160, 240)
    outcome = Stitcher().stitch([make_frame(160, 240, 0), noise], mode="lenient")

    assert outcome.image == noise
    assert outcome.result.total_frames == 2
    assert outcome.result.used_frames == 1
    assert outcome.result.skipped_frames == 1


def test_lenient_keeps_most_recent_frames(make_frame):
    frames = [make_frame(160, 240, s) for s in (0, 80, 160, 240)]
    outcome = Stitcher().stitch(frames, mode=StitchMode.LENIENT, frame_cap=2)
    assert outcome.result.total_frames == 2
    assert outcome.image == make_frame(160, 320, 160)


def test_lenient_without_frames_fails():
    with pytest.raises(StitchFailedError, match="No frames available"):
        Stitcher().stitch([], mode=StitchMode.LENIENT)


@pytest.mark.parametrize("frame_cap", [0, -1])
@pytest.mark.parametrize("mode", [StitchMode.STRICT, StitchMode.LENIENT])
def test_non_positive_frame_cap_is_rejected(make_frame, mode, frame_cap):
    frames = [make_frame(160, 240, 0), make_frame(160, 240, 80)]
    with pytest.raises(ValidationFailedError, match="frame_cap must be a positive integer"):
        Stitcher().stitch(frames, mode=mode, frame_cap=frame_cap)


def test_zero_default_frame_cap_is_not_replaced(make_frame):
    stitcher = Stitcher(frame_cap=0)
    assert stitcher.frame_cap == 0
    with pytest.raises(ValidationFailedError):
        stitcher.stitch([make_frame(160, 240, 0)], mode=StitchMode.LENIENT)
