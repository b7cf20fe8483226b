# tests/test_overlap.py
import math

import pytest

from scrollshot.ss_modules.overlap import OverlapMatcher
from scrollshot.utils.error_handler import MatchFailedError, ValidationFailedError


def test_finds_exact_overlap_of_scrolled_frames(make_frame):
    prev = make_frame(160, 240, 0)
    current = make_frame(160, 240, 80)

    match = OverlapMatcher().find_best_overlap(prev, current)

    assert match.overlap == 160
    assert match.error == 0.0


def test_overlap_error_is_zero_only_at_true_overlap(make_frame):
    matcher = OverlapMatcher()
    prev = make_frame(160, 240, 0)
    current = make_frame(160, 240, 80)

    assert matcher.overlap_error(prev, current, 160) == 0.0
    assert matcher.overlap_error(prev, current, 120) > 0.0


def test_overlap_error_out_of_range_is_infinite(make_frame):
    matcher = OverlapMatcher()
    frame = make_frame(160, 240, 0)
    assert math.isinf(matcher.overlap_error(frame, frame, 0))
    assert math.isinf(matcher.overlap_error(frame, frame, 241))


def test_candidate_range_bounds():
    matcher = OverlapMatcher()
    candidates = matcher.candidate_range(240)
    assert candidates[0] == 24
    assert candidates[-1] == 200
    assert candidates.step == 2


def test_short_frames_still_have_one_candidate():
    assert list(OverlapMatcher().candidate_range(30)) == [24]


def test_ties_keep_the_smallest_overlap(make_solid):
    frame = make_solid(120, 240)
    match = OverlapMatcher().find_best_overlap(frame, frame)
    assert match.overlap == 24
    assert match.error == 0.0


def test_unrelated_content_fails_quality_ceiling(make_frame, make_noise):
    with pytest.raises(MatchFailedError) as exc_info:
        OverlapMatcher().find_best_overlap(make_frame(160, 240, 0), make_noise(160, 240))
    assert exc_info.value.details["best_error"] > 42.0


def test_raised_ceiling_accepts_poor_match(make_frame, make_noise):
    matcher = OverlapMatcher(max_match_error=255.0)
    match = matcher.find_best_overlap(make_frame(160, 240, 0), make_noise(160, 240))
    assert 24 <= match.overlap <= 200


def test_dimension_mismatch_raises(make_frame):
    with pytest.raises(ValidationFailedError):
        OverlapMatcher().find_best_overlap(make_frame(160, 240, 0), make_frame(150, 240, 0))
