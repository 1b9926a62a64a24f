"""Tests for duration segmenting and the model catalog."""

import pytest

from canvas_flow.flows.catalog import (
    clamp_duration,
    find_video_model,
    max_duration_for,
    supports_first_last_frame,
)
from canvas_flow.flows.segmenter import Segment, segment_count, segment_windows, segments_for_model


def test_segment_count_rounds_up():
    assert segment_count(30, 8) == 4
    assert segment_count(32, 8) == 4
    assert segment_count(1, 8) == 1


@pytest.mark.parametrize("total, max_clip", [(0, 8), (-5, 8), (30, 0)])
def test_segment_count_rejects_non_positive(total, max_clip):
    with pytest.raises(ValueError):
        segment_count(total, max_clip)


def test_windows_tile_the_duration():
    """Windows are contiguous and only the last one is shorter."""
    segments = segment_windows(30, 8)

    assert segments == [
        Segment(0, 0, 8),
        Segment(1, 8, 16),
        Segment(2, 16, 24),
        Segment(3, 24, 30),
    ]
    assert [s.duration for s in segments] == [8, 8, 8, 6]
    assert sum(s.duration for s in segments) == 30


def test_segments_for_model_uses_model_maximum():
    """Seedance clips run up to 12 seconds, unknown models fall back to 8."""
    assert len(segments_for_model(36, "Seedance 1.0 Pro")) == 3
    assert len(segments_for_model(36, "Some New Model")) == 5


def test_max_duration_lookup():
    assert max_duration_for("Veo 3.1 Fast") == 8
    assert max_duration_for("Seedance 1.0 Lite") == 12
    assert max_duration_for(None) == 8


def test_find_video_model_partial_match():
    """Lookups ignore case and accept partial names."""
    assert find_video_model("veo 3.1 fast").name == "Veo 3.1 Fast"
    assert find_video_model("seedance").name.startswith("Seedance")
    assert find_video_model("") is None
    assert find_video_model("unknown-model") is None


def test_first_last_frame_capability():
    assert supports_first_last_frame("Veo 3.1 Fast")
    assert not supports_first_last_frame("Sora 2 Pro")
    assert not supports_first_last_frame(None)


def test_clamp_duration_picks_nearest_supported():
    assert clamp_duration("Veo 3.1 Fast", 6) == 6
    assert clamp_duration("Veo 3.1 Fast", 7) == 6
    assert clamp_duration("Seedance 1.0 Pro", 11) == 10
    assert clamp_duration("unknown", 30) == 8
