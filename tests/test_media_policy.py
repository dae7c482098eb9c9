"""Tests for per-media-type duration policy."""

import pytest

from mediabot.models.media import MediaLimits, MediaType
from mediabot.services.media_policy import (
    assert_duration_for_media,
    max_file_size_for,
    max_search_duration,
    support_label,
    supports_media,
)
from mediabot.utils.errors import ErrorCode, YouTubeLookupError
from tests.helpers import make_video


class TestDurationPolicy:

    def test_audio_boundary_is_inclusive(self, limits):
        assert_duration_for_media(make_video(duration=1800), MediaType.AUDIO, limits)

        with pytest.raises(YouTubeLookupError) as exc_info:
            assert_duration_for_media(make_video(duration=1801), MediaType.AUDIO, limits)
        assert exc_info.value.code == ErrorCode.AUDIO_DURATION_LIMIT

    def test_video_boundary_is_inclusive(self, limits):
        assert_duration_for_media(make_video(duration=1200), MediaType.VIDEO, limits)

        with pytest.raises(YouTubeLookupError) as exc_info:
            assert_duration_for_media(make_video(duration=1201), MediaType.VIDEO, limits)
        assert exc_info.value.code == ErrorCode.VIDEO_DURATION_LIMIT

    @pytest.mark.parametrize("media_type", [MediaType.AUDIO, MediaType.VIDEO])
    def test_unknown_duration_is_invalid(self, limits, media_type):
        with pytest.raises(YouTubeLookupError) as exc_info:
            assert_duration_for_media(make_video(duration=0), media_type, limits)
        assert exc_info.value.code == ErrorCode.INVALID_DURATION

    @pytest.mark.parametrize("duration,label", [
        (200, "A/V"),
        (1500, "A"),
        (0, "-"),
        (5000, "-"),
    ])
    def test_label_matches_acceptance(self, limits, duration, label):
        candidate = make_video(duration=duration)

        assert support_label(candidate, limits) == label
        assert ("A" in label) == supports_media(candidate, MediaType.AUDIO, limits)
        assert ("V" in label) == supports_media(candidate, MediaType.VIDEO, limits)

    def test_video_only_label(self, limits):
        video_heavy = MediaLimits(600, 1200, limits.max_audio_file_size, limits.max_video_file_size)

        assert support_label(make_video(duration=900), video_heavy) == "V"

    def test_search_duration_is_larger_ceiling(self, limits):
        assert max_search_duration(limits) == 1800

    def test_file_size_ceiling_per_type(self, limits):
        assert max_file_size_for(MediaType.AUDIO, limits) == 20 * 1024 * 1024
        assert max_file_size_for(MediaType.VIDEO, limits) == 100 * 1024 * 1024
