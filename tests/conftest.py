"""Shared pytest fixtures."""

import pytest

from mediabot.models.media import MediaLimits
from tests.helpers import FakeClock, RecordingChannel


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def limits() -> MediaLimits:
    return MediaLimits(
        max_audio_duration=1800,
        max_video_duration=1200,
        max_audio_file_size=20 * 1024 * 1024,
        max_video_file_size=100 * 1024 * 1024,
    )


@pytest.fixture
def test_config(tmp_path) -> dict:
    """Minimal configuration pointing at temporary folders."""
    return {
        'download_path': str(tmp_path / 'downloads'),
        'outbox_path': str(tmp_path / 'outbox'),
        'max_audio_duration': 1800,
        'max_video_duration': 1200,
        'max_audio_file_size': 20 * 1024 * 1024,
        'max_video_file_size': 100 * 1024 * 1024,
        'max_search_options': 8,
        'max_playlist_items': 10,
        'selection_timeout_seconds': 120,
        'audio_quality': 5,
        'audio_bitrate': 0,
        'audio_channels': 2,
        'audio_sample_rate': 44100,
        'video_max_height': 720,
        'video_crf': 23,
        'video_audio_bitrate': 128,
        'ytdlp_concurrent_fragments': 4,
        'ytdlp_cookies_file': None,
        'ytdlp_cookies_from_browser': '',
        'ytdlp_extractor_args': '',
        'ytdlp_js_runtimes': '',
        'ytdlp_remote_components': '',
        'ffmpeg_location': '/usr/bin',
        'log_level': 'INFO',
        'log_file': None,
    }
