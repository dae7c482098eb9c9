"""Tests for compression profiles and the ffmpeg boundary."""

import subprocess
from unittest.mock import patch

import pytest

from mediabot.models.media import CompressionProfile
from mediabot.services import transcoder
from mediabot.services.transcoder import (
    build_ffmpeg_args,
    compression_profile_for,
    fallback_profile,
    transcode,
)
from mediabot.utils.errors import DownloadError, ErrorCode

BASE = CompressionProfile(max_height=720, crf=23, audio_bitrate_kbps=128)


class TestCompressionProfile:

    def test_short_source_uses_base(self):
        assert compression_profile_for(600, BASE) == BASE

    @pytest.mark.parametrize("duration,expected", [
        (1800, CompressionProfile(480, 26, 96)),
        (3600, CompressionProfile(360, 28, 80)),
        (7200, CompressionProfile(240, 30, 64)),
        (20000, CompressionProfile(240, 30, 64)),
    ])
    def test_tiers(self, duration, expected):
        assert compression_profile_for(duration, BASE) == expected

    def test_never_less_aggressive_than_base(self):
        strict = CompressionProfile(max_height=360, crf=32, audio_bitrate_kbps=64)

        assert compression_profile_for(1800, strict) == strict


class TestFallbackProfile:

    @pytest.mark.parametrize("profile", [
        BASE,
        CompressionProfile(480, 26, 96),
        CompressionProfile(240, 30, 64),
        CompressionProfile(144, 34, 48),
    ])
    def test_monotonically_more_aggressive(self, profile):
        retry = fallback_profile(profile)

        assert retry is not None
        assert retry.max_height <= profile.max_height
        assert retry.crf >= profile.crf
        assert retry.audio_bitrate_kbps <= profile.audio_bitrate_kbps
        assert retry != profile

    def test_steps_down_the_ladder(self):
        assert fallback_profile(BASE) == CompressionProfile(480, 27, 96)

    def test_none_at_floor(self):
        assert fallback_profile(CompressionProfile(144, 36, 48)) is None


class TestTranscode:

    def test_ffmpeg_args(self, tmp_path):
        args = build_ffmpeg_args(tmp_path / "in.webm", tmp_path / "out.mp4", CompressionProfile(480, 26, 96))

        assert args[args.index("-crf") + 1] == "26"
        assert args[args.index("-b:a") + 1] == "96k"
        assert "min(ih\\,480)" in args[args.index("-vf") + 1]
        assert args[-1] == str(tmp_path / "out.mp4")

    def test_returns_output_size(self, tmp_path):
        output = tmp_path / "out.mp4"

        def fake_run(command, **kwargs):
            output.write_bytes(b"x" * 1234)
            return subprocess.CompletedProcess(command, 0, stdout="", stderr="")

        with patch.object(transcoder.subprocess, "run", side_effect=fake_run) as mock_run:
            size = transcode(tmp_path / "in.webm", output, BASE, "/opt/ffmpeg")

        assert size == 1234
        assert mock_run.call_args.args[0][0] == "/opt/ffmpeg/ffmpeg"

    def test_non_zero_exit(self, tmp_path):
        completed = subprocess.CompletedProcess(["ffmpeg"], 1, stdout="", stderr="Invalid data")

        with patch.object(transcoder.subprocess, "run", return_value=completed):
            with pytest.raises(DownloadError) as exc_info:
                transcode(tmp_path / "in.webm", tmp_path / "out.mp4", BASE)

        assert exc_info.value.code == ErrorCode.FFMPEG_ERROR

    def test_missing_binary(self, tmp_path):
        with patch.object(transcoder.subprocess, "run", side_effect=FileNotFoundError()):
            with pytest.raises(DownloadError) as exc_info:
                transcode(tmp_path / "in.webm", tmp_path / "out.mp4", BASE)

        assert exc_info.value.code == ErrorCode.FFMPEG_NOT_FOUND
