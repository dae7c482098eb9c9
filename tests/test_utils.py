"""Tests for formatting, filename and retry helpers."""

from unittest.mock import MagicMock, patch

import pytest

from mediabot.utils.files import (
    find_output_file,
    safe_remove_by_prefix,
    safe_unlink,
    sanitize_filename,
    unique_base_name,
)
from mediabot.utils.formatting import format_seconds, parse_timestamp_to_seconds
from mediabot.utils.retry import NetworkError, retry_with_backoff


class TestFormatting:

    @pytest.mark.parametrize("value,expected", [
        ("3:33", 213), ("1:02:03", 3723), ("45", 45), ("", 0), (None, 0), ("a:b", 0),
    ])
    def test_parse_timestamp(self, value, expected):
        assert parse_timestamp_to_seconds(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (0, "00:00"), (59, "00:59"), (1800, "30:00"), (3600, "01:00:00"), (None, "00:00"),
    ])
    def test_format_seconds(self, value, expected):
        assert format_seconds(value) == expected


class TestFiles:

    def test_sanitize_filename(self):
        assert sanitize_filename("Beyoncé - Halo (Live!)") == "Beyonce---Halo-Live"
        assert sanitize_filename("???") == "media"
        assert len(sanitize_filename("x" * 200, 60)) == 60

    def test_unique_base_name_has_timestamp(self):
        with patch("mediabot.utils.files.time.time", return_value=1700000000.5):
            assert unique_base_name("My Song") == "My-Song-1700000000500"

    def test_find_output_file_prefers_exact_match(self, tmp_path):
        (tmp_path / "job-1.f140.m4a").write_bytes(b"x")
        (tmp_path / "job-1.mp3").write_bytes(b"x")

        assert find_output_file(tmp_path, "job-1", ["mp3", "m4a"]).name == "job-1.mp3"

    def test_find_output_file_falls_back_to_prefix(self, tmp_path):
        (tmp_path / "job-1.f137.mkv").write_bytes(b"x")

        assert find_output_file(tmp_path, "job-1", ["mp4", "mkv"]).name == "job-1.f137.mkv"
        assert find_output_file(tmp_path, "job-2", ["mkv"]) is None

    def test_remove_by_prefix(self, tmp_path):
        for name in ("job-1.webm.part", "job-1.mp3", "job-2.mp3"):
            (tmp_path / name).write_bytes(b"x")

        assert safe_remove_by_prefix(tmp_path, "job-1") == 2
        assert [p.name for p in tmp_path.iterdir()] == ["job-2.mp3"]

    def test_safe_unlink_ignores_missing(self, tmp_path):
        safe_unlink(tmp_path / "nope.mp3")
        safe_unlink(None)


class TestRetry:

    def test_retries_listed_exceptions_then_raises(self):
        failing = MagicMock(side_effect=NetworkError("down"), __name__="failing")
        wrapped = retry_with_backoff(max_retries=2, exceptions=(NetworkError,))(failing)

        with patch("mediabot.utils.retry.time.sleep"):
            with pytest.raises(NetworkError):
                wrapped()

        assert failing.call_count == 3

    def test_other_exceptions_propagate_immediately(self):
        failing = MagicMock(side_effect=ValueError("bad"), __name__="failing")
        wrapped = retry_with_backoff(max_retries=2, exceptions=(NetworkError,))(failing)

        with pytest.raises(ValueError):
            wrapped()

        assert failing.call_count == 1
