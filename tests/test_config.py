"""Tests for configuration loading and validation."""

import pytest

from mediabot.utils.config import MEBIBYTE, PROJECT_ROOT, load_config, validate_config

ENV_KEYS = [
    "DOWNLOAD_PATH", "OUTBOX_PATH", "MAX_DURATION", "MAX_FILE_SIZE",
    "MAX_AUDIO_DURATION", "MAX_VIDEO_DURATION", "MAX_AUDIO_FILE_SIZE", "MAX_VIDEO_FILE_SIZE",
    "AUDIO_QUALITY", "AUDIO_BITRATE", "VIDEO_MAX_HEIGHT", "YTDLP_COOKIES_FILE",
    "YTDLP_COOKIES_FROM_BROWSER", "LOG_LEVEL", "SELECTION_TIMEOUT_SECONDS",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestLoadConfig:

    def test_defaults(self, clean_env):
        config = load_config()

        assert config["max_audio_duration"] == 1800
        assert config["max_video_duration"] == 1200
        assert config["max_audio_file_size"] == 20 * MEBIBYTE
        assert config["max_video_file_size"] == 100 * MEBIBYTE
        assert config["selection_timeout_seconds"] == 120
        assert config["audio_quality"] == 5
        assert config["video_max_height"] == 720
        assert config["download_path"] == str(PROJECT_ROOT / "downloads")
        assert config["log_level"] == "INFO"

    def test_legacy_names_seed_audio_limits(self, clean_env):
        clean_env.setenv("MAX_DURATION", "900")
        clean_env.setenv("MAX_FILE_SIZE", str(50 * MEBIBYTE))

        config = load_config()

        assert config["max_audio_duration"] == 900
        assert config["max_audio_file_size"] == 50 * MEBIBYTE
        assert config["max_video_file_size"] == 100 * MEBIBYTE

    @pytest.mark.parametrize("value", ["abc", "-5", "0", "nan", "inf"])
    def test_invalid_numbers_fall_back(self, clean_env, value):
        clean_env.setenv("MAX_VIDEO_DURATION", value)
        clean_env.setenv("AUDIO_QUALITY", value)

        config = load_config()

        assert config["max_video_duration"] == 1200
        assert config["audio_quality"] in (0, 5)

    def test_out_of_range_quality_falls_back(self, clean_env):
        clean_env.setenv("AUDIO_QUALITY", "12")

        assert load_config()["audio_quality"] == 5

    def test_relative_paths_resolve_against_project_root(self, clean_env, tmp_path):
        clean_env.setenv("DOWNLOAD_PATH", "tmp/dl")
        clean_env.setenv("OUTBOX_PATH", str(tmp_path / "out"))

        config = load_config()

        assert config["download_path"] == str(PROJECT_ROOT / "tmp/dl")
        assert config["outbox_path"] == str(tmp_path / "out")


class TestValidateConfig:

    def test_valid_config_creates_folders(self, test_config, tmp_path):
        assert validate_config(test_config) == []
        assert (tmp_path / "downloads").is_dir()
        assert (tmp_path / "outbox").is_dir()

    def test_reports_problems(self, test_config, tmp_path):
        test_config["ytdlp_cookies_file"] = str(tmp_path / "missing.txt")
        test_config["log_level"] = "LOUD"

        errors = validate_config(test_config)

        assert any("YTDLP_COOKIES_FILE" in error for error in errors)
        assert any("LOG_LEVEL" in error for error in errors)
