"""Configuration loading and validation for mediabot."""

import os
import logging
from typing import Any, Dict, List, Optional
from pathlib import Path
from dotenv import load_dotenv
from rich.logging import RichHandler

# Project root (parent of src)
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / '.env')

MEBIBYTE = 1024 * 1024


def _resolve_path(path: Optional[str], default_relative: Optional[str]) -> Optional[str]:
    """Resolve a configured path relative to the project root."""
    if not path:
        return str(PROJECT_ROOT / default_relative) if default_relative else None
    if Path(path).is_absolute():
        return path
    return str(PROJECT_ROOT / path)


def _positive_number(value: Optional[str], fallback: float) -> float:
    """Parse a strictly positive number, falling back on anything else."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if parsed != parsed or parsed <= 0 or parsed == float('inf'):
        return fallback
    return int(parsed) if parsed.is_integer() else parsed


def _range_number(value: Optional[str], fallback: int, minimum: int, maximum: int) -> int:
    """Parse an integer inside [minimum, maximum], falling back otherwise."""
    try:
        bounded = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return fallback
    if bounded < minimum or bounded > maximum:
        return fallback
    return bounded


def _text(name: str) -> str:
    return str(os.getenv(name) or '').strip()


def load_config() -> Dict[str, Any]:
    """Load configuration from environment variables."""
    legacy_max_duration = _positive_number(os.getenv('MAX_DURATION'), 0)
    legacy_max_file_size = _positive_number(os.getenv('MAX_FILE_SIZE'), 20 * MEBIBYTE)

    config = {
        # Storage
        'download_path': _resolve_path(os.getenv('DOWNLOAD_PATH'), 'downloads'),
        'outbox_path': _resolve_path(os.getenv('OUTBOX_PATH'), 'outbox'),

        # Duration ceilings (seconds)
        'max_audio_duration': _positive_number(
            os.getenv('MAX_AUDIO_DURATION'), legacy_max_duration or 1800
        ),
        'max_video_duration': _positive_number(os.getenv('MAX_VIDEO_DURATION'), 1200),

        # File size ceilings (bytes)
        'max_audio_file_size': _positive_number(
            os.getenv('MAX_AUDIO_FILE_SIZE'), legacy_max_file_size
        ),
        'max_video_file_size': _positive_number(
            os.getenv('MAX_VIDEO_FILE_SIZE'), max(legacy_max_file_size, 100 * MEBIBYTE)
        ),

        # Selection
        'max_search_options': int(_positive_number(os.getenv('MAX_SEARCH_OPTIONS'), 8)),
        'max_playlist_items': int(_positive_number(os.getenv('MAX_PLAYLIST_ITEMS'), 10)),
        'selection_timeout_seconds': _positive_number(os.getenv('SELECTION_TIMEOUT_SECONDS'), 120),

        # Audio extraction
        'audio_quality': _range_number(os.getenv('AUDIO_QUALITY'), 5, 0, 9),
        'audio_bitrate': _range_number(os.getenv('AUDIO_BITRATE'), 0, 0, 512),
        'audio_channels': _range_number(os.getenv('AUDIO_CHANNELS'), 2, 1, 2),
        'audio_sample_rate': int(_positive_number(os.getenv('AUDIO_SAMPLE_RATE'), 44100)),

        # Video transcoding
        'video_max_height': _range_number(os.getenv('VIDEO_MAX_HEIGHT'), 720, 144, 2160),
        'video_crf': _range_number(os.getenv('VIDEO_CRF'), 23, 0, 51),
        'video_audio_bitrate': _range_number(os.getenv('VIDEO_AUDIO_BITRATE'), 128, 32, 512),

        # yt-dlp
        'ytdlp_concurrent_fragments': int(_positive_number(os.getenv('YTDLP_CONCURRENT_FRAGMENTS'), 4)),
        'ytdlp_cookies_file': _resolve_path(os.getenv('YTDLP_COOKIES_FILE'), None),
        'ytdlp_cookies_from_browser': _text('YTDLP_COOKIES_FROM_BROWSER'),
        'ytdlp_extractor_args': _text('YTDLP_EXTRACTOR_ARGS'),
        'ytdlp_js_runtimes': _text('YTDLP_JS_RUNTIMES'),
        'ytdlp_remote_components': _text('YTDLP_REMOTE_COMPONENTS'),
        'ffmpeg_location': _text('FFMPEG_LOCATION') or None,

        # Logging
        'log_level': _text('LOG_LEVEL').upper() or 'INFO',
        'log_file': _resolve_path(os.getenv('LOG_FILE'), 'mediabot.log'),
    }

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Validate configuration and return list of errors."""
    errors = []

    for key in ('download_path', 'outbox_path'):
        folder = config.get(key)
        if not folder:
            errors.append(f"{key.upper()} is required")
            continue
        try:
            Path(folder).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            errors.append(f"Cannot create {key.upper()} folder: {e}")

    cookies_file = config.get('ytdlp_cookies_file')
    if cookies_file and not os.access(cookies_file, os.R_OK):
        errors.append(f"YTDLP_COOKIES_FILE is not readable: {cookies_file}")

    if config.get('log_level') not in logging.getLevelNamesMapping():
        errors.append(f"Unknown LOG_LEVEL: {config.get('log_level')}")

    return errors


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Set up logging with Rich console output and an optional plain-text log file."""
    logging.root.handlers.clear()

    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False
    )
    handlers: List[logging.Handler] = [rich_handler]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=handlers,
        format="%(message)s"
    )

    # Suppress noisy third-party loggers
    noisy_loggers = [
        'yt_dlp',
        'urllib3.connectionpool',
        'asyncio',
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_supported_audio_formats() -> List[str]:
    """Return audio extensions the downloader may leave behind."""
    return ['mp3']


def get_supported_video_formats() -> List[str]:
    """Return video container extensions the downloader may leave behind."""
    return ['mp4', 'mkv', 'webm', 'mov']
