"""Error taxonomy for the media request pipeline."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Classified failure conditions surfaced to the request handler."""

    # Input / lookup
    INVALID_URL = "INVALID_URL"
    NOT_FOUND = "NOT_FOUND"
    PLAYLIST_URL_DETECTED = "PLAYLIST_URL_DETECTED"
    PLAYLIST_NOT_FOUND = "PLAYLIST_NOT_FOUND"
    PLAYLIST_NO_VALID_VIDEOS = "PLAYLIST_NO_VALID_VIDEOS"
    LOOKUP_FAILED = "LOOKUP_FAILED"

    # Duration policy
    INVALID_DURATION = "INVALID_DURATION"
    DURATION_LIMIT = "DURATION_LIMIT"
    AUDIO_DURATION_LIMIT = "AUDIO_DURATION_LIMIT"
    VIDEO_DURATION_LIMIT = "VIDEO_DURATION_LIMIT"

    # Acquisition
    YTDLP_NOT_FOUND = "YTDLP_NOT_FOUND"
    YTDLP_AUTH_REQUIRED = "YTDLP_AUTH_REQUIRED"
    YTDLP_CHALLENGE_FAILED = "YTDLP_CHALLENGE_FAILED"
    YTDLP_FORMAT_UNAVAILABLE = "YTDLP_FORMAT_UNAVAILABLE"
    YTDLP_ERROR = "YTDLP_ERROR"
    COOKIES_FILE_NOT_FOUND = "COOKIES_FILE_NOT_FOUND"
    FFMPEG_NOT_FOUND = "FFMPEG_NOT_FOUND"
    FFMPEG_ERROR = "FFMPEG_ERROR"
    OUTPUT_NOT_FOUND = "OUTPUT_NOT_FOUND"

    # Size
    FILE_TOO_LARGE = "FILE_TOO_LARGE"

    # Transport
    TRANSPORT_NOT_CONNECTED = "TRANSPORT_NOT_CONNECTED"
    SEND_TEXT_FAILED = "SEND_TEXT_FAILED"
    SEND_AUDIO_FAILED = "SEND_AUDIO_FAILED"
    SEND_VIDEO_FAILED = "SEND_VIDEO_FAILED"


class MediaBotError(Exception):
    """Base class for every classified error raised by mediabot."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}: {self.message})"


class YouTubeLookupError(MediaBotError):
    """Raised by the search collaborator and the duration policy."""


class DownloadError(MediaBotError):
    """Raised while acquiring, transcoding or size-checking media."""


class TransportError(MediaBotError):
    """Raised by chat transports when a reply cannot be delivered."""
