"""Duration and file size policy per media type."""

from mediabot.models.media import Candidate, MediaLimits, MediaType
from mediabot.utils.errors import ErrorCode, YouTubeLookupError


def _duration_of(candidate: Candidate) -> int:
    try:
        return int(candidate.duration_seconds or 0)
    except (TypeError, ValueError):
        return 0


def supports_audio(candidate: Candidate, limits: MediaLimits) -> bool:
    duration = _duration_of(candidate)
    return 0 < duration <= limits.max_audio_duration


def supports_video(candidate: Candidate, limits: MediaLimits) -> bool:
    duration = _duration_of(candidate)
    return 0 < duration <= limits.max_video_duration


def supports_media(candidate: Candidate, media_type: MediaType, limits: MediaLimits) -> bool:
    if media_type == MediaType.VIDEO:
        return supports_video(candidate, limits)
    return supports_audio(candidate, limits)


def support_label(candidate: Candidate, limits: MediaLimits) -> str:
    """Return "A/V", "A", "V" or "-" for the option list."""
    audio = supports_audio(candidate, limits)
    video = supports_video(candidate, limits)

    if audio and video:
        return "A/V"
    if audio:
        return "A"
    if video:
        return "V"
    return "-"


def max_duration_for(media_type: MediaType, limits: MediaLimits) -> float:
    if media_type == MediaType.VIDEO:
        return limits.max_video_duration
    return limits.max_audio_duration


def max_file_size_for(media_type: MediaType, limits: MediaLimits) -> float:
    if media_type == MediaType.VIDEO:
        return limits.max_video_file_size
    return limits.max_audio_file_size


def max_search_duration(limits: MediaLimits) -> float:
    """Longest duration worth offering at search time (either media type)."""
    return max(limits.max_audio_duration, limits.max_video_duration)


def assert_duration_for_media(candidate: Candidate, media_type: MediaType, limits: MediaLimits) -> None:
    """Raise when the candidate cannot be fetched as ``media_type``.

    Raises:
        YouTubeLookupError: INVALID_DURATION when the duration is zero or
            unknown, AUDIO_DURATION_LIMIT / VIDEO_DURATION_LIMIT when it is
            over the ceiling for the requested type.
    """
    duration = _duration_of(candidate)
    limit = max_duration_for(media_type, limits)

    if duration <= 0:
        raise YouTubeLookupError(
            ErrorCode.INVALID_DURATION,
            "Could not determine the video duration."
        )

    if duration > limit:
        code = (
            ErrorCode.VIDEO_DURATION_LIMIT
            if media_type == MediaType.VIDEO
            else ErrorCode.AUDIO_DURATION_LIMIT
        )
        raise YouTubeLookupError(
            code,
            "Duration is over the allowed limit.",
            {"duration_seconds": duration, "max_duration_seconds": limit}
        )
