"""User-facing reply text: help, option lists and error messages."""

from typing import List, Sequence

from mediabot.models.media import Candidate, MediaLimits, MediaType, PlaylistSummary
from mediabot.services.media_policy import max_search_duration, support_label
from mediabot.utils.errors import DownloadError, ErrorCode, TransportError, YouTubeLookupError
from mediabot.utils.formatting import format_seconds

INTERNAL_ERROR_MESSAGE = "Internal error while processing your request."
SELECTION_PROMPT = "Send a number, a+number, v+number or /cancel."
UNKNOWN_COMMAND_MESSAGE = "Unknown command. Use /help to see the available commands."
NOTHING_TO_CANCEL_MESSAGE = "There is no pending selection to cancel."
SELECTION_CANCELLED_MESSAGE = "❎ Selection cancelled."

TRANSPORT_SIZE_HINTS = ("too large", "media too big", "413")


def media_label(media_type: MediaType, video_height: int = 720) -> str:
    if media_type == MediaType.VIDEO:
        return f"{video_height}p video"
    return "MP3 audio"


def usage_line(command: str) -> str:
    return f"Usage: /{command} <name, video URL or playlist URL>"


def build_help_text(limits: MediaLimits, video_height: int = 720) -> str:
    return "\n".join([
        "HOW TO USE THE BOT",
        "",
        "1) SEARCH",
        "Use /play <name or URL> to search for music/video.",
        f"Use /video <name or URL> to prefer {video_height}p video.",
        "Reply to a message with /play or /video to search for its text.",
        "",
        "2) PICK AN OPTION",
        "After the search, reply with:",
        "1  -> uses the command's default format",
        "a1 -> downloads option 1 as MP3 audio",
        f"v1 -> downloads option 1 as {video_height}p video",
        "",
        "3) PLAYLISTS",
        "If you pick a playlist, the bot lists its tracks.",
        "Then reply again with 1, a1, v1...",
        "",
        "4) COMMANDS",
        "/play <name/url>",
        "/video <name/url>",
        "/cancel  (cancels the pending selection)",
        "/help",
        "",
        "EXAMPLES",
        "/play linkin park numb",
        "/video imagine dragons believer",
        "/play https://www.youtube.com/watch?v=...",
        "/play https://www.youtube.com/playlist?list=...",
        "",
        f"Audio limit: {format_seconds(limits.max_audio_duration)}.",
        f"Video limit: {format_seconds(limits.max_video_duration)} ({video_height}p).",
    ])


def format_option_line(option: Candidate, index: int, limits: MediaLimits) -> str:
    if option.is_playlist:
        return f"{index}. [Playlist] {option.title} - {option.author} ({option.video_count} videos)"

    label = support_label(option, limits)
    return f"{index}. [Video {label}] {option.title} - {option.author} ({option.duration_text})"


def format_track_line(option: Candidate, index: int, limits: MediaLimits) -> str:
    label = support_label(option, limits)
    return f"{index}. [{label}] {option.title} - {option.author} ({option.duration_text})"


def build_selection_instructions(
    default_media_type: MediaType,
    timeout_seconds: float,
    video_height: int = 720,
) -> List[str]:
    return [
        "Reply with the number of the option you want.",
        "Use \"a+number\" for MP3 audio (e.g. a1).",
        f"Use \"v+number\" for {video_height}p video (e.g. v1).",
        f"A bare number uses {media_label(default_media_type, video_height)}.",
        f"The selection expires in {int(timeout_seconds)}s.",
        "Use /cancel to cancel.",
    ]


def build_search_options_text(
    query: str,
    options: Sequence[Candidate],
    default_media_type: MediaType,
    limits: MediaLimits,
    timeout_seconds: float,
    video_height: int = 720,
) -> str:
    lines = [f"🔎 Results for: \"{query}\"", ""]
    lines += [format_option_line(option, index, limits) for index, option in enumerate(options, 1)]
    lines.append("")
    lines += build_selection_instructions(default_media_type, timeout_seconds, video_height)
    return "\n".join(lines)


def build_playlist_options_text(
    playlist: PlaylistSummary,
    options: Sequence[Candidate],
    default_media_type: MediaType,
    limits: MediaLimits,
    timeout_seconds: float,
    video_height: int = 720,
) -> str:
    lines = [f"📚 Playlist: {playlist.title}", f"Channel: {playlist.author}", ""]
    lines += [format_track_line(option, index, limits) for index, option in enumerate(options, 1)]
    lines.append("")
    lines += build_selection_instructions(default_media_type, timeout_seconds, video_height)
    return "\n".join(lines)


def invalid_option_message(option_count: int) -> str:
    return f"Invalid option. Pick a number between 1 and {option_count}."


def is_transport_size_error(error: BaseException) -> bool:
    """True when a transport rejected media for being too big."""
    message = str(getattr(error, "message", "") or error).lower()
    return any(hint in message for hint in TRANSPORT_SIZE_HINTS)


LOOKUP_MESSAGES = {
    ErrorCode.INVALID_URL: "Invalid URL. Send a valid YouTube link or a search term.",
    ErrorCode.NOT_FOUND: "Nothing found for this search.",
    ErrorCode.INVALID_DURATION: "Could not determine the video duration.",
    ErrorCode.PLAYLIST_NOT_FOUND: "Playlist not found.",
    ErrorCode.PLAYLIST_NO_VALID_VIDEOS: "Playlist has no valid tracks for the configured limits.",
}

DOWNLOAD_MESSAGES = {
    ErrorCode.YTDLP_NOT_FOUND: "yt-dlp is not installed on the server.",
    ErrorCode.YTDLP_AUTH_REQUIRED: (
        "YouTube asked for authentication. Configure YTDLP_COOKIES_FILE or "
        "YTDLP_COOKIES_FROM_BROWSER and try again."
    ),
    ErrorCode.YTDLP_CHALLENGE_FAILED: (
        "Could not solve the YouTube challenge. Configure YTDLP_JS_RUNTIMES / "
        "YTDLP_REMOTE_COMPONENTS or update yt-dlp."
    ),
    ErrorCode.YTDLP_FORMAT_UNAVAILABLE: "The requested format is not available for this video.",
    ErrorCode.COOKIES_FILE_NOT_FOUND: "The configured cookie file was not found on the server.",
    ErrorCode.FFMPEG_NOT_FOUND: "ffmpeg is not installed on the server.",
    ErrorCode.FFMPEG_ERROR: "Failed to convert the video to a compatible format.",
    ErrorCode.FILE_TOO_LARGE: "The final file is too large to send.",
}

TRANSPORT_MESSAGES = {
    ErrorCode.TRANSPORT_NOT_CONNECTED: "Chat is temporarily disconnected. Try again shortly.",
    ErrorCode.SEND_AUDIO_FAILED: "Failed to send the audio.",
    ErrorCode.SEND_VIDEO_FAILED: "Failed to send the video.",
    ErrorCode.SEND_TEXT_FAILED: "Failed to send the reply.",
}


def map_error_to_message(error: BaseException, limits: MediaLimits) -> str:
    """Map any failure to the single line shown to the user."""
    if isinstance(error, YouTubeLookupError):
        if error.code == ErrorCode.DURATION_LIMIT:
            return f"Duration is over the search limit ({format_seconds(max_search_duration(limits))})."
        if error.code == ErrorCode.AUDIO_DURATION_LIMIT:
            return f"Audio is over the {format_seconds(limits.max_audio_duration)} limit."
        if error.code == ErrorCode.VIDEO_DURATION_LIMIT:
            return (
                f"Video is over the {format_seconds(limits.max_video_duration)} limit. "
                "Pick audio for this item."
            )
        return LOOKUP_MESSAGES.get(error.code, "Failed to query YouTube.")

    if isinstance(error, DownloadError):
        return DOWNLOAD_MESSAGES.get(error.code, "Error while downloading/converting media with yt-dlp.")

    if isinstance(error, TransportError):
        return TRANSPORT_MESSAGES.get(error.code, "Failed to send the reply.")

    return INTERNAL_ERROR_MESSAGE
