"""yt-dlp process boundary: argument building, invocation and failure classification.

Classification works on yt-dlp's stderr wording, which changes upstream from
time to time. Keep the phrase tables below in sync with what yt-dlp prints;
``classify_download_failure`` is pure so it can be checked against captured
output without running the binary.
"""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from mediabot.utils.errors import DownloadError, ErrorCode

logger = logging.getLogger(__name__)

YTDLP_BINARY = "yt-dlp"
EXTRA_BIN_DIRS = ["/opt/homebrew/bin", "/usr/local/bin"]
COMMON_FFMPEG_DIRS = ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin"]

AUTH_REQUIRED_PHRASES = (
    "sign in to confirm you're not a bot",
    "use --cookies-from-browser or --cookies for the authentication",
    "this video is age-restricted",
    "sign in to confirm your age",
)

CHALLENGE_FAILED_PHRASES = (
    "n challenge solving failed",
    "only images are available for download",
)

FORMAT_UNAVAILABLE_PHRASES = (
    "requested format is not available",
)


class ProcessResult(NamedTuple):
    """Exit code plus captured diagnostic output of an external process."""

    code: int
    stderr: str


def subprocess_env() -> Dict[str, str]:
    """Environment for child processes, with Homebrew/local bins on PATH."""
    env = dict(os.environ)
    env["PATH"] = os.pathsep.join(EXTRA_BIN_DIRS + [env.get("PATH", "")])
    return env


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _has_ffmpeg_pair(directory: Path) -> bool:
    return _is_executable(directory / "ffmpeg") and _is_executable(directory / "ffprobe")


def detect_ffmpeg_location(configured: Optional[str] = None) -> Optional[str]:
    """Find the directory holding both ffmpeg and ffprobe.

    Order: explicit setting / FFMPEG_LOCATION, the directory of ``ffmpeg`` on
    PATH, then common install locations. None lets the tools use PATH.
    """
    explicit = configured or os.getenv("FFMPEG_LOCATION")
    if explicit:
        return explicit

    on_path = shutil.which("ffmpeg", path=subprocess_env()["PATH"])
    if on_path:
        candidate_dir = Path(on_path).resolve().parent
        if _has_ffmpeg_pair(candidate_dir):
            return str(candidate_dir)

    for candidate in COMMON_FFMPEG_DIRS:
        if _has_ffmpeg_pair(Path(candidate)):
            return candidate

    return None


def run_ytdlp(args: Sequence[str]) -> ProcessResult:
    """Run yt-dlp with ``args`` and return its exit code and stderr.

    Raises:
        DownloadError: YTDLP_NOT_FOUND when the binary is missing,
            YTDLP_ERROR when it cannot be started at all.
    """
    command = [YTDLP_BINARY, *args]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            errors="replace",
            env=subprocess_env(),
        )
    except FileNotFoundError:
        raise DownloadError(ErrorCode.YTDLP_NOT_FOUND, "yt-dlp was not found on this system.")
    except OSError as e:
        raise DownloadError(
            ErrorCode.YTDLP_ERROR,
            "Failed to start yt-dlp.",
            {"original_error": str(e)}
        )

    return ProcessResult(completed.returncode, completed.stderr or "")


def _normalize_diagnostics(stderr: Optional[str]) -> str:
    return str(stderr or "").lower().replace("’", "'").replace("â€™", "'")


def classify_download_failure(stderr: Optional[str]) -> ErrorCode:
    """Map yt-dlp diagnostic output to an error code."""
    output = _normalize_diagnostics(stderr)

    if any(phrase in output for phrase in AUTH_REQUIRED_PHRASES):
        return ErrorCode.YTDLP_AUTH_REQUIRED
    if any(phrase in output for phrase in CHALLENGE_FAILED_PHRASES):
        return ErrorCode.YTDLP_CHALLENGE_FAILED
    if any(phrase in output for phrase in FORMAT_UNAVAILABLE_PHRASES):
        return ErrorCode.YTDLP_FORMAT_UNAVAILABLE
    return ErrorCode.YTDLP_ERROR


FAILURE_MESSAGES = {
    ErrorCode.YTDLP_AUTH_REQUIRED: "YouTube requires authentication (cookies) to continue.",
    ErrorCode.YTDLP_CHALLENGE_FAILED: "Could not solve the YouTube challenge (JS runtime/EJS).",
    ErrorCode.YTDLP_FORMAT_UNAVAILABLE: "The requested format is not available for this video.",
    ErrorCode.YTDLP_ERROR: "yt-dlp returned an error while downloading.",
}


def download_failure(result: ProcessResult) -> DownloadError:
    """Build the classified error for a non-zero yt-dlp exit."""
    code = classify_download_failure(result.stderr)
    return DownloadError(
        code,
        FAILURE_MESSAGES[code],
        {"exit_code": result.code, "stderr": result.stderr[-2000:]}
    )


def build_auth_args(config: Dict[str, Any]) -> List[str]:
    """Cookie and challenge-solving arguments from configuration.

    A cookie file wins over a browser cookie source.

    Raises:
        DownloadError: COOKIES_FILE_NOT_FOUND when the configured cookie
            file is missing or unreadable.
    """
    args: List[str] = []

    cookies_file = config.get("ytdlp_cookies_file")
    cookies_from_browser = config.get("ytdlp_cookies_from_browser")

    if cookies_file:
        if not (Path(cookies_file).is_file() and os.access(cookies_file, os.R_OK)):
            raise DownloadError(
                ErrorCode.COOKIES_FILE_NOT_FOUND,
                f"Cookie file not found: {cookies_file}"
            )
        args += ["--cookies", str(cookies_file)]
    elif cookies_from_browser:
        args += ["--cookies-from-browser", cookies_from_browser]

    if config.get("ytdlp_extractor_args"):
        args += ["--extractor-args", config["ytdlp_extractor_args"]]

    if config.get("ytdlp_js_runtimes"):
        args += ["--js-runtimes", config["ytdlp_js_runtimes"]]

    if config.get("ytdlp_remote_components"):
        args += ["--remote-components", config["ytdlp_remote_components"]]

    return args


def _common_head(config: Dict[str, Any]) -> List[str]:
    fragments = max(1, int(config.get("ytdlp_concurrent_fragments", 4) or 1))
    return ["--no-playlist", "-N", str(fragments)]


def _common_tail(
    output_template: str,
    media_url: str,
    ffmpeg_location: Optional[str],
    auth_args: List[str],
) -> List[str]:
    args: List[str] = []
    if ffmpeg_location:
        args += ["--ffmpeg-location", ffmpeg_location]
    args += auth_args
    args += ["--no-progress", "--newline", "-o", output_template, media_url]
    return args


def build_audio_args(
    output_template: str,
    media_url: str,
    config: Dict[str, Any],
    auth_args: List[str],
    ffmpeg_location: Optional[str] = None,
) -> List[str]:
    """Best audio, extracted to MP3 at the configured quality, channels and rate."""
    bitrate = int(config.get("audio_bitrate") or 0)
    quality = f"{bitrate}K" if bitrate > 0 else str(config.get("audio_quality", 5))
    channels = int(config.get("audio_channels", 2))
    sample_rate = int(config.get("audio_sample_rate", 44100))

    args = _common_head(config) + [
        "-f", "bestaudio[ext=m4a]/bestaudio/best",
        "-x",
        "--audio-format", "mp3",
        "--audio-quality", quality,
        "--postprocessor-args", f"ExtractAudio:-ac {channels} -ar {sample_rate}",
    ]
    return args + _common_tail(output_template, media_url, ffmpeg_location, auth_args)


def build_video_args(
    output_template: str,
    media_url: str,
    config: Dict[str, Any],
    auth_args: List[str],
    max_height: int,
    ffmpeg_location: Optional[str] = None,
) -> List[str]:
    """Height-bounded best video+audio, merged into an MP4 container."""
    args = _common_head(config) + [
        "-f", f"bestvideo[height<={max_height}]+bestaudio/best[height<={max_height}]",
        "--merge-output-format", "mp4",
    ]
    return args + _common_tail(output_template, media_url, ffmpeg_location, auth_args)
