"""ffmpeg process boundary and compression profile computation."""

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from mediabot.models.media import CompressionProfile
from mediabot.services.ytdlp_runner import ProcessResult, subprocess_env
from mediabot.utils.errors import DownloadError, ErrorCode

logger = logging.getLogger(__name__)

# (minimum source duration in seconds, profile applied from that duration up)
DURATION_TIERS = (
    (7200, CompressionProfile(max_height=240, crf=30, audio_bitrate_kbps=64)),
    (3600, CompressionProfile(max_height=360, crf=28, audio_bitrate_kbps=80)),
    (1800, CompressionProfile(max_height=480, crf=26, audio_bitrate_kbps=96)),
)

HEIGHT_LADDER = (1080, 720, 480, 360, 240, 144)
CRF_STEP = 4
MAX_CRF = 36
AUDIO_BITRATE_STEP = 32
MIN_AUDIO_BITRATE = 48

OUTPUT_SUFFIX = "-out.mp4"


def compression_profile_for(duration_seconds: float, base: CompressionProfile) -> CompressionProfile:
    """Pick transcode settings for a source of the given length.

    Longer sources get a lower height, higher CRF and lower audio bitrate.
    The result is never less aggressive than ``base`` (the configured
    defaults).
    """
    for threshold, tier in DURATION_TIERS:
        if duration_seconds >= threshold:
            return CompressionProfile(
                max_height=min(base.max_height, tier.max_height),
                crf=max(base.crf, tier.crf),
                audio_bitrate_kbps=min(base.audio_bitrate_kbps, tier.audio_bitrate_kbps),
            )
    return base


def _next_lower_height(height: int) -> int:
    lower = [step for step in HEIGHT_LADDER if step < height]
    return lower[0] if lower else height


def fallback_profile(profile: CompressionProfile) -> Optional[CompressionProfile]:
    """Return a strictly more aggressive profile, or None when already at the floor."""
    candidate = CompressionProfile(
        max_height=_next_lower_height(profile.max_height),
        crf=max(profile.crf, min(profile.crf + CRF_STEP, MAX_CRF)),
        audio_bitrate_kbps=min(
            profile.audio_bitrate_kbps,
            max(profile.audio_bitrate_kbps - AUDIO_BITRATE_STEP, MIN_AUDIO_BITRATE),
        ),
    )
    if candidate == profile:
        return None
    return candidate


def _even_width_for(height: int) -> int:
    return int(round(height * 16 / 9 / 2)) * 2


def build_ffmpeg_args(input_path: Path, output_path: Path, profile: CompressionProfile) -> list:
    """H.264 main profile / AAC stereo MP4 bounded to the profile's height."""
    height = profile.max_height
    width = _even_width_for(height)
    video_filter = (
        f"scale=w=min(iw\\,{width}):h=min(ih\\,{height})"
        ":force_original_aspect_ratio=decrease:force_divisible_by=2,format=yuv420p"
    )
    return [
        "-y",
        "-i", str(input_path),
        "-vf", video_filter,
        "-c:v", "libx264",
        "-preset", "veryfast",
        "-crf", str(profile.crf),
        "-profile:v", "main",
        "-level", "3.1",
        "-movflags", "+faststart",
        "-c:a", "aac",
        "-b:a", f"{profile.audio_bitrate_kbps}k",
        "-ar", "44100",
        "-ac", "2",
        str(output_path),
    ]


def run_ffmpeg(args: Sequence[str], ffmpeg_location: Optional[str] = None) -> ProcessResult:
    """Run ffmpeg and return its exit code and stderr.

    Raises:
        DownloadError: FFMPEG_NOT_FOUND when the binary is missing,
            FFMPEG_ERROR when it cannot be started.
    """
    binary = str(Path(ffmpeg_location) / "ffmpeg") if ffmpeg_location else "ffmpeg"

    try:
        completed = subprocess.run(
            [binary, *args],
            capture_output=True,
            text=True,
            errors="replace",
            env=subprocess_env(),
        )
    except FileNotFoundError:
        raise DownloadError(ErrorCode.FFMPEG_NOT_FOUND, "ffmpeg was not found on this system.")
    except OSError as e:
        raise DownloadError(
            ErrorCode.FFMPEG_ERROR,
            "Failed to start ffmpeg.",
            {"original_error": str(e)}
        )

    return ProcessResult(completed.returncode, completed.stderr or "")


def transcode(
    input_path: Path,
    output_path: Path,
    profile: CompressionProfile,
    ffmpeg_location: Optional[str] = None,
) -> int:
    """Transcode ``input_path`` into ``output_path``; returns the output size in bytes."""
    logger.info(f"Transcoding {input_path.name} at {profile.describe()}")

    result = run_ffmpeg(build_ffmpeg_args(input_path, output_path, profile), ffmpeg_location)
    if result.code != 0:
        raise DownloadError(
            ErrorCode.FFMPEG_ERROR,
            "Failed to convert the video to a compatible format.",
            {"exit_code": result.code, "stderr": result.stderr[-2000:]}
        )

    if not output_path.is_file():
        raise DownloadError(ErrorCode.OUTPUT_NOT_FOUND, "Transcoded file was not produced.")

    return output_path.stat().st_size
