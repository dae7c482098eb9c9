"""Media acquisition service driving yt-dlp and ffmpeg."""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from mediabot.models.media import Candidate, CompressionProfile, MediaLimits, MediaResult, MediaType
from mediabot.services.media_policy import max_file_size_for
from mediabot.services.transcoder import (
    OUTPUT_SUFFIX,
    compression_profile_for,
    fallback_profile,
    transcode,
)
from mediabot.services.ytdlp_runner import (
    build_audio_args,
    build_auth_args,
    build_video_args,
    detect_ffmpeg_location,
    download_failure,
    run_ytdlp,
)
from mediabot.utils.config import get_supported_audio_formats, get_supported_video_formats
from mediabot.utils.errors import DownloadError, ErrorCode
from mediabot.utils.files import find_output_file, safe_remove_by_prefix, safe_unlink, unique_base_name
from mediabot.utils.formatting import format_megabytes

logger = logging.getLogger(__name__)

ArgsBuilder = Callable[[str, List[str]], List[str]]


def file_too_large(size: int, max_size: float) -> DownloadError:
    return DownloadError(
        ErrorCode.FILE_TOO_LARGE,
        "File is over the allowed size limit.",
        {"size": size, "max_file_size": max_size}
    )


class MediaDownloader:
    """Produces size-bounded MP3/MP4 files for queued jobs.

    Every file is written to the shared download directory under a per-job
    prefix. Callers must hand the returned ``MediaResult`` back to
    ``release`` once they are done with it, whatever the outcome.
    """

    def __init__(self, config: Dict):
        """Initialize the downloader from configuration.

        Args:
            config: Configuration dictionary from ``load_config``
        """
        self.config = config
        self.download_path = Path(config["download_path"])
        self.download_path.mkdir(parents=True, exist_ok=True)
        self.limits = MediaLimits.from_config(config)
        self.base_profile = CompressionProfile(
            max_height=config.get("video_max_height", 720),
            crf=config.get("video_crf", 23),
            audio_bitrate_kbps=config.get("video_audio_bitrate", 128),
        )
        self.ffmpeg_location = detect_ffmpeg_location(config.get("ffmpeg_location"))

        logger.info(f"Initialized media downloader with download dir: {self.download_path}")

    def acquire(self, candidate: Candidate, media_type: MediaType) -> MediaResult:
        """Download (and for video, transcode) a candidate.

        Raises:
            DownloadError: classified acquisition, transcode or size failure
        """
        if media_type == MediaType.VIDEO:
            return self.download_video(candidate)
        return self.download_audio(candidate)

    def release(self, result: Optional[MediaResult]) -> None:
        """Delete a finished file after it was sent (or failed to send)."""
        if result is not None:
            safe_unlink(result.file_path)

    def download_audio(self, candidate: Candidate) -> MediaResult:
        logger.info(f"Downloading audio: {candidate.title}")

        file_path, _ = self._run_download(
            candidate,
            lambda template, auth_args: build_audio_args(
                template, candidate.url, self.config, auth_args, self.ffmpeg_location
            ),
            get_supported_audio_formats(),
        )

        size = file_path.stat().st_size
        max_size = max_file_size_for(MediaType.AUDIO, self.limits)
        if size > max_size:
            safe_unlink(file_path)
            logger.warning(
                f"Audio for '{candidate.title}' is {format_megabytes(size)}, "
                f"over the {format_megabytes(int(max_size))} limit"
            )
            raise file_too_large(size, max_size)

        logger.info(f"Audio ready: {file_path.name} ({format_megabytes(size)})")
        return MediaResult(file_path=file_path.resolve(), file_size=size)

    def download_video(self, candidate: Candidate) -> MediaResult:
        profile = compression_profile_for(candidate.duration_seconds, self.base_profile)
        max_size = max_file_size_for(MediaType.VIDEO, self.limits)
        logger.info(f"Downloading video: {candidate.title} (target {profile.describe()})")

        raw_path, base_name = self._run_download(
            candidate,
            lambda template, auth_args: build_video_args(
                template, candidate.url, self.config, auth_args,
                max_height=profile.max_height,
                ffmpeg_location=self.ffmpeg_location,
            ),
            get_supported_video_formats(),
        )
        output_path = self.download_path / f"{base_name}{OUTPUT_SUFFIX}"

        try:
            size = self._transcode_to(raw_path, output_path, profile)

            if size > max_size:
                safe_unlink(output_path)
                retry_profile = fallback_profile(profile)
                if retry_profile is None:
                    logger.warning(
                        f"Video for '{candidate.title}' is {format_megabytes(size)} "
                        f"and already at the most aggressive profile"
                    )
                    raise file_too_large(size, max_size)

                logger.warning(
                    f"Video for '{candidate.title}' is {format_megabytes(size)}, "
                    f"retrying at {retry_profile.describe()}"
                )
                size = self._transcode_to(raw_path, output_path, retry_profile)

                if size > max_size:
                    safe_unlink(output_path)
                    raise file_too_large(size, max_size)
        finally:
            safe_unlink(raw_path)

        logger.info(f"Video ready: {output_path.name} ({format_megabytes(size)})")
        return MediaResult(file_path=output_path.resolve(), file_size=size)

    def _run_download(
        self,
        candidate: Candidate,
        args_builder: ArgsBuilder,
        extensions: List[str],
    ) -> Tuple[Path, str]:
        """Invoke yt-dlp for one job and locate its output file.

        Returns:
            (output file path, per-job base name)
        """
        self.download_path.mkdir(parents=True, exist_ok=True)
        base_name = unique_base_name(candidate.title, 60)
        output_template = str(self.download_path / f"{base_name}.%(ext)s")
        args = args_builder(output_template, build_auth_args(self.config))

        try:
            result = run_ytdlp(args)
        except DownloadError:
            safe_remove_by_prefix(self.download_path, base_name)
            raise

        if result.code != 0:
            # Partial artifacts share the job prefix
            safe_remove_by_prefix(self.download_path, base_name)
            error = download_failure(result)
            logger.error(f"yt-dlp failed for {candidate.url} ({error.code.value}, exit {result.code})")
            raise error

        file_path = find_output_file(self.download_path, base_name, extensions)
        if file_path is None:
            safe_remove_by_prefix(self.download_path, base_name)
            raise DownloadError(ErrorCode.OUTPUT_NOT_FOUND, "Downloaded file was not produced.")

        return file_path, base_name

    def _transcode_to(self, raw_path: Path, output_path: Path, profile: CompressionProfile) -> int:
        try:
            return transcode(raw_path, output_path, profile, self.ffmpeg_location)
        except DownloadError:
            safe_unlink(output_path)
            raise

    def cleanup_stale_downloads(self) -> int:
        """Remove leftovers from a previous run; nothing in the download dir outlives a job."""
        removed = 0
        for file_path in self.download_path.iterdir():
            if not file_path.is_file():
                continue
            try:
                file_path.unlink()
                removed += 1
                logger.debug(f"Cleaned up stale download: {file_path}")
            except OSError as e:
                logger.warning(f"Could not clean up {file_path}: {e}")

        if removed:
            logger.info(f"Removed {removed} stale file(s) from {self.download_path}")
        return removed
