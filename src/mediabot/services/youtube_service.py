"""YouTube lookup service using the yt-dlp API for search and metadata."""

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote_plus

import yt_dlp
from yt_dlp.utils import DownloadError as YtDlpDownloadError

from mediabot.models.media import Candidate, CandidateKind, PlaylistSummary
from mediabot.utils.errors import ErrorCode, YouTubeLookupError
from mediabot.utils.formatting import format_seconds, parse_timestamp_to_seconds
from mediabot.utils.retry import NetworkError, TemporaryServiceError, retry_lookup
from mediabot.utils.urls import (
    build_playlist_url,
    build_watch_url,
    extract_youtube_playlist_id,
    extract_youtube_video_id,
    is_likely_url,
)

logger = logging.getLogger(__name__)

# Configure yt-dlp logging to be silent
logging.getLogger("yt_dlp").setLevel(logging.CRITICAL)
logging.getLogger("yt_dlp.extractor").setLevel(logging.CRITICAL)

# YouTube results page filtered to playlists
PLAYLIST_SEARCH_URL = "https://www.youtube.com/results?search_query={query}&sp=EgIQAw%3D%3D"

NETWORK_HINTS = ("network", "connection", "timed out", "name resolution")
TEMPORARY_HINTS = ("http error 429", "http error 5", "too many requests")
MISSING_HINTS = (
    "video unavailable",
    "private video",
    "does not exist",
    "not available",
    "has been removed",
    "playlist does not exist",
)


def combine_search_results(
    videos: List[Candidate],
    playlists: List[Candidate],
    max_total_options: int,
) -> List[Candidate]:
    """Interleave videos and playlists, video first, up to ``max_total_options``."""
    mixed: List[Candidate] = []
    video_index = 0
    playlist_index = 0

    while len(mixed) < max_total_options and (
        video_index < len(videos) or playlist_index < len(playlists)
    ):
        if video_index < len(videos):
            mixed.append(videos[video_index])
            video_index += 1

        if len(mixed) >= max_total_options:
            break

        if playlist_index < len(playlists):
            mixed.append(playlists[playlist_index])
            playlist_index += 1

    return mixed


def duration_details(entry: Dict[str, Any]) -> Tuple[int, str]:
    """Return (seconds, display text) from a yt-dlp entry."""
    timestamp = entry.get("duration_string") or ""
    try:
        seconds = int(float(entry.get("duration") or 0))
    except (TypeError, ValueError):
        seconds = 0

    if not seconds:
        seconds = parse_timestamp_to_seconds(timestamp)

    return seconds, timestamp or format_seconds(seconds)


def _author_of(entry: Dict[str, Any]) -> str:
    return entry.get("channel") or entry.get("uploader") or "Unknown"


def normalize_video(entry: Optional[Dict[str, Any]]) -> Optional[Candidate]:
    """Convert a yt-dlp video entry into a Candidate."""
    if not entry:
        return None

    video_id = entry.get("id")
    url = entry.get("webpage_url") or entry.get("url") or ""
    if not extract_youtube_video_id(url):
        url = build_watch_url(video_id) if video_id else ""
    if not url:
        return None

    seconds, text = duration_details(entry)
    return Candidate(
        kind=CandidateKind.VIDEO,
        title=entry.get("title") or "Untitled",
        author=_author_of(entry),
        url=url,
        duration_seconds=seconds,
        duration_text=text,
    )


def normalize_playlist(entry: Optional[Dict[str, Any]]) -> Optional[Candidate]:
    """Convert a yt-dlp playlist entry into a Candidate."""
    if not entry:
        return None

    url = entry.get("url") or entry.get("webpage_url") or ""
    list_id = extract_youtube_playlist_id(url)
    if not list_id and entry.get("ie_key") == "YoutubeTab":
        list_id = entry.get("id")
    if not list_id:
        return None

    try:
        video_count = int(entry.get("playlist_count") or entry.get("video_count") or 0)
    except (TypeError, ValueError):
        video_count = 0

    return Candidate(
        kind=CandidateKind.PLAYLIST,
        title=entry.get("title") or "Untitled playlist",
        author=_author_of(entry),
        url=build_playlist_url(list_id),
        video_count=video_count,
        list_id=list_id,
    )


def _within_duration(candidate: Candidate, max_duration: float) -> bool:
    return 0 < candidate.duration_seconds <= max_duration


def assert_video_duration(candidate: Candidate, max_duration: float) -> None:
    if not candidate.duration_seconds or candidate.duration_seconds <= 0:
        raise YouTubeLookupError(ErrorCode.INVALID_DURATION, "Could not determine the video duration.")

    if candidate.duration_seconds > max_duration:
        raise YouTubeLookupError(
            ErrorCode.DURATION_LIMIT,
            "Video is over the allowed limit.",
            {"duration_seconds": candidate.duration_seconds, "max_duration_seconds": max_duration}
        )


class YouTubeService:
    """Search and metadata lookups against YouTube using yt-dlp."""

    def __init__(self):
        """Initialize YouTube lookup service."""
        self.flat_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "extract_flat": "in_playlist",
        }
        self.video_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
        }

    @retry_lookup(max_retries=2, base_delay=1.0)
    def _extract_info(self, target: str, opts: Dict[str, Any], process: bool = True) -> Optional[Dict]:
        """Run yt-dlp metadata extraction; None means "nothing there"."""
        try:
            with yt_dlp.YoutubeDL(dict(opts)) as ydl:
                info = ydl.extract_info(target, download=False, process=process)
                return ydl.sanitize_info(info) if info else None

        except YtDlpDownloadError as e:
            message = str(e).lower()
            if any(hint in message for hint in NETWORK_HINTS):
                raise NetworkError(f"Network error: {e}")
            if any(hint in message for hint in TEMPORARY_HINTS):
                raise TemporaryServiceError(f"YouTube unavailable: {e}")
            if any(hint in message for hint in MISSING_HINTS):
                logger.info(f"Nothing found at {target}: {e}")
                return None
            logger.error(f"yt-dlp lookup failed for {target}: {e}")
            raise YouTubeLookupError(ErrorCode.LOOKUP_FAILED, "YouTube lookup failed.", {"error": str(e)})

    def _lookup(self, target: str, opts: Dict[str, Any], process: bool = True) -> Optional[Dict]:
        try:
            return self._extract_info(target, opts, process)
        except (NetworkError, TemporaryServiceError) as e:
            raise YouTubeLookupError(ErrorCode.LOOKUP_FAILED, "YouTube is unreachable right now.", {"error": str(e)})

    def _search_videos(self, query: str, count: int) -> List[Candidate]:
        results = self._lookup(f"ytsearch{count}:{query}", self.flat_opts)
        entries = (results or {}).get("entries") or []
        return [video for video in map(normalize_video, entries) if video]

    def _search_playlists(self, query: str, count: int) -> List[Candidate]:
        opts = dict(self.flat_opts, playlistend=count)
        try:
            results = self._lookup(PLAYLIST_SEARCH_URL.format(query=quote_plus(query)), opts)
        except YouTubeLookupError as e:
            logger.warning(f"Playlist search failed for '{query}': {e}")
            return []

        entries = (results or {}).get("entries") or []
        return [playlist for playlist in map(normalize_playlist, entries) if playlist]

    def search_media_options(
        self,
        query: str,
        max_duration: float,
        max_video_results: int = 6,
        max_playlist_results: int = 4,
        max_total_options: int = 8,
    ) -> List[Candidate]:
        """Search videos and playlists, interleaved video-first.

        Videos with unknown duration or longer than ``max_duration`` are
        silently dropped.

        Raises:
            YouTubeLookupError: NOT_FOUND when nothing usable came back
        """
        logger.info(f"Searching YouTube for: '{query}'")

        videos = [
            video for video in self._search_videos(query, max(max_video_results * 2, 10))
            if _within_duration(video, max_duration)
        ][:max_video_results]

        playlists = self._search_playlists(query, max_playlist_results)[:max_playlist_results]

        combined = combine_search_results(videos, playlists, max_total_options)
        if not combined:
            raise YouTubeLookupError(ErrorCode.NOT_FOUND, "No valid results for this search.")

        logger.info(f"Found {len(videos)} videos and {len(playlists)} playlists for '{query}'")
        return combined

    def get_video_from_input(self, value: str, max_duration: float) -> Candidate:
        """Resolve a video URL or free-text query to a single video.

        Raises:
            YouTubeLookupError: PLAYLIST_URL_DETECTED for a playlist-only
                URL, INVALID_URL, NOT_FOUND, INVALID_DURATION or
                DURATION_LIMIT
        """
        if is_likely_url(value):
            playlist_id = extract_youtube_playlist_id(value)
            video_id = extract_youtube_video_id(value)

            if playlist_id and not video_id:
                raise YouTubeLookupError(ErrorCode.PLAYLIST_URL_DETECTED, "Playlist URL detected.")

            if not video_id:
                raise YouTubeLookupError(ErrorCode.INVALID_URL, "Not a valid YouTube link.")

            info = self._lookup(build_watch_url(video_id), self.video_opts, process=False)
            candidate = normalize_video(info)
        else:
            results = self._lookup(f"ytsearch1:{value}", self.flat_opts)
            entries = (results or {}).get("entries") or []
            candidate = normalize_video(entries[0]) if entries else None

        if candidate is None:
            raise YouTubeLookupError(ErrorCode.NOT_FOUND, "No video found for this input.")

        assert_video_duration(candidate, max_duration)
        return candidate

    def get_playlist_options(
        self,
        value: str,
        max_duration: float,
        max_items: int = 10,
    ) -> Tuple[PlaylistSummary, List[Candidate]]:
        """List the selectable tracks of a playlist.

        Raises:
            YouTubeLookupError: INVALID_URL, PLAYLIST_NOT_FOUND or
                PLAYLIST_NO_VALID_VIDEOS
        """
        list_id = extract_youtube_playlist_id(value)
        if not list_id:
            raise YouTubeLookupError(ErrorCode.INVALID_URL, "Not a valid YouTube link.")

        logger.info(f"Loading playlist {list_id}")
        info = self._lookup(build_playlist_url(list_id), self.flat_opts)
        if not info:
            raise YouTubeLookupError(ErrorCode.PLAYLIST_NOT_FOUND, "Playlist not found.")

        entries = info.get("entries") or []
        playlist = PlaylistSummary(
            list_id=info.get("id") or list_id,
            title=info.get("title") or "Untitled playlist",
            author=_author_of(info),
            url=build_playlist_url(list_id),
            video_count=int(info.get("playlist_count") or len(entries)),
        )

        tracks = [
            video for video in map(normalize_video, entries)
            if video and _within_duration(video, max_duration)
        ][:max_items]

        if not tracks:
            raise YouTubeLookupError(ErrorCode.PLAYLIST_NO_VALID_VIDEOS, "No valid tracks in this playlist.")

        return playlist, tracks
