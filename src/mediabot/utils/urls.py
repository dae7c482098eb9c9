"""URL detection and YouTube identifier extraction."""

import re
from typing import Optional
from urllib.parse import urlparse, parse_qs

VIDEO_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")
PLAYLIST_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
PATH_VIDEO_RE = re.compile(r"^/(?:shorts|embed|live)/([a-zA-Z0-9_-]{11})")


def is_likely_url(value: str) -> bool:
    """Return True for absolute http(s) URLs."""
    try:
        parsed = urlparse(str(value).strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _youtube_host(value: str) -> Optional[str]:
    try:
        parsed = urlparse(str(value).strip())
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https"):
        return None
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def _is_youtube_domain(host: str) -> bool:
    return host == "youtube.com" or host.endswith(".youtube.com")


def extract_youtube_video_id(value: str) -> Optional[str]:
    """Extract the 11-character video id from watch, youtu.be, shorts and embed URLs."""
    host = _youtube_host(value)
    if not host:
        return None

    parsed = urlparse(str(value).strip())

    if host == "youtu.be":
        parts = [part for part in parsed.path.split("/") if part]
        short_id = parts[0] if parts else ""
        return short_id if VIDEO_ID_RE.match(short_id) else None

    if not _is_youtube_domain(host):
        return None

    if parsed.path == "/watch":
        query_id = parse_qs(parsed.query).get("v", [""])[0]
        return query_id if VIDEO_ID_RE.match(query_id) else None

    match = PATH_VIDEO_RE.match(parsed.path)
    if match:
        return match.group(1)

    return None


def extract_youtube_playlist_id(value: str) -> Optional[str]:
    """Extract the ``list`` query parameter from a YouTube URL."""
    host = _youtube_host(value)
    if not host:
        return None
    if not _is_youtube_domain(host) and host != "youtu.be":
        return None

    list_id = parse_qs(urlparse(str(value).strip()).query).get("list", [""])[0]
    if not list_id:
        return None
    return list_id if PLAYLIST_ID_RE.match(list_id) else None


def build_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def build_playlist_url(list_id: str) -> str:
    return f"https://www.youtube.com/playlist?list={list_id}"
