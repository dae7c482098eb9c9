"""Test doubles and factories shared across test modules."""

from pathlib import Path
from typing import List, Optional, Tuple

from mediabot.models.media import Candidate, CandidateKind
from mediabot.utils.errors import ErrorCode, TransportError


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel:
    """ReplyChannel double that records everything sent."""

    def __init__(self, reject_media_with: Optional[Exception] = None):
        self.texts: List[str] = []
        self.audio: List[Tuple[Path, str]] = []
        self.video: List[Tuple[Path, str]] = []
        self.reject_media_with = reject_media_with

    async def reply_text(self, text: str) -> None:
        self.texts.append(text)

    async def reply_audio(self, file_path: Path, caption: str) -> None:
        if self.reject_media_with:
            raise self.reject_media_with
        self.audio.append((Path(file_path), caption))

    async def reply_video(self, file_path: Path, caption: str) -> None:
        if self.reject_media_with:
            raise self.reject_media_with
        self.video.append((Path(file_path), caption))


def make_video(title: str = "Song", duration: int = 200, video_id: str = "dQw4w9WgXcQ") -> Candidate:
    return Candidate(
        kind=CandidateKind.VIDEO,
        title=title,
        author="Artist",
        url=f"https://www.youtube.com/watch?v={video_id}",
        duration_seconds=duration,
        duration_text=f"{duration // 60:02d}:{duration % 60:02d}",
    )


def make_playlist(title: str = "Mix", list_id: str = "PLabc123") -> Candidate:
    return Candidate(
        kind=CandidateKind.PLAYLIST,
        title=title,
        author="Curator",
        url=f"https://www.youtube.com/playlist?list={list_id}",
        video_count=12,
        list_id=list_id,
    )


def size_rejection() -> TransportError:
    return TransportError(ErrorCode.SEND_VIDEO_FAILED, "Media too big: 99999999 bytes (413)")
