"""Media-related data models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class MediaType(str, Enum):
    """Output kinds a job can produce."""
    AUDIO = "audio"
    VIDEO = "video"


class CandidateKind(str, Enum):
    VIDEO = "video"
    PLAYLIST = "playlist"


@dataclass(frozen=True)
class Candidate:
    """One disambiguation option returned by the search collaborator."""

    kind: CandidateKind
    title: str
    author: str
    url: str
    duration_seconds: int = 0  # videos only; 0 when unknown
    duration_text: str = ""
    video_count: int = 0  # playlists only
    list_id: Optional[str] = None

    @property
    def is_playlist(self) -> bool:
        return self.kind == CandidateKind.PLAYLIST


@dataclass(frozen=True)
class PlaylistSummary:
    """Header information for a playlist whose tracks are being listed."""

    list_id: str
    title: str
    author: str
    url: str
    video_count: int = 0


@dataclass(frozen=True)
class MediaResult:
    """A finished file ready to be sent; deleted once the send is attempted."""

    file_path: Path
    file_size: int


@dataclass(frozen=True)
class CompressionProfile:
    """Settings for one transcode attempt."""

    max_height: int
    crf: int
    audio_bitrate_kbps: int

    def describe(self) -> str:
        return f"{self.max_height}p crf={self.crf} audio={self.audio_bitrate_kbps}k"


@dataclass(frozen=True)
class MediaLimits:
    """Per-media-type duration (seconds) and file size (bytes) ceilings."""

    max_audio_duration: float
    max_video_duration: float
    max_audio_file_size: float
    max_video_file_size: float

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MediaLimits':
        return cls(
            max_audio_duration=config['max_audio_duration'],
            max_video_duration=config['max_video_duration'],
            max_audio_file_size=config['max_audio_file_size'],
            max_video_file_size=config['max_video_file_size'],
        )
