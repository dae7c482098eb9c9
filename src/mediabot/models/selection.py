"""Pending selection models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from mediabot.models.media import Candidate, MediaType


class SelectionMode(str, Enum):
    SEARCH_RESULTS = "search_results"
    PLAYLIST_TRACKS = "playlist_tracks"


@dataclass
class PendingSelection:
    """The open set of options a conversation is choosing among."""

    mode: SelectionMode
    options: Tuple[Candidate, ...]
    default_media_type: MediaType
    expires_at: float

    def option_at(self, index: int) -> Optional[Candidate]:
        """Return the option for a 1-based index, or None when out of range."""
        if 1 <= index <= len(self.options):
            return self.options[index - 1]
        return None


@dataclass(frozen=True)
class SelectionChoice:
    """A parsed selection reply: 1-based option index plus target media type."""

    index: int
    media_type: MediaType
