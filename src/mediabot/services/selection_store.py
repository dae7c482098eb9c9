"""Per-conversation pending selection state."""

import logging
import re
import threading
import time
from typing import Callable, Dict, Hashable, Iterable, Optional

from mediabot.models.media import Candidate, MediaType
from mediabot.models.selection import PendingSelection, SelectionChoice, SelectionMode

logger = logging.getLogger(__name__)

MEDIA_FIRST_RE = re.compile(r"^([a-z]+)\s*([0-9]+)$")
INDEX_FIRST_RE = re.compile(r"^([0-9]+)\s*([a-z]+)$")
DIGITS_RE = re.compile(r"^[0-9]+$")

MEDIA_TOKENS = {
    "a": MediaType.AUDIO,
    "audio": MediaType.AUDIO,
    "v": MediaType.VIDEO,
    "video": MediaType.VIDEO,
}


class SelectionStore:
    """Keyed store holding at most one pending selection per conversation.

    Entries expire lazily: an entry past its deadline is dropped the next
    time it is read. There is no background sweep.
    """

    def __init__(self, timeout_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._pending: Dict[Hashable, PendingSelection] = {}
        self._lock = threading.Lock()

    def set_pending(
        self,
        conversation_id: Hashable,
        mode: SelectionMode,
        options: Iterable[Candidate],
        default_media_type: MediaType,
    ) -> PendingSelection:
        """Open (or replace) the conversation's selection."""
        pending = PendingSelection(
            mode=mode,
            options=tuple(options),
            default_media_type=default_media_type,
            expires_at=self._clock() + self.timeout_seconds,
        )
        with self._lock:
            self._pending[conversation_id] = pending

        logger.debug(
            f"Pending selection for {conversation_id}: {mode.value} "
            f"with {len(pending.options)} options"
        )
        return pending

    def get_pending(self, conversation_id: Hashable) -> Optional[PendingSelection]:
        with self._lock:
            pending = self._pending.get(conversation_id)
            if pending is None:
                return None

            if self._clock() > pending.expires_at:
                del self._pending[conversation_id]
                logger.debug(f"Pending selection for {conversation_id} expired")
                return None

            return pending

    def clear_pending(self, conversation_id: Hashable) -> None:
        with self._lock:
            self._pending.pop(conversation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


def normalize_media_token(token: Optional[str]) -> Optional[MediaType]:
    return MEDIA_TOKENS.get(str(token or "").lower())


def parse_selection_choice(text: Optional[str], default_media_type: MediaType) -> Optional[SelectionChoice]:
    """Parse "3", "a3"/"audio 3" or "3v" into a choice.

    Returns None when the text has none of these shapes or uses an
    unrecognised media letter; the caller treats that as "not a selection".
    """
    value = str(text or "").strip().lower()
    if not value:
        return None

    if DIGITS_RE.match(value):
        return SelectionChoice(index=int(value), media_type=default_media_type)

    match = MEDIA_FIRST_RE.match(value)
    if match:
        token, digits = match.group(1), match.group(2)
    else:
        match = INDEX_FIRST_RE.match(value)
        if not match:
            return None
        digits, token = match.group(1), match.group(2)

    media_type = normalize_media_token(token)
    if media_type is None:
        return None

    return SelectionChoice(index=int(digits), media_type=media_type)
