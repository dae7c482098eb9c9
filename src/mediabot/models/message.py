"""Chat transport boundary models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Hashable, Optional, Protocol


@dataclass(frozen=True)
class IncomingMessage:
    """A text message received from a conversation."""

    conversation_id: Hashable
    text: str
    quoted_text: Optional[str] = None


class ReplyChannel(Protocol):
    """Reply capabilities a transport hands to the request handler.

    Each method may raise ``TransportError`` (not connected / send failed).
    """

    async def reply_text(self, text: str) -> None: ...

    async def reply_audio(self, file_path: Path, caption: str) -> None: ...

    async def reply_video(self, file_path: Path, caption: str) -> None: ...
