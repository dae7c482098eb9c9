"""Chat command parsing."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

EMPTY_QUERY = "EMPTY_QUERY"


class CommandType(str, Enum):
    NONE = "none"
    HELP = "help"
    CANCEL = "cancel"
    PLAY = "play"
    VIDEO = "video"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParsedCommand:
    type: CommandType
    query: Optional[str] = None
    error: Optional[str] = None
    command: Optional[str] = None


QUERY_COMMANDS = {
    "/play": CommandType.PLAY,
    "/video": CommandType.VIDEO,
}


def parse_command(raw_text: Any) -> ParsedCommand:
    """Turn raw message text into a typed command.

    Only the command word is matched case-insensitively; the query keeps the
    user's casing. ``/play`` and ``/video`` without a query come back with
    ``error=EMPTY_QUERY`` so the caller can fall back to a quoted message.
    """
    if not raw_text or not isinstance(raw_text, str):
        return ParsedCommand(CommandType.NONE)

    text = raw_text.strip()
    if not text.startswith("/"):
        return ParsedCommand(CommandType.NONE)

    raw_command, _, remainder = text.partition(" ")
    command = raw_command.lower()

    if command == "/help":
        return ParsedCommand(CommandType.HELP)

    if command == "/cancel":
        return ParsedCommand(CommandType.CANCEL)

    if command in QUERY_COMMANDS:
        command_type = QUERY_COMMANDS[command]
        query = remainder.strip()
        if not query:
            return ParsedCommand(command_type, error=EMPTY_QUERY)
        return ParsedCommand(command_type, query=query)

    return ParsedCommand(CommandType.UNKNOWN, command=command)
