"""Duration formatting helpers shared by search results and replies."""

from typing import Any


def parse_timestamp_to_seconds(timestamp: Any) -> int:
    """Parse "h:mm:ss", "m:ss" or "s" into seconds; 0 when unparseable."""
    if not timestamp or not isinstance(timestamp, str):
        return 0

    try:
        chunks = [int(item) for item in timestamp.strip().split(":")]
    except ValueError:
        return 0

    if len(chunks) == 3:
        return chunks[0] * 3600 + chunks[1] * 60 + chunks[2]
    if len(chunks) == 2:
        return chunks[0] * 60 + chunks[1]
    return chunks[0] if chunks else 0


def format_seconds(total_seconds: Any) -> str:
    """Format seconds as mm:ss, or hh:mm:ss from one hour up."""
    try:
        seconds = max(0, int(total_seconds or 0))
    except (TypeError, ValueError):
        seconds = 0

    hours, remainder = divmod(seconds, 3600)
    minutes, remaining_seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{remaining_seconds:02d}"
    return f"{minutes:02d}:{remaining_seconds:02d}"


def format_megabytes(size_bytes: int) -> str:
    return f"{size_bytes / (1024 * 1024):.1f} MB"
