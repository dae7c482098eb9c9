"""Filesystem helpers for the shared download directory."""

import logging
import re
import time
import unicodedata
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def sanitize_filename(value: Optional[str], max_length: int = 80, fallback: str = "media") -> str:
    """Reduce a title to ASCII letters, digits, dashes and underscores."""
    normalized = unicodedata.normalize("NFKD", str(value or ""))
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^a-zA-Z0-9\-_ ]", "", ascii_only).strip()
    cleaned = re.sub(r"\s+", "-", cleaned)
    return (cleaned or fallback)[:max_length]


def unique_base_name(title: Optional[str], max_length: int = 60) -> str:
    """Build the per-job file prefix: sanitized title plus a millisecond timestamp."""
    return f"{sanitize_filename(title, max_length)}-{int(time.time() * 1000)}"


def safe_unlink(file_path: Optional[PathLike]) -> None:
    """Delete a file, ignoring a missing one and logging other failures."""
    if not file_path:
        return

    try:
        Path(file_path).unlink()
        logger.debug(f"Removed temporary file: {file_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove temporary file {file_path}: {e}")


def files_with_prefix(dir_path: PathLike, prefix: str) -> List[Path]:
    directory = Path(dir_path)
    if not directory.is_dir():
        return []
    return sorted(
        path for path in directory.iterdir()
        if path.is_file() and path.name.startswith(prefix)
    )


def safe_remove_by_prefix(dir_path: PathLike, prefix: str) -> int:
    """Remove every file in ``dir_path`` whose name starts with ``prefix``."""
    removed = 0
    for path in files_with_prefix(dir_path, prefix):
        safe_unlink(path)
        removed += 1

    if removed:
        logger.info(f"Swept {removed} partial file(s) with prefix {prefix}")
    return removed


def find_output_file(dir_path: PathLike, base_name: str, extensions: Iterable[str]) -> Optional[Path]:
    """Locate ``<base_name>.<ext>`` or, failing that, any ``<base_name>*.<ext>``."""
    directory = Path(dir_path)
    extensions = [ext.lower().lstrip(".") for ext in extensions]

    for extension in extensions:
        expected = directory / f"{base_name}.{extension}"
        if expected.is_file():
            return expected

    for path in files_with_prefix(directory, base_name):
        if path.suffix.lower().lstrip(".") in extensions:
            return path

    return None
