"""Naming and bookkeeping for clip files in the storage folder."""

import hashlib
import logging
import re
from pathlib import Path
from typing import Tuple

from ..models.resource import ResourceRecord

logger = logging.getLogger(__name__)

AUDIO_SUFFIX = ".mp3"
MAX_FILENAME_BYTES = 255

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x80-\x9f]')
_WINDOWS_RESERVED = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)


def sanitize_filename(filename: str, replacement: str = "_") -> str:
    """Make a string safe to use as a single path segment.

    Illegal characters are replaced, surrounding dots and whitespace trimmed,
    Windows device names escaped, and the name capped at 255 bytes with its
    extension kept.
    """
    sanitized = _ILLEGAL_CHARS.sub(replacement, filename)
    sanitized = sanitized.strip(" .")

    if not sanitized:
        sanitized = "unnamed"
    if _WINDOWS_RESERVED.match(sanitized):
        sanitized = f"_{sanitized}"

    if len(sanitized.encode("utf-8")) > MAX_FILENAME_BYTES:
        path = Path(sanitized)
        suffix = path.suffix if len(path.suffix) <= 16 else ""
        stem = sanitized[: len(sanitized) - len(suffix)]
        budget = MAX_FILENAME_BYTES - len(suffix.encode("utf-8"))
        stem = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore").rstrip(" .")
        sanitized = f"{stem}{suffix}"

    return sanitized


class FileOrganizer:
    """Maps records to clip files inside the storage folder."""

    def __init__(self, storage_dir: str):
        """Initialize file organizer with the storage folder.

        Args:
            storage_dir: Folder holding the clips and the index file
        """
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Initialized file organizer with storage dir: {self.storage_dir}")

    @staticmethod
    def derive_filename(record: ResourceRecord) -> str:
        """Stable clip file name for a record, built from its id and title."""
        return sanitize_filename(f"{record.id}-{record.title}{AUDIO_SUFFIX}")

    def output_path(self, filename: str) -> Path:
        return self.storage_dir / filename

    def file_exists(self, filename: str) -> bool:
        return self.output_path(filename).exists()

    def describe_file(self, filename: str) -> Tuple[str, int]:
        """Return the MD5 hex digest and the size in bytes of a clip."""
        path = self.output_path(filename)
        digest = hashlib.md5()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(1024 * 1024), b""):
                digest.update(chunk)
        return digest.hexdigest(), path.stat().st_size
