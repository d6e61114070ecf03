"""Loading and persisting the resource index file."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..models.resource import INDEX_VERSION, ResourceIndex

logger = logging.getLogger(__name__)


class IndexFormatError(Exception):
    """Raised when the index file cannot be read as a resource index."""
    pass


def load_index(index_path: Union[str, Path]) -> ResourceIndex:
    """Load the index, or start an empty one if the file does not exist yet."""
    path = Path(index_path)
    if not path.exists():
        logger.info(f"No index at {path}, starting a new one")
        return ResourceIndex(v=INDEX_VERSION, resources={})

    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise IndexFormatError(f"Index file {path} is not valid JSON: {e}")

    if not isinstance(data, dict) or not isinstance(data.get('resources', {}), dict):
        raise IndexFormatError(f"Index file {path} has an unexpected layout")

    version = data.get('v', INDEX_VERSION)
    if not isinstance(version, int) or version > INDEX_VERSION:
        raise IndexFormatError(
            f"Index file {path} has schema version {version!r}, "
            f"this version of clipsync reads up to {INDEX_VERSION}"
        )

    try:
        index = ResourceIndex.from_dict(data)
    except (KeyError, TypeError) as e:
        raise IndexFormatError(f"Index file {path} has a malformed entry: {e}")

    logger.info(f"Loaded index with {len(index)} resource(s) from {path}")
    return index


def persist_index(index_path: Union[str, Path], index: ResourceIndex) -> None:
    """Write the whole index, replacing the previous file in one step."""
    path = Path(index_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(index.to_dict(), f, ensure_ascii=False)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise

    logger.debug(f"Persisted index with {len(index)} resource(s) to {path}")
