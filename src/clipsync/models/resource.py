"""Resource record, clip metadata and index models."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

INDEX_VERSION = 1

Timestamp = Union[str, int, float]


def parse_timestamp(value: Optional[Timestamp]) -> Optional[float]:
    """Parse a trim value into seconds.

    Accepts plain seconds (``10``, ``"10"``, ``"2.5"``) and clock notation
    (``"1:30"``, ``"00:01:30.5"``). Empty values mean "not set".

    Raises:
        ValueError: If the value cannot be read as a non-negative offset
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        parts = str(value).strip().split(":")
        if len(parts) > 3 or any(not part.strip() for part in parts):
            raise ValueError(f"Invalid timestamp: {value!r}")
        try:
            numbers = [float(part) for part in parts]
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}")
        seconds = 0.0
        for number in numbers:
            seconds = seconds * 60 + number

    if not math.isfinite(seconds):
        raise ValueError(f"Timestamp must be finite: {value!r}")
    if seconds < 0:
        raise ValueError(f"Timestamp must not be negative: {value!r}")
    return seconds


@dataclass
class ResourceRecord:
    """A catalog entry describing a desired audio clip."""

    id: str
    title: str
    video_url: str
    description: Optional[str] = None
    author: Optional[str] = None
    start_time: Optional[Timestamp] = None
    duration: Optional[Timestamp] = None
    catalog: Optional[str] = None
    tags: Optional[List[str]] = None
    language: Optional[Dict[str, str]] = None

    @property
    def start_seconds(self) -> Optional[float]:
        return parse_timestamp(self.start_time)

    @property
    def duration_seconds(self) -> Optional[float]:
        seconds = parse_timestamp(self.duration)
        if seconds is not None and seconds == 0:
            raise ValueError("Duration must be greater than zero")
        return seconds

    @classmethod
    def from_document(cls, ref_id: str, data: Dict[str, Any]) -> "ResourceRecord":
        """Create a record from a store document body.

        Raises:
            ValueError: If the document lacks a title or a video URL
        """
        title = data.get("title")
        video_url = data.get("videoUrl")
        if not title:
            raise ValueError(f"Record {ref_id} has no title")
        if not video_url:
            raise ValueError(f"Record {ref_id} has no videoUrl")

        return cls(
            id=str(ref_id),
            title=str(title),
            video_url=str(video_url).strip(),
            description=data.get("description"),
            author=data.get("author"),
            start_time=data.get("startTime"),
            duration=data.get("duration"),
            catalog=data.get("catalog"),
            tags=data.get("tags"),
            language=data.get("language"),
        )


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class Contributor:
    name: str
    link: Optional[str] = None

    def to_dict(self) -> dict:
        return _drop_none({"name": self.name, "link": self.link})

    @classmethod
    def from_dict(cls, data: dict) -> "Contributor":
        return cls(name=data["name"], link=data.get("link"))


@dataclass
class ClipSource:
    """Where a clip was cut from."""

    url: str
    title: str
    start_time: Optional[float] = None

    def to_dict(self) -> dict:
        return _drop_none(
            {"url": self.url, "title": self.title, "startTime": self.start_time}
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ClipSource":
        return cls(
            url=data["url"], title=data["title"], start_time=data.get("startTime")
        )


@dataclass
class FileMeta:
    md5: Optional[str] = None
    size: Optional[int] = None
    duration: Optional[float] = None  # in seconds

    def to_dict(self) -> dict:
        return _drop_none(
            {"md5": self.md5, "size": self.size, "duration": self.duration}
        )

    @classmethod
    def from_dict(cls, data: dict) -> "FileMeta":
        return cls(
            md5=data.get("md5"), size=data.get("size"), duration=data.get("duration")
        )


@dataclass
class ResourceMeta:
    """Metadata for one materialized clip, keyed by filename in the index."""

    id: str
    ref_id: str
    title: str
    filename: str
    source: ClipSource
    description: Optional[str] = None
    contributor: Optional[Contributor] = None
    catalog: Optional[str] = None
    tags: Optional[List[str]] = None
    language: Optional[Dict[str, str]] = None
    filemeta: Optional[FileMeta] = None

    def to_dict(self) -> dict:
        """Convert to the JSON shape stored in the index file."""
        return _drop_none(
            {
                "id": self.id,
                "refId": self.ref_id,
                "title": self.title,
                "filename": self.filename,
                "description": self.description,
                "contributor": self.contributor.to_dict() if self.contributor else None,
                "catalog": self.catalog,
                "tags": list(self.tags) if self.tags is not None else None,
                "source": self.source.to_dict(),
                "language": dict(self.language) if self.language is not None else None,
                "filemeta": self.filemeta.to_dict() if self.filemeta else None,
            }
        )

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceMeta":
        """Create metadata from an index file entry."""
        return cls(
            id=data["id"],
            ref_id=data["refId"],
            title=data["title"],
            filename=data["filename"],
            source=ClipSource.from_dict(data["source"]),
            description=data.get("description"),
            contributor=Contributor.from_dict(data["contributor"])
            if data.get("contributor")
            else None,
            catalog=data.get("catalog"),
            tags=data.get("tags"),
            language=data.get("language"),
            filemeta=FileMeta.from_dict(data["filemeta"])
            if data.get("filemeta") is not None
            else None,
        )


@dataclass
class ResourceIndex:
    """Filename-keyed index of every clip materialized so far.

    Entries are only ever added; an existing filename is never replaced.
    """

    v: int = INDEX_VERSION
    resources: Dict[str, ResourceMeta] = field(default_factory=dict)

    def has_entry(self, filename: str) -> bool:
        return filename in self.resources

    def put(self, filename: str, meta: ResourceMeta) -> None:
        if filename in self.resources:
            raise KeyError(f"Index already has an entry for {filename}")
        self.resources[filename] = meta

    def __len__(self) -> int:
        return len(self.resources)

    def to_dict(self) -> dict:
        return {
            "v": self.v,
            "resources": {
                filename: meta.to_dict() for filename, meta in self.resources.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceIndex":
        return cls(
            v=data.get("v", INDEX_VERSION),
            resources={
                filename: ResourceMeta.from_dict(entry)
                for filename, entry in (data.get("resources") or {}).items()
            },
        )
