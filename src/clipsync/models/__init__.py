"""Data models for clipsync."""

from .resource import (
    INDEX_VERSION,
    ClipSource,
    Contributor,
    FileMeta,
    ResourceIndex,
    ResourceMeta,
    ResourceRecord,
    parse_timestamp,
)
from .sync import RecordStatus, SyncReport
from .video import AudioSource, StreamDescriptor, VideoMeta

__all__ = [
    "INDEX_VERSION",
    "AudioSource",
    "ClipSource",
    "Contributor",
    "FileMeta",
    "RecordStatus",
    "ResourceIndex",
    "ResourceMeta",
    "ResourceRecord",
    "StreamDescriptor",
    "SyncReport",
    "VideoMeta",
    "parse_timestamp",
]
