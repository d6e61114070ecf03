"""Video and stream data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class StreamDescriptor:
    """One candidate stream reported by the video host."""

    url: str
    has_audio: bool
    audio_sample_rate: Optional[int] = None


@dataclass
class AudioSource:
    """The audio stream chosen for a video."""

    asr: int  # sample rate in Hz
    url: str


@dataclass
class VideoMeta:
    """A source URL resolved to its best audio stream."""

    id: str
    url: str
    title: str
    source: AudioSource
    fetched_at: datetime = field(default_factory=datetime.now)
