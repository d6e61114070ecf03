"""Shared fixtures and fakes for the clipsync tests."""

from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

from clipsync.models.resource import ResourceRecord
from clipsync.models.video import AudioSource, VideoMeta
from clipsync.services.audio_encoder import EncodeRequest, EncodeResult
from clipsync.services.youtube_service import ResolutionFailed


class FakeRecordSource:
    def __init__(self, records: List[ResourceRecord]):
        self.records = records
        self.calls = 0

    def fetch_all_records(self) -> List[ResourceRecord]:
        self.calls += 1
        return list(self.records)


class FakeResolver:
    def __init__(self, outcomes: Dict[str, Union[VideoMeta, Exception]]):
        self.outcomes = outcomes
        self.calls: List[str] = []

    def resolve(self, url: str) -> VideoMeta:
        self.calls.append(url)
        outcome = self.outcomes.get(url)
        if outcome is None:
            raise ResolutionFailed(f"Unsupported source url: {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeEncoder:
    ffmpeg_path = "ffmpeg"

    def __init__(self, fail: bool = False, available: bool = True):
        self.fail = fail
        self.available = available
        self.requests: List[EncodeRequest] = []

    def check_available(self) -> str:
        if not self.available:
            from clipsync.services.audio_encoder import EncoderUnavailable

            raise EncoderUnavailable("ffmpeg not found at 'ffmpeg'")
        return "ffmpeg version test"

    def encode(self, request: EncodeRequest) -> EncodeResult:
        self.requests.append(request)
        output_path = Path(request.output_path)
        if self.fail:
            return EncodeResult(success=False, output_path=output_path, returncode=1, error="boom")
        output_path.write_bytes(b"ID3fake-mp3-" + request.source_url.encode())
        return EncodeResult(success=True, output_path=output_path, returncode=0)

    def probe_duration(self, path: Path) -> Optional[float]:
        for request in self.requests:
            if Path(request.output_path) == Path(path):
                return request.duration
        return None


def make_video_meta(video_id: str = "abc", asr: int = 48000, title: str = "Source video") -> VideoMeta:
    return VideoMeta(
        id=video_id,
        url=f"https://www.youtube.com/watch?v={video_id}",
        title=title,
        source=AudioSource(asr=asr, url=f"https://stream/{video_id}.audio"),
    )


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture
def config(storage_dir: Path) -> Dict:
    return {
        "fauna_secret": "test-secret",
        "fauna_collection": "clips",
        "fauna_page_size": 100,
        "storage_dir": str(storage_dir),
        "index_filename": "meta.json",
        "ffmpeg_path": "ffmpeg",
        "ffprobe_path": "ffprobe",
        "audio_codec": "libmp3lame",
        "log_level": "INFO",
    }
