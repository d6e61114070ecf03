"""Stream resolution for YouTube source URLs using yt-dlp."""

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import yt_dlp
from yt_dlp.extractor.youtube import YoutubeIE

from ..models.video import AudioSource, StreamDescriptor, VideoMeta

logger = logging.getLogger(__name__)

# Configure yt-dlp logging to be silent
logging.getLogger("yt_dlp").setLevel(logging.CRITICAL)
logging.getLogger("yt_dlp.extractor").setLevel(logging.CRITICAL)

PLAYLIST_PARAMS = ("list", "index", "start_radio", "pp")


class ResolutionFailed(Exception):
    """Raised when a source URL cannot be resolved to an audio stream."""
    pass


def select_best_audio(streams: Iterable[StreamDescriptor]) -> StreamDescriptor:
    """Pick the audio-carrying stream with the highest sample rate.

    The first stream wins on ties; a missing sample rate ranks as zero.

    Raises:
        ResolutionFailed: If no stream carries audio, or the best one does not
            report a sample rate
    """
    best: Optional[StreamDescriptor] = None
    for stream in streams:
        if not stream.has_audio:
            continue
        if best is None or (stream.audio_sample_rate or 0) > (best.audio_sample_rate or 0):
            best = stream

    if best is None or not best.audio_sample_rate:
        raise ResolutionFailed("no_format_found")
    return best


def parse_format(fmt: Dict) -> Optional[StreamDescriptor]:
    """Convert a yt-dlp format entry into a stream descriptor."""
    url = fmt.get("url")
    if not url:
        return None

    acodec = fmt.get("acodec")
    asr = fmt.get("asr")
    try:
        sample_rate = int(asr) if asr else None
    except (TypeError, ValueError):
        sample_rate = None

    return StreamDescriptor(
        url=url,
        has_audio=acodec not in (None, "none"),
        audio_sample_rate=sample_rate,
    )


class YouTubeService:
    """Resolves YouTube video URLs to their best audio stream."""

    def __init__(self):
        self.ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "skip_download": True,
            "noplaylist": True,
        }

    @staticmethod
    def video_url(url: str) -> str:
        """Drop playlist parameters so a watch URL inside a playlist names just the video."""
        parts = urlsplit(url)
        query = [(key, value) for key, value in parse_qsl(parts.query, keep_blank_values=True)
                 if key not in PLAYLIST_PARAMS]
        return urlunsplit(parts._replace(query=urlencode(query)))

    @classmethod
    def is_supported_url(cls, url: str) -> bool:
        """Check whether the URL points to a single YouTube video."""
        return bool(url) and YoutubeIE.suitable(cls.video_url(url))

    def resolve(self, url: str) -> VideoMeta:
        """Resolve a source URL to its best audio stream.

        Raises:
            ResolutionFailed: If the URL is unsupported, extraction fails or
                no usable audio stream exists
        """
        if not self.is_supported_url(url):
            raise ResolutionFailed(f"Unsupported source url: {url}")

        info = self._extract_info(self.video_url(url))

        streams = [
            stream
            for stream in (parse_format(fmt) for fmt in info.get("formats") or [])
            if stream is not None
        ]
        best = select_best_audio(streams)

        video_id = info.get("id")
        if not video_id:
            raise ResolutionFailed(f"No video id reported for {url}")

        return VideoMeta(
            id=video_id,
            url=info.get("webpage_url") or f"https://www.youtube.com/watch?v={video_id}",
            title=info.get("title", "Unknown Title"),
            source=AudioSource(asr=best.audio_sample_rate, url=best.url),
            fetched_at=datetime.now(),
        )

    def _extract_info(self, url: str) -> Dict:
        try:
            with yt_dlp.YoutubeDL(self.ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.YoutubeDLError as e:
            raise ResolutionFailed(f"Extraction failed for {url}: {e}")

        if not info:
            raise ResolutionFailed(f"Could not extract info for {url}")
        return info


class VideoMetaCache:
    """Per-run memo of resolution outcomes, keyed by source URL.

    Failures are remembered too, so each URL reaches the provider at most
    once per run.
    """

    def __init__(self):
        self._entries: Dict[str, Union[VideoMeta, ResolutionFailed]] = {}

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, url: str) -> VideoMeta:
        """Return the cached result, re-raising a cached failure."""
        entry = self._entries[url]
        if isinstance(entry, ResolutionFailed):
            raise entry
        return entry

    def set(self, url: str, outcome: Union[VideoMeta, ResolutionFailed]) -> None:
        self._entries[url] = outcome

