"""Audio extraction and encoding using ffmpeg."""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class EncoderUnavailable(Exception):
    """Raised when the ffmpeg executable cannot be run."""
    pass


@dataclass
class EncodeRequest:
    """One trim-and-encode job for the encoder."""

    source_url: str
    output_path: Path
    start_time: Optional[float] = None  # seconds
    duration: Optional[float] = None  # seconds


@dataclass
class EncodeResult:
    success: bool
    output_path: Path
    returncode: int
    error: Optional[str] = None


def format_seconds(seconds: float) -> str:
    """Render seconds for ffmpeg, e.g. 10.0 -> "10", 2.5 -> "2.5"."""
    return f"{seconds:g}"


class AudioEncoder:
    """Runs ffmpeg to cut a remote stream into a local audio file."""

    def __init__(self, ffmpeg_path: str = "ffmpeg", audio_codec: str = "libmp3lame",
                 ffprobe_path: str = "ffprobe"):
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.audio_codec = audio_codec

    def check_available(self) -> str:
        """Make sure ffmpeg runs, returning its version banner.

        Raises:
            EncoderUnavailable: If ffmpeg is missing or fails to start
        """
        try:
            completed = subprocess.run(
                [self.ffmpeg_path, "-version"],
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
                timeout=30,
            )
        except FileNotFoundError:
            raise EncoderUnavailable(
                f"ffmpeg not found at '{self.ffmpeg_path}', install it from https://ffmpeg.org"
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            raise EncoderUnavailable(f"ffmpeg at '{self.ffmpeg_path}' is not usable: {e}")

        banner = (completed.stdout or "").splitlines()
        return banner[0] if banner else ""

    def build_command(self, request: EncodeRequest) -> List[str]:
        cmd = [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-i",
            request.source_url,
        ]
        # Output-side seek: decode from the start and cut precisely
        if request.start_time is not None:
            cmd += ["-ss", format_seconds(request.start_time)]
        if request.duration is not None:
            cmd += ["-t", format_seconds(request.duration)]
        cmd += [
            "-vn",
            "-c:a",
            self.audio_codec,
            str(request.output_path),
        ]
        return cmd

    def encode(self, request: EncodeRequest) -> EncodeResult:
        """Download, trim and encode one clip.

        A failed run leaves no output file behind.
        """
        output_path = Path(request.output_path)
        cmd = self.build_command(request)
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            completed = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except FileNotFoundError as e:
            raise EncoderUnavailable(f"ffmpeg not found at '{self.ffmpeg_path}': {e}")

        if completed.returncode != 0 or not output_path.exists():
            output_path.unlink(missing_ok=True)
            stderr_tail = "\n".join((completed.stderr or "").strip().splitlines()[-5:])
            logger.error(f"FFmpeg failed ({completed.returncode}) for {output_path.name}: {stderr_tail}")
            return EncodeResult(
                success=False,
                output_path=output_path,
                returncode=completed.returncode,
                error=stderr_tail or "ffmpeg produced no output file",
            )

        return EncodeResult(success=True, output_path=output_path, returncode=0)

    def probe_duration(self, path: Path) -> Optional[float]:
        """Return the duration of an encoded file in seconds, if ffprobe can tell."""
        command = [
            self.ffprobe_path,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            str(path),
        ]

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
                timeout=15,
            )
            payload = json.loads(completed.stdout or "{}")
            return round(float(payload["format"]["duration"]), 3)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"ffprobe unavailable for {path}: {e}")
        except (ValueError, KeyError, TypeError) as e:
            logger.debug(f"ffprobe reported no duration for {path}: {e}")
        return None
