"""Main application entry point for clipsync."""

import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from .services.audio_encoder import AudioEncoder, EncoderUnavailable
from .services.record_source import SourceUnavailable
from .sync_processor import ClipSyncProcessor
from .utils.config import get_index_path, load_config, setup_logging, validate_config
from .utils.index_store import IndexFormatError, load_index

logger = logging.getLogger(__name__)

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipsync",
        description="Sync trimmed audio clips from the remote catalog into local storage.",
    )
    parser.add_argument("--storage-dir", help="Folder holding the clips and the index file")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command")

    sync_parser = subparsers.add_parser("sync", help="Download and encode missing clips")
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve records and report what would be saved, without encoding",
    )

    subparsers.add_parser("index", help="Show the clips recorded in the index")
    subparsers.add_parser("check", help="Validate configuration and ffmpeg, then exit")

    return parser


class ClipSyncApp:
    """Main application class for clipsync."""

    def __init__(self, config: Optional[Dict] = None):
        self.config = config or load_config()

    def sync(self, dry_run: bool = False) -> int:
        """Run one sync pass and return the process exit code."""
        try:
            processor = ClipSyncProcessor(self.config)
        except ValueError as e:
            # configuration errors are already logged by the processor
            logger.debug(f"Startup aborted: {e}")
            return 1

        try:
            report = asyncio.run(processor.run(dry_run=dry_run))
        except EncoderUnavailable as e:
            logger.error(f"Require ffmpeg (https://ffmpeg.org): {e}")
            return 1
        except SourceUnavailable as e:
            logger.error(f"Could not load records: {e}")
            return 1
        except IndexFormatError as e:
            logger.error(f"Could not read index: {e}")
            return 1

        return 1 if report.failed else 0

    def show_index(self) -> int:
        """Print the index as a table."""
        index_path = get_index_path(self.config)
        try:
            index = load_index(index_path)
        except IndexFormatError as e:
            logger.error(f"Could not read index: {e}")
            return 1

        table = Table(title=f"{index_path} (v{index.v}, {len(index)} clip(s))")
        table.add_column("Filename")
        table.add_column("Record")
        table.add_column("Source")
        table.add_column("Start", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Size", justify="right")

        for filename, meta in sorted(index.resources.items()):
            filemeta = meta.filemeta
            table.add_row(
                filename,
                meta.ref_id,
                meta.source.url,
                _format_optional(meta.source.start_time),
                _format_optional(filemeta.duration if filemeta else None),
                _format_optional(filemeta.size if filemeta else None),
            )

        console.print(table)
        return 0

    def check(self) -> int:
        """Report startup blockers without touching the store."""
        errors: List[str] = validate_config(self.config)
        for error in errors:
            logger.error(error)

        encoder = AudioEncoder(
            ffmpeg_path=self.config.get("ffmpeg_path", "ffmpeg"),
            audio_codec=self.config.get("audio_codec", "libmp3lame"),
        )
        try:
            version = encoder.check_available()
            logger.info(f"ffmpeg OK: {version}")
        except EncoderUnavailable as e:
            logger.error(str(e))
            errors.append(str(e))

        if not errors:
            logger.info("Configuration OK")
        return 1 if errors else 0


def _format_optional(value) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = load_config()
    if args.storage_dir:
        config["storage_dir"] = args.storage_dir
    if args.log_level:
        config["log_level"] = args.log_level

    setup_logging(config.get("log_level", "INFO"), config.get("log_file"))

    app = ClipSyncApp(config)
    command = args.command or "sync"

    try:
        if command == "index":
            exit_code = app.show_index()
        elif command == "check":
            exit_code = app.check()
        else:
            exit_code = app.sync(dry_run=getattr(args, "dry_run", False))
    except KeyboardInterrupt:
        logger.info("Interrupted by user, index not written")
        sys.exit(130)
    except Exception as e:
        logger.exception(f"Application error: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
