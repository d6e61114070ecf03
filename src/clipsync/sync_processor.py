"""Sync orchestrator reconciling the remote catalog with the local clip cache."""

import asyncio
import logging
import time
import uuid
from typing import Dict, Optional, Set, Tuple

from .models.resource import (
    ClipSource,
    Contributor,
    FileMeta,
    ResourceIndex,
    ResourceMeta,
    ResourceRecord,
)
from .models.sync import RecordStatus, SyncReport
from .models.video import VideoMeta
from .services.audio_encoder import AudioEncoder, EncodeRequest
from .services.file_organizer import FileOrganizer
from .services.record_source import FaunaRecordSource, RecordSource
from .services.youtube_service import ResolutionFailed, VideoMetaCache, YouTubeService
from .utils.config import get_index_path, load_config, validate_config
from .utils.index_store import load_index, persist_index

logger = logging.getLogger(__name__)


class ClipSyncProcessor:
    """Central orchestrator for clipsync.

    Records are handled one at a time, in the order the record source
    returns them. The index is loaded once before the loop and written once
    after it.
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        record_source: Optional[RecordSource] = None,
        resolver: Optional[YouTubeService] = None,
        encoder: Optional[AudioEncoder] = None,
        file_organizer: Optional[FileOrganizer] = None,
    ):
        """Initialize the processor with configuration and collaborators.

        Collaborators that are not passed in are built from the configuration.
        """
        self.config = config or load_config()

        config_errors = validate_config(self.config)
        if config_errors:
            error_msg = "Configuration errors: " + "; ".join(config_errors)
            logger.error(error_msg)
            raise ValueError(error_msg)

        self.record_source = record_source or FaunaRecordSource(
            secret=self.config["fauna_secret"],
            collection=self.config["fauna_collection"],
            domain=self.config.get("fauna_domain"),
            page_size=self.config.get("fauna_page_size", 100),
        )
        self.resolver = resolver or YouTubeService()
        self.encoder = encoder or AudioEncoder(
            ffmpeg_path=self.config.get("ffmpeg_path", "ffmpeg"),
            audio_codec=self.config.get("audio_codec", "libmp3lame"),
            ffprobe_path=self.config.get("ffprobe_path", "ffprobe"),
        )
        self.file_organizer = file_organizer or FileOrganizer(self.config["storage_dir"])
        self.index_path = get_index_path(self.config)

        self.video_meta_cache = VideoMetaCache()
        self._planned: Set[str] = set()

    def check_encoder(self) -> None:
        """Fail fast when ffmpeg is not usable."""
        version = self.encoder.check_available()
        logger.debug(f"Using {version or self.encoder.ffmpeg_path}")

    async def run(self, dry_run: bool = False) -> SyncReport:
        """Run one full sync pass.

        Args:
            dry_run: Resolve and report, but neither encode nor write the index

        Returns:
            Summary of what happened to each record
        """
        start_time = time.time()
        report = SyncReport()

        if not dry_run:
            await asyncio.to_thread(self.check_encoder)

        logger.info("Fetching records from database...")
        records = await asyncio.to_thread(self.record_source.fetch_all_records)
        report.total_records = len(records)
        logger.info(f"Found {len(records)} resource(s), waiting for download...")

        index = load_index(self.index_path)
        self.video_meta_cache = VideoMetaCache()
        self._planned = set()

        for position, record in enumerate(records, start=1):
            logger.info(f"[{position}/{len(records)}] {record.id}: {record.title}")
            try:
                status, filename = await self.process_record(record, index, dry_run)
            except Exception as e:
                logger.exception(f"Unexpected error processing record {record.id}: {e}")
                status, filename = RecordStatus.ENCODE_FAILED, ""
            report.record(status, filename)

        if dry_run:
            logger.info("Dry run, index not written")
        else:
            persist_index(self.index_path, index)
            report.index_written = True
            logger.info(f"Meta file written: {self.index_path}")

        report.elapsed_seconds = time.time() - start_time
        logger.info(
            f"Sync finished in {self._format_processing_time(report.elapsed_seconds)}: "
            f"{report.count(RecordStatus.SAVED)} saved, "
            f"{report.count(RecordStatus.SKIPPED_PRESENT)} already present, "
            f"{report.count(RecordStatus.SKIPPED_RESOLUTION) + report.count(RecordStatus.SKIPPED_INVALID)} skipped, "
            f"{report.failed} failed"
        )
        return report

    async def process_record(
        self, record: ResourceRecord, index: ResourceIndex, dry_run: bool = False
    ) -> Tuple[RecordStatus, str]:
        """Take one record through validation, resolution, encoding and indexing."""
        try:
            start_seconds = record.start_seconds
            duration_seconds = record.duration_seconds
        except ValueError as e:
            logger.warning(f"Invalid trim window for record {record.id}, skip: {e}")
            return RecordStatus.SKIPPED_INVALID, ""

        filename = self.file_organizer.derive_filename(record)
        if self.is_materialized(filename, index):
            logger.info(f"File already exist, skip: {filename}")
            return RecordStatus.SKIPPED_PRESENT, filename

        try:
            video_meta = await self.resolve(record.video_url)
        except ResolutionFailed as e:
            logger.warning(f"Get download url failed, skip: {record.video_url} ({e})")
            return RecordStatus.SKIPPED_RESOLUTION, filename

        logger.info(f"Found: {video_meta.title}, sampling rate: {video_meta.source.asr}")

        if dry_run:
            self._planned.add(filename)
            logger.info(f"Would save: {filename}")
            return RecordStatus.PLANNED, filename

        output_path = self.file_organizer.output_path(filename)
        result = await asyncio.to_thread(
            self.encoder.encode,
            EncodeRequest(
                source_url=video_meta.source.url,
                output_path=output_path,
                start_time=start_seconds,
                duration=duration_seconds,
            ),
        )
        if not result.success:
            logger.error(f"Encoding failed for record {record.id}, not indexed")
            return RecordStatus.ENCODE_FAILED, filename

        meta = await asyncio.to_thread(
            self._build_resource_meta, record, filename, video_meta, start_seconds
        )
        index.put(filename, meta)
        logger.info(f"Saved: {filename}")
        return RecordStatus.SAVED, filename

    def is_materialized(self, filename: str, index: ResourceIndex) -> bool:
        """Whether a clip for this filename already exists, by index or on disk."""
        in_index = index.has_entry(filename)
        on_disk = self.file_organizer.file_exists(filename)

        if in_index and not on_disk:
            logger.warning(f"Indexed file is missing on disk, not downloading again: {filename}")
        elif on_disk and not in_index:
            logger.warning(f"File on disk has no index entry: {filename}")

        return in_index or on_disk or filename in self._planned

    async def resolve(self, url: str) -> VideoMeta:
        """Resolve a source URL, consulting the per-run cache first."""
        if url in self.video_meta_cache:
            return self.video_meta_cache.get(url)

        try:
            video_meta = await asyncio.to_thread(self.resolver.resolve, url)
        except ResolutionFailed as e:
            self.video_meta_cache.set(url, e)
            raise

        self.video_meta_cache.set(url, video_meta)
        return video_meta

    def _build_resource_meta(
        self,
        record: ResourceRecord,
        filename: str,
        video_meta: VideoMeta,
        start_seconds: Optional[float],
    ) -> ResourceMeta:
        md5, size = self.file_organizer.describe_file(filename)
        duration = self.encoder.probe_duration(self.file_organizer.output_path(filename))

        return ResourceMeta(
            id=str(uuid.uuid4()),
            ref_id=record.id,
            title=record.title,
            filename=filename,
            description=record.description,
            contributor=Contributor(name=record.author) if record.author else None,
            catalog=record.catalog,
            tags=record.tags,
            language=record.language,
            source=ClipSource(
                url=video_meta.url,
                title=record.title,
                start_time=start_seconds,
            ),
            filemeta=FileMeta(md5=md5, size=size, duration=duration),
        )

    def _format_processing_time(self, seconds: float) -> str:
        """Format processing time in human-readable format."""
        if seconds < 60:
            return f"{seconds:.1f} seconds"
        elif seconds < 3600:
            return f"{seconds/60:.1f} minutes"
        else:
            return f"{seconds/3600:.1f} hours"
