"""Per-record outcome and run summary models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class RecordStatus(Enum):
    """Terminal state of one record within a sync run."""
    SAVED = "saved"
    SKIPPED_PRESENT = "skipped_present"
    SKIPPED_RESOLUTION = "skipped_resolution"
    SKIPPED_INVALID = "skipped_invalid"
    ENCODE_FAILED = "encode_failed"
    PLANNED = "planned"  # dry run: would have been encoded


@dataclass
class SyncReport:
    """Summary of a sync run."""

    total_records: int = 0
    counts: Dict[RecordStatus, int] = field(default_factory=dict)
    saved_files: List[str] = field(default_factory=list)
    index_written: bool = False
    elapsed_seconds: float = 0.0

    def record(self, status: RecordStatus, filename: str = "") -> None:
        """Count one record outcome."""
        self.counts[status] = self.counts.get(status, 0) + 1
        if status == RecordStatus.SAVED and filename:
            self.saved_files.append(filename)

    def count(self, status: RecordStatus) -> int:
        return self.counts.get(status, 0)

    @property
    def failed(self) -> int:
        return self.count(RecordStatus.ENCODE_FAILED)

    def to_dict(self) -> dict:
        return {
            'total_records': self.total_records,
            'counts': {status.value: n for status, n in self.counts.items()},
            'saved_files': list(self.saved_files),
            'index_written': self.index_written,
            'elapsed_seconds': round(self.elapsed_seconds, 2),
        }
