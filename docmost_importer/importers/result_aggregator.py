"""Accumulates counts, created IDs and per-file errors for one import."""

import logging
from typing import List, Optional

from ..logger import log_section
from ..models import ImportErrorEntry, ImportResult

logger = logging.getLogger(__name__)

GENERAL_ERROR_KEY = 'general'


class ImportResultAggregator:
    """Collects the outcome of an import while its stages run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.notes = 0
        self.attachments = 0
        self.errors: List[ImportErrorEntry] = []
        self.root_note_ids: List[int] = []

    def record_note(self, note_id: int, is_root: bool = False) -> None:
        self.notes += 1
        if is_root:
            self.root_note_ids.append(note_id)

    def record_attachment(self) -> None:
        self.attachments += 1

    def add_error(self, file: str, error: str) -> None:
        """Report a failure keyed by file name or relative path."""
        self.errors.append(ImportErrorEntry(file=file, error=error))

    def add_general_error(self, error: str) -> None:
        self.add_error(GENERAL_ERROR_KEY, error)

    def build_result(self) -> ImportResult:
        return ImportResult(
            imported_notes=self.notes,
            imported_attachments=self.attachments,
            errors=list(self.errors),
            root_note_ids=list(self.root_note_ids)
        )

    def log_summary(self) -> None:
        """Log summary of the import run."""
        log_section("Import summary", self.logger)
        self.logger.info(f"Notes created: {self.notes}")
        self.logger.info(f"Attachments stored: {self.attachments}")
        self.logger.info(f"Root notes: {len(self.root_note_ids)}")

        if self.errors:
            self.logger.warning(f"Total errors: {len(self.errors)}")
            for error in self.errors[:5]:
                self.logger.warning(f"  - {error.file}: {error.error}")
            if len(self.errors) > 5:
                self.logger.warning(f"  ... and {len(self.errors) - 5} more errors")

        self.logger.info("=" * 60)


__all__ = ['ImportResultAggregator', 'GENERAL_ERROR_KEY']
