"""
Import pipeline orchestrating a Docmost bundle import.

Stages run strictly in order: bundles are extracted and walked, every
attachment is stored, content files are transformed against the finished
attachment map, the note tree is built and finally written to the store.
"""

import logging
import os
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from tqdm import tqdm

from ..config_loader import get_nested
from ..models import (
    ArchiveExtractionError,
    AttachmentMap,
    FileEntry,
    ImportOptions,
    ImportResult,
    NoteData,
    UploadedFile
)
from ..storage.base import BlobStorage, DocumentStore
from .archive_extractor import ArchiveExtractor
from .attachment_resolver import AttachmentResolver
from .content_transformer import ContentTransformer
from .file_classifier import FileKind, classify, is_ignored, is_import_bundle
from .note_writer import NoteWriter
from .result_aggregator import ImportResultAggregator
from .title_extractor import extract_title
from .tree_builder import NoteTreeBuilder

logger = logging.getLogger(__name__)


class ImportPipeline:
    """Turns uploaded files into a note tree inside a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        blob_storage: BlobStorage,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the import pipeline.

        Args:
            store: Target document store
            blob_storage: Destination for attachment bytes
            config: Configuration dictionary (see config_loader.DEFAULT_CONFIG)
            logger: Optional logger instance
        """
        self.config = config or {}
        self.store = store
        self.blob_storage = blob_storage
        self.logger = logger or logging.getLogger(__name__)

        self.show_progress = bool(get_nested(self.config, 'import.progress_bars', False))
        self.cleanup_uploads = bool(get_nested(self.config, 'import.cleanup_uploads', False))
        self.ignore_patterns: List[str] = list(get_nested(self.config, 'import.ignore_patterns', []) or [])

        self.extractor = ArchiveExtractor(get_nested(self.config, 'import.temp_path'), self.logger)
        self.resolver = AttachmentResolver(blob_storage, self.show_progress, self.logger)
        self.transformer = ContentTransformer(
            locator_prefix=blob_storage.url_prefix,
            extensions=get_nested(self.config, 'import.markdown_extensions'),
            logger=self.logger
        )
        self.writer = NoteWriter(store, self.logger)

    def process_import(self, files: Sequence[UploadedFile], options: ImportOptions) -> ImportResult:
        """
        Import uploaded files and report the outcome.

        Never raises: unexpected failures are reported as a ``general`` error
        in the returned result.

        Args:
            files: Uploaded files already stored on disk
            options: Owner, target parent and structure mode

        Returns:
            ImportResult; ``success`` is true iff no error was recorded
        """
        aggregator = ImportResultAggregator(self.logger)

        self.logger.info(
            f"Starting import of {len(files)} uploaded files for owner {options.owner_id} "
            f"(parent={options.parent_id}, preserve_structure={options.preserve_structure})"
        )

        try:
            with ExitStack() as scratch_dirs:
                entries = self._collect_entries(files, scratch_dirs, aggregator)
                self._import_entries(entries, options, aggregator)
        except Exception as e:
            self.logger.error(f"Import failed: {str(e)}", exc_info=True)
            aggregator.add_general_error(str(e))
        finally:
            if self.cleanup_uploads:
                self._remove_uploads(files)

        aggregator.log_summary()
        return aggregator.build_result()

    def _collect_entries(
        self,
        files: Sequence[UploadedFile],
        scratch_dirs: ExitStack,
        aggregator: ImportResultAggregator
    ) -> List[FileEntry]:
        """Extract bundles and merge their walks with the loose-file entries."""
        entries: List[FileEntry] = []
        loose: List[FileEntry] = []

        for uploaded in files:
            if is_import_bundle(uploaded.original_name):
                try:
                    scratch_dir = scratch_dirs.enter_context(
                        self.extractor.extract(uploaded.stored_path)
                    )
                except ArchiveExtractionError as e:
                    self.logger.error(f"Failed to extract '{uploaded.original_name}': {e}")
                    aggregator.add_error(uploaded.original_name, str(e))
                    continue

                bundle_entries = self.extractor.walk(scratch_dir)
                self.logger.info(f"Bundle '{uploaded.original_name}' contains {len(bundle_entries)} entries")
                entries.extend(bundle_entries)
            else:
                loose.append(FileEntry(
                    relative_path=uploaded.original_name.replace('\\', '/'),
                    absolute_path=uploaded.stored_path,
                    is_directory=False
                ))

        entries.extend(loose)

        if self.ignore_patterns:
            kept = [e for e in entries if not is_ignored(e.relative_path, self.ignore_patterns)]
            if len(kept) != len(entries):
                self.logger.debug(f"Ignored {len(entries) - len(kept)} entries matching ignore patterns")
            entries = kept

        return entries

    def _import_entries(
        self,
        entries: List[FileEntry],
        options: ImportOptions,
        aggregator: ImportResultAggregator
    ) -> None:
        dir_entries = [e for e in entries if e.is_directory]
        attachment_entries = []
        content_entries = []

        for entry in entries:
            if entry.is_directory:
                continue
            kind = classify(entry.relative_path)
            if kind is FileKind.ATTACHMENT:
                attachment_entries.append(entry)
            elif kind is FileKind.CONTENT:
                content_entries.append(entry)
            else:
                self.logger.debug(f"Skipping unrecognized file: {entry.relative_path}")

        self.logger.info(
            f"Found {len(content_entries)} content files, {len(attachment_entries)} attachments, "
            f"{len(dir_entries)} directories"
        )

        # Every attachment must be in the map before any content is rewritten
        attachment_map = self.resolver.resolve_all(attachment_entries, aggregator)

        def load_note(entry: FileEntry) -> NoteData:
            return self._load_note(entry, attachment_map)

        if options.preserve_structure:
            builder = NoteTreeBuilder(load_note, aggregator, self.logger)
            forest = builder.build(self._progress(content_entries, "Processing content"), dir_entries)
            self.writer.write_forest(forest, options, aggregator)
        else:
            notes = []
            for entry in self._progress(content_entries, "Processing content"):
                try:
                    notes.append(load_note(entry))
                except Exception as e:
                    self.logger.error(f"Failed to process {entry.relative_path}: {e}")
                    aggregator.add_error(entry.relative_path, str(e))
            self.writer.write_flat(notes, options, aggregator)

    def _load_note(self, entry: FileEntry, attachment_map: AttachmentMap) -> NoteData:
        """Read, transform and title one content file."""
        text = Path(entry.absolute_path).read_text(encoding='utf-8')
        content = self.transformer.transform(text, entry.relative_path, attachment_map)
        extracted = extract_title(content, entry.relative_path)

        return NoteData(
            title=extracted.title,
            title_emoji=extracted.emoji,
            content=content,
            relative_path=entry.relative_path
        )

    def _progress(self, entries: List[FileEntry], description: str):
        return tqdm(entries, desc=description, unit="file", disable=not self.show_progress)

    def _remove_uploads(self, files: Sequence[UploadedFile]) -> None:
        for uploaded in files:
            try:
                if os.path.exists(uploaded.stored_path):
                    os.unlink(uploaded.stored_path)
            except OSError as e:
                self.logger.warning(f"Failed to clean up upload {uploaded.stored_path}: {e}")


__all__ = ['ImportPipeline']
