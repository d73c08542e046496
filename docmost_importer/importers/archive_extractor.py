"""Extracts uploaded bundles into scratch directories and walks them."""

import logging
import os
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..models import ArchiveExtractionError, FileEntry

logger = logging.getLogger(__name__)


class ArchiveExtractor:
    """
    Expands zip bundles into uniquely named scratch directories.

    ``extract`` is a context manager: the scratch directory exists only for the
    duration of the ``with`` block and is removed on every exit path.
    """

    def __init__(self, temp_path: Optional[str] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the extractor.

        Args:
            temp_path: Root for scratch directories (system temp dir if None)
            logger: Optional logger instance
        """
        self.temp_path = temp_path
        self.logger = logger or logging.getLogger(__name__)

    @contextmanager
    def extract(self, archive_path: str) -> Iterator[str]:
        """
        Extract ``archive_path`` and yield the scratch directory path.

        Raises:
            ArchiveExtractionError: If the archive cannot be read or extracted
        """
        if self.temp_path:
            os.makedirs(self.temp_path, exist_ok=True)
        scratch_dir = tempfile.mkdtemp(prefix='extract_', dir=self.temp_path)

        try:
            try:
                with zipfile.ZipFile(archive_path) as archive:
                    self._check_members(archive, scratch_dir)
                    archive.extractall(scratch_dir)
            except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, RuntimeError) as e:
                raise ArchiveExtractionError(f"Failed to extract archive: {e}") from e

            self.logger.debug(f"Extracted {archive_path} into {scratch_dir}")
            yield scratch_dir
        finally:
            shutil.rmtree(scratch_dir, ignore_errors=True)
            self.logger.debug(f"Removed scratch directory {scratch_dir}")

    def walk(self, root: str) -> List[FileEntry]:
        """
        Enumerate every directory and file below ``root``.

        Directories are listed before their contents and names are sorted, so
        the order is stable across platforms.
        """
        entries: List[FileEntry] = []

        for current_dir, dir_names, file_names in os.walk(root):
            dir_names.sort()
            for name in dir_names:
                entries.append(self._entry(root, os.path.join(current_dir, name), True))
            for name in sorted(file_names):
                entries.append(self._entry(root, os.path.join(current_dir, name), False))

        return self._order_depth_first(entries)

    @staticmethod
    def _entry(root: str, absolute_path: str, is_directory: bool) -> FileEntry:
        relative_path = os.path.relpath(absolute_path, root).replace(os.sep, '/')
        return FileEntry(
            relative_path=relative_path,
            absolute_path=absolute_path,
            is_directory=is_directory
        )

    @staticmethod
    def _order_depth_first(entries: List[FileEntry]) -> List[FileEntry]:
        # os.walk is breadth-per-level; reorder so each directory is followed
        # by its own contents, files of a directory before its subdirectories.
        def sort_key(entry: FileEntry):
            parts = entry.relative_path.split('/')
            key = []
            for index, part in enumerate(parts):
                is_last = index == len(parts) - 1
                kind = 0 if (is_last and not entry.is_directory) else 1
                key.append((kind, part))
            return key

        return sorted(entries, key=sort_key)

    @staticmethod
    def _check_members(archive: zipfile.ZipFile, scratch_dir: str) -> None:
        root = os.path.realpath(scratch_dir)
        for member in archive.namelist():
            target = os.path.realpath(os.path.join(root, member))
            if target != root and not target.startswith(root + os.sep):
                raise ArchiveExtractionError(f"Archive member escapes extraction root: {member}")


__all__ = ['ArchiveExtractor']
