"""Data models for the Docmost bundle import pipeline."""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger('docmost_importer')

DEFAULT_TITLE = "Untitled"

# Reference key (relative path, bare filename or "<dir>/<filename>") -> locator
AttachmentMap = Dict[str, str]


class ArchiveExtractionError(Exception):
    """Raised when an uploaded bundle cannot be extracted."""


class ConfigurationError(ValueError):
    """Raised when the configuration is missing or invalid."""


@dataclass
class UploadedFile:
    """A file the caller already persisted to ephemeral disk."""

    original_name: str
    stored_path: str


@dataclass
class FileEntry:
    """One item discovered while walking a bundle or a loose-upload batch."""

    relative_path: str  # always forward slashes
    absolute_path: str
    is_directory: bool = False

    @property
    def name(self) -> str:
        return posixpath.basename(self.relative_path)

    @property
    def parent_path(self) -> str:
        """Parent directory path, empty string at the top level."""
        return posixpath.dirname(self.relative_path)

    @property
    def depth(self) -> int:
        return len(self.relative_path.split('/'))


@dataclass
class NoteData:
    """Transient document node built before persistence."""

    title: str
    content: str
    relative_path: str
    title_emoji: Optional[str] = None
    children: List['NoteData'] = field(default_factory=list)

    def add_child(self, child: 'NoteData') -> None:
        """Add a child node."""
        self.children.append(child)

    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())

    def count_descendants(self) -> int:
        """Count all nodes below this one."""
        total = 0
        stack = list(self.children)
        while stack:
            node = stack.pop()
            total += 1
            stack.extend(node.children)
        return total


@dataclass
class ImportOptions:
    """Per-invocation import options."""

    owner_id: int
    parent_id: Optional[int] = None
    preserve_structure: bool = True


@dataclass
class ImportErrorEntry:
    """A single reported failure, keyed by file or relative path."""

    file: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {'file': self.file, 'error': self.error}


@dataclass
class ImportResult:
    """Outcome of one import invocation."""

    imported_notes: int = 0
    imported_attachments: int = 0
    errors: List[ImportErrorEntry] = field(default_factory=list)
    root_note_ids: List[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the response shape returned to callers."""
        return {
            'success': self.success,
            'imported': {
                'notes': self.imported_notes,
                'attachments': self.imported_attachments
            },
            'errors': [error.to_dict() for error in self.errors],
            'rootNoteIds': list(self.root_note_ids)
        }


__all__ = [
    'DEFAULT_TITLE',
    'AttachmentMap',
    'ArchiveExtractionError',
    'ConfigurationError',
    'UploadedFile',
    'FileEntry',
    'NoteData',
    'ImportOptions',
    'ImportErrorEntry',
    'ImportResult'
]
