"""Classifies uploaded and extracted files by extension."""

import fnmatch
import posixpath
from enum import Enum
from typing import Iterable


class FileKind(Enum):
    """What the pipeline does with a file."""
    CONTENT = "content"
    ATTACHMENT = "attachment"
    UNRECOGNIZED = "unrecognized"


CONTENT_EXTENSIONS = frozenset({'.md', '.html', '.htm'})

MARKDOWN_EXTENSIONS = frozenset({'.md'})

ATTACHMENT_EXTENSIONS = frozenset({
    # Images
    '.png', '.jpg', '.jpeg', '.gif', '.webp', '.svg', '.ico',
    # Video
    '.mp4', '.webm', '.ogg', '.mov',
    # Documents
    '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
    # Archives
    '.zip', '.tar', '.gz', '.rar',
    # Audio
    '.mp3', '.wav', '.flac'
})

# Only top-level uploads are expanded; a zip inside a bundle is an attachment
BUNDLE_EXTENSIONS = frozenset({'.zip'})


def _extension(name: str) -> str:
    return posixpath.splitext(name)[1].lower()


def classify(name: str) -> FileKind:
    """Classify a file name or relative path by its lowercased extension."""
    ext = _extension(name)
    if ext in CONTENT_EXTENSIONS:
        return FileKind.CONTENT
    if ext in ATTACHMENT_EXTENSIONS:
        return FileKind.ATTACHMENT
    return FileKind.UNRECOGNIZED


def is_content_file(name: str) -> bool:
    return classify(name) is FileKind.CONTENT


def is_attachment(name: str) -> bool:
    return classify(name) is FileKind.ATTACHMENT


def is_markdown(name: str) -> bool:
    return _extension(name) in MARKDOWN_EXTENSIONS


def is_import_bundle(name: str) -> bool:
    """True for uploads that should be extracted rather than imported as-is."""
    return _extension(name) in BUNDLE_EXTENSIONS


def is_ignored(relative_path: str, patterns: Iterable[str]) -> bool:
    """True if any path segment matches one of the fnmatch ``patterns``."""
    patterns = list(patterns)
    if not patterns:
        return False
    for segment in relative_path.split('/'):
        if any(fnmatch.fnmatchcase(segment, pattern) for pattern in patterns):
            return True
    return False


__all__ = [
    'FileKind',
    'CONTENT_EXTENSIONS',
    'ATTACHMENT_EXTENSIONS',
    'classify',
    'is_content_file',
    'is_attachment',
    'is_markdown',
    'is_import_bundle',
    'is_ignored'
]
