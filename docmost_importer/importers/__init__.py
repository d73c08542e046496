"""Import package for Docmost export bundles.

This package turns uploaded export files into a note tree in a document store.

Package Structure:
- file_classifier: Content/attachment/bundle classification by extension
- archive_extractor: Extracts zip bundles into scratch directories and walks them
- attachment_resolver: Stores attachments and resolves references to locators
- content_transformer: Converts markdown to HTML and rewrites attachment references
- title_extractor: Derives note titles and leading emoji
- tree_builder: Rebuilds hierarchy from paths, merges index files, prunes empties
- note_writer: Creates notes parents-first with increasing sibling sort order
- result_aggregator: Collects counts, created IDs and per-file errors
- import_pipeline: Orchestrates the stages and never raises past its boundary
"""

from .archive_extractor import ArchiveExtractor
from .attachment_resolver import AttachmentResolver, resolve_reference
from .content_transformer import ContentTransformer
from .file_classifier import FileKind, classify
from .import_pipeline import ImportPipeline
from .note_writer import NoteWriter
from .result_aggregator import ImportResultAggregator
from .title_extractor import ExtractedTitle, extract_title
from .tree_builder import NoteTreeBuilder, prune_empty_notes

__all__ = [
    'ArchiveExtractor',
    'AttachmentResolver',
    'resolve_reference',
    'ContentTransformer',
    'FileKind',
    'classify',
    'ImportPipeline',
    'NoteWriter',
    'ImportResultAggregator',
    'ExtractedTitle',
    'extract_title',
    'NoteTreeBuilder',
    'prune_empty_notes'
]
