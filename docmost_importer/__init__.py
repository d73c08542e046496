"""Docmost Bundle Importer

Imports Docmost (and similar) export bundles, loose Markdown/HTML files or a
zip archive with attachments, as a note hierarchy in a document store.

Basic Usage:
    1. Copy config.yaml.example to config.yaml
    2. Point storage.database_path and storage.uploads_path at your data
    3. Run: docmost-import export.zip --owner-id 1
"""

__version__ = "1.0.0"
__description__ = "Docmost export bundle importer with attachment rewriting"

from .config_loader import ConfigLoader, get_nested
from .importers import ImportPipeline
from .logger import ProgressTracker, log_section, setup_logging
from .models import (
    ArchiveExtractionError,
    ConfigurationError,
    FileEntry,
    ImportErrorEntry,
    ImportOptions,
    ImportResult,
    NoteData,
    UploadedFile
)
from .storage import LocalBlobStorage, SqliteDocumentStore

__all__ = [
    '__version__',
    '__description__',

    # Core data models
    'ArchiveExtractionError',
    'ConfigurationError',
    'FileEntry',
    'ImportErrorEntry',
    'ImportOptions',
    'ImportResult',
    'NoteData',
    'UploadedFile',

    # Pipeline and collaborators
    'ImportPipeline',
    'LocalBlobStorage',
    'SqliteDocumentStore',

    # Configuration
    'ConfigLoader',
    'get_nested',

    # Logging
    'setup_logging',
    'ProgressTracker',
    'log_section',
]
