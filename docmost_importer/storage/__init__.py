"""Storage collaborators for the import pipeline.

- base: abstract DocumentStore and BlobStorage interfaces
- sqlite_store: SQLite document store with the notes table layout
- blob_storage: local uploads directory with collision-resistant names
"""

from .base import BlobStorage, DocumentStore
from .blob_storage import LocalBlobStorage
from .sqlite_store import SqliteDocumentStore

__all__ = [
    'BlobStorage',
    'DocumentStore',
    'LocalBlobStorage',
    'SqliteDocumentStore'
]
