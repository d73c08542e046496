"""Interfaces the import pipeline needs from its collaborators."""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional


class DocumentStore(ABC):
    """Hierarchical document store.

    Siblings are the documents sharing ``(owner_id, parent_id)``, ordered by
    sort order. ``parent_id=None`` means top level.
    """

    def __init__(self):
        self._sibling_lock = threading.RLock()

    @contextmanager
    def sibling_lock(self) -> Iterator[None]:
        """Hold while reading the max sort order and inserting a sibling."""
        with self._sibling_lock:
            yield

    @abstractmethod
    def max_sibling_sort_order(self, owner_id: int, parent_id: Optional[int]) -> Optional[int]:
        """Highest sort order among the parent's children, None if it has none."""

    @abstractmethod
    def create_document(
        self,
        owner_id: int,
        parent_id: Optional[int],
        title: str,
        emoji: Optional[str],
        content: str,
        sort_order: int
    ) -> int:
        """Insert a document and return its ID."""

    @abstractmethod
    def document_exists(self, owner_id: int, document_id: int) -> bool:
        """Check that ``document_id`` exists and belongs to ``owner_id``."""

    @abstractmethod
    def list_children(self, owner_id: int, parent_id: Optional[int]) -> List[dict]:
        """Children of ``parent_id`` ordered by sort order."""


class BlobStorage(ABC):
    """Durable storage for attachment bytes."""

    url_prefix: str = '/uploads/'

    @abstractmethod
    def store_blob(self, source_path: str, original_name: str) -> str:
        """Copy ``source_path`` into storage and return its public locator."""
