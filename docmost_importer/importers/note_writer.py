"""
Note writer for bundle imports.

This module creates notes in the document store, parents before children,
giving each one the next free sort order among its siblings.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..logger import ProgressTracker
from ..models import ImportOptions, NoteData
from ..storage.base import DocumentStore

logger = logging.getLogger(__name__)


class NoteWriter:
    """Materializes a NoteData forest into a DocumentStore."""

    def __init__(self, store: DocumentStore, logger: Optional[logging.Logger] = None):
        """
        Initialize note writer.

        Args:
            store: Target document store
            logger: Optional logger instance (defaults to module logger)
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def next_sort_order(self, owner_id: int, parent_id: Optional[int]) -> int:
        """
        Sort order for a new last child of ``parent_id``.

        Returns:
            Zero when the parent has no children, otherwise the current
            maximum plus one
        """
        max_order = self.store.max_sibling_sort_order(owner_id, parent_id)
        return 0 if max_order is None else max_order + 1

    def create_note(self, owner_id: int, parent_id: Optional[int], note: NoteData) -> int:
        """Create one note as the last child of ``parent_id``."""
        with self.store.sibling_lock():
            sort_order = self.next_sort_order(owner_id, parent_id)
            note_id = self.store.create_document(
                owner_id,
                parent_id,
                note.title,
                note.title_emoji,
                note.content,
                sort_order
            )

        self.logger.debug(
            f"Created note {note_id} '{note.title}' under {parent_id} (sort order {sort_order})"
        )
        return note_id

    def write_forest(self, forest: Iterable[NoteData], options: ImportOptions, aggregator) -> None:
        """
        Create every note of ``forest`` depth-first under ``options.parent_id``.

        A failed note is reported against its relative path and its subtree
        is skipped; siblings and other branches are still created.

        Args:
            forest: Root-level notes
            options: Import options (owner and target parent)
            aggregator: ImportResultAggregator receiving IDs, counts and errors
        """
        forest = list(forest)
        total = sum(1 + node.count_descendants() for node in forest)

        # (node, parent_id, is_root); reversed so the first root pops first
        stack: List[Tuple[NoteData, Optional[int], bool]] = [
            (node, options.parent_id, True) for node in reversed(forest)
        ]

        with ProgressTracker(total, "notes", self.logger) as progress:
            while stack:
                node, parent_id, is_root = stack.pop()

                try:
                    note_id = self.create_note(options.owner_id, parent_id, node)
                except Exception as e:
                    self.logger.error(f"Failed to create note for '{node.relative_path}': {e}")
                    aggregator.add_error(node.relative_path, str(e))
                    progress.increment(success=False)

                    skipped = node.count_descendants()
                    if skipped:
                        progress.skip(skipped)
                        self.logger.warning(
                            f"Skipping {skipped} descendant notes of '{node.relative_path}'"
                        )
                    continue

                aggregator.record_note(note_id, is_root=is_root)
                progress.increment(success=True)

                for child in reversed(node.children):
                    stack.append((child, note_id, False))

    def write_flat(self, notes: Iterable[NoteData], options: ImportOptions, aggregator) -> None:
        """Create ``notes`` as siblings under ``options.parent_id``, ignoring children."""
        for note in notes:
            try:
                note_id = self.create_note(options.owner_id, options.parent_id, note)
            except Exception as e:
                self.logger.error(f"Failed to create note for '{note.relative_path}': {e}")
                aggregator.add_error(note.relative_path, str(e))
                continue

            aggregator.record_note(note_id, is_root=True)


__all__ = ['NoteWriter']
