"""
Tree builder for bundle imports.

Reconstructs parent/child relationships from bundle paths: directories become
placeholder notes, ``index.md``/``index.html`` files are merged into their
directory's note, and notes left without content or children are pruned.
"""

import logging
import posixpath
from typing import Callable, Dict, Iterable, List, Optional

from ..models import DEFAULT_TITLE, FileEntry, NoteData

logger = logging.getLogger(__name__)

INDEX_FILE_NAMES = frozenset({'index.md', 'index.html'})

# Loads one content entry into a childless NoteData
NoteLoader = Callable[[FileEntry], NoteData]


def is_index_file(relative_path: str) -> bool:
    return posixpath.basename(relative_path).lower() in INDEX_FILE_NAMES


def prune_empty_notes(forest: List[NoteData]) -> List[NoteData]:
    """
    Drop notes with blank content and no surviving children, bottom-up.

    Uses an explicit stack so arbitrarily deep bundles cannot exhaust the
    interpreter's recursion limit.
    """
    visit_order: List[NoteData] = []
    stack = list(forest)
    while stack:
        node = stack.pop()
        visit_order.append(node)
        stack.extend(node.children)

    # Descendants come after their ancestors in visit_order
    for node in reversed(visit_order):
        node.children = [child for child in node.children if _keep(child)]

    return [node for node in forest if _keep(node)]


def _keep(node: NoteData) -> bool:
    return node.has_content() or bool(node.children)


class NoteTreeBuilder:
    """Builds a forest of NoteData from directory and content entries."""

    def __init__(self, load_note: NoteLoader, aggregator, logger: Optional[logging.Logger] = None):
        """
        Initialize the tree builder.

        Args:
            load_note: Reads, transforms and titles one content entry
            aggregator: ImportResultAggregator receiving per-file errors
            logger: Optional logger instance
        """
        self.load_note = load_note
        self.aggregator = aggregator
        self.logger = logger or logging.getLogger(__name__)

        self.stats = {
            'directories': 0,
            'notes': 0,
            'merged_index_files': 0,
            'orphan_notes': 0,
            'failed': 0
        }

    def build(
        self,
        content_entries: Iterable[FileEntry],
        dir_entries: Iterable[FileEntry]
    ) -> List[NoteData]:
        """
        Build the pruned note forest.

        Args:
            content_entries: Content files in discovery order
            dir_entries: Directory entries of the bundle(s)

        Returns:
            Root-level NoteData nodes
        """
        forest: List[NoteData] = []
        path_to_note: Dict[str, NoteData] = {}

        self._add_directory_placeholders(dir_entries, forest, path_to_note)

        for entry in content_entries:
            try:
                note = self.load_note(entry)
            except Exception as e:
                self.logger.error(f"Failed to process {entry.relative_path}: {e}")
                self.aggregator.add_error(entry.relative_path, str(e))
                self.stats['failed'] += 1
                continue

            parent_path = entry.parent_path
            parent = path_to_note.get(parent_path) if parent_path else None

            if parent is not None and is_index_file(entry.relative_path):
                self._merge_index(parent, note)
                continue

            if parent is not None:
                parent.add_child(note)
            else:
                if parent_path:
                    self.stats['orphan_notes'] += 1
                    self.logger.debug(
                        f"No directory node for '{parent_path}', "
                        f"placing '{entry.relative_path}' at the root"
                    )
                forest.append(note)

            self.stats['notes'] += 1

        pruned = prune_empty_notes(forest)

        self.logger.info(
            f"Built note tree: {self.stats['directories']} directories, "
            f"{self.stats['notes']} notes, {self.stats['merged_index_files']} index files merged, "
            f"{len(pruned)} root notes after pruning"
        )

        return pruned

    def _add_directory_placeholders(
        self,
        dir_entries: Iterable[FileEntry],
        forest: List[NoteData],
        path_to_note: Dict[str, NoteData]
    ) -> None:
        # Shallow first so every parent exists before its children attach
        for entry in sorted(dir_entries, key=lambda e: e.depth):
            if entry.relative_path in path_to_note:
                continue

            placeholder = NoteData(
                title=entry.name,
                content='',
                relative_path=entry.relative_path
            )
            path_to_note[entry.relative_path] = placeholder
            self.stats['directories'] += 1

            parent = path_to_note.get(entry.parent_path) if entry.parent_path else None
            if parent is not None:
                parent.add_child(placeholder)
            else:
                forest.append(placeholder)

    def _merge_index(self, directory_note: NoteData, index_note: NoteData) -> None:
        directory_note.content = index_note.content
        directory_note.title_emoji = index_note.title_emoji
        if index_note.title != DEFAULT_TITLE:
            directory_note.title = index_note.title
        self.stats['merged_index_files'] += 1
        self.logger.debug(
            f"Merged index file '{index_note.relative_path}' into '{directory_note.relative_path}'"
        )


__all__ = ['NoteTreeBuilder', 'NoteLoader', 'is_index_file', 'prune_empty_notes']
