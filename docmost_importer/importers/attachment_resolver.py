"""
Attachment resolver for bundle imports.

This module copies attachment files into blob storage and builds the lookup
table used to rewrite attachment references in imported content.
"""

import logging
import posixpath
from typing import Iterable, List, Optional

from tqdm import tqdm

from ..models import AttachmentMap, FileEntry
from ..storage.base import BlobStorage

logger = logging.getLogger(__name__)

# Directory names export tools conventionally put attachments in
COMMON_ATTACHMENT_DIRS = ('attachments', 'assets', 'images', 'files', 'media')


def attachment_keys(relative_path: str) -> List[str]:
    """
    All reference keys an attachment is registered under.

    Args:
        relative_path: Forward-slash path of the attachment inside the bundle

    Returns:
        Full relative path, bare filename, then "<dir>/<filename>" for every
        conventional attachment directory the file sits under
    """
    filename = posixpath.basename(relative_path)
    keys = [relative_path, filename]

    for segment in posixpath.dirname(relative_path).split('/'):
        if segment in COMMON_ATTACHMENT_DIRS:
            keys.append(f"{segment}/{filename}")

    # Keep first occurrence order, drop duplicates
    return list(dict.fromkeys(keys))


def resolve_reference(url: str, source_path: str, attachment_map: AttachmentMap) -> Optional[str]:
    """
    Resolve a local reference found in ``source_path`` to a stored locator.

    Lookups, first hit wins:
    1. the reference itself with a leading ``./`` stripped
    2. its bare filename
    3. the reference relative to the source document's directory
    4. ``<dir>/<filename>`` for each conventional attachment directory

    Returns:
        Locator string, or None if the reference is unknown
    """
    normalized = url[2:] if url.startswith('./') else url

    if normalized in attachment_map:
        return attachment_map[normalized]

    filename = posixpath.basename(normalized)
    if filename in attachment_map:
        return attachment_map[filename]

    source_dir = posixpath.dirname(source_path)
    relative = posixpath.normpath(posixpath.join(source_dir, normalized))
    if relative in attachment_map:
        return attachment_map[relative]

    for directory in COMMON_ATTACHMENT_DIRS:
        candidate = f"{directory}/{filename}"
        if candidate in attachment_map:
            return attachment_map[candidate]

    return None


class AttachmentResolver:
    """Copies attachments into blob storage and records their locators."""

    def __init__(
        self,
        blob_storage: BlobStorage,
        show_progress: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the attachment resolver.

        Args:
            blob_storage: Destination for attachment bytes
            show_progress: Show a tqdm progress bar while copying
            logger: Optional logger instance
        """
        self.blob_storage = blob_storage
        self.show_progress = show_progress
        self.logger = logger or logging.getLogger(__name__)

    def resolve_all(self, entries: Iterable[FileEntry], aggregator) -> AttachmentMap:
        """
        Store every attachment entry and build the reference lookup table.

        Args:
            entries: Attachment file entries
            aggregator: ImportResultAggregator receiving counts and errors

        Returns:
            AttachmentMap covering every successfully stored attachment
        """
        entries = list(entries)
        attachment_map: AttachmentMap = {}

        if not entries:
            self.logger.debug("No attachments to store")
            return attachment_map

        iterator = tqdm(entries, desc="Storing attachments", unit="file",
                        disable=not self.show_progress)

        for entry in iterator:
            try:
                locator = self.blob_storage.store_blob(entry.absolute_path, entry.name)
            except Exception as e:
                self.logger.error(f"Failed to store attachment '{entry.relative_path}': {e}")
                aggregator.add_error(entry.relative_path, str(e))
                continue

            for key in attachment_keys(entry.relative_path):
                attachment_map[key] = locator

            aggregator.record_attachment()
            self.logger.debug(f"Stored attachment '{entry.relative_path}' at {locator}")

        self.logger.info(
            f"Stored {len(set(attachment_map.values()))}/{len(entries)} attachments "
            f"under {len(attachment_map)} reference keys"
        )

        return attachment_map


__all__ = ['AttachmentResolver', 'COMMON_ATTACHMENT_DIRS', 'attachment_keys', 'resolve_reference']
