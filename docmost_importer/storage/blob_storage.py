"""Local-directory blob storage for imported attachments."""

import logging
import os
import secrets
import shutil

from .base import BlobStorage

logger = logging.getLogger(__name__)


class LocalBlobStorage(BlobStorage):
    """
    Copies attachment bytes into an uploads directory.

    Every stored file gets a fresh random 128-bit hex name that keeps the
    original extension, so concurrent imports never overwrite each other.
    """

    def __init__(self, uploads_path: str, url_prefix: str = '/uploads/'):
        self.uploads_path = uploads_path
        self.url_prefix = url_prefix if url_prefix.endswith('/') else url_prefix + '/'

    def store_blob(self, source_path: str, original_name: str) -> str:
        os.makedirs(self.uploads_path, exist_ok=True)

        ext = os.path.splitext(original_name)[1]
        new_filename = f"{secrets.token_hex(16)}{ext}"
        dest_path = os.path.join(self.uploads_path, new_filename)

        shutil.copyfile(source_path, dest_path)
        logger.debug(f"Copied attachment '{original_name}' -> {dest_path}")

        return f"{self.url_prefix}{new_filename}"
