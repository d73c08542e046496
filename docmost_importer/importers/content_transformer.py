"""
Content transformer for bundle imports.

This module converts markdown content to HTML for note storage and rewrites
local attachment references to their stored locators.
"""

import logging
import re
from typing import Optional, Sequence

import markdown as md

from ..models import AttachmentMap
from .attachment_resolver import resolve_reference
from .file_classifier import is_markdown

logger = logging.getLogger(__name__)

DEFAULT_MARKDOWN_EXTENSIONS = ('extra', 'sane_lists')

EXTERNAL_URL_PREFIXES = ('http://', 'https://')

ATTRIBUTE_PATTERNS = (
    re.compile(r'src=["\']([^"\']+)["\']'),
    re.compile(r'href=["\']([^"\']+)["\']'),
)

MARKDOWN_IMAGE_PATTERN = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')


class ContentTransformer:
    """Transforms markdown content to HTML and rewrites attachment references."""

    def __init__(
        self,
        locator_prefix: str = '/uploads/',
        extensions: Optional[Sequence[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize content transformer.

        Args:
            locator_prefix: Namespace of stored attachment locators; references
                already under it are left alone
            extensions: Python-Markdown extensions to enable
            logger: Optional logger instance (defaults to module logger)
        """
        self.locator_prefix = locator_prefix
        self.logger = logger or logging.getLogger(__name__)

        self.extensions = list(extensions if extensions is not None else DEFAULT_MARKDOWN_EXTENSIONS)

        self.logger.debug("Initialized ContentTransformer with markdown extensions")

    def transform(self, text: str, relative_path: str, attachment_map: AttachmentMap) -> str:
        """
        Produce note HTML from a content file.

        Args:
            text: Decoded file contents
            relative_path: Path of the file inside the bundle
            attachment_map: Lookup table built by the attachment resolver

        Returns:
            HTML with local attachment references rewritten
        """
        html = self.transform_markdown_to_html(text) if is_markdown(relative_path) else text
        return self.rewrite_attachment_urls(html, attachment_map, relative_path)

    def transform_markdown_to_html(self, markdown_content: str) -> str:
        """
        Convert markdown content to HTML.

        Args:
            markdown_content: Markdown string to convert

        Returns:
            HTML string
        """
        if not markdown_content:
            self.logger.debug("Empty markdown content provided")
            return ""

        # Converters hold per-document state (footnotes, abbreviations): one per call
        converter = md.Markdown(extensions=self.extensions)
        html_content = converter.convert(markdown_content)

        self.logger.debug(
            f"Converted {len(markdown_content)} chars of markdown to {len(html_content)} chars of HTML"
        )

        return html_content

    def rewrite_attachment_urls(
        self,
        html_content: str,
        attachment_map: AttachmentMap,
        source_path: str
    ) -> str:
        """
        Rewrite local file references to stored attachment locators.

        ``src``/``href`` values are replaced in place; leftover markdown image
        syntax that resolves becomes an ``<img>`` tag. Unresolved references
        are kept untouched.

        Args:
            html_content: HTML content with local references
            attachment_map: Reference key to locator mapping
            source_path: Relative path of the document being rewritten

        Returns:
            HTML with rewritten references
        """
        if not html_content:
            return html_content

        replacements = 0
        unresolved = 0

        def replace_attribute(match):
            nonlocal replacements, unresolved
            url = match.group(1)

            if self._is_preserved(url):
                return match.group(0)

            resolved = resolve_reference(url, source_path, attachment_map)
            if resolved is None:
                unresolved += 1
                return match.group(0)

            replacements += 1
            return match.group(0).replace(url, resolved)

        def replace_markdown_image(match):
            nonlocal replacements, unresolved
            alt, url = match.group(1), match.group(2)

            if self._is_preserved(url):
                return match.group(0)

            resolved = resolve_reference(url, source_path, attachment_map)
            if resolved is None:
                unresolved += 1
                return match.group(0)

            replacements += 1
            return f'<img src="{resolved}" alt="{alt}" />'

        rewritten = html_content
        for pattern in ATTRIBUTE_PATTERNS:
            rewritten = pattern.sub(replace_attribute, rewritten)
        rewritten = MARKDOWN_IMAGE_PATTERN.sub(replace_markdown_image, rewritten)

        if replacements or unresolved:
            self.logger.debug(
                f"{source_path}: rewrote {replacements} references, "
                f"{unresolved} left unresolved"
            )

        return rewritten

    def _is_preserved(self, url: str) -> bool:
        return url.startswith(EXTERNAL_URL_PREFIXES) or url.startswith(self.locator_prefix)


__all__ = ['ContentTransformer', 'DEFAULT_MARKDOWN_EXTENSIONS']
