"""Derives note titles and leading emoji from imported content."""

import posixpath
import re
import unicodedata
from dataclasses import dataclass
from typing import Optional, Tuple

from bs4 import BeautifulSoup

from ..models import DEFAULT_TITLE

MARKDOWN_H1_PATTERN = re.compile(r'^#\s+(.+)$', re.MULTILINE)

VARIATION_SELECTOR_16 = '\ufe0f'

# Code points with the Emoji_Presentation property, taken from Unicode 15.0
# emoji-data.txt. Refresh from that file when a new emoji version ships.
EMOJI_PRESENTATION_RANGES = (
    (0x231A, 0x231B), (0x23E9, 0x23EC), (0x23F0, 0x23F0), (0x23F3, 0x23F3),
    (0x25FD, 0x25FE), (0x2614, 0x2615), (0x2648, 0x2653), (0x267F, 0x267F),
    (0x2693, 0x2693), (0x26A1, 0x26A1), (0x26AA, 0x26AB), (0x26BD, 0x26BE),
    (0x26C4, 0x26C5), (0x26CE, 0x26CE), (0x26D4, 0x26D4), (0x26EA, 0x26EA),
    (0x26F2, 0x26F3), (0x26F5, 0x26F5), (0x26FA, 0x26FA), (0x26FD, 0x26FD),
    (0x2705, 0x2705), (0x270A, 0x270B), (0x2728, 0x2728), (0x274C, 0x274C),
    (0x274E, 0x274E), (0x2753, 0x2755), (0x2757, 0x2757), (0x2795, 0x2797),
    (0x27B0, 0x27B0), (0x27BF, 0x27BF), (0x2B1B, 0x2B1C), (0x2B50, 0x2B50),
    (0x2B55, 0x2B55), (0x1F004, 0x1F004), (0x1F0CF, 0x1F0CF), (0x1F18E, 0x1F18E),
    (0x1F191, 0x1F19A), (0x1F1E6, 0x1F1FF), (0x1F201, 0x1F201), (0x1F21A, 0x1F21A),
    (0x1F22F, 0x1F22F), (0x1F232, 0x1F236), (0x1F238, 0x1F23A), (0x1F250, 0x1F251),
    (0x1F300, 0x1F320), (0x1F32D, 0x1F335), (0x1F337, 0x1F37C), (0x1F37E, 0x1F393),
    (0x1F3A0, 0x1F3CA), (0x1F3CF, 0x1F3D3), (0x1F3E0, 0x1F3F0), (0x1F3F4, 0x1F3F4),
    (0x1F3F8, 0x1F43E), (0x1F440, 0x1F440), (0x1F442, 0x1F4FC), (0x1F4FF, 0x1F53D),
    (0x1F54B, 0x1F54E), (0x1F550, 0x1F567), (0x1F57A, 0x1F57A), (0x1F595, 0x1F596),
    (0x1F5A4, 0x1F5A4), (0x1F5FB, 0x1F64F), (0x1F680, 0x1F6C5), (0x1F6CC, 0x1F6CC),
    (0x1F6D0, 0x1F6D2), (0x1F6D5, 0x1F6D7), (0x1F6DC, 0x1F6DF), (0x1F6EB, 0x1F6EC),
    (0x1F6F4, 0x1F6FC), (0x1F7E0, 0x1F7EB), (0x1F7F0, 0x1F7F0), (0x1F90C, 0x1F93A),
    (0x1F93C, 0x1F945), (0x1F947, 0x1F9FF), (0x1FA70, 0x1FA7C), (0x1FA80, 0x1FA88),
    (0x1FA90, 0x1FABD), (0x1FABF, 0x1FAC5), (0x1FACE, 0x1FADB), (0x1FAE0, 0x1FAE8),
    (0x1FAF0, 0x1FAF8),
)


@dataclass
class ExtractedTitle:
    """Title and optional leading emoji of a note."""

    title: str
    emoji: Optional[str] = None


def _is_emoji_presentation(char: str) -> bool:
    code_point = ord(char)
    return any(start <= code_point <= end for start, end in EMOJI_PRESENTATION_RANGES)


def _is_emoji_base(char: str) -> bool:
    # Characters that render as emoji when followed by U+FE0F
    return char in '#*0123456789' or unicodedata.category(char) == 'So'


def split_leading_emoji(title: str) -> Tuple[Optional[str], str]:
    """
    Split a single leading emoji glyph off ``title``.

    Returns:
        Tuple of (emoji or None, remaining title stripped)
    """
    if not title:
        return None, title

    first = title[0]
    has_selector = title[1:2] == VARIATION_SELECTOR_16

    if _is_emoji_presentation(first) or (has_selector and _is_emoji_base(first)):
        emoji = first + VARIATION_SELECTOR_16 if has_selector else first
        return emoji, title[len(emoji):].strip()

    return None, title


def _heading_text(content: str) -> Optional[str]:
    if '<h1' in content.lower():
        heading = BeautifulSoup(content, 'lxml').find('h1')
        if heading is not None:
            text = ' '.join(heading.get_text().split())
            if text:
                return text

    match = MARKDOWN_H1_PATTERN.search(content)
    if match:
        text = match.group(1).strip()
        if text:
            return text

    return None


def title_from_filename(file_path: str) -> str:
    """File base name without extension, ``-`` and ``_`` replaced by spaces."""
    stem = posixpath.splitext(posixpath.basename(file_path))[0]
    return re.sub(r'[-_]', ' ', stem).strip()


def extract_title(content: str, file_path: str) -> ExtractedTitle:
    """
    Derive a note title from content, falling back to the file name.

    Args:
        content: Processed note content (HTML, possibly with markdown remnants)
        file_path: Relative path of the source file

    Returns:
        ExtractedTitle with the leading emoji split off
    """
    heading = _heading_text(content or '')
    title = heading if heading is not None else title_from_filename(file_path)

    emoji, title = split_leading_emoji(title)

    return ExtractedTitle(title=title or DEFAULT_TITLE, emoji=emoji)


__all__ = ['ExtractedTitle', 'extract_title', 'split_leading_emoji', 'title_from_filename']
