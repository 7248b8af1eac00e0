#!/usr/bin/env python3
"""
Text Cleaner - Normalize raw band text before rule matching

Receipt PDFs rendered from scans mix up separators: decimal commas, middle
dots and hyphens all end up where a period belongs, and OCR inserts spaces
inside dates and amounts ("12 . 34"). clean_text() maps all of that to one
canonical form so rule patterns only need to handle periods.

Any callable str -> str can replace clean_text (see BandScanner).
"""

import re

# OCR-ambiguous punctuation, applied in order
_PUNCTUATION_MAP = (
    (',', '.'),
    ('·', '.'),  # middle dot
    ('-', '.'),
    ("'", ' '),
)

_NEWLINES_RE = re.compile(r'[\r\n]+')
_SPACES_RE = re.compile(r'\s+')
_SEPARATOR_SPACES_RE = re.compile(r' *([/:]) *')
# "12 . 34" -> "12.34"; lookahead keeps chained groups like "12 . 34 . 56" in one pass
_NUMERIC_GAP_RE = re.compile(r'(\d{1,2}) *([.:/]) *(?=\d{2})')


def clean_text(text: str) -> str:
    """
    Normalize a raw text fragment

    Args:
        text: Raw text extracted from a page region

    Returns:
        Cleaned text ('' for empty input)
    """
    if not text:
        return ''

    for old, new in _PUNCTUATION_MAP:
        text = text.replace(old, new)

    text = _NEWLINES_RE.sub(' ', text)
    text = _SPACES_RE.sub(' ', text)

    text = _SEPARATOR_SPACES_RE.sub(r'\1', text)
    text = _NUMERIC_GAP_RE.sub(r'\1\2', text)

    return text.strip()
