"""Text normalization and key-info derivation for extracted documents."""

import math
import re

from studyvault.models.extraction import KeyInfo

WORDS_PER_MINUTE = 200
MAX_HEADINGS = 10
MAX_HEADING_LENGTH = 100

_WHITESPACE_RUN = re.compile(r"\s+")
_PAGE_NUMBER_LINE = re.compile(r"^\d+\s*$", re.MULTILINE)
_EXCESS_LINE_BREAKS = re.compile(r"\n{3,}")


def clean_text(text: str | None) -> str:
    """Normalize raw extracted text.

    Steps run in a fixed order: collapse whitespace runs, drop lines that
    hold only a number (page numbers), collapse three or more line breaks
    to two, and trim.

    Args:
        text: Raw text from an extractor.

    Returns:
        The cleaned text, empty for missing input.
    """
    if not text:
        return ""

    text = _WHITESPACE_RUN.sub(" ", text)
    text = _PAGE_NUMBER_LINE.sub("", text)
    text = _EXCESS_LINE_BREAKS.sub("\n\n", text)
    return text.strip()


def extract_key_info(text: str) -> KeyInfo:
    """Derive word count, reading time, headings and counts from cleaned text."""
    word_count = len(text.split())

    potential_headings = [
        line
        for line in text.split("\n")
        if 0 < len(line) < MAX_HEADING_LENGTH and "." not in line
    ][:MAX_HEADINGS]

    return KeyInfo(
        word_count=word_count,
        reading_time=math.ceil(word_count / WORDS_PER_MINUTE),
        potential_headings=potential_headings,
        character_count=len(text),
        paragraph_count=len(text.split("\n\n")),
    )
