"""
Text cleanup utilities for caption text and LLM output.

Example:
    from app.utils.text_utils import clean_transcript_text

    clean_transcript_text("<c>Hello</c> [Music] (laughs)  world")
    # "Hello world"
"""

import re

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")
BRACKETS_PATTERN = re.compile(r"\[.*?\]")
PARENTHESES_PATTERN = re.compile(r"\(.*?\)")
WHITESPACE_PATTERN = re.compile(r"\s+")
NON_ALNUM_PATTERN = re.compile(r"[^a-zA-Z0-9\s]")


def remove_html_tags(text: str) -> str:
    return HTML_TAG_PATTERN.sub("", text)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_transcript_text(text: str) -> str:
    """
    Strip caption artifacts from a segment.

    Removes HTML tags, [bracketed] cues like [Music], (parenthesized) asides
    and collapses whitespace.

    Args:
        text: Raw caption text

    Returns:
        Cleaned text (may be empty)
    """
    text = remove_html_tags(text)
    text = BRACKETS_PATTERN.sub("", text)
    text = PARENTHESES_PATTERN.sub("", text)
    return normalize_whitespace(text)


def normalize_text_for_comparison(text: str) -> str:
    """Lowercase alphanumeric form used to detect duplicate sentences."""
    return normalize_whitespace(NON_ALNUM_PATTERN.sub("", text).lower())


def count_words(text: str) -> int:
    return len(text.split())
