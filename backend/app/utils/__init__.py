"""
Shared text utilities.

Modules:
    text_utils: Caption text cleanup and comparison helpers
    subtitle_utils: json3 / SRT caption track parsing
"""

from app.utils.subtitle_utils import (
    SUPPORTED_FORMATS,
    parse_json3,
    parse_srt,
    parse_srt_time,
    parse_subtitles,
)
from app.utils.text_utils import (
    clean_transcript_text,
    count_words,
    normalize_text_for_comparison,
    normalize_whitespace,
    remove_html_tags,
)

__all__ = [
    # text_utils
    "clean_transcript_text",
    "count_words",
    "normalize_text_for_comparison",
    "normalize_whitespace",
    "remove_html_tags",
    # subtitle_utils
    "SUPPORTED_FORMATS",
    "parse_json3",
    "parse_srt",
    "parse_srt_time",
    "parse_subtitles",
]
