"""
Subtitle parsing for YouTube caption tracks.

Supports the two formats the fetcher downloads:
- json3: YouTube's native timed-text JSON ({"events": [{"tStartMs", "dDurationMs", "segs"}]})
- srt: SubRip blocks (index, "HH:MM:SS,mmm --> HH:MM:SS,mmm", text lines)

Example:
    from app.utils.subtitle_utils import parse_subtitles

    segments = parse_subtitles(content, "json3")
"""

import json
import re

from app.models.schemas import TranscriptSegment
from app.utils.text_utils import clean_transcript_text


SRT_TIMESTAMP_LINE = re.compile(
    r"^(\d{2}:\d{2}:\d{2}[,.]\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2}[,.]\d{3})"
)
SRT_TIME = re.compile(r"^(\d{2}):(\d{2}):(\d{2})(?:\.(\d{3}))?$")
SRT_BLOCK_SEPARATOR = re.compile(r"\n\s*\n")

# Lines inside a block that are indices or stray timestamps, not text
SRT_NOISE_LINE = re.compile(r"^(\d+|\d+:\d{2}:\d{2}.*)$")

# Raw SRT text shorter than this is a caption fragment, not speech
MIN_SRT_TEXT_LENGTH = 5

SUPPORTED_FORMATS = ("json3", "srt")


def parse_srt_time(value: str) -> float:
    """
    Parse an SRT timestamp to seconds.

    Accepts "HH:MM:SS,mmm", "HH:MM:SS.mmm" and "HH:MM:SS".
    Unparseable values map to 0.

    Example:
        >>> parse_srt_time("00:01:02,500")
        62.5
    """
    match = SRT_TIME.match(value.strip().replace(",", "."))
    if not match:
        return 0.0
    hours, minutes, seconds, millis = match.groups()
    total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
    if millis:
        total += int(millis) / 1000
    return float(total)


def parse_srt(content: str) -> list[TranscriptSegment]:
    """
    Parse SRT content into cleaned segments.

    Blocks without a valid timestamp line, or whose text is shorter than
    MIN_SRT_TEXT_LENGTH or empty after cleaning, are skipped.

    Args:
        content: SRT file content

    Returns:
        Segments in file order
    """
    if not content or not content.strip():
        return []

    segments: list[TranscriptSegment] = []
    normalized = content.replace("\r\n", "\n").strip()

    for block in SRT_BLOCK_SEPARATOR.split(normalized):
        lines = block.strip().split("\n")
        if len(lines) < 3:
            continue

        match = SRT_TIMESTAMP_LINE.match(lines[1].strip())
        if not match:
            continue

        start = parse_srt_time(match.group(1))
        end = parse_srt_time(match.group(2))

        raw_text = " ".join(
            line.strip()
            for line in lines[2:]
            if line.strip() and not SRT_NOISE_LINE.match(line.strip())
        )
        if len(raw_text.strip()) < MIN_SRT_TEXT_LENGTH:
            continue

        text = clean_transcript_text(raw_text)
        if text:
            segments.append(
                TranscriptSegment(text=text, start=start, duration=max(0.0, end - start))
            )

    return segments


def parse_json3(content: str) -> list[TranscriptSegment]:
    """
    Parse a YouTube json3 timed-text track.

    Events without text segments (window/style events) are skipped.

    Raises:
        ValueError: If content is not valid JSON
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid json3 subtitle data: {e}") from e

    segments: list[TranscriptSegment] = []
    for event in data.get("events") or []:
        segs = event.get("segs")
        if not segs:
            continue

        text = clean_transcript_text("".join(seg.get("utf8", "") for seg in segs))
        if not text:
            continue

        segments.append(
            TranscriptSegment(
                text=text,
                start=float(event.get("tStartMs", 0)) / 1000.0,
                duration=float(event.get("dDurationMs", 0)) / 1000.0,
            )
        )

    return segments


def parse_subtitles(content: str, ext: str) -> list[TranscriptSegment]:
    """
    Parse subtitle content by track extension.

    Raises:
        ValueError: If the format is unsupported or content is malformed
    """
    if ext == "json3":
        return parse_json3(content)
    if ext == "srt":
        return parse_srt(content)
    raise ValueError(f"Unsupported subtitle format: {ext}")
