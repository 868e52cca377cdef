"""
Transcript processing: normalization, deduplication, speaker detection.

Auto-generated YouTube captions repeat phrases across overlapping cues and
carry [Music]/(laughs) artifacts. This module turns raw caption segments
into a cleaner ProcessedTranscript for summarization.
"""

import asyncio
import logging
import re

from app.models.schemas import ProcessedTranscript, ProcessingOptions, TranscriptSegment
from app.utils.text_utils import (
    clean_transcript_text,
    count_words,
    normalize_text_for_comparison,
    normalize_whitespace,
)

logger = logging.getLogger(__name__)

HOST = "Host"
GUEST = "Guest"

# Phrase lengths (in words) collapsed when repeated back-to-back, longest first
MAX_PHRASE_DEDUP_WORDS = 10
MIN_PHRASE_DEDUP_WORDS = 2

# Sentences shorter than this are fragments and dropped during deduplication
MIN_SENTENCE_LENGTH = 8
MIN_NORMALIZED_LENGTH = 10

HOST_PHRASES = (
    # Welcome and introductions
    "welcome back",
    "welcome to",
    "thanks for joining",
    "hey everyone",
    "hi everyone",
    "hello everyone",
    "welcome everyone",
    # Questions and prompts
    "can you tell us",
    "so tell me",
    "let me ask",
    "i wanted to call out",
    "i wanted to ask",
    "before we dive",
    "before we get",
    # Transitions
    "moving on",
    "that's interesting",
    "this is super interesting",
    "i'm so happy",
    "got it",
    "let's dive in",
    "let's get started",
    "today i have",
    "today we have",
    "i have an absolute",
    "we're going to",
    # Sponsorship
    "this episode is",
    "this episode was",
    "brought to you by",
    "sponsored by",
    # Wrapping up
    "thanks so much",
    "thank you so much",
    "thanks for watching",
    "thanks for listening",
    "see you next time",
    "let's wrap up",
)

HOST_PATTERNS = (
    re.compile(r"^i'm\s+\w+", re.IGNORECASE),
    re.compile(r"^this is\s+\w+", re.IGNORECASE),
    re.compile(r"welcome to\s+[^,.]+(?:podcast|show|episode)", re.IGNORECASE),
    re.compile(r"today (?:i|we) have", re.IGNORECASE),
    re.compile(r"let's (?:dive|get|start)", re.IGNORECASE),
)

GUEST_PHRASES = (
    "thanks for having me",
    "thanks for inviting me",
    "thanks for having us",
    "appreciate you having me",
    "great to be here",
    "happy to be here",
    "excited to be here",
    "absolutely",
    "what i did",
    "well thanks",
    "i think it's",
    "in my experience",
    "what we found",
    "the way i",
    "yeah i think",
    "so i initially",
    "what we've done",
    "in my company",
    "at my company",
    "we built",
    "i built",
)

ARROWS_PATTERN = re.compile(r"(>>\s*)+")
BOLD_LABEL_PATTERN = re.compile(r"(\*\*[^*]*\*\*:\s*)+")
WORD_REPEAT_PATTERN = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")

PHRASE_REPEAT_PATTERNS = [
    re.compile(rf"\b((?:\w+\s+){{{n - 1}}}\w+)(?:\s+\1)+\b", re.IGNORECASE)
    for n in range(MAX_PHRASE_DEDUP_WORDS, MIN_PHRASE_DEDUP_WORDS - 1, -1)
]


def detect_speaker(text: str) -> str | None:
    """
    Guess whether a line was said by the host or the guest.

    Host cues are checked first (introductions, questions, sponsor reads,
    sign-offs), then guest cues (thanks for having me, first-person
    experience).

    Returns:
        "Host", "Guest", or None when no cue matches
    """
    lower = text.lower()
    stripped = text.strip()

    if any(phrase in lower for phrase in HOST_PHRASES):
        return HOST
    if any(pattern.search(stripped) for pattern in HOST_PATTERNS):
        return HOST
    if any(phrase in lower for phrase in GUEST_PHRASES):
        return GUEST
    return None


def deduplicate_segments(segments: list[TranscriptSegment]) -> list[TranscriptSegment]:
    """
    Remove repeated phrases and duplicate sentences.

    Joins all segment text, collapses repeated phrases (10 words down to 2)
    and immediate word repeats, splits into sentences and keeps the first
    occurrence of each normalized sentence. Sentences are mapped back onto
    the original segments in order for timing, so the result can be shorter
    than the input.

    Args:
        segments: Cleaned segments

    Returns:
        Deduplicated segments (one sentence each)
    """
    if not segments:
        return []

    text = " ".join(seg.text for seg in segments)
    text = ARROWS_PATTERN.sub(">> ", text)
    text = BOLD_LABEL_PATTERN.sub("", text)

    for pattern in PHRASE_REPEAT_PATTERNS:
        text = pattern.sub(r"\1", text)
    text = WORD_REPEAT_PATTERN.sub(r"\1", text)
    text = normalize_whitespace(text)

    unique: list[str] = []
    seen: set[str] = set()
    for sentence in SENTENCE_SPLIT_PATTERN.split(text):
        sentence = sentence.strip()
        if len(sentence) < MIN_SENTENCE_LENGTH:
            continue
        normalized = normalize_text_for_comparison(sentence)
        if len(normalized) > MIN_NORMALIZED_LENGTH and normalized not in seen:
            unique.append(sentence)
            seen.add(normalized)

    return [
        seg.model_copy(update={"text": sentence})
        for seg, sentence in zip(segments, unique)
    ]


def truncate_text(text: str, max_length: int) -> str:
    """Cut text to max_length at a word boundary."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip()


def process_transcript(
    segments: list[TranscriptSegment],
    options: ProcessingOptions | None = None,
) -> ProcessedTranscript:
    """
    Apply the enabled processing steps to caption segments.

    Steps (each toggled by ProcessingOptions):
    1. normalize_text: strip tags/cues, collapse whitespace
    2. deduplication: collapse repeated phrases and sentences
    3. speaker_detection: label segments Host/Guest
    Segment text is capped at max_segment_length. Segments left empty are dropped.

    Args:
        segments: Raw caption segments
        options: Processing options (defaults if None)

    Returns:
        ProcessedTranscript with statistics
    """
    options = options or ProcessingOptions()
    processed = list(segments)

    if options.normalize_text:
        processed = [
            seg.model_copy(update={"text": clean_transcript_text(seg.text)})
            for seg in processed
        ]

    if options.deduplication:
        processed = deduplicate_segments(processed)

    if options.speaker_detection:
        processed = [
            seg.model_copy(update={"speaker": detect_speaker(seg.text) or seg.speaker})
            for seg in processed
        ]

    processed = [
        seg.model_copy(update={"text": truncate_text(seg.text, options.max_segment_length)})
        for seg in processed
        if seg.text.strip()
    ]

    speakers: list[str] = []
    for seg in processed:
        if seg.speaker and seg.speaker not in speakers:
            speakers.append(seg.speaker)

    return ProcessedTranscript(
        segments=processed,
        speakers=speakers,
        total_duration=sum(seg.duration for seg in processed),
        word_count=sum(count_words(seg.text) for seg in processed),
    )


class TranscriptProcessor:
    """
    Async transcript-processing collaborator.

    Returns None instead of raising so the pipeline reports a processing
    failure on the step.

    Example:
        processor = TranscriptProcessor()
        result = await processor.process(segments, ProcessingOptions())
    """

    async def process(
        self,
        segments: list[TranscriptSegment],
        options: ProcessingOptions,
    ) -> ProcessedTranscript | None:
        if not segments:
            return None

        try:
            # Regex passes over long transcripts are CPU-bound
            result = await asyncio.to_thread(process_transcript, segments, options)
        except Exception as e:
            logger.error(f"Transcript processing failed: {e}")
            return None

        logger.debug(
            f"Processed transcript: {len(result.segments)} segments, "
            f"{result.word_count} words, speakers={result.speakers}"
        )
        return result
