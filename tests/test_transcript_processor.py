"""Tests for transcript processing."""

import pytest

from conftest import make_segments

from app.models.schemas import ProcessingOptions
from app.services.transcript_processor import (
    GUEST,
    HOST,
    TranscriptProcessor,
    deduplicate_segments,
    detect_speaker,
    process_transcript,
    truncate_text,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Welcome back to the show", HOST),
        ("Today we have an amazing guest", HOST),
        ("This episode is brought to you by Acme", HOST),
        ("Thanks for having me, it's great", GUEST),
        ("In my experience that rarely works", GUEST),
        ("The weather was nice", None),
    ],
)
def test_detect_speaker(text, expected):
    assert detect_speaker(text) == expected


def test_host_cues_win_over_guest_cues():
    assert detect_speaker("Thanks so much, absolutely loved it") == HOST


def test_deduplicate_drops_repeated_sentences():
    segments = make_segments(
        "Welcome to the show everyone.",
        "Welcome to the show everyone.",
        "We built a great product today.",
    )

    result = deduplicate_segments(segments)

    assert [s.text for s in result] == [
        "Welcome to the show everyone",
        "We built a great product today",
    ]
    assert [s.start for s in result] == [0.0, 5.0]


def test_deduplicate_collapses_repeated_phrases_and_words():
    segments = make_segments("I think that I think that the the plan is right.")

    result = deduplicate_segments(segments)

    assert result[0].text == "I think that the plan is right"


def test_deduplicate_drops_fragments():
    segments = make_segments("Okay. Right. So the real question is pricing.")

    result = deduplicate_segments(segments)

    assert [s.text for s in result] == ["So the real question is pricing"]


def test_truncate_text_cuts_at_word_boundary():
    assert truncate_text("Hello wonderful world", 10) == "Hello"
    assert truncate_text("short", 10) == "short"


def test_process_transcript_full():
    segments = make_segments(
        "[Music] Welcome to the show everyone.",
        "<c>Welcome</c> to the show everyone.",
        "We built a great product today.",
    )

    result = process_transcript(segments, ProcessingOptions())

    assert [s.text for s in result.segments] == [
        "Welcome to the show everyone",
        "We built a great product today",
    ]
    assert [s.speaker for s in result.segments] == [HOST, GUEST]
    assert result.speakers == [HOST, GUEST]
    assert result.total_duration == 10.0
    assert result.word_count == 11


def test_process_transcript_with_everything_disabled():
    segments = make_segments("[Music] raw text", "   ", "more raw text")
    options = ProcessingOptions(
        normalize_text=False,
        deduplication=False,
        speaker_detection=False,
    )

    result = process_transcript(segments, options)

    assert [s.text for s in result.segments] == ["[Music] raw text", "more raw text"]
    assert result.speakers == []


def test_process_transcript_caps_segment_length():
    segments = make_segments("This sentence is definitely longer than twenty characters.")
    options = ProcessingOptions(deduplication=False, max_segment_length=20)

    result = process_transcript(segments, options)

    assert result.segments[0].text == "This sentence is"


def test_full_text_joins_segments():
    result = process_transcript(
        make_segments("First useful sentence here.", "Second useful sentence here."),
        ProcessingOptions(speaker_detection=False),
    )

    assert result.full_text == "First useful sentence here\nSecond useful sentence here"


async def test_processor_returns_none_for_empty_input():
    assert await TranscriptProcessor().process([], ProcessingOptions()) is None


async def test_processor_runs_processing():
    processor = TranscriptProcessor()

    result = await processor.process(
        make_segments("Thanks for having me on the podcast."), ProcessingOptions()
    )

    assert result.speakers == [GUEST]
