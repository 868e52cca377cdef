"""Tests for caption parsing."""

import json

import pytest

from app.utils.subtitle_utils import parse_json3, parse_srt, parse_srt_time, parse_subtitles
from app.utils.text_utils import clean_transcript_text, normalize_text_for_comparison

SRT = """1
00:00:01,000 --> 00:00:04,500
<i>Welcome</i> to the show [Music]

2
00:00:04,500 --> 00:00:06,000
ok

3
not a timestamp
Some text that is skipped

4
00:01:02,500 --> 00:01:05,000
Let's talk about
pricing strategy
"""


@pytest.mark.parametrize(
    "value, expected",
    [
        ("00:01:02,500", 62.5),
        ("01:00:00.250", 3600.25),
        ("00:00:07", 7.0),
        ("garbage", 0.0),
    ],
)
def test_parse_srt_time(value, expected):
    assert parse_srt_time(value) == expected


def test_parse_srt():
    segments = parse_srt(SRT)

    assert [s.text for s in segments] == [
        "Welcome to the show",
        "Let's talk about pricing strategy",
    ]
    assert segments[0].start == 1.0
    assert segments[0].duration == 3.5
    assert segments[1].start == 62.5


def test_parse_srt_empty():
    assert parse_srt("") == []
    assert parse_srt("   \n\n ") == []


def test_parse_json3():
    content = json.dumps({
        "events": [
            {"tStartMs": 0, "dDurationMs": 100000, "id": 1, "wpWinPosId": 1},
            {"tStartMs": 1200, "dDurationMs": 2800, "segs": [{"utf8": "Hello "}, {"utf8": "there"}]},
            {"tStartMs": 4000, "dDurationMs": 1000, "segs": [{"utf8": "\n"}]},
            {"tStartMs": 5000, "dDurationMs": 2000, "segs": [{"utf8": "[Applause]"}]},
        ]
    })

    segments = parse_json3(content)

    assert len(segments) == 1
    assert segments[0].text == "Hello there"
    assert segments[0].start == 1.2
    assert segments[0].duration == 2.8


def test_parse_json3_invalid():
    with pytest.raises(ValueError):
        parse_json3("<html>not json</html>")


def test_parse_subtitles_dispatches_by_extension():
    assert parse_subtitles(SRT, "srt")[0].text == "Welcome to the show"

    with pytest.raises(ValueError, match="Unsupported subtitle format"):
        parse_subtitles("WEBVTT", "vtt")


def test_clean_transcript_text():
    assert clean_transcript_text("<c>Hello</c> [Music] (laughs)  world") == "Hello world"


def test_normalize_text_for_comparison():
    assert normalize_text_for_comparison("It's  GREAT, right?") == "its great right"
