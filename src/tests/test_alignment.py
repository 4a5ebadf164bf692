"""
Tests for transcript alignment and the speaker roster.
"""

from src.dubstudio.alignment import (
    align_resource_segments,
    align_transcripts,
    borrow_source_speakers,
    build_speaker_roster,
    sort_segments,
)
from src.dubstudio.models import SPEAKER_COLORS, ResourceSegment, Segment


def test_sort_segments_is_stable():
    segments = [
        Segment(start=5.0, end=6.0, text="late"),
        Segment(start=1.0, end=2.0, text="first"),
        Segment(start=1.0, end=1.5, text="second"),
    ]

    assert [s.text for s in sort_segments(segments)] == ["first", "second", "late"]


def test_borrow_source_speakers():
    translated = [
        Segment(start=0.0, end=1.0, text="Bonjour", speaker_id="speaker_1"),
        Segment(start=1.0, end=2.0, text="Salut", speaker_id="speaker_1"),
        Segment(start=2.0, end=3.0, text="Encore", speaker_id="speaker_1"),
    ]
    source = [
        Segment(start=0.0, end=1.0, text="Hello", speaker_id="speaker_1"),
        Segment(start=1.0, end=2.0, text="Hi", speaker_id="speaker_2"),
    ]

    out = borrow_source_speakers(translated, source)

    assert [s.speaker_id for s in out] == ["speaker_1", "speaker_2", "speaker_1"]
    assert [s.text for s in out] == ["Bonjour", "Salut", "Encore"]
    # input left untouched
    assert translated[1].speaker_id == "speaker_1"


def test_borrow_source_speakers_keeps_multi_speaker_translation():
    translated = [
        Segment(start=0.0, end=1.0, text="a", speaker_id="speaker_2"),
        Segment(start=1.0, end=2.0, text="b", speaker_id="speaker_1"),
    ]
    source = [
        Segment(start=0.0, end=1.0, text="a", speaker_id="speaker_1"),
        Segment(start=1.0, end=2.0, text="b", speaker_id="speaker_3"),
    ]

    assert borrow_source_speakers(translated, source) is translated


def test_align_prefers_translated_base_and_fills_missing_text():
    original = [Segment(start=0.0, end=1.0, text="Hello")]
    translated = [
        Segment(start=0.0, end=1.0, text="Bonjour", speaker_id="speaker_1"),
        Segment(start=1.2, end=2.0, text="Merci", speaker_id="speaker_2"),
    ]

    rows = align_transcripts(original, translated)

    assert [r.id for r in rows] == ["seg_0", "seg_1"]
    assert rows[0].original_text == "Hello"
    assert rows[0].translated_text == "Bonjour"
    # index 1 has no partner by index; the original starting at 0.0 is within 2s
    assert rows[1].original_text == "Hello"
    assert rows[1].speaker_id == "speaker_2"


def test_align_on_original_when_longer():
    original = [
        Segment(start=0.0, end=1.0, text="One"),
        Segment(start=10.0, end=11.0, text="Two"),
    ]
    translated = [Segment(start=0.0, end=1.0, text="Un")]

    rows = align_transcripts(original, translated)

    assert [(r.original_text, r.translated_text) for r in rows] == [("One", "Un"), ("Two", "Two")]
    assert rows[1].start == 10.0


def test_align_empty():
    assert align_transcripts([], []) == []


def test_build_speaker_roster():
    segments = [
        Segment(start=0.0, end=1.0, text="a", speaker_id="speaker_2"),
        Segment(start=1.0, end=2.0, text="b", speaker_id="speaker_1"),
        Segment(start=2.0, end=3.0, text="c", speaker_id="speaker_2"),
    ]

    roster = build_speaker_roster(segments)

    assert [s.speaker_id for s in roster] == ["speaker_2", "speaker_1"]
    assert [s.name for s in roster] == ["Speaker 1", "Speaker 2"]
    assert roster[0].color == SPEAKER_COLORS[0]
    assert roster[1].color == SPEAKER_COLORS[1]


def test_align_resource_segments_keeps_resource_speakers():
    resource = [
        ResourceSegment(id="r1", speaker_id="spk_a", start=0.0, end=1.0, text="Hello", translated_text="Bonjour"),
        ResourceSegment(id="", speaker_id="spk_b", start=5.0, end=6.0, text="Bye"),
        ResourceSegment(id="r3", speaker_id="", start=20.0, end=21.0, text="", translated_text="Fin"),
    ]
    original = [
        Segment(start=0.3, end=1.0, text="Hello from Whisper"),
        Segment(start=5.5, end=6.0, text="Goodbye"),
    ]

    rows = align_resource_segments(resource, original)

    assert [(r.id, r.speaker_id) for r in rows] == [("r1", "spk_a"), ("seg_1", "spk_b"), ("r3", "speaker_1")]
    assert [r.original_text for r in rows] == ["Hello from Whisper", "Goodbye", ""]
    assert [r.translated_text for r in rows] == ["Bonjour", "Bye", "Fin"]
