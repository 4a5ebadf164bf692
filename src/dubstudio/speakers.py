"""
Speaker attribution for parsed subtitle blocks.

Explicit markers ("Speaker 2:", "[S1]:", "Voice 3 ...") are trusted whenever at
least one cue carries one. Otherwise speakers are inferred from timing gaps,
staying on the main speaker unless a pause is both long and unusual for the
transcript.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass

from .models import Segment, SubtitleBlock

logger = logging.getLogger("dubstudio")

DEFAULT_SPEAKER = "speaker_1"

# Tried in order, first match wins
_SPEAKER_PATTERNS = [
    re.compile(r"^\[?speaker[_\s]*(\d+)\]?[:\s]+(.+)$", re.I),  # speaker_1: / [speaker 1]:
    re.compile(r"^\[?S(\d+)\]?[:\s]+(.+)$", re.I),  # S1: / [S1]:
    re.compile(r"^(?:Person|Voice|Speaker)\s*(\d+)[:\s]+(.+)$", re.I),  # Person 1: / Voice 2:
]


@dataclass
class SpeakerHeuristics:
    """Thresholds for timing-based turn detection.

    A turn change needs a gap longer than ``min_gap`` seconds that is also
    ``relative_gap`` times the average positive gap, or a question followed by
    a pause over ``question_gap``. ``switch_phrases`` optionally adds caller
    supplied phrases that open a new turn (case-insensitive substring match).
    """

    min_gap: float = 0.5
    relative_gap: float = 1.5
    question_gap: float = 0.2
    switch_phrases: tuple[str, ...] = ()


@dataclass
class Cue:
    """A subtitle block after marker extraction."""

    start: float
    end: float
    text: str
    marker: str | None = None


@dataclass
class MarkedTranscript:
    """At least one cue names its speaker explicitly."""

    cues: list[Cue]


@dataclass
class UnmarkedTranscript:
    """No cue names its speaker; timing decides."""

    cues: list[Cue]


def extract_speaker_marker(text: str) -> tuple[str | None, str]:
    """Split a leading speaker marker off ``text``.

    Returns ``(speaker_id, clean_text)``; ``speaker_id`` is None when the text
    does not start with a recognised marker.
    """
    text = text.strip()
    for pattern in _SPEAKER_PATTERNS:
        m = pattern.match(text)
        if m:
            return f"speaker_{int(m.group(1))}", m.group(2).strip()
    return None, text


def classify(blocks: list[SubtitleBlock]) -> MarkedTranscript | UnmarkedTranscript:
    """Extract markers from every block and pick the assignment strategy once."""
    cues = []
    for b in blocks:
        marker, text = extract_speaker_marker(b.text)
        cues.append(Cue(start=b.start, end=b.end, text=text, marker=marker))
    if any(c.marker for c in cues):
        return MarkedTranscript(cues)
    return UnmarkedTranscript(cues)


def _assign_from_markers(transcript: MarkedTranscript) -> list[Segment]:
    out: list[Segment] = []
    current = DEFAULT_SPEAKER
    for cue in transcript.cues:
        current = cue.marker or current
        out.append(Segment(start=cue.start, end=cue.end, text=cue.text, speaker_id=current))
    logger.info("Using speaker markers from subtitles")
    return out


def _is_turn_change(
    prev: Cue, cue: Cue, gap: float, avg_gap: float, heuristics: SpeakerHeuristics
) -> bool:
    if gap > heuristics.min_gap and gap > avg_gap * heuristics.relative_gap:
        logger.debug("Gap %.2fs at %.2fs triggers speaker switch", gap, cue.start)
        return True
    if gap > heuristics.question_gap and prev.text.endswith("?"):
        logger.debug("Question followed by %.2fs pause at %.2fs triggers switch", gap, cue.start)
        return True
    lowered = cue.text.lower()
    return any(p and p.lower() in lowered for p in heuristics.switch_phrases)


def _assign_from_timing(
    transcript: UnmarkedTranscript, heuristics: SpeakerHeuristics
) -> list[Segment]:
    cues = transcript.cues
    if not cues:
        return []

    gaps = [cur.start - prev.end for prev, cur in zip(cues, cues[1:])]
    positive = [g for g in gaps if g > 0]
    avg_gap = sum(positive) / len(positive) if positive else 0.0
    logger.info("No speaker markers found, using timing-based detection")
    logger.debug(
        "Average gap: %.2fs, max gap: %.2fs", avg_gap, max(positive, default=0.0)
    )

    first = cues[0]
    out = [Segment(start=first.start, end=first.end, text=first.text, speaker_id=DEFAULT_SPEAKER)]
    speaker = 1
    changes = [0]
    for i, (prev, cue, gap) in enumerate(zip(cues, cues[1:], gaps), 1):
        if _is_turn_change(prev, cue, gap, avg_gap, heuristics):
            speaker = 2 if speaker == 1 else 1
            changes.append(i)
        out.append(Segment(start=cue.start, end=cue.end, text=cue.text, speaker_id=f"speaker_{speaker}"))

    logger.debug("Speaker changes at segments: %s", changes)
    return out


def assign_speakers(
    blocks: list[SubtitleBlock], heuristics: SpeakerHeuristics | None = None
) -> list[Segment]:
    """Turn tokenized subtitle blocks into speaker-tagged segments."""
    transcript = classify(blocks)
    if isinstance(transcript, MarkedTranscript):
        segments = _assign_from_markers(transcript)
    else:
        segments = _assign_from_timing(transcript, heuristics or SpeakerHeuristics())

    if segments:
        logger.info("Speaker distribution: %s", dict(speaker_counts(segments)))
    return segments


def speaker_counts(segments: list[Segment]) -> Counter:
    """Count segments per speaker id."""
    return Counter(s.speaker_id for s in segments)


def segments_payload(segments: list[Segment]) -> dict:
    """Serializable form handed to the editing UI."""
    return {"segments": [s.to_dict() for s in segments]}
