"""
Pairing original and translated transcripts for the editing view.
"""

import logging
from dataclasses import replace

from .models import SPEAKER_COLORS, AlignedSegment, ResourceSegment, Segment, Speaker
from .speakers import DEFAULT_SPEAKER, speaker_counts

logger = logging.getLogger("dubstudio")

# Max start-time distance (sec) for matching segments when indices disagree
MATCH_WINDOW = 2.0


def sort_segments(segments: list[Segment]) -> list[Segment]:
    """Stable sort by start time, for callers merging several transcripts."""
    return sorted(segments, key=lambda s: s.start)


def borrow_source_speakers(translated: list[Segment], source: list[Segment]) -> list[Segment]:
    """Copy speaker ids from the source-language transcript by index.

    Only applies when the source transcript distinguishes several speakers and
    the translated one does not; otherwise ``translated`` is returned as is.
    """
    if len(speaker_counts(source)) <= 1 or len(speaker_counts(translated)) > 1:
        return translated

    logger.info("Using speaker assignments from source language transcript")
    out = []
    for i, seg in enumerate(translated):
        if i < len(source):
            seg = replace(seg, speaker_id=source[i].speaker_id)
        out.append(seg)
    return out


def _find_partner(seg: Segment, index: int, others: list[Segment]) -> Segment | None:
    if index < len(others):
        return others[index]
    for o in others:
        if abs(o.start - seg.start) < MATCH_WINDOW:
            return o
    return None


def align_transcripts(original: list[Segment], translated: list[Segment]) -> list[AlignedSegment]:
    """Build one row per segment of the longer transcript.

    The translated transcript wins ties. Each row takes its partner from the
    other transcript at the same index, or the first one starting within
    ``MATCH_WINDOW`` seconds. A side with no text shows the other side's text.
    """
    base_is_translated = len(translated) >= len(original)
    base, others = (translated, original) if base_is_translated else (original, translated)
    logger.debug("Aligning on %s transcript", "translated" if base_is_translated else "original")

    rows: list[AlignedSegment] = []
    for i, seg in enumerate(base):
        partner = _find_partner(seg, i, others)
        partner_text = partner.text if partner else ""
        if base_is_translated:
            orig_text, trans_text = partner_text, seg.text
        else:
            orig_text, trans_text = seg.text, partner_text
        rows.append(
            AlignedSegment(
                id=f"seg_{i}",
                speaker_id=seg.speaker_id or DEFAULT_SPEAKER,
                start=seg.start,
                end=seg.end,
                original_text=orig_text or trans_text,
                translated_text=trans_text or orig_text,
            )
        )
    return rows


def align_resource_segments(
    segments: list[ResourceSegment], original: list[Segment]
) -> list[AlignedSegment]:
    """Rows from speaker-attributed resource segments.

    Original text comes from the first original segment starting within
    ``MATCH_WINDOW`` seconds, else from the resource itself.
    """
    rows: list[AlignedSegment] = []
    for i, seg in enumerate(segments):
        match = next((o for o in original if abs(o.start - seg.start) < MATCH_WINDOW), None)
        rows.append(
            AlignedSegment(
                id=seg.id or f"seg_{i}",
                speaker_id=seg.speaker_id or DEFAULT_SPEAKER,
                start=seg.start,
                end=seg.end,
                original_text=(match.text if match else "") or seg.text,
                translated_text=seg.translated_text or seg.text,
            )
        )
    return rows


def build_speaker_roster(segments) -> list[Speaker]:
    """Speakers in order of first appearance with display names and colors.

    Accepts ``Segment`` or ``AlignedSegment`` items.
    """
    roster: dict[str, Speaker] = {}
    for seg in segments:
        sid = seg.speaker_id or DEFAULT_SPEAKER
        if sid not in roster:
            n = len(roster)
            roster[sid] = Speaker(
                speaker_id=sid,
                name=f"Speaker {n + 1}",
                color=SPEAKER_COLORS[n % len(SPEAKER_COLORS)],
            )
    return list(roster.values())
