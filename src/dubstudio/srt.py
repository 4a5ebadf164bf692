"""
SRT tokenizing, parsing and writing.
"""

import logging
import re

from .models import Segment, SubtitleBlock
from .speakers import SpeakerHeuristics, assign_speakers

logger = logging.getLogger("dubstudio")

_TIMESTAMP_RANGE_RE = re.compile(
    r"(\d{2}:\d{2}:\d{2}[,.]\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2}[,.]\d{3})"
)
_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_SPEAKER_ID_RE = re.compile(r"^speaker_(\d+)$")


def parse_timestamp(ts: str) -> float:
    """Convert ``HH:MM:SS,mmm`` (or ``HH:MM:SS.mmm``) to seconds."""
    h, m, s = ts.replace(",", ".").split(":")
    return int(h) * 3600 + int(m) * 60 + float(s)


def format_timestamp(t: float) -> str:
    """Format seconds as an SRT timestamp, rounded to the millisecond."""
    total_ms = int(round(max(0.0, t) * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02}:{m:02}:{s:02},{ms:03}"


def tokenize_srt(raw: str) -> list[SubtitleBlock]:
    """Split SRT text into timed blocks.

    Blocks with fewer than three non-empty lines, a second line that is not a
    timestamp range, or a non-positive duration are skipped.
    """
    raw = raw.replace("\r\n", "\n").strip()
    if not raw:
        return []

    out: list[SubtitleBlock] = []
    for b in _BLOCK_SPLIT_RE.split(raw):
        lines = [ln.strip() for ln in b.splitlines() if ln.strip()]
        if len(lines) < 3:
            continue
        m = _TIMESTAMP_RANGE_RE.search(lines[1])
        if not m:
            continue
        start = parse_timestamp(m.group(1))
        end = parse_timestamp(m.group(2))
        if end <= start:
            logger.debug("Dropping cue with non-positive duration: %s", lines[1])
            continue
        out.append(SubtitleBlock(start=start, end=end, text=" ".join(lines[2:])))
    return out


def parse_srt(raw: str, heuristics: SpeakerHeuristics | None = None) -> list[Segment]:
    """Parse SRT text into speaker-tagged segments, in source order."""
    blocks = tokenize_srt(raw)
    logger.debug("Tokenized %d subtitle blocks from %d chars", len(blocks), len(raw))
    return assign_speakers(blocks, heuristics)


def read_srt(path: str, heuristics: SpeakerHeuristics | None = None) -> list[Segment]:
    """Parse an SRT file into segments."""
    with open(path, encoding="utf-8") as f:
        return parse_srt(f.read(), heuristics)


def render_srt(segments: list[Segment], with_speakers: bool = False) -> str:
    """Render segments back to SRT text.

    With ``with_speakers`` each cue is prefixed with ``Speaker N:`` so that
    re-parsing reproduces the same speaker ids.
    """
    cues = []
    for i, s in enumerate(segments, 1):
        text = s.text
        if with_speakers:
            m = _SPEAKER_ID_RE.match(s.speaker_id or "")
            if m:
                text = f"Speaker {m.group(1)}: {text}"
        cues.append(f"{i}\n{format_timestamp(s.start)} --> {format_timestamp(s.end)}\n{text}\n")
    return "\n".join(cues)


def write_srt(segments: list[Segment], path: str, with_speakers: bool = False) -> None:
    """Write segments to an SRT file."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_srt(segments, with_speakers=with_speakers))
