"""
Original-language transcription with the OpenAI Whisper API.
"""

import logging

from .models import OriginalTranscript, Segment
from .speakers import DEFAULT_SPEAKER

logger = logging.getLogger("dubstudio")

# Optional OpenAI SDK
try:
    from openai import OpenAI
except ImportError:
    OpenAI = None


def _field(obj, name: str, default=None):
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def segments_from_response(resp) -> list[Segment]:
    """Convert a verbose_json response into single-speaker segments."""
    out: list[Segment] = []
    for seg in _field(resp, "segments") or []:
        out.append(
            Segment(
                start=float(_field(seg, "start", 0.0)),
                end=float(_field(seg, "end", 0.0)),
                text=(_field(seg, "text", "") or "").strip(),
                # Whisper does no diarization
                speaker_id=DEFAULT_SPEAKER,
            )
        )
    return out


def transcribe_original(client: OpenAI, media_path: str, model: str = "whisper-1") -> OriginalTranscript:
    """Transcribe the source media with segment-level timestamps."""
    if client is None:
        raise RuntimeError("OpenAI client is not initialized (missing OPENAI_API_KEY)")

    logger.info("Transcribing original audio %s with %s...", media_path, model)
    with open(media_path, "rb") as f:
        resp = client.audio.transcriptions.create(
            model=model,
            file=f,
            response_format="verbose_json",
            timestamp_granularities=["segment"],
        )

    segments = segments_from_response(resp)
    language = _field(resp, "language")
    logger.info("Original transcription complete: %d segments (language: %s)", len(segments), language)
    return OriginalTranscript(segments=segments, language=language, text=_field(resp, "text", "") or "")
