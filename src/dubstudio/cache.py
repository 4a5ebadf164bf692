"""
File-based cache of original-language transcriptions, keyed by dubbing id.
"""

import json
import logging
import tempfile
from pathlib import Path

from .models import OriginalTranscript, Segment

logger = logging.getLogger("dubstudio")

DEFAULT_CACHE_DIR = str(Path(tempfile.gettempdir()) / "dubbing-transcriptions")


def transcript_to_dict(transcript: OriginalTranscript) -> dict:
    return {
        "segments": [s.to_dict() for s in transcript.segments],
        "language": transcript.language,
        "text": transcript.text,
    }


def transcript_from_dict(data: dict) -> OriginalTranscript:
    segments = [
        Segment(
            start=float(s["start"]),
            end=float(s["end"]),
            text=s.get("text", ""),
            speaker_id=s.get("speakerId") or "speaker_1",
        )
        for s in data.get("segments", [])
    ]
    return OriginalTranscript(segments=segments, language=data.get("language"), text=data.get("text") or "")


class TranscriptCache:
    """Best-effort JSON cache: failures are logged, never raised."""

    def __init__(self, cache_dir: str = DEFAULT_CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    def _path(self, dubbing_id: str) -> Path | None:
        # ids are single path components, never "..", "/" or "\\"
        if not dubbing_id or dubbing_id in (".", "..") or "/" in dubbing_id or "\\" in dubbing_id:
            logger.warning("Rejecting unsafe dubbing id %r", dubbing_id)
            return None
        return self.cache_dir / f"{dubbing_id}_original.json"

    def set(self, dubbing_id: str, transcript: OriginalTranscript) -> None:
        path = self._path(dubbing_id)
        if path is None:
            return
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(transcript_to_dict(transcript), ensure_ascii=False), encoding="utf-8"
            )
            logger.info("Cached original transcription for %s at %s", dubbing_id, path)
        except OSError as e:
            logger.warning("Failed to cache transcription for %s: %s", dubbing_id, e)

    def get(self, dubbing_id: str) -> OriginalTranscript | None:
        path = self._path(dubbing_id)
        if path is None:
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", path, e)
            return None
        try:
            return transcript_from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed cache entry %s: %s", path, e)
            return None

    def has(self, dubbing_id: str) -> bool:
        path = self._path(dubbing_id)
        return path is not None and path.exists()
