"""
ElevenLabs dubbing and voices API client.
"""

import logging
import tempfile
import time
from pathlib import Path

import httpx
from pydub import AudioSegment

from .models import SPEAKER_COLORS, DubbingProject, ResourceSegment, Segment, Speaker, Voice
from .speakers import SpeakerHeuristics
from .srt import parse_srt

logger = logging.getLogger("dubstudio")

ELEVENLABS_API_URL = "https://api.elevenlabs.io/v1"
USER_AGENT = "dubstudio/0.1"

# Transcript not produced yet
NOT_READY_STATUSES = (404, 425)


class DubbingAPIError(RuntimeError):
    """Non-success response from the dubbing API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DubbingFailedError(RuntimeError):
    """The dubbing project finished with status 'failed'."""


def _error_message(r: httpx.Response, fallback: str) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:300] or fallback
    detail = data.get("detail") if isinstance(data, dict) else None
    if isinstance(detail, dict):
        return detail.get("message") or fallback
    if isinstance(detail, str):
        return detail
    return fallback


class ElevenLabsClient:
    """Synchronous client for the subset of the API the studio needs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = ELEVENLABS_API_URL,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise RuntimeError("ELEVENLABS_API_KEY is not set.")
        self._client = httpx.Client(
            base_url=base_url,
            headers={"xi-api-key": api_key, "User-Agent": USER_AGENT},
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ElevenLabsClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check(self, r: httpx.Response, what: str) -> None:
        if r.is_success:
            return
        msg = _error_message(r, f"Failed to {what}")
        logger.error("ElevenLabs %s failed (%d): %s", what, r.status_code, msg)
        raise DubbingAPIError(msg, status_code=r.status_code)

    # Dubbing projects

    def create_dubbing(
        self, media_path: str, target_lang: str, source_lang: str = "auto"
    ) -> DubbingProject:
        """Upload a video and start a dubbing project with speaker auto-detection."""
        logger.info("Creating dubbing project for %s, target: %s", media_path, target_lang)
        with open(media_path, "rb") as f:
            r = self._client.post(
                "/dubbing",
                files={"file": (Path(media_path).name, f)},
                data={
                    "target_lang": target_lang,
                    "source_lang": source_lang,
                    "num_speakers": "0",
                    "watermark": "false",
                },
            )
        self._check(r, "create dubbing project")
        data = r.json()
        logger.info("Dubbing project created: %s", data.get("dubbing_id"))
        return DubbingProject.from_json(data)

    def get_dubbing(self, dubbing_id: str) -> DubbingProject:
        r = self._client.get(f"/dubbing/{dubbing_id}")
        self._check(r, "get dubbing project")
        project = DubbingProject.from_json(r.json())
        logger.debug(
            "Dubbing %s: status=%s source=%s targets=%s",
            project.dubbing_id,
            project.status,
            project.source_language,
            project.target_languages,
        )
        return project

    def wait_for_dubbing(
        self, dubbing_id: str, poll_interval: float = 3.0, timeout: float | None = None
    ) -> DubbingProject:
        """Poll until the project is dubbed; raise if it fails or ``timeout`` passes."""
        deadline = time.monotonic() + timeout if timeout is not None else None
        while True:
            project = self.get_dubbing(dubbing_id)
            if project.status == "dubbed":
                logger.info("Dubbing %s complete", dubbing_id)
                return project
            if project.status == "failed":
                raise DubbingFailedError(project.error or "Dubbing failed")
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError(f"Dubbing {dubbing_id} still '{project.status}' after {timeout}s")
            time.sleep(poll_interval)

    def delete_dubbing(self, dubbing_id: str) -> None:
        r = self._client.delete(f"/dubbing/{dubbing_id}")
        self._check(r, "delete dubbing project")
        logger.info("Deleted dubbing project %s", dubbing_id)

    # Transcripts and audio

    def get_transcript_srt(self, dubbing_id: str, lang: str) -> str:
        """Fetch the transcript as SRT text; empty when it is not ready yet."""
        r = self._client.get(
            f"/dubbing/{dubbing_id}/transcript/{lang}", params={"format_type": "srt"}
        )
        if r.status_code in NOT_READY_STATUSES:
            logger.info("Transcript %s/%s not available (%d)", dubbing_id, lang, r.status_code)
            return ""
        self._check(r, "get transcript")
        return r.text

    def get_transcript(
        self, dubbing_id: str, lang: str, heuristics: SpeakerHeuristics | None = None
    ) -> list[Segment]:
        segments = parse_srt(self.get_transcript_srt(dubbing_id, lang), heuristics)
        logger.info("Parsed %d segments for language %s", len(segments), lang)
        return segments

    def download_audio(self, dubbing_id: str, lang: str, out_path: str) -> str:
        """Save the dubbed track; ``.wav`` targets are converted from mp3."""
        r = self._client.get(
            f"/dubbing/{dubbing_id}/audio/{lang}", headers={"accept": "audio/mpeg"}
        )
        self._check(r, "get dubbed audio")
        logger.info("Dubbed audio for %s: %d bytes", lang, len(r.content))

        if not out_path.endswith(".wav"):
            Path(out_path).write_bytes(r.content)
            return out_path

        with tempfile.NamedTemporaryFile(suffix=".mp3", delete=False) as f:
            f.write(r.content)
            tmp_mp3 = f.name
        try:
            clip = AudioSegment.from_file(tmp_mp3, format="mp3")
            clip.export(out_path, format="wav")
        finally:
            try:
                Path(tmp_mp3).unlink()
            except OSError:
                pass
        return out_path

    # Voices and speakers

    def list_voices(self, preferred_ids: tuple[str, ...] | list[str] = ()) -> list[Voice]:
        """All available voices, ``preferred_ids`` first, otherwise in API order."""
        r = self._client.get("/voices", headers={"accept": "application/json"})
        self._check(r, "get voices")
        preferred = set(preferred_ids)
        voices = [
            Voice(
                voice_id=v["voice_id"],
                name=v.get("name") or v["voice_id"],
                category=v.get("category"),
                description=v.get("description"),
                labels=v.get("labels") or {},
                preview_url=v.get("preview_url"),
                preferred=v["voice_id"] in preferred,
            )
            for v in r.json().get("voices") or []
        ]
        logger.debug("Fetched %d voices (%d preferred)", len(voices), sum(v.preferred for v in voices))
        return sorted(voices, key=lambda v: not v.preferred)

    def _similar_voices(self, dubbing_id: str, lang: str, n: int) -> list[dict]:
        try:
            r = self._client.get(
                f"/dubbing/{dubbing_id}/resource/{lang}/speaker/{n}/similar_voices"
            )
            if not r.is_success:
                logger.debug("No similar voices for speaker %d (%d)", n, r.status_code)
                return []
            return r.json().get("similar_voices") or []
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Could not get similar voices for speaker %d: %s", n, e)
            return []

    def list_speakers(self, dubbing_id: str, lang: str) -> list[Speaker]:
        """Speakers of a project with voice suggestions for ``lang``."""
        project = self.get_dubbing(dubbing_id)
        count = project.num_speakers or 2
        return [
            Speaker(
                speaker_id=f"speaker_{i}",
                name=f"Speaker {i}",
                color=SPEAKER_COLORS[(i - 1) % len(SPEAKER_COLORS)],
                similar_voices=self._similar_voices(dubbing_id, lang, i),
            )
            for i in range(1, count + 1)
        ]

    # Dubbing resource

    def get_resource(self, dubbing_id: str) -> tuple[list[Speaker], list[ResourceSegment]]:
        """Speakers and speaker-attributed segments from the dubbing resource."""
        r = self._client.get(
            f"/dubbing/resource/{dubbing_id}", headers={"accept": "application/json"}
        )
        self._check(r, "get dubbing resource")
        speakers, segments = extract_resource(r.json())
        logger.info(
            "Extracted %d speakers and %d segments from resource %s",
            len(speakers),
            len(segments),
            dubbing_id,
        )
        return speakers, segments


def _first(d: dict, *keys: str) -> str:
    for k in keys:
        if d.get(k):
            return str(d[k])
    return ""


def _seconds(d: dict, keys: tuple[str, ...], ms_key: str | None = None) -> float:
    for k in keys:
        if d.get(k):
            return float(d[k])
    if ms_key and d.get(ms_key):
        return float(d[ms_key]) / 1000.0
    return 0.0


def _resource_segment(seg: dict, speaker_id: str, index: int, track: bool = False) -> ResourceSegment:
    if track:
        start, end = _seconds(seg, ("start", "start_time")), _seconds(seg, ("end", "end_time"))
    else:
        start = _seconds(seg, ("start_time", "start"), "start_ms")
        end = _seconds(seg, ("end_time", "end"), "end_ms")
    return ResourceSegment(
        id=_first(seg, "id") or f"seg_{index}",
        speaker_id=speaker_id,
        start=start,
        end=end,
        text=_first(seg, "text", "transcription", "original_text"),
        translated_text=_first(seg, "translated_text", "translation", "dubbed_text"),
    )


def extract_resource(data: dict) -> tuple[list[Speaker], list[ResourceSegment]]:
    """Collect speakers and segments from every layout the resource may use.

    Handles a ``speaker_segments`` map, a ``speakers`` array, a flat
    ``segments`` array and voice/speaker ``tracks``. Segments come back
    sorted by start time.
    """
    speakers: list[Speaker] = []
    segments: list[ResourceSegment] = []

    def add_speaker(sid: str, name: str, voice_id: str | None = None) -> None:
        speakers.append(
            Speaker(
                speaker_id=sid,
                name=name or f"Speaker {len(speakers) + 1}",
                color=SPEAKER_COLORS[len(speakers) % len(SPEAKER_COLORS)],
                voice_id=voice_id,
            )
        )

    speaker_segments = data.get("speaker_segments")
    if isinstance(speaker_segments, dict):
        for sid, info in speaker_segments.items():
            info = info or {}
            add_speaker(sid, _first(info, "name", "speaker_name"), info.get("voice_id"))
            for seg in info.get("segments") or []:
                segments.append(_resource_segment(seg, sid, len(segments)))

    if isinstance(data.get("speakers"), list):
        for sp in data["speakers"]:
            sid = _first(sp, "id", "speaker_id") or f"speaker_{len(speakers)}"
            add_speaker(sid, _first(sp, "name", "label"), sp.get("voice_id"))
            for seg in sp.get("segments") or []:
                segments.append(_resource_segment(seg, sid, len(segments)))

    if isinstance(data.get("segments"), list):
        for seg in data["segments"]:
            sid = _first(seg, "speaker_id", "speaker") or "speaker_1"
            if not any(s.speaker_id == sid for s in speakers):
                add_speaker(sid, "")
            segments.append(_resource_segment(seg, sid, len(segments)))

    if isinstance(data.get("tracks"), list):
        for track in data["tracks"]:
            if track.get("type") not in ("voice", "speaker"):
                continue
            sid = _first(track, "id", "speaker_id") or f"speaker_{len(speakers)}"
            add_speaker(sid, _first(track, "name", "label"), track.get("voice_id"))
            for seg in track.get("segments") or []:
                segments.append(_resource_segment(seg, sid, len(segments), track=True))

    segments.sort(key=lambda s: s.start)
    return speakers, segments
