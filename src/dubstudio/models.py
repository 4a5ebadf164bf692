"""
Data models for the dubbing studio toolkit.
"""

from dataclasses import dataclass, field


@dataclass
class SubtitleBlock:
    """A single SRT cue before speaker attribution."""

    start: float  # seconds
    end: float  # seconds
    text: str


@dataclass
class Segment:
    """A timed span of transcript text with an assigned speaker."""

    start: float  # seconds
    end: float  # seconds
    text: str
    speaker_id: str = "speaker_1"

    def to_dict(self) -> dict:
        return {
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "speakerId": self.speaker_id,
        }


@dataclass
class OriginalTranscript:
    """Whisper transcript of the source media."""

    segments: list[Segment]
    language: str | None = None
    text: str = ""


@dataclass
class AlignedSegment:
    """Original and translated text paired on one timeline slot."""

    id: str
    speaker_id: str
    start: float
    end: float
    original_text: str
    translated_text: str


@dataclass
class ResourceSegment:
    """A segment from the dubbing resource, already attributed to a speaker."""

    id: str
    speaker_id: str
    start: float  # seconds
    end: float  # seconds
    text: str = ""
    translated_text: str = ""


@dataclass
class Voice:
    """An ElevenLabs voice entry."""

    voice_id: str
    name: str
    category: str | None = None
    description: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    preview_url: str | None = None
    preferred: bool = False


@dataclass
class Speaker:
    """A speaker detected in a dubbing project."""

    speaker_id: str
    name: str
    color: str | None = None
    similar_voices: list[dict] = field(default_factory=list)
    voice_id: str | None = None


@dataclass
class DubbingProject:
    """Status record of a server-side dubbing job."""

    dubbing_id: str
    name: str = ""
    status: str = "dubbing"  # dubbing | dubbed | failed
    source_language: str | None = None
    target_languages: list[str] = field(default_factory=list)
    num_speakers: int | None = None
    error: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> "DubbingProject":
        return cls(
            dubbing_id=str(data.get("dubbing_id", "")),
            name=data.get("name") or "",
            status=data.get("status") or "dubbing",
            source_language=data.get("source_language"),
            target_languages=list(data.get("target_languages") or []),
            num_speakers=data.get("num_speakers"),
            error=data.get("error"),
        )


SUPPORTED_LANGUAGES = {
    "en": "English",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pl": "Polish",
}

SPEAKER_COLORS = [
    "#f472b6",  # pink
    "#60a5fa",  # blue
    "#34d399",  # green
    "#fbbf24",  # yellow
    "#a78bfa",  # purple
    "#fb7185",  # rose
    "#38bdf8",  # sky
    "#4ade80",  # emerald
]
