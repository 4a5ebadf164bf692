"""
Settings read from the environment and an optional .env file.
"""

import os
import pathlib
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .cache import DEFAULT_CACHE_DIR


@dataclass
class Settings:
    elevenlabs_api_key: str | None = None
    openai_api_key: str | None = None
    cache_dir: str = DEFAULT_CACHE_DIR
    poll_interval: float = 3.0  # seconds between dubbing status checks
    preferred_voices: list[str] = field(default_factory=list)


def load_env() -> None:
    """Load .env from the project root, falling back to the current directory."""
    project_root = pathlib.Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()


def load_settings() -> Settings:
    load_env()
    voices = os.getenv("DUBSTUDIO_PREFERRED_VOICES", "")
    return Settings(
        elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        cache_dir=os.getenv("DUBSTUDIO_CACHE_DIR") or DEFAULT_CACHE_DIR,
        poll_interval=float(os.getenv("DUBSTUDIO_POLL_INTERVAL") or 3.0),
        preferred_voices=[v.strip() for v in voices.split(",") if v.strip()],
    )
