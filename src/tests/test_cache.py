"""
Tests for the original-transcript cache.
"""

import pytest

from src.dubstudio.cache import TranscriptCache
from src.dubstudio.models import OriginalTranscript, Segment


def test_set_get_has(tmp_path):
    cache = TranscriptCache(str(tmp_path / "cache"))
    transcript = OriginalTranscript(
        segments=[Segment(start=0.0, end=1.5, text="Bonjour à tous")],
        language="french",
        text="Bonjour à tous",
    )

    assert not cache.has("dub1")
    assert cache.get("dub1") is None

    cache.set("dub1", transcript)

    assert cache.has("dub1")
    assert (tmp_path / "cache" / "dub1_original.json").exists()
    assert cache.get("dub1") == transcript


def test_unreadable_entry_is_ignored(tmp_path):
    (tmp_path / "broken_original.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "odd_original.json").write_text('{"segments": [{"text": "x"}]}', encoding="utf-8")
    cache = TranscriptCache(str(tmp_path))

    assert cache.get("broken") is None
    assert cache.get("odd") is None


def test_set_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    cache = TranscriptCache(str(blocker / "sub"))

    cache.set("dub1", OriginalTranscript(segments=[]))

    assert not cache.has("dub1")


@pytest.mark.parametrize("dubbing_id", ["../escape", "a/b", "..", ""])
def test_unsafe_ids_stay_inside_cache_dir(tmp_path, dubbing_id):
    cache = TranscriptCache(str(tmp_path / "cache"))

    cache.set(dubbing_id, OriginalTranscript(segments=[Segment(start=0.0, end=1.0, text="x")]))

    assert list(tmp_path.rglob("*.json")) == []
    assert cache.get(dubbing_id) is None
    assert not cache.has(dubbing_id)
