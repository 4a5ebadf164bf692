"""
Tests for the command-line interface (offline commands only).
"""

import json

import httpx
import pytest

from src.dubstudio import cli
from src.dubstudio.cache import TranscriptCache
from src.dubstudio.cli import main, parse_args
from src.dubstudio.elevenlabs import ElevenLabsClient
from src.dubstudio.models import OriginalTranscript, Segment

SRT = (
    "1\n00:00:00,000 --> 00:00:02,000\nHello there.\n\n"
    "2\n00:00:02,100 --> 00:00:04,000\nHow are you?\n\n"
    "3\n00:00:06,500 --> 00:00:08,000\nI'm fine, thanks!\n"
)


def test_parse_command_writes_json_and_srt(tmp_path):
    srt_path = tmp_path / "in.srt"
    srt_path.write_text(SRT, encoding="utf-8")
    out_json = tmp_path / "out.json"
    out_srt = tmp_path / "tagged.srt"

    rc = main(["parse", str(srt_path), "--output", str(out_json), "--emit-srt", str(out_srt)])

    assert rc == 0
    data = json.loads(out_json.read_text(encoding="utf-8"))
    assert [s["speakerId"] for s in data["segments"]] == ["speaker_1", "speaker_1", "speaker_2"]
    assert "Speaker 2: I'm fine, thanks!" in out_srt.read_text(encoding="utf-8")


def test_parse_command_stdout(tmp_path, capsys):
    srt_path = tmp_path / "in.srt"
    srt_path.write_text("", encoding="utf-8")

    assert main(["parse", str(srt_path)]) == 0

    assert json.loads(capsys.readouterr().out) == {"segments": []}


def test_missing_file_exits_nonzero(tmp_path):
    assert main(["parse", str(tmp_path / "nope.srt")]) == 1


def test_heuristic_flags():
    args = parse_args(["parse", "x.srt", "--min-gap", "1.0", "--switch-phrase", "a", "--switch-phrase", "b"])

    assert args.min_gap == 1.0
    assert args.switch_phrase == ["a", "b"]


@pytest.fixture
def api(tmp_path, monkeypatch):
    """Route the CLI's client through a mock transport; set ``api.handler``."""
    monkeypatch.setenv("ELEVENLABS_API_KEY", "test-key")
    monkeypatch.setenv("DUBSTUDIO_CACHE_DIR", str(tmp_path / "cache"))

    class Api:
        handler = None

    def factory(api_key):
        return ElevenLabsClient(api_key, transport=httpx.MockTransport(lambda r: Api.handler(r)))

    monkeypatch.setattr(cli, "ElevenLabsClient", factory)
    return Api


def test_align_prefers_resource_segments(tmp_path, api):
    TranscriptCache(str(tmp_path / "cache")).set(
        "dub1", OriginalTranscript(segments=[Segment(start=0.2, end=1.0, text="Hello")])
    )
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path == "/v1/dubbing/resource/dub1":
            return httpx.Response(
                200,
                json={
                    "speakers": [
                        {
                            "id": "spk_a",
                            "name": "Host",
                            "segments": [{"id": "r1", "start": 0.0, "end": 1.0, "translated_text": "Bonjour"}],
                        }
                    ]
                },
            )
        return httpx.Response(500)

    api.handler = handler
    out = tmp_path / "aligned.json"

    assert main(["align", "dub1", "fr", "--output", str(out)]) == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert [s["name"] for s in data["speakers"]] == ["Host"]
    assert [(s["id"], s["speaker_id"], s["original_text"], s["translated_text"]) for s in data["segments"]] == [
        ("r1", "spk_a", "Hello", "Bonjour")
    ]
    assert paths == ["/v1/dubbing/resource/dub1"]


@pytest.mark.parametrize("status, body", [(404, {"detail": "not found"}), (200, {})])
def test_align_falls_back_to_srt(tmp_path, api, status, body):
    def handler(request):
        if request.url.path == "/v1/dubbing/resource/dub1":
            return httpx.Response(status, json=body)
        assert request.url.path == "/v1/dubbing/dub1/transcript/fr"
        return httpx.Response(200, text="1\n00:00:00,000 --> 00:00:01,000\nS2: Salut\n")

    api.handler = handler
    out = tmp_path / "aligned.json"

    assert main(["align", "dub1", "fr", "--source-lang", "fr", "--output", str(out)]) == 0

    data = json.loads(out.read_text(encoding="utf-8"))
    assert [(s["speaker_id"], s["translated_text"]) for s in data["segments"]] == [("speaker_2", "Salut")]


def test_non_json_response_exits_nonzero(api):
    api.handler = lambda request: httpx.Response(200, text="<html>maintenance</html>")

    assert main(["status", "dub1"]) == 1
