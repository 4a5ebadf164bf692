"""
Command-line interface for the dubbing studio toolkit.
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict

import httpx

from .alignment import (
    align_resource_segments,
    align_transcripts,
    borrow_source_speakers,
    build_speaker_roster,
)
from .cache import TranscriptCache
from .config import Settings, load_settings
from .elevenlabs import ElevenLabsClient
from .models import SUPPORTED_LANGUAGES
from .speakers import SpeakerHeuristics, segments_payload
from .srt import read_srt, write_srt
from .stt import OpenAI, transcribe_original

logger = logging.getLogger("dubstudio")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _add_heuristic_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--min-gap", type=float, default=0.5, help="Absolute pause (sec) needed for a turn change")
    p.add_argument(
        "--relative-gap",
        type=float,
        default=1.5,
        help="Pause must also exceed this multiple of the average gap",
    )
    p.add_argument(
        "--question-gap", type=float, default=0.2, help="Pause (sec) after a question that switches speaker"
    )
    p.add_argument(
        "--switch-phrase",
        action="append",
        default=[],
        help="Phrase that opens a new speaker turn (repeatable)",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(prog="dubstudio", description="Dubbing studio toolkit")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse a local SRT file into speaker-tagged segments")
    p.add_argument("srt_path")
    p.add_argument("--output", default=None, help="Write JSON here instead of stdout")
    p.add_argument("--emit-srt", default=None, help="Also write an SRT with speaker prefixes")
    _add_heuristic_args(p)

    p = sub.add_parser("dub", help="Upload a video and start a dubbing project")
    p.add_argument("input_video")
    p.add_argument("--target-lang", required=True, choices=sorted(SUPPORTED_LANGUAGES))
    p.add_argument("--source-lang", default="auto")
    p.add_argument("--wait", action="store_true", help="Poll until the project is dubbed")
    p.add_argument("--timeout", type=float, default=None, help="Give up polling after N seconds")
    p.add_argument(
        "--transcribe",
        action="store_true",
        help="Also transcribe the original audio with Whisper and cache it",
    )
    p.add_argument("--whisper-model", default="whisper-1")

    p = sub.add_parser("status", help="Show dubbing project status")
    p.add_argument("dubbing_id")

    p = sub.add_parser("transcript", help="Fetch and parse a dubbing transcript")
    p.add_argument("dubbing_id")
    p.add_argument("lang")
    p.add_argument("--output", default=None)
    _add_heuristic_args(p)

    p = sub.add_parser("align", help="Pair original and translated transcripts with speakers")
    p.add_argument("dubbing_id")
    p.add_argument("lang", help="Target language of the dub")
    p.add_argument("--source-lang", default=None, help="Source language (defaults to the project's)")
    p.add_argument("--output", default=None)
    _add_heuristic_args(p)

    p = sub.add_parser("audio", help="Download the dubbed audio track")
    p.add_argument("dubbing_id")
    p.add_argument("lang")
    p.add_argument("--output", default=None, help="Default: dubbed_audio_<lang>.mp3")

    p = sub.add_parser("speakers", help="List project speakers with similar voices")
    p.add_argument("dubbing_id")
    p.add_argument("--lang", default="fr")

    sub.add_parser("voices", help="List available voices")

    p = sub.add_parser("delete", help="Delete a dubbing project")
    p.add_argument("dubbing_id")

    p = sub.add_parser("transcribe", help="Transcribe original audio with Whisper")
    p.add_argument("input_media")
    p.add_argument("--dubbing-id", default=None, help="Cache the result under this project")
    p.add_argument("--whisper-model", default="whisper-1")

    return ap.parse_args(argv)


def _heuristics(args: argparse.Namespace) -> SpeakerHeuristics:
    return SpeakerHeuristics(
        min_gap=args.min_gap,
        relative_gap=args.relative_gap,
        question_gap=args.question_gap,
        switch_phrases=tuple(args.switch_phrase),
    )


def _emit(data, output: str | None) -> None:
    text = json.dumps(data, ensure_ascii=False, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info("Wrote %s", output)
    else:
        print(text)


def _openai_client(settings: Settings):
    if not OpenAI:
        raise RuntimeError("openai package not installed. Install with: pip install openai")
    if not settings.openai_api_key:
        raise RuntimeError("OPENAI_API_KEY is not set. Put it in .env or environment.")
    return OpenAI(api_key=settings.openai_api_key)


def _transcribe(args: argparse.Namespace, settings: Settings, media: str, dubbing_id: str | None) -> dict:
    transcript = transcribe_original(_openai_client(settings), media, model=args.whisper_model)
    if dubbing_id:
        TranscriptCache(settings.cache_dir).set(dubbing_id, transcript)
    return {
        "language": transcript.language,
        "text": transcript.text,
        **segments_payload(transcript.segments),
    }


def _fetch_resource(client: ElevenLabsClient, dubbing_id: str) -> tuple[list, list]:
    try:
        return client.get_resource(dubbing_id)
    except (RuntimeError, httpx.HTTPError, ValueError) as e:
        logger.info("Dubbing resource not available for %s: %s", dubbing_id, e)
        return [], []


def _align(args: argparse.Namespace, settings: Settings, client: ElevenLabsClient) -> dict:
    cached = TranscriptCache(settings.cache_dir).get(args.dubbing_id)
    original = cached.segments if cached else []
    if not original:
        logger.info("No cached original transcription for %s", args.dubbing_id)

    speakers, resource_segments = _fetch_resource(client, args.dubbing_id)
    if resource_segments:
        logger.info("Using segments from dubbing resource")
        rows = align_resource_segments(resource_segments, original)
        return {
            "speakers": [asdict(s) for s in speakers or build_speaker_roster(rows)],
            "segments": [asdict(r) for r in rows],
        }

    logger.info("Falling back to SRT transcript")
    heuristics = _heuristics(args)
    translated = client.get_transcript(args.dubbing_id, args.lang, heuristics)

    source_lang = args.source_lang or client.get_dubbing(args.dubbing_id).source_language
    if source_lang and source_lang != args.lang:
        source = client.get_transcript(args.dubbing_id, source_lang, heuristics)
        translated = borrow_source_speakers(translated, source)

    rows = align_transcripts(original, translated)
    return {
        "speakers": [asdict(s) for s in build_speaker_roster(rows)],
        "segments": [asdict(r) for r in rows],
    }


def run(args: argparse.Namespace, settings: Settings) -> None:
    if args.command == "parse":
        segments = read_srt(args.srt_path, _heuristics(args))
        if args.emit_srt:
            write_srt(segments, args.emit_srt, with_speakers=True)
        _emit(segments_payload(segments), args.output)
        return

    if args.command == "transcribe":
        _emit(_transcribe(args, settings, args.input_media, args.dubbing_id), None)
        return

    with ElevenLabsClient(settings.elevenlabs_api_key) as client:
        if args.command == "dub":
            project = client.create_dubbing(args.input_video, args.target_lang, args.source_lang)
            if args.transcribe:
                try:
                    _transcribe(args, settings, args.input_video, project.dubbing_id)
                except (RuntimeError, OSError) as e:
                    # non-fatal, align works without it
                    logger.error("Original transcription failed: %s", e)
            if args.wait:
                project = client.wait_for_dubbing(
                    project.dubbing_id, poll_interval=settings.poll_interval, timeout=args.timeout
                )
            _emit(asdict(project), None)
        elif args.command == "status":
            _emit(asdict(client.get_dubbing(args.dubbing_id)), None)
        elif args.command == "transcript":
            segments = client.get_transcript(args.dubbing_id, args.lang, _heuristics(args))
            _emit(segments_payload(segments), args.output)
        elif args.command == "align":
            _emit(_align(args, settings, client), args.output)
        elif args.command == "audio":
            out = args.output or f"dubbed_audio_{args.lang}.mp3"
            logger.info("Saved %s", client.download_audio(args.dubbing_id, args.lang, out))
        elif args.command == "speakers":
            _emit([asdict(s) for s in client.list_speakers(args.dubbing_id, args.lang)], None)
        elif args.command == "voices":
            _emit([asdict(v) for v in client.list_voices(settings.preferred_voices)], None)
        elif args.command == "delete":
            client.delete_dubbing(args.dubbing_id)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    settings = load_settings()
    try:
        run(args, settings)
    except (RuntimeError, TimeoutError, OSError, ValueError, httpx.HTTPError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
