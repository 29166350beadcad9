"""
Command-line interface for the transcription pipeline.
"""

import argparse
import asyncio
import json
import logging
import os
import pathlib
import sys
from dataclasses import asdict

from dotenv import load_dotenv

from .config import FormatConfig, WhisperConfig
from .errors import ReelscribeError, TranscriptFileNotFound
from .formatter import FORMATS, render
from .models import BatchItem, FormattedTranscript
from .whisper import WhisperClient
from .whisper_async import AsyncWhisperClient

logger = logging.getLogger("reelscribe")

EXTENSIONS = {"text": ".txt", "markdown": ".md", "srt": ".srt", "script": ".json", "complete": ".json"}


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Transcribe audio/video and format the transcript")

    # IO
    ap.add_argument("inputs", nargs="+", help="Audio or video files")
    ap.add_argument("--format", choices=FORMATS, default="text")
    ap.add_argument(
        "--output-dir",
        default=None,
        help="Write one file per input here instead of printing to stdout",
    )

    # Whisper
    ap.add_argument("--model", default=None, help="Whisper model (default: $WHISPER_MODEL or whisper-1)")
    ap.add_argument("--language", default=None, help="Language code or 'auto'")
    ap.add_argument("--temperature", type=float, default=None)
    ap.add_argument(
        "--timestamps",
        action="store_true",
        help="Request per-segment timing (verbose_json)",
    )
    ap.add_argument("--no-probe", action="store_true", help="Do not decode audio to fill a missing duration")
    ap.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="Transcribe up to N inputs in parallel (async client when > 1)",
    )

    # Formatting
    ap.add_argument("--words-per-line", type=int, default=10)
    ap.add_argument("--sentence-secs", type=float, default=10.0, help="Cue window per sentence without timing")
    ap.add_argument("--summary-max-length", type=int, default=300)
    ap.add_argument("--no-summary", action="store_true")
    ap.add_argument("--plain-markdown", action="store_true", help="No timestamps in markdown output")

    # Logging
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    return ap.parse_args(argv)


def serialize(output) -> str:
    """Rendered output as the text written to disk/stdout."""
    if isinstance(output, str):
        return output
    if isinstance(output, FormattedTranscript):
        return json.dumps(output.to_dict(), ensure_ascii=False, indent=2)
    return json.dumps([asdict(e) for e in output], ensure_ascii=False, indent=2)


def transcribe_all(
    args: argparse.Namespace, whisper_config: WhisperConfig
) -> list[BatchItem]:
    verbose = args.timestamps
    if args.concurrency > 1 and len(args.inputs) > 1:
        client = AsyncWhisperClient(whisper_config)
        return asyncio.run(
            client.transcribe_multiple(
                args.inputs, verbose, args.language, max_concurrent=args.concurrency
            )
        )
    return WhisperClient(whisper_config).transcribe_multiple(args.inputs, verbose, args.language)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    project_root = pathlib.Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        whisper_config = WhisperConfig.from_env(
            model=args.model,
            temperature=args.temperature,
            probe_duration=False if args.no_probe else None,
        )
        format_config = FormatConfig(
            words_per_line=args.words_per_line,
            fallback_sentence_secs=args.sentence_secs,
            summary_max_length=args.summary_max_length,
            include_summary=not args.no_summary,
            markdown_timestamps=not args.plain_markdown,
        )
    except ReelscribeError as e:
        logger.error("%s", e)
        return 1

    # A single input keeps its real error; batches downgrade failures per item
    if len(args.inputs) == 1:
        path = args.inputs[0]
        try:
            result = WhisperClient(whisper_config).transcribe_file(path, args.timestamps, args.language)
        except TranscriptFileNotFound as e:
            logger.error("%s", e)
            return 2
        except ReelscribeError as e:
            logger.error("%s", e)
            return 1
        items = [BatchItem(path=path, result=result)]
    else:
        items = transcribe_all(args, whisper_config)

    failed = 0
    for item in items:
        if not item.ok:
            failed += 1
            logger.warning("Skipping output for %s (%s)", item.path, item.error)
            continue
        text = serialize(render(item.result, args.format, format_config))
        if args.output_dir:
            os.makedirs(args.output_dir, exist_ok=True)
            name = pathlib.Path(item.path).name
            out_path = os.path.join(args.output_dir, name + EXTENSIONS[args.format])
            pathlib.Path(out_path).write_text(text, encoding="utf-8")
            logger.info("Saved %s -> %s", args.format, out_path)
        else:
            if len(items) > 1:
                sys.stdout.write(f"==> {item.path} <==\n")
            sys.stdout.write(text.rstrip("\n") + "\n")

    if failed:
        logger.error("%d of %d input(s) failed", failed, len(items))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
