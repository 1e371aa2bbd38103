"""Command-line interface for the Thai subtitle segmenter.

WHY: Users need a simple way to segment a subtitle file from the
terminal and inspect or ship the result. The CLI wires together subtitle
extraction, engine warm-up (collocation mining and optional AI hints),
per-line segmentation and formatter output behind a single command.

HOW: Uses argparse for the input file, video id, formats, output
directory, dictionary and cache file. Runs the async pipeline via
asyncio.run(). Status messages go to stderr; output files are saved next
to the source (or to --output-dir).

RULES:
- Positional argument: subtitle file path (SRT, VTT or plain text)
- --video-id defaults to the input file stem
- --formats: comma-separated formatter keys (default: all registered)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-segmented-2.txt)
- --cache-file persists merges between runs (JsonFileTtlStore)
- AI hints run only when a provider key is configured and --no-ai is absent
- Status output goes to stderr (not stdout)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import AbstractSet, List, Optional

from thai_segmenter.cache.store import InMemoryTtlStore, JsonFileTtlStore, TtlStore
from thai_segmenter.config import CACHE_PATH, DICTIONARY_PATH, load_config
from thai_segmenter.core.dictionary import load_phrase_set, pythainlp_phrase_set
from thai_segmenter.core.ir import SegmentedDocument
from thai_segmenter.core.subtitles import read_subtitle_lines
from thai_segmenter.core.tokenizer import WordSplitter
from thai_segmenter.engine import ThaiSegmenterEngine
from thai_segmenter.formatters import FORMATTERS
from thai_segmenter.formatters.base import FormatterOutput
from thai_segmenter.hints.base import AiHintProvider
from thai_segmenter.hints.openrouter import OpenRouterHintProvider


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. episode1-segmented.txt)
    - Conflict: counter inserted before the extension
      (e.g. episode1-segmented-2.txt), starting at 2
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _load_dictionary(path_arg: Optional[str]) -> AbstractSet[str]:
    """Dictionary from --dictionary, THAI_SEG_DICTIONARY_PATH, or PyThaiNLP's word list."""
    path = path_arg or DICTIONARY_PATH
    if path:
        return load_phrase_set(path)
    return pythainlp_phrase_set()


def _build_store(path_arg: Optional[str]) -> TtlStore:
    path = path_arg or CACHE_PATH
    if path:
        return JsonFileTtlStore(path)
    return InMemoryTtlStore()


def _build_provider(enabled: bool) -> Optional[AiHintProvider]:
    if not enabled:
        return None
    try:
        return OpenRouterHintProvider()
    except ValueError as e:
        _status("AI hints disabled: {}".format(e))
        return None


async def _run_pipeline(
    args: argparse.Namespace,
    word_splitter: Optional[WordSplitter] = None,
) -> List[Path]:
    """Segment one subtitle file and save the selected outputs.

    RULES:
    - Validate input, output directory and formats before any work
    - Warm-up runs before segmentation so mined merges apply to every line
    - Background cache writes are drained before returning
    - Returns the saved paths
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        print("Error: File not found: {}".format(input_path), file=sys.stderr)
        sys.exit(1)

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        print("Error: Output directory does not exist: {}".format(output_dir), file=sys.stderr)
        sys.exit(1)

    if args.formats:
        format_keys = [f.strip() for f in args.formats.split(",") if f.strip()]
        unknown = [k for k in format_keys if k not in FORMATTERS]
        if unknown:
            print(
                "Error: Unknown format(s): {}. Available: {}".format(
                    ", ".join(unknown), ", ".join(sorted(FORMATTERS))
                ),
                file=sys.stderr,
            )
            sys.exit(1)
    else:
        format_keys = list(FORMATTERS.keys())

    try:
        config = load_config()
        if args.no_ai:
            config.enable_ai_hints = False
        dictionary = _load_dictionary(args.dictionary)
    except (ValueError, FileNotFoundError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    stem = input_path.stem
    video_id = args.video_id or stem

    engine = ThaiSegmenterEngine(
        config=config,
        dictionary=dictionary,
        word_splitter=word_splitter,
        store=_build_store(args.cache_file),
        hint_provider=_build_provider(config.enable_ai_hints),
    )

    lines = read_subtitle_lines(input_path)
    _status("Read {} subtitle line(s) from {}".format(len(lines), input_path.name))

    merges = await engine.warm_up_for_video(video_id, lines)
    _status("Warm-up: {} merge phrase(s) for video '{}'".format(len(merges), video_id))

    document = SegmentedDocument(video_id=video_id, lines=engine.segment_lines(lines, video_id))
    await engine.drain()

    saved_files: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        _status("  Running {} formatter...".format(formatter.name))
        for output in formatter.format(document):
            saved_path = _save_output(output, stem, output_dir)
            saved_files.append(saved_path)
            _status("  Saved: {}".format(saved_path.name))

    _status("Done! Saved {} file(s) to {}".format(len(saved_files), output_dir))
    return saved_files


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="thai-segmenter",
        description="Segment Thai subtitles into words and phrases using per-video "
                    "collocation mining and optional AI merge hints.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the subtitle file (SRT, VTT or one line per cue).",
    )

    parser.add_argument(
        "--video-id",
        default=None,
        help="Cache key for this video (default: the input file stem).",
    )

    parser.add_argument(
        "--formats",
        default=None,
        help="Comma-separated list of output formats. "
             "Available: {}. Default: all.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: same as input file).",
    )

    parser.add_argument(
        "--dictionary",
        default=None,
        help="Phrase list file (one phrase per line). Default: PyThaiNLP word list.",
    )

    parser.add_argument(
        "--cache-file",
        default=None,
        help="JSON file that persists mined merges between runs.",
    )

    parser.add_argument(
        "--no-ai",
        action="store_true",
        help="Do not request AI merge hints even if a provider key is configured.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(_run_pipeline(args))


if __name__ == "__main__":
    main()
