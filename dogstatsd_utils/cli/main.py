"""
Command-line entry points.

    dsd-cat     [INPUT] [-o OUTPUT]
    dsd-analyze [INPUT] [-o OUTPUT] [--format text|json] [--best-effort] [--progress]

INPUT may be raw DogStatsD text, a replay container or a pcap, optionally
zstd-compressed; stdin when omitted or '-'. Exit status is 0 on success,
1 on a fatal read/decode error and 2 on bad arguments.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from contextlib import contextmanager
from typing import BinaryIO, Generator, List, Optional

from pydantic import ValidationError
from tqdm import tqdm

from ..config import AnalysisConfig, ReaderConfig
from ..errors import DsdError
from ..orchestration.runner import analyze_stream, copy_messages
from ..reporting.renderer import render_report, snapshot_to_dict
from .settings import Settings
from .utils import init_logging, open_input, open_output

EXIT_OK = 0
EXIT_FATAL = 1

# Errors that end a run without a report.
_FATAL = (DsdError, OSError, UnicodeDecodeError)


class _StreamSink:
    """LineSinkPort writing one message per line to a text stream."""

    def __init__(self, out) -> None:
        self._out = out

    def on_line(self, line: str) -> None:
        self._out.write(line)
        self._out.write("\n")


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("input", nargs="?", default=None, help="File containing dogstatsd data (default: stdin)")
    parser.add_argument("-o", "--output", default=None, help="Where output should go (default: stdout)")
    parser.add_argument("--log-level", default=None, help="Override DSD_LOG_LEVEL")
    parser.add_argument(
        "--no-decompress", action="store_true", help="Treat zstd-compressed input as opaque text"
    )


def _reader_config(args: argparse.Namespace) -> ReaderConfig:
    return ReaderConfig(allow_compression=not args.no_decompress)


def _setup_logging(args: argparse.Namespace) -> logging.Logger:
    return init_logging(args.log_level or Settings.LOG_LEVEL, Settings.LOG_FILE or None)


# --------------------------------- dsd-cat ---------------------------------


def build_cat_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsd-cat",
        description="Write the messages of a dogstatsd capture (text, replay or pcap; optionally zstd) one per line.",
    )
    _add_common(parser)
    return parser


def cat_main(argv: Optional[List[str]] = None) -> int:
    args = build_cat_parser().parse_args(argv)
    logger = _setup_logging(args)
    cfg = _reader_config(args)

    try:
        with open_input(args.input) as src, open_output(args.output) as out:
            n = copy_messages(src, _StreamSink(out), cfg)
    except _FATAL as e:
        logger.error("dsd-cat failed: %s", e)
        return EXIT_FATAL

    logger.info("Wrote %d messages", n)
    return EXIT_OK


# ------------------------------- dsd-analyze -------------------------------


def _parse_quantiles(raw: str) -> tuple:
    try:
        return tuple(float(q) for q in raw.split(",") if q.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quantile list: {raw!r}") from None


def build_analyze_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dsd-analyze",
        description="Summarize the structure of dogstatsd traffic with bounded memory.",
    )
    _add_common(parser)
    parser.add_argument("--format", choices=("text", "json"), default="text", help="Report format")
    parser.add_argument(
        "--best-effort",
        action="store_true",
        help="On a fatal decode error, still report what was read (marked partial)",
    )
    parser.add_argument("--progress", action="store_true", help="Show a byte progress bar on stderr")
    parser.add_argument("--relative-accuracy", type=float, default=0.01, help="Sketch relative error bound")
    parser.add_argument(
        "--quantiles", type=_parse_quantiles, default=(0.5, 0.9, 0.99), help="Comma-separated quantiles"
    )
    return parser


@contextmanager
def _with_progress(src: BinaryIO, path: Optional[str], enabled: bool) -> Generator[BinaryIO, None, None]:
    if not enabled:
        yield src
        return
    total = os.path.getsize(path) if path and path != "-" else None
    with tqdm.wrapattr(src, "read", total=total, desc="reading", file=sys.stderr) as wrapped:
        yield wrapped  # type: ignore[misc]


def analyze_main(argv: Optional[List[str]] = None) -> int:
    parser = build_analyze_parser()
    args = parser.parse_args(argv)
    logger = _setup_logging(args)

    try:
        analysis_cfg = AnalysisConfig(relative_accuracy=args.relative_accuracy, quantiles=args.quantiles)
    except ValidationError as e:
        parser.error(str(e))

    try:
        with open_input(args.input) as raw, _with_progress(raw, args.input, args.progress) as src:
            snapshot = analyze_stream(
                src, _reader_config(args), analysis_cfg, best_effort=args.best_effort
            )
    except _FATAL as e:
        logger.error("dsd-analyze failed: %s", e)
        return EXIT_FATAL

    try:
        with open_output(args.output) as out:
            if args.format == "json":
                json.dump(snapshot_to_dict(snapshot, analysis_cfg.quantiles), out, indent=2, allow_nan=False)
                out.write("\n")
            else:
                out.write(render_report(snapshot, analysis_cfg.quantiles))
    except OSError as e:
        logger.error("dsd-analyze could not write report: %s", e)
        return EXIT_FATAL

    # a partial report is still a failed run
    return EXIT_FATAL if snapshot.partial else EXIT_OK


if __name__ == "__main__":
    sys.exit(analyze_main())
