"""
Single forward pass over one byte source.

    bytes -> source dispatch -> payload chunks -> lines -> parse -> observe

Every stage is a lazy iterator pulled by the next one, so memory stays
bounded by one chunk plus the aggregator's fixed-size state. Stopping early
(not pulling any more) leaves nothing behind.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import BinaryIO, Iterator, Optional

from ..config import AnalysisConfig, ReaderConfig
from ..dto import AggregateSnapshot, FailureReason, ParseFailure
from ..errors import ContainerError
from ..intake.source import open_lines
from ..pipeline.aggregator import StatsAggregator
from ..pipeline.parser import parse_line
from ..ports import LineSinkPort, MessageObserverPort

logger = logging.getLogger(__name__)


def iter_messages(stream: BinaryIO, cfg: Optional[ReaderConfig] = None) -> Iterator[str]:
    """
    Lazy raw message strings from any supported source, blank lines dropped.
    """
    for line in open_lines(stream, cfg or ReaderConfig()):
        if line.strip():
            yield line


def copy_messages(stream: BinaryIO, sink: LineSinkPort, cfg: Optional[ReaderConfig] = None) -> int:
    """Forward every message line to `sink`; return how many were written."""
    n = 0
    for line in iter_messages(stream, cfg):
        sink.on_line(line)
        n += 1
    return n


def analyze_stream(
    stream: BinaryIO,
    reader_cfg: Optional[ReaderConfig] = None,
    analysis_cfg: Optional[AnalysisConfig] = None,
    *,
    observer: Optional[MessageObserverPort] = None,
    best_effort: bool = False,
) -> AggregateSnapshot:
    """
    Parse and aggregate every message of `stream`.

    Parameters
    ----------
    observer : MessageObserverPort, optional
        Where parsed events go; a fresh StatsAggregator by default.
    best_effort : bool
        On a fatal container error, return what was aggregated so far
        (flagged partial) instead of raising.

    Raises
    ------
    ContainerError
        Framing, decompression or version errors, unless best_effort.
    OSError
        The source could not be read.
    """
    reader_cfg = reader_cfg or ReaderConfig()
    obs: MessageObserverPort = observer or StatsAggregator(analysis_cfg)

    try:
        for line in open_lines(stream, reader_cfg):
            event = parse_line(line)
            if isinstance(event, ParseFailure):
                if event.reason is FailureReason.EMPTY_LINE:
                    continue
                logger.debug("Parse failure (%s): %r %s", event.reason.value, event.raw_text, event.detail or "")
            obs.observe(event)
    except ContainerError as e:
        if not best_effort:
            raise
        logger.warning("Stream aborted, returning partial results: %s", e)
        return replace(obs.snapshot(), partial=True, error=str(e))

    return obs.snapshot()
