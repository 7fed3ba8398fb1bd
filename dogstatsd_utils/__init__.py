"""
dogstatsd_utils: decode DogStatsD captures and summarize their structure.

Public API (stable):
- ReaderConfig, AnalysisConfig   (configuration)
- iter_messages, analyze_stream  (one forward pass over a byte source)
- open_lines, open_payloads      (source dispatch + line extraction)
- iter_frames, encode_replay     (replay container decode / encode)
- parse_line                     (structural parser)
- StatsAggregator, Sketch        (streaming statistics)
- render_report, snapshot_to_dict
- DTOs: ParsedMessage, ParseFailure, MetricType, FailureReason, AggregateSnapshot, Frame
- Errors: DsdError, ContainerError, FramingError, DecompressionError, UnsupportedReplayVersion
"""

from __future__ import annotations

# Configuration
from .config import AnalysisConfig, ReaderConfig

# Orchestration
from .orchestration.runner import analyze_stream, copy_messages, iter_messages

# Intake
from .intake.replay_reader import iter_frames, iter_replay_payloads
from .intake.replay_writer import encode_replay
from .intake.source import open_lines, open_payloads

# Pipeline
from .pipeline.aggregator import StatsAggregator
from .pipeline.parser import parse_line
from .pipeline.sketch import Sketch

# Reporting
from .reporting.renderer import render_report, snapshot_to_dict

# DTOs
from .dto import (
    AggregateSnapshot,
    FailureReason,
    Frame,
    MetricType,
    ParsedMessage,
    ParseFailure,
)

# Errors
from .errors import (
    ContainerError,
    DecompressionError,
    DsdError,
    FramingError,
    UnsupportedReplayVersion,
)

__all__ = [
    "AnalysisConfig",
    "ReaderConfig",
    "analyze_stream",
    "copy_messages",
    "iter_messages",
    "iter_frames",
    "iter_replay_payloads",
    "encode_replay",
    "open_lines",
    "open_payloads",
    "StatsAggregator",
    "parse_line",
    "Sketch",
    "render_report",
    "snapshot_to_dict",
    "AggregateSnapshot",
    "FailureReason",
    "Frame",
    "MetricType",
    "ParsedMessage",
    "ParseFailure",
    "ContainerError",
    "DecompressionError",
    "DsdError",
    "FramingError",
    "UnsupportedReplayVersion",
]
