"""
Byte source dispatch.

`open_payloads(stream, cfg)` sniffs the head of a byte source once and
returns a lazy iterator of payload chunks from the matching reader:

    zstd     -> decompress, then sniff the decompressed head again
    replay   -> replay_reader.iter_replay_payloads
    pcap(ng) -> pcap_reader.iter_udp_payloads (one chunk per datagram)
    text     -> fixed-size reads of the raw stream

It does NOT open files; callers pass an already-open binary stream and keep
ownership of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from ..config import ReaderConfig
from .decompress import open_decompressed
from .lines import iter_lines
from .pcap_reader import iter_udp_payloads
from .replay_reader import iter_replay_payloads
from .sniff import SourceKind, detect_format, peek, sniff_len

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSource:
    """Outcome of sniffing: the concrete reader kind and whether zstd wrapped it."""
    kind: SourceKind
    compressed: bool
    stream: BinaryIO


def resolve_source(stream: BinaryIO, cfg: ReaderConfig | None = None) -> ResolvedSource:
    """
    Decide once, at stream start, which reader handles `stream`.

    Every byte examined here is still delivered to the chosen reader.
    """
    cfg = cfg or ReaderConfig()
    n = sniff_len(cfg)
    head, stream = peek(stream, n)
    kind = detect_format(head, cfg)
    compressed = False

    if kind == "zstd":
        compressed = True
        head, stream = peek(open_decompressed(stream), n)
        kind = detect_format(head, cfg)
        if kind == "zstd":
            # Doubly-compressed input is not unwrapped twice.
            kind = "text"

    logger.debug("Resolved source kind=%s compressed=%s", kind, compressed)
    return ResolvedSource(kind=kind, compressed=compressed, stream=stream)  # type: ignore[arg-type]


def open_payloads(stream: BinaryIO, cfg: ReaderConfig | None = None) -> Iterator[bytes]:
    """
    Lazy payload chunks from any supported source.

    Datagram sources (pcap) get a newline appended to each payload when it
    lacks one, because a datagram always ends its last message.
    """
    cfg = cfg or ReaderConfig()
    src = resolve_source(stream, cfg)

    if src.kind == "replay":
        return iter_replay_payloads(src.stream, cfg)
    if src.kind in ("pcap", "pcapng"):
        return _terminated(iter_udp_payloads(src.stream, ng=src.kind == "pcapng"))
    return _iter_chunks(src.stream, cfg.chunk_size)


def open_lines(stream: BinaryIO, cfg: ReaderConfig | None = None) -> Iterator[str]:
    """Raw message lines from any supported source."""
    cfg = cfg or ReaderConfig()
    return iter_lines(open_payloads(stream, cfg), errors=cfg.utf8_errors)


# === Helpers ===


def _iter_chunks(stream: BinaryIO, size: int) -> Iterator[bytes]:
    while True:
        chunk = stream.read(size)
        if not chunk:
            return
        yield chunk


def _terminated(payloads: Iterator[bytes]) -> Iterator[bytes]:
    for p in payloads:
        yield p if p.endswith(b"\n") else p + b"\n"
