"""
Source format sniffing.

Goal: decide, from a few leading bytes, which concrete reader a byte source
needs (zstd-wrapped, replay container, PCAP/PCAPNG, or plain text) without
losing those bytes: everything examined here is replayed to the chosen
reader through `PeekedStream`.

We DO NOT validate anything beyond magic bytes here; the readers do the
deeper checks (container version, frame lengths, pcap headers).
"""

from __future__ import annotations

from typing import BinaryIO, Final, Literal, Tuple

from ..config import ReaderConfig

SourceKind = Literal["zstd", "replay", "pcap", "pcapng", "text"]

# --- Magic numbers (byte order as they appear on disk) ---

# Uncompressed PCAP
MAGIC_PCAP_USEC_BE: Final[bytes] = bytes.fromhex("a1b2c3d4")
MAGIC_PCAP_USEC_LE: Final[bytes] = bytes.fromhex("d4c3b2a1")
MAGIC_PCAP_NSEC_BE: Final[bytes] = bytes.fromhex("a1b23c4d")
MAGIC_PCAP_NSEC_LE: Final[bytes] = bytes.fromhex("4d3cb2a1")

# PCAPNG
MAGIC_PCAPNG: Final[bytes] = bytes.fromhex("0a0d0d0a")

_PCAP_MAGICS: Final = (MAGIC_PCAP_USEC_BE, MAGIC_PCAP_USEC_LE, MAGIC_PCAP_NSEC_BE, MAGIC_PCAP_NSEC_LE)

# Enough for every built-in marker plus the replay version byte.
_MIN_SNIFF_LEN: Final[int] = 8


class PeekedStream:
    """
    Binary reader that first returns `head` and then continues with `raw`.

    `read(n)` keeps reading until `n` bytes are available or the source is
    exhausted, so consumers that expect whole headers in a single read
    (dpkt's pcap readers do) work over pipes and decompressors as well.
    """

    def __init__(self, head: bytes, raw: BinaryIO) -> None:
        self._head = head
        self._raw = raw
        self.name = getattr(raw, "name", "<stream>")

    def read(self, size: int | None = -1) -> bytes:
        if size is None or size < 0:
            out = self._head + self._raw.read()
            self._head = b""
            return out

        parts = []
        have = 0
        if self._head:
            piece = self._head[:size]
            self._head = self._head[size:]
            parts.append(piece)
            have = len(piece)
        while have < size:
            piece = self._raw.read(size - have)
            if not piece:
                break
            parts.append(piece)
            have += len(piece)
        return b"".join(parts)


def sniff_len(cfg: ReaderConfig) -> int:
    """Bounded lookahead needed to recognise every configured marker."""
    return max(_MIN_SNIFF_LEN, len(cfg.replay_magic) + 1, len(cfg.zstd_magic))


def peek(stream: BinaryIO, n: int) -> Tuple[bytes, PeekedStream]:
    """
    Read up to `n` leading bytes and return them together with a stream that
    still yields them first.
    """
    wrapped = stream if isinstance(stream, PeekedStream) else PeekedStream(b"", stream)
    head = wrapped.read(n)
    return head, PeekedStream(head, wrapped)


def looks_like_zstd(head: bytes, cfg: ReaderConfig) -> bool:
    return len(head) >= len(cfg.zstd_magic) and head.startswith(cfg.zstd_magic)


def looks_like_replay(head: bytes, cfg: ReaderConfig) -> bool:
    return len(head) >= len(cfg.replay_magic) and head.startswith(cfg.replay_magic)


def _looks_like_pcap(head: bytes) -> bool:
    return len(head) >= 4 and head[:4] in _PCAP_MAGICS


def _looks_like_pcapng(head: bytes) -> bool:
    return len(head) >= 4 and head[:4] == MAGIC_PCAPNG


def detect_format(head: bytes, cfg: ReaderConfig) -> SourceKind:
    """
    Classify a source by its leading bytes.

    Order matters only for pathological configs where markers overlap;
    compression is checked first so compressed captures of any kind work.
    Anything unrecognised is text, which is the common case, not an error.
    """
    if cfg.allow_compression and looks_like_zstd(head, cfg):
        return "zstd"
    if looks_like_replay(head, cfg):
        return "replay"
    if cfg.allow_pcap and _looks_like_pcap(head):
        return "pcap"
    if cfg.allow_pcap and _looks_like_pcapng(head):
        return "pcapng"
    return "text"
