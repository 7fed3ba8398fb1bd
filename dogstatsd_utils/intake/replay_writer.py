"""
Replay container encoder.

The inverse of replay_reader: packs message text into frames using the same
layout, optionally with out-of-band bytes and zstd compression. Used to
build synthetic captures (fixtures, round-trip checks, small repro files).
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import zstandard  # type: ignore

from ..config import ReaderConfig
from .replay_reader import FRAME_HEADER, container_header


def encode_frame(payload: bytes, *, timestamp: int = 0, oob: bytes = b"") -> bytes:
    """One frame: header, oob bytes, payload."""
    return FRAME_HEADER.pack(int(timestamp), len(oob), len(payload)) + oob + payload


def split_payload(data: bytes, frame_size: Optional[int]) -> List[bytes]:
    """
    Cut `data` into payload chunks of at most `frame_size` bytes. With no
    frame size every chunk is one whole line (newline kept).
    """
    if not data:
        return []
    if frame_size is None:
        return data.splitlines(keepends=True)
    if frame_size < 1:
        raise ValueError("frame_size must be >= 1")
    return [data[i : i + frame_size] for i in range(0, len(data), frame_size)]


def encode_replay(
    messages: Iterable[str],
    *,
    frame_size: Optional[int] = None,
    oob: bytes = b"",
    timestamps: Optional[Sequence[int]] = None,
    version: int = 3,
    compress: bool = False,
    terminate: bool = False,
    cfg: Optional[ReaderConfig] = None,
) -> bytes:
    """
    Encode message lines into a replay container.

    Parameters
    ----------
    messages : Iterable[str]
        Message texts; each is written followed by a newline.
    frame_size : int, optional
        Cut the newline-joined text into payloads of this many bytes, so a
        message may straddle frames. Default: one message per frame.
    oob : bytes
        Out-of-band bytes attached to every frame.
    timestamps : Sequence[int], optional
        Per-frame timestamps; defaults to 0, 1, 2, ...
    compress : bool
        Wrap the whole container in a zstd frame.
    terminate : bool
        Append a zero-length record separator.
    """
    cfg = cfg or ReaderConfig()
    text = "".join(f"{m}\n" for m in messages).encode("utf-8")
    payloads = split_payload(text, frame_size)

    if timestamps is not None and len(timestamps) < len(payloads):
        raise ValueError(f"{len(payloads)} frames but only {len(timestamps)} timestamps")

    parts = [container_header(cfg, version)]
    for i, payload in enumerate(payloads):
        ts = timestamps[i] if timestamps is not None else i
        parts.append(encode_frame(payload, timestamp=ts, oob=oob))
    if terminate:
        parts.append(FRAME_HEADER.pack(0, 0, 0))

    blob = b"".join(parts)
    if compress:
        blob = zstandard.ZstdCompressor().compress(blob)
    return blob
