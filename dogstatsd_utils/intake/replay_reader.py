"""
Replay container decoder: yields payload chunks from a (possibly zstd
compressed) DogStatsD replay capture.

Layout (all integers little-endian):

    file header   replay_magic | 0xF0 | version | FF 00 00
    frame*        timestamp:int64  oob_len:uint32  payload_len:uint32
                  oob_bytes[oob_len]  payload[payload_len]

- Fewer bytes than one frame header left over: normal end of stream.
- A header with oob_len == 0 and payload_len == 0 terminates the message
  section; whatever follows (tagger state) is not interpreted.
- oob bytes carry transport metadata (credentials, fds) and are skipped.

The decoder is lazy and forward-only; restarting means re-opening the
original source.
"""

from __future__ import annotations

import logging
import struct
from typing import BinaryIO, Iterator

from ..config import ReaderConfig
from ..dto import Frame
from ..errors import ContainerError, FramingError, UnsupportedReplayVersion
from .decompress import open_decompressed
from .sniff import looks_like_replay, looks_like_zstd, peek, sniff_len

logger = logging.getLogger(__name__)

FRAME_HEADER = struct.Struct("<qII")
VERSION_FLAG = 0xF0
HEADER_PADDING = b"\xff\x00\x00"

# Skip oob bytes in bounded steps instead of materialising them.
_SKIP_STEP = 64 * 1024


def container_header(cfg: ReaderConfig, version: int) -> bytes:
    """File header for the given format version."""
    return cfg.replay_magic + bytes([VERSION_FLAG | (version & 0x0F)]) + HEADER_PADDING


def iter_frames(stream: BinaryIO, cfg: ReaderConfig | None = None) -> Iterator[Frame]:
    """
    Iterate Frame objects from a replay container byte stream.

    Parameters
    ----------
    stream : file-like
        Binary readable stream positioned at the container (or zstd) magic.
    cfg : ReaderConfig
        Marker values, accepted versions and the payload sanity cap.

    Raises
    ------
    ContainerError
        The replay marker is missing.
    UnsupportedReplayVersion
        The marker is present but the version is not accepted.
    FramingError
        A frame claims more bytes than remain in the stream.
    DecompressionError
        The zstd wrapper is corrupt.
    """
    cfg = cfg or ReaderConfig()
    head, stream = peek(stream, sniff_len(cfg))
    if cfg.allow_compression and looks_like_zstd(head, cfg):
        logger.debug("zstd magic found; decompressing replay container")
        _, stream = peek(open_decompressed(stream), 0)

    header_len = len(container_header(cfg, 0))
    header = stream.read(header_len)
    if not looks_like_replay(header, cfg):
        raise ContainerError(f"No replay marker found. Found: {header[:8].hex()}")
    if len(header) < header_len:
        raise FramingError(f"Truncated container header ({len(header)} of {header_len} bytes)", offset=0)
    version = header[len(cfg.replay_magic)] ^ VERSION_FLAG
    if version not in cfg.replay_versions:
        raise UnsupportedReplayVersion(version)

    yield from _read_frames(stream, cfg, offset=header_len)


def iter_replay_payloads(stream: BinaryIO, cfg: ReaderConfig | None = None) -> Iterator[bytes]:
    """Payload bytes of every frame, in container order."""
    for frame in iter_frames(stream, cfg):
        yield frame.payload


# === Helpers ===


def _read_frames(stream: BinaryIO, cfg: ReaderConfig, *, offset: int) -> Iterator[Frame]:
    while True:
        raw = stream.read(FRAME_HEADER.size)
        if len(raw) < FRAME_HEADER.size:
            if raw:
                logger.debug("Ignoring %d trailing bytes at offset %d", len(raw), offset)
            return

        timestamp, oob_len, payload_len = FRAME_HEADER.unpack(raw)
        offset += FRAME_HEADER.size

        if oob_len == 0 and payload_len == 0:
            logger.debug("Record separator at offset %d; ignoring trailing state", offset)
            return

        if payload_len > cfg.max_payload_len:
            raise FramingError(
                f"Frame at offset {offset - FRAME_HEADER.size} claims {payload_len} payload bytes "
                f"(limit {cfg.max_payload_len})",
                offset=offset - FRAME_HEADER.size,
            )

        skipped = _skip(stream, oob_len)
        if skipped < oob_len:
            raise FramingError(
                f"Frame at offset {offset - FRAME_HEADER.size} claims {oob_len} oob bytes, "
                f"only {skipped} remain",
                offset=offset - FRAME_HEADER.size,
            )
        offset += oob_len

        payload = stream.read(payload_len)
        if len(payload) < payload_len:
            raise FramingError(
                f"Frame at offset {offset - oob_len - FRAME_HEADER.size} claims {payload_len} "
                f"payload bytes, only {len(payload)} remain",
                offset=offset - oob_len - FRAME_HEADER.size,
            )
        offset += payload_len

        yield Frame(timestamp=timestamp, oob_len=oob_len, payload_len=payload_len, payload=payload)


def _skip(stream: BinaryIO, n: int) -> int:
    """Discard up to n bytes; return how many were actually available."""
    done = 0
    while done < n:
        piece = stream.read(min(_SKIP_STEP, n - done))
        if not piece:
            break
        done += len(piece)
    return done
