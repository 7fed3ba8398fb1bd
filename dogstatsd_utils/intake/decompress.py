"""
Compressed stream opener.

Provides a single entry point `open_decompressed(stream)` that returns a
binary file-like object yielding the decompressed bytes of a zstd stream,
plus the error translation that turns corrupt input into a
`DecompressionError`.

This module does not parse containers; it only handles decompression.
"""

from __future__ import annotations

from typing import BinaryIO

import zstandard  # type: ignore

from ..errors import DecompressionError


class _ZstdStream:
    """
    Thin wrapper over a zstandard stream reader that reports corrupt data as
    DecompressionError and fills every read like a buffered file.
    """

    def __init__(self, raw: BinaryIO) -> None:
        dctx = zstandard.ZstdDecompressor()
        self._reader = dctx.stream_reader(raw, read_across_frames=True)
        self.name = getattr(raw, "name", "<zstd>")

    def read(self, size: int | None = -1) -> bytes:
        try:
            if size is None or size < 0:
                return self._reader.readall()
            parts = []
            have = 0
            while have < size:
                piece = self._reader.read(size - have)
                if not piece:
                    break
                parts.append(piece)
                have += len(piece)
            return b"".join(parts)
        except zstandard.ZstdError as e:
            raise DecompressionError(f"Corrupt zstd data: {e}") from e

    def close(self) -> None:
        self._reader.close()


def open_decompressed(stream: BinaryIO) -> BinaryIO:
    """
    Wrap `stream` (positioned at a zstd magic) in a streaming decompressor.

    Nothing is decompressed up front; bytes are produced as the caller reads.
    The caller stays responsible for closing the underlying stream.
    """
    return _ZstdStream(stream)  # type: ignore[return-value]
