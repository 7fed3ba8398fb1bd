"""
Fatal error kinds.

Only conditions that end a stream are exceptions. A line that does not
parse is a `ParseFailure` value (see dto.py) and never raised.
"""

from __future__ import annotations


class DsdError(Exception):
    """Base class for errors raised by this package."""


class ContainerError(DsdError):
    """The byte source cannot be decoded any further."""


class FramingError(ContainerError):
    """A frame header claims more bytes than the stream holds."""

    def __init__(self, message: str, *, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class DecompressionError(ContainerError):
    """The compressed byte stream is corrupt."""


class UnsupportedReplayVersion(ContainerError):
    """The container marker was found but its version is not accepted."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Unsupported replay version {version}")
        self.version = version
