"""
Hexagonal interfaces (Ports) for the reading and analysis pipeline.

These define the boundary between the single forward pass in
orchestration/runner.py and whatever consumes its output. Keep them small
and implementation-agnostic so they're easy to mock in tests.
"""

from __future__ import annotations

from typing import Protocol

from .dto import AggregateSnapshot, ParseResult


class MessageObserverPort(Protocol):
    """
    Receives every parsed message or parse failure, in stream order.
    Empty lines are never delivered.
    """

    def observe(self, event: ParseResult) -> None:
        """Fold one event into the observer's state."""
        ...

    def snapshot(self) -> AggregateSnapshot:
        """Freeze the state accumulated so far."""
        ...


class LineSinkPort(Protocol):
    """
    Receives decoded raw message lines (no trailing newline).
    Implementations might write to a file, collect into a list, or forward
    to a socket.
    """

    def on_line(self, line: str) -> None:
        """Receive one raw message line."""
        ...
