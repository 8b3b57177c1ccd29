"""
Test utilities for graceful_shutdown.

Components:
    FakeListener: In-memory listener handle recording drain calls
    ExitRecorder: Exit function replacement recording exit codes

Example:
    >>> listener = FakeListener()
    >>> exits = ExitRecorder()
    >>> pipeline = ShutdownPipeline(grace_period_seconds=0, exit_func=exits)
    >>> await pipeline.graceful_shutdown(listener, "SIGTERM", [])
    >>> listener.drain_calls
    1

Note:
    This module is intended for test code only. It should not be imported
    in production code paths.
"""

from __future__ import annotations

import asyncio


class FakeListener:
    """
    Listener handle that needs no sockets.

    Attributes:
        drain_delay: Seconds ``drain()`` waits before completing
        drain_error: Exception raised by ``drain()``, if any
        drain_calls: Number of times ``drain()`` was awaited
        drained: Set once a drain has completed
        shutdown_enabled: Shutdown installation marker
    """

    def __init__(self, drain_delay: float = 0.0, drain_error: Exception | None = None) -> None:
        self.drain_delay = drain_delay
        self.drain_error = drain_error
        self.drain_calls = 0
        self.drained = asyncio.Event()
        self.shutdown_enabled = False

    async def drain(self) -> None:
        self.drain_calls += 1
        if self.drain_delay:
            await asyncio.sleep(self.drain_delay)
        if self.drain_error is not None:
            raise self.drain_error
        self.drained.set()

    def __repr__(self) -> str:
        return f"FakeListener(drain_calls={self.drain_calls})"


class ExitRecorder:
    """
    Callable recording exit codes instead of exiting the process.

    Example:
        >>> exits = ExitRecorder()
        >>> exits(143)
        >>> exits.codes
        [143]
    """

    def __init__(self) -> None:
        self.codes: list[int] = []
        self.called = asyncio.Event()

    def __call__(self, code: int) -> None:
        self.codes.append(code)
        self.called.set()

    @property
    def last_code(self) -> int | None:
        return self.codes[-1] if self.codes else None

    def clear(self) -> None:
        self.codes.clear()
        self.called.clear()


__all__ = [
    "FakeListener",
    "ExitRecorder",
]
