"""
Named callback registries for finalizers and readiness checks.

Callbacks are registered under an explicit, non-empty name which acts as
the uniqueness key. Registering a second callback under a name that is
already taken is a logged no-op: the first registration wins.

A callback receives the listener handle as its single argument. It may be
a plain function or a coroutine function; raising an exception signals
failure.

Example:
    >>> registry = FinalizerRegistry()
    >>> async def close_pool(listener):
    ...     await pool.close()
    >>> registry.add("close_pool", close_pool)
    >>> registry.names()
    ['close_pool']
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from graceful_shutdown.exceptions import InvalidCallbackError

logger = logging.getLogger(__name__)

CallbackFunc = Callable[[Any], Any]
"""A callable taking the listener handle, optionally returning an awaitable."""


@dataclass(frozen=True)
class NamedCallback:
    """
    A callback registered under an explicit name.

    Attributes:
        name: Unique, non-empty identifier of the callback
        fn: Callable invoked with the listener handle
    """

    name: str
    fn: CallbackFunc

    def __post_init__(self) -> None:
        """Validate the name and the callable."""
        if not callable(self.fn):
            raise InvalidCallbackError(
                "provided function has to be callable with a listener argument",
                name=self.name,
            )
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidCallbackError(
                "provided function has to be registered under a non-empty name",
                name=self.name,
            )

    @classmethod
    def coerce(cls, entry: Any) -> NamedCallback:
        """
        Build a NamedCallback from an option entry.

        Accepts NamedCallback instances and ``(name, fn)`` pairs.

        Raises:
            InvalidCallbackError: If the entry has neither shape
        """
        if isinstance(entry, cls):
            return entry
        if isinstance(entry, tuple) and len(entry) == 2:
            name, fn = entry
            return cls(name=name, fn=fn)
        raise InvalidCallbackError(
            f"expected a NamedCallback or a (name, fn) pair, got {type(entry).__name__}"
        )

    async def invoke(self, listener: Any) -> None:
        """Call the callback and await its result when it is awaitable."""
        result = self.fn(listener)
        if inspect.isawaitable(result):
            await result


@dataclass(frozen=True)
class CallbackOutcome:
    """Result of running one callback during a fan-out."""

    name: str
    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class CallbackRegistry:
    """
    Ordered, deduplicated collection of named callbacks.

    Insertion order is preserved so that listings are deterministic, even
    though the callbacks themselves are executed concurrently.
    """

    kind = "callback"

    def __init__(self, entries: Iterable[NamedCallback] = ()) -> None:
        self._callbacks: dict[str, NamedCallback] = {}
        for entry in entries:
            self.add(entry.name, entry.fn)

    def add(self, name: str, fn: CallbackFunc) -> bool:
        """
        Register a callback under ``name``.

        Args:
            name: Unique, non-empty name
            fn: Callable taking the listener handle

        Returns:
            True if the callback was added, False if the name was taken

        Raises:
            InvalidCallbackError: If the name is empty or fn is not callable
        """
        entry = NamedCallback(name=name, fn=fn)

        if entry.name in self._callbacks:
            logger.info(
                'provided function "%s" already registered - ignoring it',
                entry.name,
                extra={"kind": self.kind, "callback": entry.name},
            )
            return False

        self._callbacks[entry.name] = entry
        logger.debug(
            "Registered %s",
            self.kind,
            extra={"kind": self.kind, "callback": entry.name, "total": len(self._callbacks)},
        )
        return True

    def list(self) -> list[NamedCallback]:
        """Return a snapshot of the registered callbacks in insertion order."""
        return list(self._callbacks.values())

    def names(self) -> list[str]:
        """Return the registered names in insertion order."""
        return list(self._callbacks)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __contains__(self, name: object) -> bool:
        return name in self._callbacks


class FinalizerRegistry(CallbackRegistry):
    """Callbacks executed at shutdown, after connections are drained."""

    kind = "finalizer"


class ReadinessRegistry(CallbackRegistry):
    """Callbacks executed at most once, until they all succeed, to establish readiness."""

    kind = "readiness check"


async def run_concurrently(
    callbacks: Sequence[NamedCallback],
    listener: Any,
    kind: str = "callback",
) -> list[CallbackOutcome]:
    """
    Run every callback concurrently and wait for all of them.

    Failures never cancel sibling callbacks. Outcomes are returned in
    completion order, so the first failing outcome is the first error
    that occurred.

    Args:
        callbacks: Callbacks to run
        listener: Argument passed to every callback
        kind: Label used in log records

    Returns:
        One CallbackOutcome per callback, in completion order
    """
    outcomes: list[CallbackOutcome] = []

    async def run(entry: NamedCallback) -> None:
        logger.info(
            'running %s "%s"',
            kind,
            entry.name,
            extra={"kind": kind, "callback": entry.name},
        )
        try:
            await entry.invoke(listener)
        except Exception as e:
            outcomes.append(CallbackOutcome(name=entry.name, error=e))
            return
        outcomes.append(CallbackOutcome(name=entry.name))

    await asyncio.gather(*(asyncio.create_task(run(entry)) for entry in callbacks))
    return outcomes


def first_failure(outcomes: Iterable[CallbackOutcome]) -> tuple[str, BaseException] | None:
    """Return the name and error of the first failed outcome, or None if all succeeded."""
    for outcome in outcomes:
        if outcome.error is not None:
            return outcome.name, outcome.error
    return None


__all__ = [
    "CallbackFunc",
    "NamedCallback",
    "CallbackOutcome",
    "CallbackRegistry",
    "FinalizerRegistry",
    "ReadinessRegistry",
    "run_concurrently",
    "first_failure",
]
