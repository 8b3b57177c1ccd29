"""
Listener handle abstraction.

The shutdown pipeline never tracks connections itself. It delegates to a
listener handle exposing a single "stop accepting, wait for in-flight
connections" primitive, plus a marker recording that graceful shutdown
has been enabled for it.

Example:
    >>> server = await asyncio.start_server(handle_client, "0.0.0.0", 8080)
    >>> listener = ServerListener(server)
    >>> graceful = enable(listener)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from graceful_shutdown.exceptions import AlreadyEnabledError

logger = logging.getLogger(__name__)


@runtime_checkable
class ListenerHandle(Protocol):
    """
    Protocol for listeners that can be drained at shutdown.

    Implementations:
    - ServerListener: Wraps an asyncio.Server
    - graceful_shutdown.testing.FakeListener: In-memory listener for tests
    """

    shutdown_enabled: bool
    """Marker set once graceful shutdown has been installed on this listener."""

    async def drain(self) -> None:
        """Stop accepting new connections and wait until in-flight ones complete."""
        ...


def mark_shutdown_enabled(listener: ListenerHandle) -> None:
    """
    Install the shutdown marker on a listener.

    Raises:
        AlreadyEnabledError: If the marker is already set
    """
    if listener.shutdown_enabled:
        raise AlreadyEnabledError()
    listener.shutdown_enabled = True


class ServerListener:
    """
    Listener handle backed by an asyncio.Server.

    ``drain()`` closes the listening sockets and then waits in
    ``wait_closed()`` until every active connection has finished. That
    wait needs Python 3.12 or later.

    Attributes:
        server: The wrapped asyncio server
        shutdown_enabled: Marker guarding against double installation
    """

    def __init__(self, server: asyncio.AbstractServer) -> None:
        self.server = server
        self.shutdown_enabled = False

    async def drain(self) -> None:
        logger.info("drain connections: close listener and wait for pending requests.")
        self.server.close()
        await self.server.wait_closed()

    def __repr__(self) -> str:
        return f"ServerListener(server={self.server!r}, shutdown_enabled={self.shutdown_enabled})"


__all__ = [
    "ListenerHandle",
    "ServerListener",
    "mark_shutdown_enabled",
]
