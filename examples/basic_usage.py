"""
Basic Usage Example

This example demonstrates graceful shutdown of an asyncio HTTP server:
- Serving liveness and readiness probes
- Registering a readiness check and a finalizer
- Enabling signal handling for SIGTERM and SIGINT
- Draining connections and exiting with 128 + signal number

The server sends itself SIGTERM after a few probes, so the process exits
with status 143 once the shutdown sequence has finished.

Run with: python examples/basic_usage.py; echo $?
"""

import asyncio
import logging
import os
import signal

from graceful_shutdown import GracefulShutdown, ServerListener, enable

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

# =============================================================================
# Step 1: A minimal HTTP server
# =============================================================================
# Only GET /live and GET /ready are routed. Everything else is a 404.


def make_handler(graceful_ref: list[GracefulShutdown]):
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        request_line = await reader.readline()
        while (await reader.readline()) not in (b"\r\n", b"\n", b""):
            pass

        parts = request_line.decode("latin-1").split()
        path = parts[1] if len(parts) > 1 else "/"
        graceful = graceful_ref[0]

        if path == "/live":
            response = graceful.liveness()
        elif path == "/ready":
            response = await graceful.readiness()
        else:
            response = None

        status, body = (response.status_code, response.body) if response else (404, "NOT FOUND")
        reason = {200: "OK", 404: "Not Found", 503: "Service Unavailable"}[status]
        writer.write(
            f"HTTP/1.1 {status} {reason}\r\n"
            f"Content-Type: text/plain\r\n"
            f"Content-Length: {len(body)}\r\n"
            f"Connection: close\r\n\r\n{body}".encode()
        )
        await writer.drain()
        writer.close()

    return handle


async def probe(port: int, path: str) -> str:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
    await writer.drain()
    status_line = (await reader.readline()).decode().strip()
    writer.close()
    await writer.wait_closed()
    return status_line


# =============================================================================
# Step 2: Readiness checks and finalizers
# =============================================================================


async def database_reachable(listener: ServerListener) -> None:
    """Pretend to ping a database."""
    await asyncio.sleep(0.1)


def close_database(listener: ServerListener) -> None:
    print("Finalizer: database connections closed")


# =============================================================================
# Step 3: Wire everything together
# =============================================================================


async def main() -> None:
    graceful_ref: list[GracefulShutdown] = []
    server = await asyncio.start_server(make_handler(graceful_ref), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]

    graceful = enable(
        ServerListener(server),
        {
            "grace_period_milliseconds": 500,
            "signals": ["SIGTERM", "SIGINT"],
            "readiness_checks": [("database", database_reachable)],
            "finalizers": [("close_database", close_database)],
        },
    )
    graceful_ref.append(graceful)
    print(f"Serving on port {port}: {graceful!r}")

    print("GET /live  ->", await probe(port, "/live"))
    print("GET /ready ->", await probe(port, "/ready"))

    print("Sending SIGTERM to ourselves")
    os.kill(os.getpid(), signal.SIGTERM)
    await asyncio.sleep(0.05)

    print("GET /ready ->", await probe(port, "/ready"))

    # The shutdown pipeline drains the server and exits with status 143.
    await asyncio.Event().wait()


if __name__ == "__main__":
    asyncio.run(main())
