"""
Framework-neutral probe responses.

Probe handlers return a ProbeResponse which HTTP integrations translate
into a status code and a plain-text body.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ProbeResponse:
    """
    Status code and body of a liveness or readiness probe.

    Attributes:
        status_code: HTTP status code (200 or 503)
        body: Plain-text body
    """

    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"status_code": self.status_code, "body": self.body}


LIVE = ProbeResponse(200, "OK")
READY = ProbeResponse(200, "READY")
NOT_READY = ProbeResponse(503, "NOT-READY")


__all__ = [
    "ProbeResponse",
    "LIVE",
    "READY",
    "NOT_READY",
]
