"""HTTP port definition (DTOs)."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any

from http_property.core.models import RequestDescriptor

__all__ = ["HttpPort", "ResponseView"]


@dataclass
class HttpPort:
    """HTTP request to be sent on one tick.

    Decouples core scheduling logic from HTTP implementation details.

    Attributes:
        ideal_time_sec: Monotonic time when the request should have been sent.
        method: HTTP method.
        url: Target HTTP endpoint URL.
        headers: Ordered (name, value) pairs; a name may repeat.
    """

    ideal_time_sec: float
    method: str
    url: str
    headers: list[tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_descriptor(cls, descriptor: RequestDescriptor, ideal_time_sec: float) -> HttpPort:
        """Build the outgoing request for a tick.

        Sets Content-Type when configured, then every value of every
        configured header.
        """
        headers: list[tuple[str, str]] = []
        if descriptor.content_type:
            headers.append(("Content-Type", descriptor.content_type))
        for name, values in descriptor.headers.items():
            headers.extend((name, value) for value in values)
        return cls(
            ideal_time_sec=ideal_time_sec,
            method=descriptor.method,
            url=descriptor.url,
            headers=headers,
        )


@dataclass(slots=True, frozen=True)
class ResponseView:
    """Fully read HTTP response, scoped to one tick.

    Attributes:
        status: HTTP status code.
        reason: Reason phrase of the status line.
        headers: Response headers, each name mapped to its values.
        body: Raw body bytes.
    """

    status: int
    reason: str
    headers: dict[str, list[str]]
    body: bytes

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".strip()

    def to_wire(self) -> dict[str, Any]:
        """Return the response channel shape (body base64-encoded)."""
        return {
            "status": self.status,
            "header": self.headers,
            "body": base64.b64encode(self.body).decode("ascii"),
        }

    def to_json(self) -> bytes:
        return json.dumps(self.to_wire()).encode()
