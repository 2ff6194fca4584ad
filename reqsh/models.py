"""reqsh models - request and response records."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reqsh.errors import ValidationError

if TYPE_CHECKING:
    from reqsh.auth import AuthPreset

DEFAULT_TIMEOUT = 30.0  # seconds


class HttpMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def parse(cls, value: str) -> HttpMethod:
        """Case-insensitive lookup. Raises ValidationError for anything else."""
        try:
            return cls(value.upper())
        except ValueError:
            raise ValidationError(f"invalid HTTP method: {value.upper()}") from None


@dataclass
class Request:
    """An HTTP request before it reaches the transport.

    ``body == ""`` means no body is sent at all.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)
    body: str = ""
    timeout: float = DEFAULT_TIMEOUT
    auth: AuthPreset | None = None


@dataclass(frozen=True)
class Response:
    """A fully read HTTP response.

    Headers map each name to every value received, in order.
    """

    status_code: int
    status: str
    headers: dict[str, list[str]]
    body: bytes
    elapsed_ms: float

    @property
    def size(self) -> int:
        return len(self.body)

    def header(self, name: str) -> str | None:
        """First value of a header, matched case-insensitively."""
        lower = name.lower()
        for key, values in self.headers.items():
            if key.lower() == lower and values:
                return values[0]
        return None
