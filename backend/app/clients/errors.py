"""Errors raised by the external API clients."""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import ValidationError

RAW_EXCERPT_LIMIT = 200


def excerpt(raw: Any, limit: int = RAW_EXCERPT_LIMIT) -> str:
    """Truncated JSON rendering of a payload, for diagnostics."""
    if isinstance(raw, (bytes, bytearray)):
        text = raw.decode("utf-8", errors="replace")
    elif isinstance(raw, str):
        text = raw
    else:
        text = orjson.dumps(raw, default=str).decode("utf-8")
    return text[:limit]


class ClientError(Exception):
    """Base class for upstream API failures."""

    retryable = False


class TransientFetchError(ClientError):
    """Upstream returned a non-2xx response or could not be reached."""

    retryable = True

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TerminalHTTPError(ClientError):
    """Terminal HTTP error (4xx other than 429)."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body[:RAW_EXCERPT_LIMIT]
        super().__init__(f"HTTP {status_code}: {self.body}")


class RetryExhaustedError(ClientError):
    """A retryable failure persisted past the configured retries."""

    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Request failed after {attempts} attempt(s): {last_error}")


class DeserializationError(ClientError):
    """Response did not match the expected shape.

    Attributes:
        kind: Always "deserialization"
        path: Dotted path of the first violated field ("" for the root)
        issues: Every "path: message" pair reported by validation
        raw_excerpt: First 200 characters of the raw payload
    """

    kind = "deserialization"

    def __init__(self, name: str, issues: list[str], path: str, raw: Any):
        self.name = name
        self.issues = issues
        self.path = path
        self.raw_excerpt = excerpt(raw)
        super().__init__(
            f"{name}DeserializationError: {', '.join(issues)} | raw={self.raw_excerpt}"
        )

    @classmethod
    def from_validation_error(
        cls, name: str, error: ValidationError, raw: Any
    ) -> "DeserializationError":
        issues = []
        paths = []
        for item in error.errors():
            path = ".".join(str(part) for part in item["loc"])
            paths.append(path)
            issues.append(f"{path}: {item['msg']}")
        return cls(name, issues, paths[0] if paths else "", raw)
