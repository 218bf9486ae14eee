"""Errors raised while talking to a {json:api} server."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "ErrorItem",
    "JsonApiError",
    "RedirectError",
    "ThrottleError",
    "parse_error_response",
    "parse_throttle_response",
]


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class ErrorItem:
    """One entry of the ``errors`` array of a {json:api} error response."""

    status: str = ""
    code: str = ""
    title: str = ""
    detail: str = ""
    source_pointer: str = ""
    source_parameter: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> ErrorItem:
        if not isinstance(payload, Mapping):
            return cls()
        source = payload.get("source")
        if not isinstance(source, Mapping):
            source = {}
        return cls(
            status=_string(payload.get("status")),
            code=_string(payload.get("code")),
            title=_string(payload.get("title")),
            detail=_string(payload.get("detail")),
            source_pointer=_string(source.get("pointer")),
            source_parameter=_string(source.get("parameter")),
        )


class JsonApiError(Exception):
    """An error response (status 400 or above) from the server."""

    def __init__(self, status_code: int, errors: list[ErrorItem] | None = None):
        self.status_code = status_code
        self.errors = list(errors) if errors else []
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [str(self.status_code)]
        parts.extend(f"{item.code}: {item.detail}" for item in self.errors)
        return ", ".join(parts)


class RedirectError(Exception):
    """The server answered with a redirect; ``location`` holds its target."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(str(self))

    def __str__(self) -> str:
        return (
            "jsonapi does not handle redirects. You can access the Location "
            "header through the 'location' attribute of this error"
        )


class ThrottleError(Exception):
    """The server asked the client to slow down (HTTP 429)."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"throttled; retry after {self.retry_after}"


def parse_error_response(status_code: int, body: bytes | str) -> JsonApiError | None:
    """Return the error described by a response, or None if it succeeded.

    A body that cannot be parsed yields an error without items.
    """
    if status_code < 400:
        return None
    errors: list[ErrorItem] = []
    try:
        document = json.loads(body)
    except (ValueError, TypeError):
        document = None
    if isinstance(document, Mapping):
        items = document.get("errors")
        if isinstance(items, list):
            errors = [ErrorItem.from_payload(item) for item in items]
    return JsonApiError(status_code, errors)


def parse_throttle_response(
    status_code: int, headers: Mapping[str, str] | None
) -> ThrottleError | None:
    """Return a ThrottleError for a 429 response, otherwise None."""
    if status_code != 429:
        return None
    value = ""
    for key, header_value in (headers or {}).items():
        if key.lower() == "retry-after":
            value = header_value
            break
    try:
        return ThrottleError(int(str(value).strip()))
    except ValueError:
        return ThrottleError(1)