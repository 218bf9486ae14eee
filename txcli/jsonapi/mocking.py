"""In-memory stand-ins for a {json:api} server, for use in tests."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Optional

from .core import Connection
from .errors import RedirectError, parse_error_response

__all__ = [
    "CapturedRequest",
    "MockData",
    "MockEndpoint",
    "MockRequest",
    "MockResponse",
    "get_mock_text_response",
    "get_test_connection",
]


@dataclass
class CapturedRequest:
    """What the client sent to a mocked endpoint."""

    method: str = ""
    payload: Optional[bytes] = None
    content_type: str = ""


@dataclass
class MockResponse:
    """What a mocked endpoint answers with."""

    status: int = 0
    text: str = ""
    redirect: str = ""


@dataclass
class MockRequest:
    """A canned response together with the request that consumed it."""

    response: MockResponse = field(default_factory=MockResponse)
    request: CapturedRequest = field(default_factory=CapturedRequest)


@dataclass
class MockEndpoint:
    """The responses of one path, served in order; ``count`` tracks use."""

    requests: list[MockRequest] = field(default_factory=list)
    count: int = 0


class MockData:
    """Mocked endpoints keyed by request path."""

    def __init__(self, endpoints: Mapping[str, MockEndpoint] | None = None):
        self.endpoints: dict[str, MockEndpoint] = dict(endpoints or {})

    def __getitem__(self, path: str) -> MockEndpoint:
        return self.endpoints[path]

    def __setitem__(self, path: str, endpoint: MockEndpoint) -> None:
        self.endpoints[path] = endpoint

    def __contains__(self, path: object) -> bool:
        return path in self.endpoints

    def __iter__(self) -> Iterator[str]:
        return iter(self.endpoints)

    def __len__(self) -> int:
        return len(self.endpoints)

    def get(self, path: str) -> MockRequest | None:
        """Return the next unused request of ``path``, or None if there is none."""
        endpoint = self.endpoints.get(path)
        if endpoint is None or endpoint.count >= len(endpoint.requests):
            return None
        endpoint.count += 1
        return endpoint.requests[endpoint.count - 1]


def get_test_connection(mock_data: MockData) -> Connection:
    """Return a connection whose requests are served from ``mock_data``."""

    def respond(
        method: str, path: str, payload: bytes | None, content_type: str
    ) -> bytes:
        mock_request = mock_data.get(path)
        if mock_request is None:
            raise LookupError(f"{path} not found")
        mock_request.request.method = method
        mock_request.request.payload = payload
        mock_request.request.content_type = content_type

        response = mock_request.response
        error = parse_error_response(response.status, response.text.encode("utf-8"))
        if error is not None:
            raise error
        if response.redirect:
            raise RedirectError(response.redirect)
        return response.text.encode("utf-8")

    return Connection(request_method=respond)


def get_mock_text_response(text: str) -> MockEndpoint:
    """Return an endpoint that answers once with ``text``."""
    return MockEndpoint(requests=[MockRequest(response=MockResponse(text=text))])