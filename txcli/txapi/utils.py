"""Helpers shared by the API operations."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

__all__ = ["DEFAULT_BACKOFF", "get_backoff"]

DEFAULT_BACKOFF = (1, 1, 1, 2, 3, 5, 8, 13)


def get_backoff(pool: Sequence[int] | None = None) -> Iterator[int]:
    """Yield the items of ``pool`` in turn, then its last item forever."""
    if pool is None:
        pool = DEFAULT_BACKOFF
    if not pool:
        raise ValueError("backoff pool is empty")
    yield from pool
    last = pool[-1]
    while True:
        yield last