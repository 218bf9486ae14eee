"""Retrying throttled requests and small helpers for commands."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Mapping
from typing import TypeVar

from .jsonapi.errors import ThrottleError

__all__ = [
    "RESOLUTION_POLICIES",
    "handle_throttling",
    "is_valid_resolution_policy",
    "make_remote_to_local_language_mappings",
]

RESOLUTION_POLICIES = ("USE_HEAD", "USE_BASE")

T = TypeVar("T")


def _stdout_is_terminal() -> bool:
    try:
        return bool(sys.stdout.isatty())
    except (AttributeError, ValueError):
        return False


def _throttled_message(seconds: int) -> str:
    return f"Throttled, will retry after {seconds} seconds"


def handle_throttling(do: Callable[[], T], initial_msg: str, send: Callable[[str], None]) -> T:
    """Call ``do`` until it is not throttled and return its result.

    On a ThrottleError, wait the number of seconds the server asked for,
    reporting progress through ``send``, then try again. Other errors
    propagate.
    """
    while True:
        if initial_msg:
            send(initial_msg)
        try:
            return do()
        except ThrottleError as exc:
            retry_after = exc.retry_after
            if _stdout_is_terminal():
                while retry_after > 0:
                    send(_throttled_message(retry_after))
                    time.sleep(1)
                    retry_after -= 1
            else:
                send(_throttled_message(retry_after))
                time.sleep(max(retry_after, 0))


def is_valid_resolution_policy(policy: str) -> bool:
    """Tell whether ``policy`` is a known merge conflict resolution policy."""
    return policy in RESOLUTION_POLICIES


def make_remote_to_local_language_mappings(
    local_to_remote: Mapping[str, str],
) -> dict[str, str]:
    """Invert a local-to-remote language code mapping."""
    return {remote: local for local, remote in local_to_remote.items()}