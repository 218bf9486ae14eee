"""Building query strings for {json:api} list requests."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

__all__ = ["Query"]


@dataclass
class Query:
    """Filters, includes and extra GET variables of a list request."""

    filters: dict[str, str] | None = None
    includes: list[str] | None = None
    extras: dict[str, str] | None = None

    def encode(self) -> str:
        """Return the URL-encoded query string, keys sorted.

        A filter key ``a__b`` becomes ``filter[a][b]``.
        """
        values: dict[str, list[str]] = {}
        for key, value in (self.filters or {}).items():
            final_key = "filter" + "".join(f"[{part}]" for part in key.split("__"))
            values.setdefault(final_key, []).append(value)
        if self.includes is not None:
            values.setdefault("include", []).append(",".join(self.includes))
        for key, value in (self.extras or {}).items():
            values.setdefault(key, []).append(value)
        return urlencode(sorted(values.items()), doseq=True)