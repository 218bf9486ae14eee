"""Looking up languages."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..jsonapi.core import Connection, Resource

__all__ = ["LanguageAttributes", "PluralRules", "get_language", "get_languages"]


@dataclass
class PluralRules:
    """Plural rules of a language, one per plural form."""

    zero: str = ""
    one: str = ""
    two: str = ""
    few: str = ""
    many: str = ""
    other: str = ""


@dataclass
class LanguageAttributes:
    """Attributes of a language."""

    code: str = ""
    name: str = ""
    plural_equation: str = ""
    plural_rules: PluralRules = field(default_factory=PluralRules)
    rtl: bool = False


class _LanguagesOnce:
    """Fetch the language list on the first call and answer from memory after."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = False
        self._result: dict[str, Resource] | None = None
        self._error: BaseException | None = None

    def __call__(self, api: Connection) -> dict[str, Resource]:
        with self._lock:
            if not self._done:
                self._done = True
                try:
                    self._result = self._load(api)
                except Exception as exc:
                    self._error = exc
        if self._error is not None:
            raise self._error
        assert self._result is not None
        return self._result

    @staticmethod
    def _load(api: Connection) -> dict[str, Resource]:
        result = {}
        for language in api.list("languages", "").data:
            attributes = language.map_attributes(LanguageAttributes)
            result[attributes.code] = language
        return result


_languages_once = _LanguagesOnce()


def get_languages(api: Connection) -> dict[str, Resource]:
    """Return all languages keyed by code.

    The list is fetched once per process; later calls return the same result
    (or raise the same error) without contacting the server.
    """
    return _languages_once(api)


def get_language(api: Connection, code: str) -> Resource | None:
    """Return the language with the given code from the first page, or None."""
    for language in api.list("languages", "").data:
        if language.attributes.get("code") == code:
            return language
    return None