"""Looking up translation statistics of resources."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ..jsonapi.core import Collection, Connection, Resource
from ..jsonapi.query import Query

__all__ = ["ResourceLanguageStatsAttributes", "get_resource_stats"]


@dataclass
class ResourceLanguageStatsAttributes:
    """Attributes of the statistics of one resource in one language."""

    last_proofread_update: str = ""
    last_review_update: str = ""
    last_translation_update: str = ""
    last_update: str = ""
    proofread_strings: int = 0
    proofread_words: int = 0
    reviewed_strings: int = 0
    reviewed_words: int = 0
    total_strings: int = 0
    total_words: int = 0
    translated_strings: int = 0
    translated_words: int = 0
    untranslated_strings: int = 0
    untranslated_words: int = 0


def _each_resource(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def _related_id(resource: Resource, name: str) -> str:
    related = resource.relationships[name].data_singular
    if related is None:
        raise KeyError(f"relationship {name} has no data")
    return related.id


def get_resource_stats(
    api: Connection, resource: Resource, language: Resource | None = None
) -> dict[str, Resource]:
    """Return the statistics of a resource keyed by language id.

    With ``language`` given, only that language's statistics are requested.
    """
    filters = {
        "project": _related_id(resource, "project"),
        "resource": resource.id,
    }
    if language is not None:
        filters["language"] = language.id
    page = api.list("resource_language_stats", Query(filters=filters).encode())
    result: dict[str, Resource] = {}
    for stats in _each_resource(page):
        stats.set_related("resource", resource)
        result[_related_id(stats, "language")] = stats
    return result