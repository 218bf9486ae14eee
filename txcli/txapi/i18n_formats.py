"""Looking up the file formats an organization supports."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..jsonapi.core import Connection, Resource
from ..jsonapi.query import Query

__all__ = ["I18nFormatsAttributes", "get_i18n_formats"]


@dataclass
class I18nFormatsAttributes:
    """Attributes of a file format."""

    description: str = ""
    file_extensions: list[str] = field(default_factory=list)
    media_type: str = ""
    name: str = ""


def get_i18n_formats(api: Connection, organization: Resource) -> dict[str, Resource]:
    """Return the organization's file formats keyed by id."""
    query = Query(filters={"organization": organization.id}).encode()
    collection = api.list("i18n_formats", query)
    result = {}
    for i18n_format in collection.data:
        i18n_format.map_attributes(I18nFormatsAttributes)
        i18n_format.set_related("organization", organization)
        result[i18n_format.id] = i18n_format
    return result