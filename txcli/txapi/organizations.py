"""Looking up organizations."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from ..jsonapi.core import Collection, Connection, Resource

__all__ = ["OrganizationAttributes", "get_organization", "get_organizations"]


@dataclass
class OrganizationAttributes:
    """Attributes of an organization."""

    logo_url: str = ""
    name: str = ""
    private: bool = False
    slug: str = ""


def _each_resource(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def get_organization(api: Connection, organization_slug: str) -> Resource | None:
    """Return the organization with the given slug, or None."""
    for organization in _each_resource(api.list("organizations", "")):
        attributes = organization.map_attributes(OrganizationAttributes)
        if attributes.slug == organization_slug:
            return organization
    return None


def get_organizations(api: Connection) -> list[Resource]:
    """Return all organizations, following pagination."""
    result = []
    for organization in _each_resource(api.list("organizations", "")):
        organization.map_attributes(OrganizationAttributes)
        result.append(organization)
    return result