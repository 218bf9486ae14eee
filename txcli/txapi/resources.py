"""Looking up, creating, merging and deleting resources."""

from __future__ import annotations

import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ..jsonapi.core import Collection, Connection, Resource
from ..jsonapi.errors import JsonApiError
from ..jsonapi.query import Query

__all__ = [
    "ResourceAttributes",
    "create_async_resource_merge",
    "create_resource",
    "delete_resource",
    "get_resource",
    "get_resource_by_id",
    "get_resources",
    "poll_resource_merge",
]


@dataclass
class ResourceAttributes:
    """Attributes of a resource."""

    accept_translations: bool = False
    categories: list[str] = field(default_factory=list)
    datetime_created: str = ""
    datetime_modified: str = ""
    i18n_options: dict[str, Any] = field(default_factory=dict)
    i18n_version: int = 0
    mp4_url: str = ""
    name: str = ""
    ogg_url: str = ""
    priority: str = ""
    slug: str = ""
    string_count: int = 0
    webm_url: str = ""
    word_count: int = 0
    youtube_url: str = ""


def _each_resource(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def _project_query(project: Resource) -> str:
    return Query(filters={"project": project.id}).encode()


def get_resources(api: Connection, project: Resource) -> list[Resource]:
    """Return all resources of a project, following pagination."""
    result = []
    for resource in _each_resource(api.list("resources", _project_query(project))):
        resource.map_attributes(ResourceAttributes)
        resource.set_related("project", project)
        result.append(resource)
    return result


def get_resource(
    api: Connection, project: Resource, resource_slug: str
) -> Resource | None:
    """Return the project's resource with the given slug, or None."""
    for resource in _each_resource(api.list("resources", _project_query(project))):
        attributes = resource.map_attributes(ResourceAttributes)
        if attributes.slug == resource_slug:
            resource.set_related("project", project)
            return resource
    return None


def create_resource(
    api: Connection,
    project_id: str,
    resource_name: str,
    resource_slug: str,
    i18n_type: str,
    base: str = "",
) -> Resource:
    """Create a resource in a project; ``base`` is the id of a base resource."""
    resource = Resource(api=api, type="resources")
    resource.unmap_attributes(ResourceAttributes(name=resource_name, slug=resource_slug))
    resource.set_related("project", Resource(type="projects", id=project_id))
    resource.set_related("i18n_format", Resource(type="i18n_formats", id=i18n_type))
    fields = ["name", "slug", "project", "i18n_format"]
    if base:
        resource.set_related("base", Resource(type="resources", id=base))
        fields.append("base")
    try:
        resource.save(fields)
    finally:
        project = resource.relationships.get("project")
        if project is not None:
            project.fetched = False
    return resource


def create_async_resource_merge(
    api: Connection,
    resource: Resource,
    conflict_resolution: str,
    force_merge: bool,
) -> Resource:
    """Start merging a branch resource into its base."""
    merge = Resource(
        api=api,
        type="resource_async_merges",
        attributes={"conflict_resolution": conflict_resolution, "force": force_merge},
    )
    merge.set_related("resource", resource)
    merge.save()
    return merge


def delete_resource(api: Connection, resource: Resource) -> None:
    """Delete a resource on the server."""
    resource.delete()


def get_resource_by_id(api: Connection, resource_id: str) -> Resource | None:
    """Return the resource with the given id, or None if the server has none."""
    try:
        return api.get("resources", resource_id)
    except JsonApiError as exc:
        if exc.status_code == 404:
            return None
        raise


def poll_resource_merge(merge: Resource, interval: float) -> None:
    """Reload a merge every ``interval`` seconds until it is completed."""
    while True:
        merge.reload()
        if merge.attributes.get("status") == "COMPLETED":
            return
        time.sleep(interval)