"""Looking up projects and their languages."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from ..jsonapi.core import Collection, Connection, Resource
from ..jsonapi.errors import JsonApiError
from ..jsonapi.query import Query
from .languages import LanguageAttributes

__all__ = [
    "ProjectAttributes",
    "get_project",
    "get_project_by_id",
    "get_project_languages",
    "get_projects",
]


@dataclass
class ProjectAttributes:
    """Attributes of a project."""

    archived: bool = False
    created: str = field(default="", metadata={"json": "datetime_created"})
    modified: str = field(default="", metadata={"json": "datetime_modified"})
    description: str = ""
    homepage_url: str = ""
    instructions_url: str = ""
    license: str = ""
    long_description: str = ""
    name: str = ""
    private: bool = False
    repository_url: str = ""
    slug: str = ""
    tags: list[str] = field(default_factory=list)
    tm_fillup: bool = field(default=False, metadata={"json": "translation_memory_fillup"})
    type: str = ""


def _each_resource(page: Collection) -> Iterator[Resource]:
    while True:
        yield from page.data
        if not page.next:
            return
        page = page.get_next()


def get_projects(api: Connection, organization: Resource) -> list[Resource]:
    """Return all projects of an organization, following pagination."""
    query = Query(filters={"organization": organization.id}).encode()
    result = []
    for project in _each_resource(api.list("projects", query)):
        project.map_attributes(ProjectAttributes)
        project.set_related("organization", organization)
        result.append(project)
    return result


def get_project(
    api: Connection, organization: Resource, project_slug: str
) -> Resource | None:
    """Return the organization's project with the given slug, or None."""
    query = Query(
        filters={"organization": organization.id, "slug": project_slug}
    ).encode()
    projects = api.list("projects", query).data
    if not projects:
        return None
    if len(projects) > 1:
        raise ValueError(f"somehow found more than 1 projects with slug {project_slug}")
    project = projects[0]
    project.set_related("organization", organization)
    return project


def get_project_languages(project: Resource) -> dict[str, Resource]:
    """Return the target languages of a project keyed by code."""
    relationship = project.fetch("languages")
    result = {}
    for language in _each_resource(relationship.data_plural):
        attributes = language.map_attributes(LanguageAttributes)
        result[attributes.code] = language
    return result


def get_project_by_id(api: Connection, project_id: str) -> Resource | None:
    """Return the project with the given id, or None if the server has none."""
    try:
        return api.get("projects", project_id)
    except JsonApiError as exc:
        if exc.status_code == 404:
            return None
        raise