import json

import pytest

from txcli.jsonapi.core import Connection, RelationshipKind, Resource
from txcli.jsonapi.errors import JsonApiError
from txcli.jsonapi.mocking import (
    MockData,
    MockEndpoint,
    MockRequest,
    MockResponse,
    get_mock_text_response,
    get_test_connection,
)
from txcli.txapi.organizations import get_organization
from txcli.txapi.projects import get_project
from txcli.txapi.resources import (
    ResourceAttributes,
    create_async_resource_merge,
    create_resource,
    delete_resource,
    get_resource,
    get_resource_by_id,
    get_resources,
    poll_resource_merge,
)

ORGANIZATIONS = """{"data": [
    {"type": "organizations",
     "id": "o:orgslug",
     "attributes": {"name": "Org Name", "slug": "orgslug"}},
    {"type": "organizations",
     "id": "orgslug2",
     "attributes": {"name": "Org Name2", "slug": "orgslug2"}}
]}"""

PROJECTS = """{"data": [
    {
        "type": "projects",
        "id": "o:orgslug:p:projslug",
        "attributes": {"name": "Proj Name", "slug": "projslug"},
        "relationships": {
            "organization": {
                "data": {"type": "organizations", "id": "o:orgslug"},
                "links": {"related": "/organizations/o:orgslug"}
            }
        }
    }
]}"""

RESOURCES = """{"data": [
    {
        "type": "resources",
        "id": "o:orgslug:p:projslug:r:resslug",
        "attributes": {"name": "Res Name", "slug": "resslug"},
        "relationships": {
            "project": {
                "data": {"type": "projects", "id": "o:orgslug:p:projslug"},
                "links": {"related": "/projects/o:orgslug:p:projslug"}
            }
        }
    },
    {
        "type": "resources",
        "id": "o:orgslug:p:projslug:r:resslug2",
        "attributes": {"name": "Res Name2", "slug": "resslug2"},
        "relationships": {
            "project": {
                "data": {"type": "projects", "id": "o:orgslug:p:projslug"},
                "links": {"related": "/projects/o:orgslug:p:projslug"}
            }
        }
    }
]}"""


def _recording_api(responses):
    calls = []
    pending = iter(responses)

    def respond(method, path, payload, content_type):
        calls.append((method, path, payload, content_type))
        return next(pending).encode("utf-8")

    return Connection(request_method=respond), calls


def _project(extra_responses=()):
    api, calls = _recording_api([ORGANIZATIONS, PROJECTS, RESOURCES, *extra_responses])
    organization = get_organization(api, "orgslug")
    return api, calls, get_project(api, organization, "projslug")


def _assert_project_relationship(resource):
    assert "project" in resource.relationships
    relationship = resource.relationships["project"]
    assert relationship.kind is RelationshipKind.SINGULAR
    assert relationship.data_singular.type == "projects"
    assert relationship.data_singular.id == "o:orgslug:p:projslug"
    assert relationship.fetched is True
    assert relationship.data_singular.attributes["name"] == "Proj Name"


def test_get_resource():
    api, _, project = _project()
    resource = get_resource(api, project, "resslug")
    assert resource.type == "resources"
    assert resource.id == "o:orgslug:p:projslug:r:resslug"
    assert resource.attributes["name"] == "Res Name"
    assert resource.attributes["slug"] == "resslug"
    _assert_project_relationship(resource)


def test_get_resource_missing():
    api, _, project = _project()
    assert get_resource(api, project, "nothing") is None


def test_get_resources():
    api, calls, project = _project()
    resources = get_resources(api, project)
    assert calls[-1][:2] == (
        "GET",
        "/resources?filter%5Bproject%5D=o%3Aorgslug%3Ap%3Aprojslug",
    )
    assert len(resources) == 2
    assert resources[0].type == "resources"
    assert resources[0].id == "o:orgslug:p:projslug:r:resslug"
    assert resources[0].attributes["name"] == "Res Name"
    assert resources[0].attributes["slug"] == "resslug"
    assert resources[1].type == "resources"
    assert resources[1].id == "o:orgslug:p:projslug:r:resslug2"
    assert resources[1].attributes["name"] == "Res Name2"
    assert resources[1].attributes["slug"] == "resslug2"
    assert "project" in resources[1].relationships
    _assert_project_relationship(resources[0])


def test_delete_resource():
    api, calls, project = _project(["{}"])
    resource = get_resource(api, project, "resslug")
    delete_resource(api, resource)
    assert calls[-1][:2] == ("DELETE", "/resources/o:orgslug:p:projslug:r:resslug")
    assert resource.id == ""


@pytest.mark.parametrize("base", ["", "r:base"])
def test_create_resource(base):
    api, calls = _recording_api(
        [
            '{"data": {"type": "resources", "id": "r1",'
            ' "attributes": {"name": "Res Name", "slug": "resslug"},'
            ' "relationships": {"project": {"data": {"type": "projects",'
            ' "id": "p1"}}}}}'
        ]
    )
    resource = create_resource(api, "p1", "Res Name", "resslug", "PO", base)

    method, path, payload, content_type = calls[0]
    assert (method, path, content_type) == ("POST", "/resources", "")
    relationships = {
        "project": {"data": {"type": "projects", "id": "p1"}},
        "i18n_format": {"data": {"type": "i18n_formats", "id": "PO"}},
    }
    if base:
        relationships["base"] = {"data": {"type": "resources", "id": base}}
    assert json.loads(payload) == {
        "data": {
            "type": "resources",
            "attributes": {"name": "Res Name", "slug": "resslug"},
            "relationships": relationships,
        }
    }
    assert resource.id == "r1"
    assert resource.relationships["project"].fetched is False
    assert resource.relationships["project"].data_singular.id == "p1"


def test_create_resource_error_propagates():
    mock_data = MockData(
        {
            "/resources": MockEndpoint(
                requests=[MockRequest(response=MockResponse(status=409, text="{}"))]
            )
        }
    )
    with pytest.raises(JsonApiError) as info:
        create_resource(get_test_connection(mock_data), "p1", "n", "s", "PO", "")
    assert info.value.status_code == 409


def test_create_async_resource_merge():
    api, calls = _recording_api(
        ['{"data": {"type": "resource_async_merges", "id": "m1",'
         ' "attributes": {"status": "pending"}}}']
    )
    resource = Resource(type="resources", id="r1")
    merge = create_async_resource_merge(api, resource, "USE_HEAD", True)

    method, path, payload, _ = calls[0]
    assert (method, path) == ("POST", "/resource_async_merges")
    assert json.loads(payload) == {
        "data": {
            "type": "resource_async_merges",
            "attributes": {"conflict_resolution": "USE_HEAD", "force": True},
            "relationships": {"resource": {"data": {"type": "resources", "id": "r1"}}},
        }
    }
    assert merge.id == "m1"
    assert merge.attributes["status"] == "pending"


def test_poll_resource_merge_until_completed():
    endpoint = MockEndpoint(
        requests=[
            MockRequest(
                response=MockResponse(
                    text='{"data": {"type": "resource_async_merges", "id": "m1",'
                    ' "attributes": {"status": "pending"}}}'
                )
            ),
            MockRequest(
                response=MockResponse(
                    text='{"data": {"type": "resource_async_merges", "id": "m1",'
                    ' "attributes": {"status": "COMPLETED"}}}'
                )
            ),
        ]
    )
    api = get_test_connection(MockData({"/resource_async_merges/m1": endpoint}))
    merge = Resource(api=api, type="resource_async_merges", id="m1")
    poll_resource_merge(merge, 0)
    assert endpoint.count == 2
    assert merge.attributes["status"] == "COMPLETED"


def test_get_resource_by_id():
    mock_data = MockData(
        {
            "/resources/r1": get_mock_text_response(
                '{"data": {"type": "resources", "id": "r1"}}'
            ),
            "/resources/gone": MockEndpoint(
                requests=[MockRequest(response=MockResponse(status=404, text="{}"))]
            ),
        }
    )
    api = get_test_connection(mock_data)
    assert get_resource_by_id(api, "r1").id == "r1"
    assert get_resource_by_id(api, "gone") is None


def test_resource_attributes_mapping():
    resource = Resource(
        attributes={"slug": "resslug", "string_count": 4, "categories": ["x"]}
    )
    attributes = resource.map_attributes(ResourceAttributes)
    assert (attributes.slug, attributes.string_count, attributes.categories) == (
        "resslug",
        4,
        ["x"],
    )
    with pytest.raises(TypeError):
        Resource(attributes={"slug": 5}).map_attributes(ResourceAttributes)