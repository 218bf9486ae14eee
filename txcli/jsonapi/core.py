"""Resources, collections and the connection of a {json:api} client."""

from __future__ import annotations

import copy
import dataclasses
import enum
import json
import types
import typing
import urllib.error
import urllib.request
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .errors import RedirectError, parse_error_response, parse_throttle_response
from .multipart import encode_multipart

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "Collection",
    "Connection",
    "Links",
    "Relationship",
    "RelationshipKind",
    "Resource",
    "json_equal",
    "make_included_map",
    "payload_to_resource",
]

DEFAULT_CONTENT_TYPE = "application/vnd.api+json"

RequestMethod = Callable[[str, str, Optional[bytes], str], bytes]


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _load_document(body: bytes | str) -> dict[str, Any]:
    document = json.loads(body)
    if not isinstance(document, Mapping):
        raise ValueError("expected a JSON object in the response body")
    return dict(document)


class RelationshipKind(enum.IntEnum):
    """Plurality of a relationship."""

    NULL = 0
    SINGULAR = 1
    PLURAL = 2


@dataclass
class Links:
    """The ``self`` and ``related`` links of a relationship or resource."""

    self_link: str = ""
    related: str = ""

    @classmethod
    def from_payload(cls, value: Any) -> Links:
        if not isinstance(value, Mapping):
            return cls()
        return cls(self_link=_string(value.get("self")), related=_string(value.get("related")))

    def __bool__(self) -> bool:
        return bool(self.self_link or self.related)


@dataclass
class Collection:
    """One page of a paginated list of resources."""

    api: Optional[Connection] = field(default=None, repr=False)
    data: list[Resource] = field(default_factory=list)
    next: str = ""
    previous: str = ""

    def _connection(self) -> Connection:
        if self.api is None:
            raise RuntimeError("collection has no connection")
        return self.api

    def get_next(self) -> Collection:
        """Return the page the ``links.next`` field points to."""
        if not self.next:
            raise ValueError("no next page")
        return self._connection().list_from_path(self.next)

    def get_previous(self) -> Collection:
        """Return the page the ``links.previous`` field points to."""
        if not self.previous:
            raise ValueError("no previous page")
        return self._connection().list_from_path(self.previous)


@dataclass
class Relationship:
    """A relationship of a resource, singular, plural or null."""

    kind: RelationshipKind = RelationshipKind.NULL
    fetched: bool = False
    data_singular: Optional[Resource] = None
    data_plural: Collection = field(default_factory=Collection)
    links: Links = field(default_factory=Links)


# Mapping of attribute dictionaries to and from dataclasses

_SIMPLE_TYPE_NAMES = {"str": str, "int": int, "bool": bool, "float": float}


def _json_name(dc_field: dataclasses.Field) -> str:
    return dc_field.metadata.get("json", dc_field.name)


def _is_dataclass_type(hint: Any) -> bool:
    return isinstance(hint, type) and dataclasses.is_dataclass(hint)


def _field_hint(dc_field: dataclasses.Field) -> Any:
    """Work out the expected type of a field without evaluating annotations."""
    if not isinstance(dc_field.type, str):
        return dc_field.type
    factory = dc_field.default_factory
    if factory is not dataclasses.MISSING:
        if _is_dataclass_type(factory) or factory in (list, dict):
            return factory
    default = dc_field.default
    if default is not dataclasses.MISSING and default is not None:
        return type(default)
    return _SIMPLE_TYPE_NAMES.get(dc_field.type.strip(), Any)


def _decode_dataclass(cls: type, data: Any) -> Any:
    if not isinstance(data, Mapping):
        raise TypeError(f"cannot map {type(data).__name__} to {cls.__name__}")
    kwargs: dict[str, Any] = {}
    for dc_field in dataclasses.fields(cls):
        if not dc_field.init:
            continue
        value = data.get(_json_name(dc_field))
        if value is None:
            continue
        kwargs[dc_field.name] = _decode(value, _field_hint(dc_field), dc_field.name)
    return cls(**kwargs)


def _decode(value: Any, hint: Any, name: str) -> Any:
    if value is None or hint is Any or hint is object:
        return copy.deepcopy(value)
    if _is_dataclass_type(hint):
        return _decode_dataclass(hint, value)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is Union or origin is types.UnionType:
        for arg in args:
            if arg is type(None):
                continue
            try:
                return _decode(value, arg, name)
            except TypeError:
                continue
        raise TypeError(f"attribute {name} has an unexpected type")
    if hint is list or origin in (list, tuple, set, frozenset, Iterable, typing.Sequence):
        if not isinstance(value, list):
            raise TypeError(f"attribute {name} is not a list")
        item_hint = args[0] if args else Any
        return [_decode(item, item_hint, name) for item in value]
    if hint is dict or origin in (dict, Mapping):
        if not isinstance(value, Mapping):
            raise TypeError(f"attribute {name} is not an object")
        value_hint = args[1] if len(args) == 2 else Any
        return {key: _decode(item, value_hint, name) for key, item in value.items()}
    if hint is bool:
        if not isinstance(value, bool):
            raise TypeError(f"attribute {name} is not a boolean")
        return value
    if hint is int:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"attribute {name} is not an integer")
        return value
    if hint is float:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise TypeError(f"attribute {name} is not a number")
        return float(value)
    if hint is str:
        if not isinstance(value, str):
            raise TypeError(f"attribute {name} is not a string")
        return value
    return copy.deepcopy(value)


def _encode(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            _json_name(dc_field): _encode(getattr(value, dc_field.name))
            for dc_field in dataclasses.fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): _encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return copy.deepcopy(value)


@dataclass
class Resource:
    """A {json:api} resource object bound to a connection."""

    api: Optional[Connection] = field(default=None, repr=False)
    type: str = ""
    id: str = ""
    attributes: dict[str, Any] = field(default_factory=dict)
    relationships: dict[str, Relationship] = field(default_factory=dict)
    redirect: str = ""
    links: Links = field(default_factory=Links)

    def _connection(self) -> Connection:
        if self.api is None:
            raise RuntimeError("resource has no connection")
        return self.api

    def _own_url(self) -> str:
        return self.links.self_link or f"/{self.type}/{self.id}"

    def _method_and_url(self) -> tuple[str, str]:
        if self.id:
            return "PATCH", f"/{self.type}/{self.id}"
        return "POST", f"/{self.type}"

    def _all_fields(self, fields: Iterable[str] | None) -> list[str]:
        chosen = list(fields or [])
        if chosen:
            return chosen
        return [*self.attributes, *self.relationships]

    def fetch(self, key: str) -> Relationship:
        """Fetch the data of a relationship unless it was already fetched."""
        relationship = self.relationships.get(key)
        if relationship is None:
            raise KeyError(f"relationship {key} does not exist")
        if relationship.kind is RelationshipKind.NULL:
            raise ValueError("cannot fetch null relationship")
        if relationship.fetched:
            return relationship

        if relationship.kind is RelationshipKind.SINGULAR:
            url = relationship.links.related
            if not url:
                related = relationship.data_singular or Resource()
                url = f"/{related.type}/{related.id}"
            relationship.data_singular = self._connection().get_from_path(url)
            relationship.fetched = True
        else:
            url = relationship.links.related
            if not url:
                raise ValueError("plural relationship doesn't have a 'related' link")
            relationship.data_plural = self._connection().list_from_path(url)
            relationship.fetched = True
        return relationship

    def save(self, fields: Iterable[str] | None = None) -> None:
        """Send the given fields (all of them if none) with PATCH or POST."""
        method, url = self._method_and_url()
        data: dict[str, Any] = {"type": self.type}
        if self.id:
            data["id"] = self.id
        for name in self._all_fields(fields):
            relationship = self.relationships.get(name)
            if name in self.attributes:
                data.setdefault("attributes", {})[name] = self.attributes[name]
            elif relationship is not None and relationship.kind is RelationshipKind.SINGULAR:
                related = relationship.data_singular or Resource()
                identifier = {
                    key: value
                    for key, value in (("type", related.type), ("id", related.id))
                    if value
                }
                data.setdefault("relationships", {})[name] = {"data": identifier}
            else:
                raise ValueError(f"field {name} is invalid")
        body = json.dumps({"data": data}).encode("utf-8")
        self._overwrite(self._connection().request(method, url, body, ""))

    def save_as_multipart(self, fields: Iterable[str] | None = None) -> None:
        """Send the given fields as multipart/form-data with PATCH or POST."""
        method, url = self._method_and_url()
        parts: list[tuple[str, str | bytes]] = []
        for name in self._all_fields(fields):
            relationship = self.relationships.get(name)
            if name in self.attributes:
                value = self.attributes[name]
                if not isinstance(value, (str, bytes, bytearray)):
                    raise TypeError(f"field {name} is not of type string or bytes")
                parts.append((name, value))
            elif relationship is not None:
                if relationship.kind is not RelationshipKind.SINGULAR:
                    raise ValueError(f"field {name} is not a singular relationship")
                related = relationship.data_singular or Resource()
                parts.append((name, related.id))
            else:
                raise ValueError(f"field {name} is invalid")
        body, content_type = encode_multipart(parts)
        self._overwrite(self._connection().request(method, url, body, content_type))

    def delete(self) -> None:
        """Delete the resource on the server and forget its id."""
        self._connection().request("DELETE", self._own_url(), None, "")
        self.id = ""

    def reload(self) -> None:
        """Refresh from the server; a redirect is stored in ``redirect``."""
        try:
            body = self._connection().request("GET", self._own_url(), None, "")
        except RedirectError as exc:
            self.redirect = exc.location
            return
        self._overwrite(body)

    def add(self, field: str, items: Iterable[Resource]) -> None:
        """Add items to a plural relationship."""
        self._modify_plural_relationship("POST", field, items)

    def remove(self, field: str, items: Iterable[Resource]) -> None:
        """Remove items from a plural relationship."""
        self._modify_plural_relationship("DELETE", field, items)

    def reset(self, field: str, items: Iterable[Resource]) -> None:
        """Replace the items of a plural relationship."""
        self._modify_plural_relationship("PATCH", field, items)

    def _modify_plural_relationship(
        self, method: str, name: str, items: Iterable[Resource]
    ) -> None:
        relationship = self.relationships.get(name)
        if relationship is None:
            raise KeyError(f"relationship '{name}' does not exist")
        if relationship.kind is not RelationshipKind.PLURAL:
            raise ValueError(f"cannot modify the non-plural relationship '{name}'")
        url = relationship.links.self_link or f"/{self.type}/{self.id}/relationships/{name}"
        data = []
        for item in items:
            identifier = {"type": item.type}
            if item.id:
                identifier["id"] = item.id
            data.append(identifier)
        body = json.dumps({"data": data}).encode("utf-8")
        self._connection().request(method, url, body, "")
        relationship.data_plural = Collection()
        relationship.fetched = False

    def _overwrite(self, body: bytes | str) -> None:
        document = _load_document(body)
        included = make_included_map(document.get("included") or [], self.api)
        result = payload_to_resource(document.get("data") or {}, included, self.api)

        self.type = result.type
        self.id = result.id
        self.attributes = result.attributes

        for key in [key for key in self.relationships if key not in result.relationships]:
            del self.relationships[key]

        for key, new in result.relationships.items():
            old = self.relationships.get(key)
            if _should_overwrite(old, new):
                self.relationships[key] = new
            self.relationships[key].links = new.links

    def map_attributes(self, target: Any) -> Any:
        """Return the attributes as an instance of the dataclass ``target``.

        Dataclass fields are read from the attribute of the same name, or
        from the name given as ``metadata={"json": ...}``. ``dict`` yields
        a copy of the attributes.
        """
        attributes = self.attributes or {}
        if target is dict:
            return copy.deepcopy(dict(attributes))
        if not _is_dataclass_type(target):
            raise TypeError("target must be a dataclass type or dict")
        return _decode_dataclass(target, attributes)

    def unmap_attributes(self, source: Any) -> None:
        """Merge a dataclass instance or mapping into the attributes."""
        encoded = _encode(source)
        if not isinstance(encoded, Mapping):
            raise TypeError("source must be a dataclass instance or a mapping")
        if self.attributes is None:
            self.attributes = {}
        self.attributes.update(encoded)

    def set_related(self, field: str, related: Resource) -> None:
        """Point a singular relationship at ``related``, marked as fetched."""
        existing = self.relationships.get(field)
        links = existing.links if existing is not None else Links()
        self.relationships[field] = Relationship(
            kind=RelationshipKind.SINGULAR,
            fetched=True,
            data_singular=related,
            links=links,
        )


def _should_overwrite(old: Relationship | None, new: Relationship) -> bool:
    if old is None or old.kind != new.kind:
        return True
    if old.kind is RelationshipKind.SINGULAR:
        before, after = old.data_singular, new.data_singular
        if before is None or after is None:
            return True
        return (before.type, before.id) != (after.type, after.id) or new.fetched
    if old.kind is RelationshipKind.PLURAL:
        return new.fetched
    return False


def payload_to_resource(
    payload: Mapping[str, Any],
    included: Mapping[str, Resource] | None,
    api: Connection | None,
) -> Resource:
    """Build a Resource from a resource object of a response document."""
    if not isinstance(payload, Mapping):
        raise ValueError("resource object must be a JSON object")
    attributes = payload.get("attributes")
    resource = Resource(
        api=api,
        type=_string(payload.get("type")),
        id=_string(payload.get("id")),
        attributes=dict(attributes) if isinstance(attributes, Mapping) else {},
    )

    relationships = payload.get("relationships")
    if not isinstance(relationships, Mapping):
        relationships = {}
    for key, value in relationships.items():
        value = value if isinstance(value, Mapping) else {}
        data = value.get("data")
        links = Links.from_payload(value.get("links"))
        related_type = _string(data.get("type")) if isinstance(data, Mapping) else ""
        related_id = _string(data.get("id")) if isinstance(data, Mapping) else ""

        if related_type or related_id:
            item = (included or {}).get(f"{related_type}:{related_id}")
            if item is not None:
                relationship = Relationship(
                    kind=RelationshipKind.SINGULAR,
                    fetched=True,
                    data_singular=item,
                    links=links,
                )
            else:
                relationship = Relationship(
                    kind=RelationshipKind.SINGULAR,
                    fetched=False,
                    data_singular=Resource(api=api, type=related_type, id=related_id),
                    links=links,
                )
        elif links:
            relationship = Relationship(
                kind=RelationshipKind.PLURAL,
                fetched=False,
                data_plural=Collection(api=api),
                links=links,
            )
        else:
            relationship = Relationship(kind=RelationshipKind.NULL)
        resource.relationships[key] = relationship
    return resource


def make_included_map(
    included_payload: Iterable[Mapping[str, Any]], api: Connection | None
) -> dict[str, Resource]:
    """Map ``<type>:<id>`` to resources of a document's ``included`` array."""
    result: dict[str, Resource] = {}
    for payload in included_payload:
        resource = payload_to_resource(payload, None, api)
        result[f"{resource.type}:{resource.id}"] = resource
    return result


def json_equal(left: bytes | str, right: bytes | str) -> bool:
    """Tell whether two JSON documents hold the same data."""
    return json.loads(left) == json.loads(right)


class _RejectRedirects(urllib.request.HTTPRedirectHandler):
    def redirect_request(self, req, fp, code, msg, headers, newurl):
        raise RedirectError(newurl)


@dataclass
class Connection:
    """Access to a {json:api} server.

    ``request_method``, if set, replaces the HTTP transport; it receives
    ``(method, path, payload, content_type)`` and returns the body.
    """

    host: str = ""
    token: str = field(default="", repr=False)
    headers: dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    request_method: Optional[RequestMethod] = field(default=None, repr=False)

    def request(
        self,
        method: str,
        path: str,
        payload: bytes | None = None,
        content_type: str = "",
    ) -> bytes:
        """Send a request and return the body of a successful response."""
        if self.request_method is not None:
            return self.request_method(method, path, payload, content_type)

        url = self.host + path if path.startswith("/") else path
        headers = {
            "Content-Type": content_type or DEFAULT_CONTENT_TYPE,
            "Authorization": f"Bearer {self.token}",
            **self.headers,
        }
        request = urllib.request.Request(url, data=payload, method=method, headers=headers)
        opener = urllib.request.build_opener(_RejectRedirects)
        options = {} if self.timeout is None else {"timeout": self.timeout}
        try:
            with opener.open(request, **options) as response:
                status = response.status
                response_headers = dict(response.headers.items())
                body = response.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            response_headers = dict(exc.headers.items()) if exc.headers else {}
            body = exc.read()

        throttle = parse_throttle_response(status, response_headers)
        if throttle is not None:
            raise throttle
        error = parse_error_response(status, body)
        if error is not None:
            raise error
        return body

    def get(self, resource_type: str, resource_id: str) -> Resource:
        """Return the resource with the given type and id."""
        return self.get_from_path(f"/{resource_type}/{resource_id}")

    def get_from_path(self, path: str) -> Resource:
        """Return the resource found at ``path``."""
        document = _load_document(self.request("GET", path, None, ""))
        return payload_to_resource(document.get("data") or {}, None, self)

    def list(self, resource_type: str, query: str = "") -> Collection:
        """Return the first page of a list; ``query`` is an encoded query string."""
        url = f"/{resource_type}"
        if query:
            url = f"{url}?{query}"
        return self.list_from_path(url)

    def list_from_path(self, url: str) -> Collection:
        """Return the page of a list found at ``url``."""
        document = _load_document(self.request("GET", url, None, ""))
        included = make_included_map(document.get("included") or [], self)
        links = document.get("links")
        if not isinstance(links, Mapping):
            links = {}
        return Collection(
            api=self,
            data=[
                payload_to_resource(item, included, self)
                for item in document.get("data") or []
            ],
            next=_string(links.get("next")),
            previous=_string(links.get("previous")),
        )