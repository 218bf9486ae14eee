"""Asynchronous uploads of source files and translations."""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import IO, Union

from ..jsonapi.core import Connection, Resource
from .utils import get_backoff

__all__ = [
    "ResourceStringAsyncUploadAttributes",
    "ResourceTranslationsAsyncUploadAttributes",
    "UploadError",
    "poll_source_upload",
    "poll_translation_upload",
    "upload_source",
    "upload_translation",
]


@dataclass
class _UploadErrorItem:
    code: str = ""
    detail: str = ""


@dataclass
class _SourceUploadDetails:
    strings_created: int = 0
    strings_deleted: int = 0
    strings_skipped: int = 0
    strings_updated: int = 0


@dataclass
class _TranslationUploadDetails:
    translations_created: int = 0
    translations_updated: int = 0


@dataclass
class ResourceStringAsyncUploadAttributes:
    """Attributes of a source upload as the server reports them."""

    date_created: str = ""
    date_modified: str = ""
    status: str = ""
    details: _SourceUploadDetails = field(default_factory=_SourceUploadDetails)
    errors: list[_UploadErrorItem] = field(default_factory=list)


@dataclass
class ResourceTranslationsAsyncUploadAttributes:
    """Attributes of a translation upload as the server reports them."""

    date_created: str = ""
    date_modified: str = ""
    status: str = ""
    details: _TranslationUploadDetails = field(default_factory=_TranslationUploadDetails)
    errors: list[_UploadErrorItem] = field(default_factory=list)


class UploadError(Exception):
    """An upload failed on the server; ``errors`` holds the reported items."""

    def __init__(self, message: str, errors: Iterable[_UploadErrorItem] = ()):
        super().__init__(message)
        self.errors = list(errors)


def _join_errors(errors: Iterable[_UploadErrorItem]) -> str:
    return ", ".join(f"{item.code}: {item.detail}" for item in errors)


def _related_id(resource: Resource, name: str) -> str:
    relationship = resource.relationships.get(name)
    if relationship is None or relationship.data_singular is None:
        return ""
    return relationship.data_singular.id


def _read_all(file: IO[bytes] | IO[str]) -> bytes:
    data: Union[bytes, str] = file.read()
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def upload_source(api: Connection, resource: Resource, file: IO[bytes]) -> Resource:
    """Upload the contents of ``file`` as the source of a resource."""
    upload = Resource(
        api=api,
        type="resource_strings_async_uploads",
        attributes={"content": _read_all(file)},
    )
    upload.set_related("resource", resource)
    upload.save_as_multipart()
    return upload


def poll_source_upload(upload: Resource) -> None:
    """Wait until a source upload succeeds; raise UploadError if it fails."""
    backoff = get_backoff()
    while True:
        time.sleep(next(backoff))
        upload.reload()
        attributes = upload.map_attributes(ResourceStringAsyncUploadAttributes)
        if attributes.status == "failed":
            raise UploadError(
                f"upload of resource '{_related_id(upload, 'resource')}' failed - "
                f"{_join_errors(attributes.errors)}",
                attributes.errors,
            )
        if attributes.status == "succeeded":
            return


def upload_translation(
    api: Connection,
    resource: Resource,
    language: Resource,
    file: IO[bytes],
    xliff: bool = False,
) -> Resource:
    """Upload the contents of ``file`` as a translation of a resource."""
    upload = Resource(
        api=api,
        type="resource_translations_async_uploads",
        attributes={
            "content": _read_all(file),
            "file_type": "xliff" if xliff else "default",
        },
    )
    upload.set_related("resource", resource)
    upload.set_related("language", language)
    upload.save_as_multipart()
    return upload


def poll_translation_upload(upload: Resource) -> None:
    """Wait until a translation upload succeeds; raise UploadError if it fails."""
    backoff = get_backoff()
    while True:
        time.sleep(next(backoff))
        upload.reload()
        attributes = upload.map_attributes(ResourceTranslationsAsyncUploadAttributes)
        if attributes.status == "failed":
            raise UploadError(
                f"upload of resource '{_related_id(upload, 'resource')}', "
                f"language '{_related_id(upload, 'language')}' failed - "
                f"{_join_errors(attributes.errors)}",
                attributes.errors,
            )
        if attributes.status == "succeeded":
            return