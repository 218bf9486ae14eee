"""Asynchronous downloads of source strings and translations."""

from __future__ import annotations

import os
import time
import urllib.error
import urllib.request
from pathlib import Path

from ..jsonapi.core import Connection, Resource
from .utils import get_backoff

__all__ = [
    "DownloadError",
    "create_resource_strings_async_download",
    "create_translations_async_download",
    "poll_resource_strings_download",
    "poll_translation_download",
]


class DownloadError(Exception):
    """A download failed on the server or while fetching the file."""


def _related_id(resource: Resource, name: str) -> str:
    relationship = resource.relationships.get(name)
    if relationship is None or relationship.data_singular is None:
        return ""
    return relationship.data_singular.id


def _fetch_to_file(url: str, file_path: str | os.PathLike[str]) -> None:
    try:
        with urllib.request.urlopen(url) as response:
            status = getattr(response, "status", None)
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise DownloadError("file download error") from exc
    if status != 200:
        raise DownloadError("file download error")
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(body)


def create_resource_strings_async_download(
    api: Connection,
    resource: Resource,
    content_encoding: str,
    file_type: str,
    pseudo: bool,
) -> Resource:
    """Ask the server to prepare the source file of a resource."""
    download = Resource(
        api=api,
        type="resource_strings_async_downloads",
        attributes={
            "content_encoding": content_encoding,
            "file_type": file_type,
            "pseudo": pseudo,
        },
    )
    download.set_related("resource", resource)
    download.save()
    return download


def poll_resource_strings_download(
    download: Resource, file_path: str | os.PathLike[str]
) -> None:
    """Wait for a source download and write the file to ``file_path``.

    Returns without writing when the server reports success without a file.
    """
    backoff = get_backoff()
    while True:
        time.sleep(next(backoff))
        download.reload()
        if download.redirect:
            _fetch_to_file(download.redirect, file_path)
            return
        status = download.attributes.get("status")
        if status == "failed":
            raise DownloadError(
                f"download of translation '{_related_id(download, 'resource')}' failed"
            )
        if status == "succeeded":
            return


def create_translations_async_download(
    api: Connection,
    resource: Resource,
    language_code: str,
    content_encoding: str,
    file_type: str,
    mode: str,
) -> Resource:
    """Ask the server to prepare a translation file of a resource."""
    download = Resource(
        api=api,
        type="resource_translations_async_downloads",
        attributes={
            "content_encoding": content_encoding,
            "file_type": file_type,
            "mode": mode,
            "pseudo": False,
        },
    )
    download.set_related("resource", resource)
    download.set_related(
        "language", Resource(type="languages", id=f"l:{language_code}")
    )
    download.save()
    return download


def poll_translation_download(
    download: Resource, file_path: str | os.PathLike[str]
) -> None:
    """Wait until a translation download redirects, then write the file."""
    backoff = get_backoff()
    while True:
        time.sleep(next(backoff))
        download.reload()
        if download.redirect:
            break
    _fetch_to_file(download.redirect, file_path)