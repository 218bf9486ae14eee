"""Encoding of multipart/form-data request bodies."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Union

__all__ = ["encode_multipart"]

FieldValue = Union[str, bytes]


def _escape_quotes(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def encode_multipart(
    fields: Mapping[str, FieldValue] | Iterable[tuple[str, FieldValue]],
) -> tuple[bytes, str]:
    """Encode form fields and return ``(body, content_type)``.

    String values become plain form fields; bytes values become file parts
    named ``<field>.txt``. Any other value raises TypeError.
    """
    items = fields.items() if isinstance(fields, Mapping) else fields
    boundary = os.urandom(30).hex()
    delimiter = f"--{boundary}".encode("ascii")
    chunks: list[bytes] = []
    for name, value in items:
        escaped = _escape_quotes(name)
        if isinstance(value, str):
            headers = f'Content-Disposition: form-data; name="{escaped}"\r\n'
            data = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray)):
            filename = _escape_quotes(f"{name}.txt")
            headers = (
                f'Content-Disposition: form-data; name="{escaped}"; '
                f'filename="{filename}"\r\n'
                "Content-Type: application/octet-stream\r\n"
            )
            data = bytes(value)
        else:
            raise TypeError(f"field {name} is not of type string or bytes")
        prefix = b"\r\n" if chunks else b""
        chunks.append(
            prefix + delimiter + b"\r\n" + headers.encode("utf-8") + b"\r\n" + data
        )
    closing = (b"\r\n" if chunks else b"") + delimiter + b"--\r\n"
    chunks.append(closing)
    return b"".join(chunks), f"multipart/form-data;boundary={boundary}"