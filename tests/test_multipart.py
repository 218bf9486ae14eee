import pytest

from txcli.jsonapi.multipart import encode_multipart


def _boundary(content_type):
    prefix = "multipart/form-data;boundary="
    assert content_type.startswith(prefix)
    return content_type[len(prefix):].encode("ascii")


def _parse(body, boundary):
    """Split a multipart body into (headers, data) pairs."""
    delimiter = b"--" + boundary
    assert body.endswith(delimiter + b"--\r\n")
    inner = body[: -len(delimiter + b"--\r\n")]
    if not inner:
        return []
    assert inner.startswith(delimiter + b"\r\n")
    pieces = inner.split(b"\r\n" + delimiter + b"\r\n")
    pieces[0] = pieces[0][len(delimiter + b"\r\n"):]
    if pieces[-1].endswith(b"\r\n"):
        pieces[-1] = pieces[-1][:-2]
    parts = []
    for piece in pieces:
        head, data = piece.split(b"\r\n\r\n", 1)
        parts.append((head.decode("utf-8").split("\r\n"), data))
    return parts


def test_string_and_bytes_round_trip():
    content = b"key: value\nother: \x00\xff"
    body, content_type = encode_multipart([("file_type", "xliff"), ("content", content)])
    parts = _parse(body, _boundary(content_type))
    assert parts[0] == (['Content-Disposition: form-data; name="file_type"'], b"xliff")
    assert parts[1] == (
        [
            'Content-Disposition: form-data; name="content"; filename="content.txt"',
            "Content-Type: application/octet-stream",
        ],
        content,
    )


def test_mapping_keeps_order():
    body, content_type = encode_multipart({"resource": "r1", "language": "l:el"})
    parts = _parse(body, _boundary(content_type))
    assert [data for _, data in parts] == [b"r1", b"l:el"]


def test_empty_fields():
    body, content_type = encode_multipart([])
    boundary = _boundary(content_type)
    assert body == b"--" + boundary + b"--\r\n"


def test_boundary_not_in_data():
    body, content_type = encode_multipart({"a": "b"})
    boundary = _boundary(content_type)
    assert body.count(boundary) == 2


def test_quotes_in_names_are_escaped():
    body, content_type = encode_multipart({'we"ird': "x"})
    parts = _parse(body, _boundary(content_type))
    assert parts[0][0] == ['Content-Disposition: form-data; name="we\\"ird"']


def test_unsupported_value_type():
    with pytest.raises(TypeError, match="field count is not of type string or bytes"):
        encode_multipart({"count": 3})