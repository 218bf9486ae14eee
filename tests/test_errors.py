import pytest

from txcli.jsonapi.errors import (
    ErrorItem,
    JsonApiError,
    RedirectError,
    ThrottleError,
    parse_error_response,
    parse_throttle_response,
)

SINGLE = b"""{"errors": [{"status": "400",
                          "code": "bad_request",
                          "title": "Bad request",
                          "detail": "Invalid username"}]}"""

DOUBLE = b"""{"errors": [{"status": "409",
                          "code": "conflict",
                          "title": "Conflict",
                          "detail": "username is already taken"},
                         {"status": "409",
                          "code": "conflict",
                          "title": "Conflict",
                          "detail": "email is already taken"}]}"""


def test_single_error_response():
    error = parse_error_response(400, SINGLE)
    assert error is not None
    assert error.status_code == 400
    assert str(error) == "400, bad_request: Invalid username"


def test_single_error_response_structurally():
    error = parse_error_response(400, SINGLE)
    assert isinstance(error, JsonApiError)
    item = error.errors[0]
    assert (item.status, item.code, item.title, item.detail) == (
        "400",
        "bad_request",
        "Bad request",
        "Invalid username",
    )


def test_double_error_response():
    error = parse_error_response(409, DOUBLE)
    assert error.status_code == 409
    assert str(error) == (
        "409, conflict: username is already taken, conflict: "
        "email is already taken"
    )


def test_success_is_not_an_error():
    assert parse_error_response(200, SINGLE) is None
    assert parse_error_response(399, b"") is None


def test_unparsable_body_still_errors():
    error = parse_error_response(500, b"not json")
    assert error.errors == []
    assert str(error) == "500"


def test_error_can_be_raised():
    error = parse_error_response(404, b"{}")
    assert error.status_code == 404
    assert error.errors == []
    with pytest.raises(JsonApiError) as info:
        raise error
    assert info.value is error
    assert str(info.value) == "404"


def test_error_item_source():
    item = ErrorItem.from_payload({"source": {"pointer": "/data", "parameter": "x"}})
    assert item.source_pointer == "/data"
    assert item.source_parameter == "x"


def test_throttle_response():
    error = parse_throttle_response(429, {"Retry-After": "5"})
    assert isinstance(error, ThrottleError)
    assert error.retry_after == 5
    assert str(error) == "throttled; retry after 5"


def test_throttle_header_case_insensitive():
    assert parse_throttle_response(429, {"retry-after": "7"}).retry_after == 7


def test_throttle_bad_header_defaults_to_one():
    assert parse_throttle_response(429, {"Retry-After": "soon"}).retry_after == 1
    assert parse_throttle_response(429, {}).retry_after == 1


def test_not_throttled():
    assert parse_throttle_response(200, {"Retry-After": "5"}) is None


def test_redirect_error_keeps_location():
    error = RedirectError("/elsewhere")
    assert error.location == "/elsewhere"
    assert "does not handle redirects" in str(error)