import pytest

from txcli.jsonapi.core import Connection
from txcli.jsonapi.mocking import MockData, get_mock_text_response, get_test_connection
from txcli.txapi.languages import (
    LanguageAttributes,
    PluralRules,
    get_language,
    get_languages,
)

LANGUAGES = """{"data": [
    {"type": "languages", "id": "l:en",
     "attributes": {"code": "en", "name": "English", "rtl": false,
                    "plural_equation": "(n != 1)",
                    "plural_rules": {"one": "n is 1", "other": "everything else"}}},
    {"type": "languages", "id": "l:ar",
     "attributes": {"code": "ar", "name": "Arabic", "rtl": true}}
]}"""


def _api():
    return get_test_connection(MockData({"/languages": get_mock_text_response(LANGUAGES)}))


def test_get_language_finds_by_code():
    language = get_language(_api(), "ar")
    assert language.id == "l:ar"
    assert language.attributes["name"] == "Arabic"


def test_get_language_missing_returns_none():
    assert get_language(_api(), "fr") is None


def test_get_language_propagates_errors():
    api = get_test_connection(MockData())
    with pytest.raises(LookupError):
        get_language(api, "en")


def test_get_languages_is_fetched_once():
    languages = get_languages(_api())
    assert set(languages) == {"en", "ar"}
    assert languages["en"].id == "l:en"

    calls = []

    def respond(method, path, payload, content_type):
        calls.append(path)
        return b'{"data": []}'

    again = get_languages(Connection(request_method=respond))
    assert again is languages
    assert calls == []


def test_language_attributes_mapping():
    language = get_language(_api(), "en")
    attributes = language.map_attributes(LanguageAttributes)
    assert attributes.code == "en"
    assert attributes.rtl is False
    assert attributes.plural_equation == "(n != 1)"
    assert attributes.plural_rules == PluralRules(one="n is 1", other="everything else")