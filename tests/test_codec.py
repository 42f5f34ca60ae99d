from enum import Enum

import pytest

from dialogbridge.core import FallbackJsonCodec, JsonCodec, get_codec, normalize
from dialogbridge.core.fallback_json import JsonKind, dumps, json_kind, loads
from dialogbridge.utils.exceptions import MalformedPayloadError, PayloadEncodeError


class Color(Enum):
    RED = "red"
    GREEN = 2


SAMPLES = [
    None,
    True,
    False,
    0,
    -17,
    3.25,
    1e-7,
    "",
    "plain",
    "quote \" backslash \\ slash / newline \n tab \t",
    "unicode: é ü ß 漢字 🙂",
    [],
    {},
    [1, [2, [3, {"deep": [None, True]}]]],
    {"name": "Bridge.puts", "parameters": ["x", 1.5, {"a": []}], "expectsCallback": False, "id": 3},
]


@pytest.mark.parametrize("codec", [JsonCodec(), JsonCodec(ensure_ascii=True), FallbackJsonCodec()], ids=["json", "ascii", "fallback"])
def test_json_values_survive_both_directions(codec):
    for value in SAMPLES:
        text = codec.encode(value)
        assert codec.decode(text) == value
        assert codec.encode(codec.decode(text)) == text


def test_codecs_agree_on_decoding():
    text = JsonCodec().encode(SAMPLES)
    assert FallbackJsonCodec().decode(text) == JsonCodec().decode(FallbackJsonCodec().encode(SAMPLES))


def test_fallback_output_is_ascii_with_surrogate_pairs():
    text = FallbackJsonCodec().encode("é🙂")
    assert text.isascii()
    assert text == '"\\u00e9\\ud83d\\ude42"'
    assert loads(text) == "é🙂"


def test_symbol_keys_and_values_become_strings():
    value = {Color.RED: Color.GREEN, 1: (True, None)}
    assert normalize(value) == {"red": "GREEN", "1": [True, None]}
    assert FallbackJsonCodec().encode(value) == '{"red":"GREEN","1":[true,null]}'


@pytest.mark.parametrize("value", [object(), {1, 2}, float("nan"), float("inf"), {(1, 2): "tuple key"}])
def test_non_json_values_are_refused_on_encode(value):
    with pytest.raises(PayloadEncodeError):
        JsonCodec().encode(value)
    with pytest.raises(PayloadEncodeError):
        FallbackJsonCodec().encode(value)


@pytest.mark.parametrize("text", ["alert(1)", "[1, foo]", '{"a": NaN}', "Infinity", "{'a': 1}", "[1,]", '"open', "1 2", ""])
def test_fallback_refuses_unsafe_or_broken_input(text):
    with pytest.raises(MalformedPayloadError):
        FallbackJsonCodec().decode(text)


def test_fallback_error_names_the_bare_word():
    with pytest.raises(MalformedPayloadError) as info:
        loads('{"x": window}')
    assert "invalid unquoted textual expression" in info.value.message
    assert "window" in info.value.message


def test_fallback_accepts_undefined_as_null():
    assert loads("[undefined, null, true]") == [None, None, True]


def test_json_codec_rejects_constants_and_garbage():
    with pytest.raises(MalformedPayloadError):
        JsonCodec().decode("[NaN]")
    with pytest.raises(MalformedPayloadError):
        JsonCodec().decode("{not json")
    with pytest.raises(MalformedPayloadError):
        JsonCodec().decode(b"[]")


def test_json_kind_tags():
    assert json_kind(None) is JsonKind.NULL
    assert json_kind(False) is JsonKind.BOOLEAN
    assert json_kind(1) is JsonKind.NUMBER
    assert json_kind("s") is JsonKind.STRING
    assert json_kind([]) is JsonKind.ARRAY
    assert json_kind({}) is JsonKind.OBJECT


def test_dumps_is_compact():
    assert dumps({"a": [1, 2.5, "b"]}) == '{"a":[1,2.5,"b"]}'


def test_get_codec():
    assert get_codec("json").name == "json"
    assert get_codec("fallback").name == "fallback"
    assert get_codec("json", ensure_ascii=True).encode("é") == '"\\u00e9"'
    with pytest.raises(ValueError):
        get_codec("yaml")
