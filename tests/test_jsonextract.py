import json

import pytest

from deepseek_mcp.jsonextract import (
    JSONExtractionError,
    extract_strict_json,
    find_matching_brace,
    find_matching_bracket,
    truncate_string,
)


def test_plain_object_is_returned_unchanged():
    assert extract_strict_json('{"a": 1}') == '{"a": 1}'


def test_fenced_json_block():
    assert extract_strict_json('```json\n{"a": [1, 2]}\n```') == '{"a": [1, 2]}'


def test_bare_fence():
    assert extract_strict_json('```\n[1, 2, 3]\n```') == "[1, 2, 3]"


def test_surrounding_prose_is_dropped():
    result = extract_strict_json('Here you go: {"key": "value"} hope it helps')
    assert result == '{"key": "value"}'


def test_earliest_opener_wins():
    result = extract_strict_json('[{"x": 1}] and {"y": 2}')
    assert json.loads(result) == [{"x": 1}]


def test_nested_object_round_trips():
    data = {"outer": {"inner": [1, {"deep": True}]}, "n": None}
    encoded = json.dumps(data)
    assert json.loads(extract_strict_json("prefix " + encoded + " suffix")) == data


def test_no_json_raises():
    with pytest.raises(JSONExtractionError, match="no JSON object or array"):
        extract_strict_json("just words here")


def test_unbalanced_raises():
    with pytest.raises(JSONExtractionError, match="matching closing"):
        extract_strict_json('{"a": {"b": 1}')


def test_invalid_json_raises():
    with pytest.raises(JSONExtractionError, match="not valid JSON"):
        extract_strict_json("{not json}")


def test_nan_is_rejected():
    with pytest.raises(JSONExtractionError):
        extract_strict_json('{"a": NaN}')


def test_find_matching_brace_nested():
    text = "{a{b}c}"
    end = find_matching_brace(text, 0)
    assert end == len(text) - 1
    inner = text.index("{", 1)
    assert text[find_matching_brace(text, inner)] == "}"
    assert find_matching_brace(text, inner) == text.index("}")


def test_find_matching_brace_wrong_start():
    assert find_matching_brace("[]", 0) is None
    assert find_matching_brace("{{}", 0) is None


def test_find_matching_bracket():
    text = "[[1],[2]] tail"
    assert find_matching_bracket(text, 0) == text.index(" ") - 1
    assert find_matching_bracket("{}", 0) is None
    assert find_matching_bracket("[[", 0) is None


def test_truncate_string():
    assert truncate_string("short", 10) == "short"
    assert truncate_string("abcdef", 3) == "abc..."
    assert truncate_string("abc", 3) == "abc"