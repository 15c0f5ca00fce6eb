"""Tests for structured output recovery parsing."""

import json

import pytest

from studyflow.app.parsing.sanitizer import (
    MalformedOutputError,
    aggressive_sanitize,
    escape_string_contents,
    parse_structured,
    repair_truncation,
    strip_wrapping,
)


def test_valid_json_parses_directly() -> None:
    """Well-formed output needs no repair."""
    assert parse_structured('{"title": "Intro", "pages": [1, 2]}') == {
        "title": "Intro",
        "pages": [1, 2],
    }


def test_code_fence_with_raw_newline_in_string() -> None:
    """Fenced response with a raw newline inside a value is recovered."""
    raw = '```json\n{"text": "line one\nline two"}\n```'

    value = parse_structured(raw)

    assert value == {"text": "line one\nline two"}


def test_leading_prose_is_skipped() -> None:
    """Sentence before the payload is dropped."""
    raw = 'Here is the JSON you asked for:\n[{"title": "Intro"}]'

    assert parse_structured(raw) == [{"title": "Intro"}]


def test_trailing_prose_is_ignored() -> None:
    """Text after a complete payload does not break parsing."""
    assert parse_structured("[1, 2]\nHope this helps!") == [1, 2]


def test_unescaped_quotes_inside_string() -> None:
    """Quotes followed by non-delimiters are treated as content."""
    raw = '{"quote": "He said "hello" to me", "n": 1}'

    assert parse_structured(raw) == {"quote": 'He said "hello" to me', "n": 1}


def test_escape_string_contents_keeps_closing_quotes() -> None:
    """Quotes followed by a delimiter still close the string."""
    text = '["a", "b"]'

    assert escape_string_contents(text) == text


def test_escape_string_contents_escapes_tabs_and_low_bytes() -> None:
    """Control characters inside strings become escape sequences."""
    escaped = escape_string_contents('{"a": "x\ty\x01"}')

    assert escaped == '{"a": "x\\ty\\u0001"}'
    assert json.loads(escaped) == {"a": "x\ty\x01"}


def test_stray_backslash_is_doubled() -> None:
    """Backslashes from file paths survive the aggressive strategy."""
    raw = '{"path": "C:\\Users\\data"}'

    assert parse_structured(raw) == {"path": "C:\\Users\\data"}


def test_trailing_comma_removed() -> None:
    """Trailing commas before closers are stripped."""
    assert parse_structured('{"items": [1, 2, 3,],}') == {"items": [1, 2, 3]}


def test_aggressive_sanitize_replaces_control_characters() -> None:
    """Control characters become single spaces."""
    assert aggressive_sanitize('{"a":\n"b\x02c"}') == '{"a": "b c"}'


def test_truncated_array_missing_two_closers() -> None:
    """Truncation repair closes nested containers in reverse order."""
    raw = '{"chapters": [{"title": "A"}, {"title": "B"}'

    assert parse_structured(raw) == {"chapters": [{"title": "A"}, {"title": "B"}]}


def test_truncated_inside_element_keeps_complete_elements() -> None:
    """An element cut off midway is dropped rather than closed."""
    assert parse_structured('[{"a": 1}, {"b": 2}, {') == [{"a": 1}, {"b": 2}]

    raw = '[{"title": "A", "items": [1, 2]}, {"title": "B", "items": [3, 4'
    assert parse_structured(raw) == [{"title": "A", "items": [1, 2]}]


def test_truncated_inside_string_value_drops_element() -> None:
    """An element whose value is cut off is dropped whole."""
    raw = '[{"title": "A"}, {"title": "B", "summary": "half a sent'

    assert parse_structured(raw) == [{"title": "A"}]



def test_truncated_after_key_drops_key() -> None:
    """A key without a value is dropped."""
    raw = '{"chapters": [{"title": "A"}], "note":'

    assert parse_structured(raw) == {"chapters": [{"title": "A"}]}


def test_repair_truncation_drops_partial_literal() -> None:
    """Partially written literals are removed before closing."""
    assert repair_truncation('[1, 2, tr') == "[1, 2]"
    assert repair_truncation('{"done": true, "n": 1.') == '{"done": true}'


def test_strip_wrapping_handles_fence_after_prose() -> None:
    """A fenced block embedded in prose is extracted."""
    raw = 'Sure!\n```json\n{"a": 1}\n```\nLet me know.'

    assert strip_wrapping(raw) == '{"a": 1}'


def test_unrecoverable_output_raises_with_context() -> None:
    """Failure reports the first error offset and surrounding text."""
    with pytest.raises(MalformedOutputError) as exc_info:
        parse_structured('{"a": [1, 2}')

    assert exc_info.value.position == 11
    assert "[1, 2}" in exc_info.value.context


def test_prose_only_output_raises() -> None:
    """Plain prose is never turned into default data."""
    with pytest.raises(MalformedOutputError) as exc_info:
        parse_structured("this is not json at all")

    assert exc_info.value.position == 0
    assert "this is not json" in exc_info.value.context


def test_context_is_limited_to_80_chars_each_side() -> None:
    """Context window is bounded."""
    raw = "[" + "1, " * 100 + "x" + ", 2" * 100 + "]"

    with pytest.raises(MalformedOutputError) as exc_info:
        parse_structured(raw)

    assert exc_info.value.position == raw.index("x")
    assert len(exc_info.value.context) == 160


@pytest.mark.parametrize(
    "raw",
    [
        '```json\n{"text": "line one\nline two"}\n```',
        '{"quote": "He said "hello" to me"}',
        '[{"title": "A", "items": [1, 2]}, {"title": "B", "items": [3, 4',
        '{"items": [1, 2, 3,],}',
    ],
)
def test_parsing_is_idempotent(raw: str) -> None:
    """Re-parsing the serialized result yields the same value."""
    value = parse_structured(raw)

    assert parse_structured(json.dumps(value)) == value


def test_repair_truncation_drops_open_nested_array() -> None:
    """Only the complete inner arrays survive."""
    assert repair_truncation("[[1, 2], [3, 4") == "[[1, 2]]"
