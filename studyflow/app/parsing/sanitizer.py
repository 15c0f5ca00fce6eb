"""Recovery parser for structured output returned by the generation service.

Model responses are usually valid JSON, but they fail in a handful of
recurring ways:
- wrapping code fences or a sentence of prose around the payload
- unescaped quotes and raw newlines inside string values
- stray backslashes copied from the source text, trailing commas
- truncation when the output-length cap is hit

Each strategy targets exactly one of those. Strategies run in order and the
first successful strict parse wins. If none succeeds, MalformedOutputError is
raised with the offset and surrounding text of the first parse failure.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from studyflow.app.utils.metrics import structured_parse_total

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 80

# Distance from end-of-input within which a parse error counts as truncation
_TRUNCATION_TOLERANCE = 3

_FENCE_OPEN_RE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?[ \t]*```\s*$")
_FENCED_BLOCK_RE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n(.*?)\n?[ \t]*```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1f]")
_BACKSLASH_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.?)", re.DOTALL)
_PARTIAL_WORD_RE = re.compile(r"(?<![\w\"])[A-Za-z]+$")
_PARTIAL_NUMBER_RE = re.compile(r"(?<![\w\".])-?\d*(?:\.\d*)?(?:[eE][+-]?\d*)?$")
_JSON_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")

_VALID_ESCAPES = frozenset('"\\/bfnrt')
_DELIMITERS_AFTER_CLOSING_QUOTE = frozenset(",}]:")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}
_SCALAR_PREFIXES = ("true", "false", "null")

_DECODER = json.JSONDecoder()


class MalformedOutputError(Exception):
    """Generation output could not be parsed by any recovery strategy."""

    def __init__(self, message: str, *, position: int, context: str) -> None:
        super().__init__(f"{message} (offset {position}, context {context!r})")
        self.position = position
        self.context = context

    @classmethod
    def from_decode_error(cls, text: str, error: json.JSONDecodeError) -> "MalformedOutputError":
        """Build an error carrying ±CONTEXT_CHARS of text around the failure."""
        start = max(0, error.pos - CONTEXT_CHARS)
        return cls(
            f"Unparseable structured output: {error.msg}",
            position=error.pos,
            context=text[start : error.pos + CONTEXT_CHARS],
        )


def parse_structured(raw_text: str) -> Any:
    """Parse a model response into JSON data, repairing common defects.

    Args:
        raw_text: Raw text returned by the generation service

    Returns:
        Parsed JSON value (usually a list or dict)

    Raises:
        MalformedOutputError: If every recovery strategy fails
    """
    text = strip_wrapping(raw_text)
    first_error: json.JSONDecodeError | None = None

    strategies = (
        ("direct", lambda t: t),
        ("string_aware", escape_string_contents),
        ("aggressive", aggressive_sanitize),
    )
    for name, transform in strategies:
        try:
            value = _loads(transform(text))
        except json.JSONDecodeError as e:
            if first_error is None:
                first_error = e
            continue
        _record_success(name)
        return value

    string_aware = escape_string_contents(text)
    if looks_truncated(string_aware, first_error):
        for base in (string_aware, aggressive_sanitize(text)):
            try:
                value = _loads(repair_truncation(base))
            except json.JSONDecodeError:
                continue
            _record_success("truncation_repair")
            return value

    structured_parse_total.labels(strategy="failed").inc()
    if first_error is None:  # pragma: no cover - the direct strategy always runs first
        first_error = json.JSONDecodeError("Expecting value", text, 0)
    raise MalformedOutputError.from_decode_error(text, first_error)


def strip_wrapping(raw_text: str) -> str:
    """Remove code fences, surrounding whitespace and leading prose."""
    text = raw_text.strip()

    if text.startswith("```"):
        text = _FENCE_OPEN_RE.sub("", text, count=1)
        text = _FENCE_CLOSE_RE.sub("", text, count=1)
    elif "```" in text:
        match = _FENCED_BLOCK_RE.search(text)
        if match:
            text = match.group(1)
    text = text.strip()

    # "Here is the JSON: [...]" -> "[...]"
    if text and text[0] not in '[{"-0123456789' and not text.startswith(_SCALAR_PREFIXES):
        starts = [idx for idx in (text.find("["), text.find("{")) if idx > 0]
        if starts:
            text = text[min(starts) :]

    return text


def escape_string_contents(text: str) -> str:
    """Escape stray quotes and raw control characters inside string literals.

    A quote inside a string only closes it when the next non-whitespace
    character is a structural delimiter (or end of text); otherwise it is
    treated as content and escaped.
    """
    out: list[str] = []
    in_string = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if not in_string:
            if ch == '"':
                in_string = True
            out.append(ch)
            i += 1
            continue

        if ch == "\\":
            if i + 1 < n:
                out.append(text[i : i + 2])
                i += 2
            else:
                out.append("\\\\")
                i += 1
            continue

        if ch == '"':
            if _quote_closes_string(text, i + 1):
                in_string = False
                out.append(ch)
            else:
                out.append('\\"')
        elif ch < " ":
            out.append(_CONTROL_ESCAPES.get(ch) or f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
        i += 1

    return "".join(out)


def aggressive_sanitize(text: str) -> str:
    """String-unaware cleanup: stray backslashes, control chars, trailing commas.

    Control characters become a single space, which is legal between tokens
    and a lossy but harmless substitution inside string values.
    """
    text = _BACKSLASH_RE.sub(_double_invalid_backslash, text)
    text = _CONTROL_CHAR_RE.sub(" ", text)
    return strip_trailing_commas(text)


def strip_trailing_commas(text: str) -> str:
    """Drop commas directly before a closing bracket or brace."""
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def looks_truncated(text: str, error: json.JSONDecodeError | None) -> bool:
    """Whether the text appears cut off rather than structurally wrong."""
    state = _scan(text)
    if state.in_string or state.stack:
        return True
    if error is None:
        return False
    return error.pos >= len(text.rstrip()) - _TRUNCATION_TOLERANCE


def repair_truncation(text: str) -> str:
    """Close a truncated payload after dropping its incomplete tail.

    Drops a dangling string, a key without value, a trailing comma or a partial
    literal. An array element left open by the cut is removed whole, so only
    complete elements survive. Then appends the closers needed to balance the
    open containers.
    """
    state = _scan(text)
    if state.in_string:
        text = text[: state.string_start]

    while True:
        trimmed = _drop_dangling_fragment(text)
        if trimmed == text:
            break
        text = trimmed

    text = _drop_open_element(text)
    closers = "".join("]" if opener == "[" else "}" for opener in reversed(_scan(text).stack))
    return text + closers


@dataclass
class _ScanState:
    """Container nesting and string position after a string-aware scan."""

    stack: list[str] = field(default_factory=list)
    # Offset of each open container's bracket, parallel to stack
    openers: list[int] = field(default_factory=list)
    in_string: bool = False
    # Start of the open string, or of the last complete one
    string_start: int = -1
    # Index just past the closing quote of the last complete string
    string_end: int = -1
    string_is_key: bool = False


def _scan(text: str) -> _ScanState:
    state = _ScanState()
    last_significant = ""
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if state.in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                state.in_string = False
                state.string_end = i + 1
            i += 1
            continue

        if ch == '"':
            state.in_string = True
            state.string_start = i
            state.string_is_key = (
                bool(state.stack) and state.stack[-1] == "{" and last_significant in ("{", ",")
            )
        elif ch in "[{":
            state.stack.append(ch)
            state.openers.append(i)
        elif ch in "]}" and state.stack:
            state.stack.pop()
            state.openers.pop()

        if not ch.isspace():
            last_significant = ch
        i += 1

    return state


def _drop_dangling_fragment(text: str) -> str:
    text = text.rstrip()
    if not text:
        return text

    if text[-1] in ",:":
        return text[:-1]

    state = _scan(text)
    if state.string_end == len(text) and state.string_is_key:
        return text[: state.string_start]
    if text[-1] == '"':
        return text

    word = _PARTIAL_WORD_RE.search(text)
    if word:
        return text if word.group(0) in _SCALAR_PREFIXES else text[: word.start()]

    number = _PARTIAL_NUMBER_RE.search(text)
    if number and number.group(0) and not _JSON_NUMBER_RE.fullmatch(number.group(0)):
        return text[: number.start()]

    return text


def _drop_open_element(text: str) -> str:
    state = _scan(text)
    for depth, opener in enumerate(state.stack[:-1]):
        if opener != "[":
            continue
        # The container one level down is this array's unfinished element
        text = text[: state.openers[depth + 1]].rstrip()
        if text.endswith(","):
            text = text[:-1]
        return text
    return text


def _quote_closes_string(text: str, start: int) -> bool:
    j = start
    n = len(text)
    while j < n and text[j].isspace():
        j += 1
    return j >= n or text[j] in _DELIMITERS_AFTER_CLOSING_QUOTE


def _double_invalid_backslash(match: re.Match[str]) -> str:
    escaped = match.group(1)
    if len(escaped) == 5 or (escaped and escaped in _VALID_ESCAPES):
        return match.group(0)
    return "\\\\" + escaped


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        if e.msg != "Extra data":
            raise
        # Trailing prose after a complete payload
        value, end = _DECODER.raw_decode(candidate)
        logger.debug(f"Ignoring {len(candidate) - end} trailing characters after JSON payload")
        return value


def _record_success(strategy: str) -> None:
    structured_parse_total.labels(strategy=strategy).inc()
    if strategy != "direct":
        logger.info(f"Recovered structured output using '{strategy}' strategy")
