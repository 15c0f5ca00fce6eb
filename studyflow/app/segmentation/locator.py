"""Fuzzy location of short markers inside extracted document text.

Exact matching fails whenever extraction introduces stray line breaks or
spacing the model didn't reproduce, while purely normalized matching cannot
map back to a raw offset precisely enough for slicing. The locator therefore
works in stages: exact search, then whitespace-normalized search to find the
approximate region, then whitespace-tolerant regex matching of progressively
shorter marker prefixes inside a window around that region.
"""

import re
from dataclasses import dataclass

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class LocatorConfig:
    """Tuning for fuzzy matching."""

    min_prefix_chars: int = 15
    prefix_step: int = 10
    window_chars: int = 200


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def whitespace_tolerant_pattern(marker: str) -> re.Pattern[str] | None:
    """Regex matching the marker's words separated by any run of whitespace."""
    words = marker.split()
    if not words:
        return None
    return re.compile(r"\s+".join(re.escape(word) for word in words))


def prefix_lengths(length: int, min_chars: int, step: int) -> list[int]:
    """Prefix lengths to try, from full length down to min_chars."""
    if length <= min_chars:
        return [length]
    lengths = list(range(length, min_chars, -max(1, step)))
    lengths.append(min_chars)
    return lengths


def locate(
    document: str,
    marker: str,
    from_index: int = 0,
    config: LocatorConfig | None = None,
) -> int | None:
    """Find the offset where marker occurs in document.

    Args:
        document: Full raw document text
        marker: Snippet (or title) to locate
        from_index: Offset to start searching from
        config: Matching thresholds (defaults to LocatorConfig())

    Returns:
        Offset >= from_index where the marker starts, or None if not found
    """
    config = config or LocatorConfig()
    from_index = max(0, from_index)
    stripped = marker.strip()
    if not stripped or from_index >= len(document):
        return None

    # 1. Exact
    idx = document.find(marker, from_index)
    if idx != -1:
        return idx
    if stripped != marker:
        idx = document.find(stripped, from_index)
        if idx != -1:
            return idx

    # 2. Whole marker in whitespace-normalized text
    region = document[from_index:]
    normalized_region = normalize_whitespace(region)
    normalized_marker = normalize_whitespace(stripped)
    approx = normalized_region.find(normalized_marker)
    if approx == -1:
        return None

    # 3. Re-localize in the raw text. Collapsing whitespace only shortens text,
    # so the raw hit lies between the normalized position and that position
    # plus the total number of collapsed characters.
    leading = len(region) - len(region.lstrip())
    collapsed = len(region) - len(normalized_region)
    approx_raw = from_index + leading + approx
    window_start = max(from_index, approx_raw - config.window_chars)
    window_end = approx_raw + collapsed + len(stripped) + config.window_chars
    window = document[window_start:window_end]

    for length in prefix_lengths(len(stripped), config.min_prefix_chars, config.prefix_step):
        pattern = whitespace_tolerant_pattern(stripped[:length])
        if pattern is None:
            continue
        match = pattern.search(window)
        if match:
            return window_start + match.start()

    return None
