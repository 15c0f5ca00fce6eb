"""Tests for slicing documents into chapter segments."""

from studyflow.app.models.documents import ResolvedBoundary
from studyflow.app.segmentation.segmenter import fallback_segment, segment


def test_two_boundaries_make_two_segments() -> None:
    """Boundaries at 0 and 500 in a 1000-char document split it in half."""
    document = "Chapter One. " + "a" * 487 + "Chapter Two. " + "b" * 487
    boundaries = [
        ResolvedBoundary(title="One", offset=0),
        ResolvedBoundary(title="Two", offset=500),
    ]

    segments = segment(document, boundaries)

    assert len(document) == 1000
    assert [s.title for s in segments] == ["One", "Two"]
    assert segments[0].content == document[0:500]
    assert segments[1].content == document[500:1000]
    assert [s.offset for s in segments] == [0, 500]


def test_segment_content_is_trimmed() -> None:
    """Whitespace at slice edges is removed."""
    document = "\n\n  First chapter text " + "x" * 60 + "  \n\nSecond chapter " + "y" * 60 + "\n"
    second = document.index("Second")

    segments = segment(
        document,
        [ResolvedBoundary(title="A", offset=0), ResolvedBoundary(title="B", offset=second)],
    )

    assert segments[0].content == ("First chapter text " + "x" * 60)
    assert segments[1].content == ("Second chapter " + "y" * 60)


def test_short_segments_are_dropped() -> None:
    """Slices below the minimum length are noise."""
    document = "Table of contents\n" + "Real chapter content. " * 10
    boundaries = [
        ResolvedBoundary(title="TOC", offset=0),
        ResolvedBoundary(title="Chapter", offset=document.index("Real")),
    ]

    segments = segment(document, boundaries, min_content_chars=50)

    assert [s.title for s in segments] == ["Chapter"]


def test_all_segments_dropped_falls_back() -> None:
    """When nothing survives, the whole document becomes one segment."""
    document = "  tiny\n  "

    segments = segment(document, [ResolvedBoundary(title="X", offset=0)], fallback_title="Course")

    assert len(segments) == 1
    assert segments[0].title == "Course"
    assert segments[0].content == "tiny"
    assert segments[0].offset == 2


def test_segments_cover_suffix_from_first_boundary() -> None:
    """Untrimmed slices concatenate back to the document suffix."""
    document = "Preamble. " * 5 + "".join(f"Part {i}. " + "z" * 120 for i in range(4))
    offsets = [document.index(f"Part {i}.") for i in range(4)]
    boundaries = [ResolvedBoundary(title=f"Part {i}", offset=o) for i, o in enumerate(offsets)]

    segments = segment(document, boundaries)

    ends = [s.offset for s in segments[1:]] + [len(document)]
    rebuilt = "".join(document[s.offset : end] for s, end in zip(segments, ends))
    assert rebuilt == document[offsets[0] :]
    for current, following in zip(segments, segments[1:]):
        assert current.offset < following.offset


def test_fallback_segment_trims_whole_document() -> None:
    """Fallback content is the trimmed input."""
    result = fallback_segment("\n  forty characters of text for the test \n", "Full Course")

    assert result.title == "Full Course"
    assert result.content == "forty characters of text for the test"
