"""Segmenter - slices the source text at resolved boundaries (pure, no I/O)."""

from studyflow.app.models.documents import ChapterSegment, ResolvedBoundary


def fallback_segment(document: str, title: str = "Full Course") -> ChapterSegment:
    """Whole-document segment used when structure cannot be recovered."""
    stripped = document.lstrip()
    return ChapterSegment(
        title=title,
        content=document.strip(),
        offset=len(document) - len(stripped),
    )


def segment(
    document: str,
    boundaries: list[ResolvedBoundary],
    *,
    min_content_chars: int = 50,
    fallback_title: str = "Full Course",
) -> list[ChapterSegment]:
    """Slice document into chapter segments.

    Segment i spans [boundaries[i].offset, boundaries[i+1].offset), the last
    one runs to the end of the document. Content is trimmed and segments
    shorter than min_content_chars are dropped as noise.

    Args:
        document: Raw document text
        boundaries: Resolved boundaries sorted by offset
        min_content_chars: Minimum trimmed content length to keep a segment
        fallback_title: Title of the single segment returned when none survive

    Returns:
        Segments in document order; never empty
    """
    segments: list[ChapterSegment] = []

    for i, boundary in enumerate(boundaries):
        end = boundaries[i + 1].offset if i + 1 < len(boundaries) else len(document)
        content = document[boundary.offset : end].strip()
        if len(content) < min_content_chars:
            continue
        segments.append(ChapterSegment(title=boundary.title, content=content, offset=boundary.offset))

    if not segments:
        return [fallback_segment(document, fallback_title)]

    return segments
