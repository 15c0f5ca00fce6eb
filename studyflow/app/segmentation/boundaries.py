"""Boundary resolver - turns model suggestions into verified document offsets."""

import logging

from studyflow.app.models.documents import BoundarySuggestion, ResolvedBoundary
from studyflow.app.segmentation.locator import LocatorConfig, locate
from studyflow.app.utils.metrics import boundary_resolution_total

logger = logging.getLogger(__name__)


def resolve_boundaries(
    document: str,
    suggestions: list[BoundarySuggestion],
    *,
    min_distance: int = 100,
    fallback_title: str = "Full Course",
    locator_config: LocatorConfig | None = None,
) -> list[ResolvedBoundary]:
    """Resolve boundary suggestions to sorted, deduplicated offsets.

    Suggestions are located by snippet first. Those that miss are retried by
    title, which is often more literal than a snippet quoted from noisy PDF
    text. When nothing resolves, a single boundary at offset 0 carrying the
    fallback title is returned so the whole document becomes one segment.

    Args:
        document: Raw document text
        suggestions: Untrusted (title, snippet) pairs from the model
        min_distance: Boundaries closer than this to the previous kept one are dropped
        fallback_title: Title used when no suggestion resolves
        locator_config: Fuzzy matching thresholds

    Returns:
        Resolved boundaries with strictly increasing offsets
    """
    hits: list[ResolvedBoundary] = []
    misses: list[BoundarySuggestion] = []

    for suggestion in suggestions:
        offset = locate(document, suggestion.snippet_text, config=locator_config)
        if offset is None:
            misses.append(suggestion)
            continue
        boundary_resolution_total.labels(method="snippet").inc()
        hits.append(ResolvedBoundary(title=suggestion.title, offset=offset))

    recovered: list[str] = []
    for suggestion in misses:
        offset = locate(document, suggestion.title, config=locator_config)
        if offset is None:
            boundary_resolution_total.labels(method="unresolved").inc()
            continue
        boundary_resolution_total.labels(method="title").inc()
        hits.append(ResolvedBoundary(title=suggestion.title, offset=offset))
        recovered.append(suggestion.title)

    if recovered:
        logger.info(f"Recovered {len(recovered)} boundaries by title only: {recovered}")

    if not hits:
        logger.warning(
            f"None of {len(suggestions)} boundary suggestions resolved; "
            "using the whole document as one chapter"
        )
        return [ResolvedBoundary(title=fallback_title, offset=0)]

    hits.sort(key=lambda b: b.offset)
    return deduplicate_boundaries(hits, min_distance=min_distance)


def deduplicate_boundaries(
    boundaries: list[ResolvedBoundary], *, min_distance: int = 100
) -> list[ResolvedBoundary]:
    """Drop boundaries within min_distance of the previous kept boundary.

    Expects boundaries sorted by offset.
    """
    kept: list[ResolvedBoundary] = []
    for boundary in boundaries:
        if kept and boundary.offset - kept[-1].offset < min_distance:
            continue
        kept.append(boundary)
    return kept
