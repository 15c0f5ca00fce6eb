"""Chapter detection - model suggestions resolved against the source text."""

import logging
from typing import Any

from pydantic import ValidationError

from studyflow.app.config import Settings, get_settings
from studyflow.app.llm.client import StructuredGenerationClient
from studyflow.app.llm.prompts import BOUNDARY_SYSTEM_PROMPT, build_boundary_prompt
from studyflow.app.models.documents import BoundarySuggestion, ChapterSegment
from studyflow.app.segmentation.boundaries import resolve_boundaries
from studyflow.app.segmentation.locator import LocatorConfig
from studyflow.app.segmentation.segmenter import fallback_segment, segment

logger = logging.getLogger(__name__)


async def detect_chapters(
    text: str,
    client: StructuredGenerationClient,
    settings: Settings | None = None,
) -> list[ChapterSegment]:
    """Split raw document text into chapter segments.

    The model is asked for chapter titles plus the opening characters of each
    chapter; those markers are then located in the full text locally.

    Args:
        text: Extracted document text
        client: Structured generation client
        settings: Thresholds (defaults to global settings)

    Returns:
        Non-empty list of segments in document order

    Raises:
        MalformedOutputError: Model response unparseable
        AuthenticationFailedError: Propagated from the client
        ServiceUnavailableError: Propagated from the client
    """
    settings = settings or get_settings()

    if len(text.strip()) < settings.min_segment_chars:
        return [fallback_segment(text, settings.fallback_chapter_title)]

    raw = await client.generate_structured(
        BOUNDARY_SYSTEM_PROMPT,
        build_boundary_prompt(
            text[: settings.segmentation_input_chars],
            max_chapters=settings.max_chapters,
        ),
        purpose="segmentation",
    )
    suggestions = coerce_suggestions(raw)
    logger.info(f"Model proposed {len(suggestions)} chapter boundaries")

    boundaries = resolve_boundaries(
        text,
        suggestions,
        min_distance=settings.boundary_min_distance,
        fallback_title=settings.fallback_chapter_title,
        locator_config=LocatorConfig(
            min_prefix_chars=settings.fuzzy_min_prefix_chars,
            prefix_step=settings.fuzzy_prefix_step,
            window_chars=settings.fuzzy_window_chars,
        ),
    )
    return segment(
        text,
        boundaries,
        min_content_chars=settings.min_segment_chars,
        fallback_title=settings.fallback_chapter_title,
    )


def coerce_suggestions(raw: Any) -> list[BoundarySuggestion]:
    """Turn parsed model output into boundary suggestions, skipping bad entries."""
    if isinstance(raw, dict):
        # {"chapters": [...]} style wrapper
        lists = [value for value in raw.values() if isinstance(value, list)]
        raw = lists[0] if len(lists) == 1 else [raw]
    if not isinstance(raw, list):
        logger.warning(f"Boundary response is a {type(raw).__name__}, expected a list")
        return []

    suggestions: list[BoundarySuggestion] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        snippet = item.get("start_text", item.get("snippet_text", ""))
        try:
            suggestions.append(
                BoundarySuggestion(title=str(item.get("title", "")).strip(), snippet_text=str(snippet))
            )
        except ValidationError:
            logger.debug(f"Skipping boundary suggestion without a title: {item!r}")
    return suggestions
