"""Per-chapter enrichment: structured summary and multilingual questions."""

from dataclasses import dataclass

from studyflow.app.llm.client import StructuredGenerationClient
from studyflow.app.llm.prompts import (
    QUESTIONS_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_questions_prompt,
    build_summary_prompt,
)
from studyflow.app.models.enrichment import ChapterQuestions, ChapterSummary


@dataclass
class ChapterEnrichment:
    """Generated material stored alongside a chapter."""

    summary: ChapterSummary
    questions: ChapterQuestions


async def summarize_chapter(
    client: StructuredGenerationClient,
    title: str,
    content: str,
    *,
    max_input_chars: int = 30_000,
) -> ChapterSummary:
    """Extract main and side topics of a chapter."""
    result: ChapterSummary = await client.generate_structured(
        SUMMARY_SYSTEM_PROMPT,
        build_summary_prompt(title, content[:max_input_chars]),
        response_type=ChapterSummary,
        purpose="summary",
    )
    return result


async def generate_questions(
    client: StructuredGenerationClient,
    title: str,
    content: str,
    *,
    max_input_chars: int = 30_000,
) -> ChapterQuestions:
    """Generate exam and discussion questions in English, Dutch and French."""
    result: ChapterQuestions = await client.generate_structured(
        QUESTIONS_SYSTEM_PROMPT,
        build_questions_prompt(title, content[:max_input_chars]),
        response_type=ChapterQuestions,
        purpose="questions",
    )
    return result


async def enrich_chapter(
    client: StructuredGenerationClient,
    title: str,
    content: str,
    *,
    max_input_chars: int = 30_000,
) -> ChapterEnrichment:
    """Summary then questions, sequentially."""
    summary = await summarize_chapter(client, title, content, max_input_chars=max_input_chars)
    questions = await generate_questions(client, title, content, max_input_chars=max_input_chars)
    return ChapterEnrichment(summary=summary, questions=questions)
