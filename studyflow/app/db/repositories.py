"""Repository protocol interfaces for data access."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Protocol
from uuid import UUID

from studyflow.app.models.documents import ChapterSegment, DocumentStatus, JobProgress
from studyflow.app.models.enrichment import ChapterQuestions, ChapterSummary, StudyPlanDay


@dataclass
class DocumentRecord:
    """Uploaded document data record."""

    document_id: UUID
    title: str
    storage_path: str
    status: DocumentStatus
    created_at: datetime


@dataclass
class QuestionRecord:
    """Stored question; English text with Dutch/French translations."""

    kind: Literal["exam", "discussion"]
    question: str
    suggested_answer: str
    translations: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass
class ChapterRecord:
    """Persisted chapter segment."""

    chapter_id: UUID
    document_id: UUID
    title: str
    content: str
    sort_index: int
    summary: ChapterSummary | None = None
    questions: list[QuestionRecord] = field(default_factory=list)


def question_records(questions: ChapterQuestions | None) -> list[QuestionRecord]:
    """Flatten generated questions into stored rows.

    Discussion questions keep their why_useful text as the suggested answer.
    """
    if questions is None:
        return []

    records: list[QuestionRecord] = []
    for exam in questions.exam_questions:
        records.append(
            QuestionRecord(
                kind="exam",
                question=exam.question.en,
                suggested_answer=exam.suggested_answer.en,
                translations={
                    lang: {
                        "question": getattr(exam.question, lang),
                        "suggested_answer": getattr(exam.suggested_answer, lang),
                    }
                    for lang in ("nl", "fr")
                },
            )
        )
    for discussion in questions.discussion_questions:
        records.append(
            QuestionRecord(
                kind="discussion",
                question=discussion.question.en,
                suggested_answer=discussion.why_useful.en,
                translations={
                    lang: {
                        "question": getattr(discussion.question, lang),
                        "suggested_answer": getattr(discussion.why_useful, lang),
                    }
                    for lang in ("nl", "fr")
                },
            )
        )
    return records


class DocumentRepository(Protocol):
    """Repository for document status operations."""

    async def create_document(self, title: str, storage_path: str) -> UUID:
        """Register an uploaded document with status uploaded.

        Returns:
            Document ID
        """
        ...

    async def get_document(self, document_id: UUID) -> DocumentRecord | None:
        """Get document by ID.

        Returns:
            Document record or None if not found
        """
        ...

    async def set_status(self, document_id: UUID, status: DocumentStatus) -> None:
        """Set processing status of a document."""
        ...


class ChapterRepository(Protocol):
    """Repository for chapter segments and their generated material."""

    async def persist_segment(
        self,
        document_id: UUID,
        segment: ChapterSegment,
        sort_index: int,
        *,
        summary: ChapterSummary | None = None,
        questions: ChapterQuestions | None = None,
    ) -> UUID:
        """Persist one chapter segment.

        Args:
            document_id: Owning document
            segment: Segment to store
            sort_index: Position of the segment in the document
            summary: Optional generated summary
            questions: Optional generated questions

        Returns:
            Chapter ID
        """
        ...

    async def delete_segments_for(self, document_id: UUID) -> int:
        """Delete all chapters (and their questions) of a document.

        Returns:
            Number of chapters deleted
        """
        ...

    async def list_chapters(self, document_id: UUID) -> list[ChapterRecord]:
        """List chapters of a document ordered by sort index."""
        ...


class StudyPlanRepository(Protocol):
    """Repository for generated study plans."""

    async def save_plan(
        self,
        document_id: UUID,
        exam_date: date,
        days: list[StudyPlanDay],
        *,
        hours_per_day: float,
    ) -> UUID:
        """Save a study plan.

        Returns:
            Plan ID
        """
        ...


class ProgressStore(Protocol):
    """Live job progress keyed by document ID."""

    async def get(self, document_id: UUID) -> JobProgress | None:
        """Get progress or None if no run is tracked."""
        ...

    async def set(self, document_id: UUID, progress: JobProgress) -> None:
        """Replace progress of a document."""
        ...

    async def delete(self, document_id: UUID) -> None:
        """Remove progress of a document (no-op when absent)."""
        ...
