"""SQL implementations of repository interfaces."""

import uuid
from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from studyflow.app.db.models import Chapter, Document, Question, StudyPlan
from studyflow.app.db.repositories import (
    ChapterRecord,
    DocumentRecord,
    QuestionRecord,
    question_records,
)
from studyflow.app.models.documents import ChapterSegment, DocumentStatus
from studyflow.app.models.enrichment import ChapterQuestions, ChapterSummary, StudyPlanDay


class SqlDocumentRepository:
    """SQL implementation of DocumentRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_document(self, title: str, storage_path: str) -> uuid.UUID:
        """Register an uploaded document."""
        document = Document(
            document_id=uuid.uuid4(),
            title=title,
            storage_path=storage_path,
            status=DocumentStatus.uploaded.value,
        )
        async with self._session_factory() as session:
            session.add(document)
            await session.commit()
        return document.document_id

    async def get_document(self, document_id: uuid.UUID) -> DocumentRecord | None:
        """Get document by ID."""
        async with self._session_factory() as session:
            document = await session.get(Document, document_id)

        if document is None:
            return None

        return DocumentRecord(
            document_id=document.document_id,
            title=document.title,
            storage_path=document.storage_path,
            status=DocumentStatus(document.status),
            created_at=document.created_at,
        )

    async def set_status(self, document_id: uuid.UUID, status: DocumentStatus) -> None:
        """Set processing status."""
        async with self._session_factory() as session:
            document = await session.get(Document, document_id)
            if document is None:
                return
            document.status = status.value
            await session.commit()


class SqlChapterRepository:
    """SQL implementation of ChapterRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def persist_segment(
        self,
        document_id: uuid.UUID,
        segment: ChapterSegment,
        sort_index: int,
        *,
        summary: ChapterSummary | None = None,
        questions: ChapterQuestions | None = None,
    ) -> uuid.UUID:
        """Persist a chapter and its questions in one transaction."""
        chapter = Chapter(
            chapter_id=uuid.uuid4(),
            document_id=document_id,
            title=segment.title,
            content=segment.content,
            sort_index=sort_index,
            summary=summary.model_dump(mode="json") if summary else None,
        )
        chapter.questions = [
            Question(
                question_id=uuid.uuid4(),
                kind=record.kind,
                question=record.question,
                suggested_answer=record.suggested_answer,
                translations=record.translations,
                position=position,
            )
            for position, record in enumerate(question_records(questions))
        ]

        async with self._session_factory() as session:
            session.add(chapter)
            await session.commit()
        return chapter.chapter_id

    async def delete_segments_for(self, document_id: uuid.UUID) -> int:
        """Delete chapters and their questions."""
        async with self._session_factory() as session:
            chapter_ids = list(
                (
                    await session.execute(
                        select(Chapter.chapter_id).where(Chapter.document_id == document_id)
                    )
                ).scalars()
            )
            if not chapter_ids:
                return 0

            # Explicit: SQLite does not enforce ON DELETE CASCADE by default
            await session.execute(delete(Question).where(Question.chapter_id.in_(chapter_ids)))
            await session.execute(delete(Chapter).where(Chapter.chapter_id.in_(chapter_ids)))
            await session.commit()
        return len(chapter_ids)

    async def list_chapters(self, document_id: uuid.UUID) -> list[ChapterRecord]:
        """List chapters ordered by sort index."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Chapter)
                .where(Chapter.document_id == document_id)
                .options(selectinload(Chapter.questions))
                .order_by(Chapter.sort_index)
            )
            chapters = list(result.scalars())

        return [
            ChapterRecord(
                chapter_id=chapter.chapter_id,
                document_id=chapter.document_id,
                title=chapter.title,
                content=chapter.content,
                sort_index=chapter.sort_index,
                summary=ChapterSummary.model_validate(chapter.summary) if chapter.summary else None,
                questions=[
                    QuestionRecord(
                        kind=q.kind,  # type: ignore[arg-type]
                        question=q.question,
                        suggested_answer=q.suggested_answer,
                        translations=q.translations,
                    )
                    for q in sorted(chapter.questions, key=lambda q: q.position)
                ],
            )
            for chapter in chapters
        ]


class SqlStudyPlanRepository:
    """SQL implementation of StudyPlanRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save_plan(
        self,
        document_id: uuid.UUID,
        exam_date: date,
        days: list[StudyPlanDay],
        *,
        hours_per_day: float,
    ) -> uuid.UUID:
        """Save a study plan."""
        plan = StudyPlan(
            plan_id=uuid.uuid4(),
            document_id=document_id,
            exam_date=exam_date,
            hours_per_day=hours_per_day,
            days=[day.model_dump(mode="json") for day in days],
        )
        async with self._session_factory() as session:
            session.add(plan)
            await session.commit()
        return plan.plan_id
