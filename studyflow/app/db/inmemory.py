"""In-memory implementations of repository interfaces."""

import uuid
from dataclasses import replace
from datetime import date, datetime

from studyflow.app.db.repositories import ChapterRecord, DocumentRecord, question_records
from studyflow.app.models.documents import ChapterSegment, DocumentStatus, JobProgress
from studyflow.app.models.enrichment import ChapterQuestions, ChapterSummary, StudyPlanDay


class InMemoryDocumentRepository:
    """In-memory implementation of DocumentRepository."""

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, DocumentRecord] = {}

    async def create_document(self, title: str, storage_path: str) -> uuid.UUID:
        """Register an uploaded document."""
        document_id = uuid.uuid4()
        self._documents[document_id] = DocumentRecord(
            document_id=document_id,
            title=title,
            storage_path=storage_path,
            status=DocumentStatus.uploaded,
            created_at=datetime.now(),
        )
        return document_id

    async def get_document(self, document_id: uuid.UUID) -> DocumentRecord | None:
        """Get document by ID."""
        return self._documents.get(document_id)

    async def set_status(self, document_id: uuid.UUID, status: DocumentStatus) -> None:
        """Set processing status."""
        record = self._documents.get(document_id)
        if record is None:
            return
        self._documents[document_id] = replace(record, status=status)


class InMemoryChapterRepository:
    """In-memory implementation of ChapterRepository."""

    def __init__(self) -> None:
        self._chapters: dict[uuid.UUID, ChapterRecord] = {}

    async def persist_segment(
        self,
        document_id: uuid.UUID,
        segment: ChapterSegment,
        sort_index: int,
        *,
        summary: ChapterSummary | None = None,
        questions: ChapterQuestions | None = None,
    ) -> uuid.UUID:
        """Persist one chapter segment."""
        chapter_id = uuid.uuid4()
        self._chapters[chapter_id] = ChapterRecord(
            chapter_id=chapter_id,
            document_id=document_id,
            title=segment.title,
            content=segment.content,
            sort_index=sort_index,
            summary=summary,
            questions=question_records(questions),
        )
        return chapter_id

    async def delete_segments_for(self, document_id: uuid.UUID) -> int:
        """Delete all chapters of a document."""
        doomed = [cid for cid, record in self._chapters.items() if record.document_id == document_id]
        for chapter_id in doomed:
            del self._chapters[chapter_id]
        return len(doomed)

    async def list_chapters(self, document_id: uuid.UUID) -> list[ChapterRecord]:
        """List chapters ordered by sort index."""
        chapters = [r for r in self._chapters.values() if r.document_id == document_id]
        return sorted(chapters, key=lambda r: r.sort_index)


class InMemoryStudyPlanRepository:
    """In-memory implementation of StudyPlanRepository."""

    def __init__(self) -> None:
        self._plans: dict[uuid.UUID, tuple[uuid.UUID, date, float, list[StudyPlanDay]]] = {}

    async def save_plan(
        self,
        document_id: uuid.UUID,
        exam_date: date,
        days: list[StudyPlanDay],
        *,
        hours_per_day: float,
    ) -> uuid.UUID:
        """Save a study plan."""
        plan_id = uuid.uuid4()
        self._plans[plan_id] = (document_id, exam_date, hours_per_day, list(days))
        return plan_id

    def get_plan(self, plan_id: uuid.UUID) -> tuple[uuid.UUID, date, float, list[StudyPlanDay]] | None:
        """Get stored plan tuple (document_id, exam_date, hours_per_day, days)."""
        return self._plans.get(plan_id)


class InMemoryProgressStore:
    """Process-local ProgressStore backed by a dict.

    All access happens on the event loop thread, so plain dict operations
    are atomic with respect to other jobs.
    """

    def __init__(self) -> None:
        self._progress: dict[uuid.UUID, JobProgress] = {}

    async def get(self, document_id: uuid.UUID) -> JobProgress | None:
        """Get progress or None."""
        return self._progress.get(document_id)

    async def set(self, document_id: uuid.UUID, progress: JobProgress) -> None:
        """Replace progress."""
        self._progress[document_id] = progress

    async def delete(self, document_id: uuid.UUID) -> None:
        """Remove progress."""
        self._progress.pop(document_id, None)
