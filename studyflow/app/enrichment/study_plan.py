"""Study plan generation from a processed document's chapters."""

import logging
from datetime import date
from uuid import UUID

from studyflow.app.db.repositories import ChapterRepository, DocumentRepository, StudyPlanRepository
from studyflow.app.llm.client import StructuredGenerationClient
from studyflow.app.llm.prompts import STUDY_PLAN_SYSTEM_PROMPT, build_study_plan_prompt
from studyflow.app.models.enrichment import StudyPlan, StudyPlanDay
from studyflow.app.orchestration.jobs import DocumentNotFoundError

logger = logging.getLogger(__name__)


class NoChaptersError(Exception):
    """Document has no chapters to schedule."""

    pass


class StudyPlanner:
    """Builds and stores a day-by-day study schedule."""

    def __init__(
        self,
        *,
        documents: DocumentRepository,
        chapters: ChapterRepository,
        plans: StudyPlanRepository,
        client: StructuredGenerationClient,
    ) -> None:
        self._documents = documents
        self._chapters = chapters
        self._plans = plans
        self._client = client

    async def create_plan(
        self,
        document_id: UUID,
        exam_date: date,
        hours_per_day: float,
        today: date | None = None,
    ) -> StudyPlan:
        """Generate and persist a study plan.

        Args:
            document_id: Processed document
            exam_date: Exam day (never scheduled)
            hours_per_day: Available study hours per day
            today: Planning start (defaults to the current date)

        Returns:
            Stored study plan

        Raises:
            DocumentNotFoundError: Unknown document
            NoChaptersError: Document has no chapters yet
            MalformedOutputError: Model response unparseable
            GenerationError: Generation service failed
        """
        if await self._documents.get_document(document_id) is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        chapters = await self._chapters.list_chapters(document_id)
        if not chapters:
            raise NoChaptersError(f"Document {document_id} has no chapters")

        today = today or date.today()
        days: list[StudyPlanDay] = await self._client.generate_structured(
            STUDY_PLAN_SYSTEM_PROMPT,
            build_study_plan_prompt(
                [(str(c.chapter_id), c.title) for c in chapters],
                exam_date=exam_date,
                hours_per_day=hours_per_day,
                today=today,
            ),
            response_type=list[StudyPlanDay],
            purpose="study_plan",
        )
        logger.info(f"Generated {len(days)}-day study plan for {document_id}")

        plan_id = await self._plans.save_plan(
            document_id, exam_date, days, hours_per_day=hours_per_day
        )
        return StudyPlan(
            plan_id=plan_id,
            document_id=document_id,
            exam_date=exam_date,
            hours_per_day=hours_per_day,
            days=days,
        )
