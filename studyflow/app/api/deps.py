"""Service wiring and FastAPI dependencies.

Services are built once per process from settings. Tests replace them via
app.dependency_overrides on get_orchestrator / get_study_planner /
get_chapter_repository.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from studyflow.app.config import Settings, get_settings
from studyflow.app.db.engine import create_async_engine_from_settings, create_session_factory
from studyflow.app.db.inmemory import (
    InMemoryChapterRepository,
    InMemoryDocumentRepository,
    InMemoryProgressStore,
    InMemoryStudyPlanRepository,
)
from studyflow.app.db.models import Base
from studyflow.app.db.repositories import (
    ChapterRepository,
    DocumentRepository,
    StudyPlanRepository,
)
from studyflow.app.db.sql_repositories import (
    SqlChapterRepository,
    SqlDocumentRepository,
    SqlStudyPlanRepository,
)
from studyflow.app.enrichment.study_plan import StudyPlanner
from studyflow.app.extraction.pdf import PdfTextExtractor
from studyflow.app.llm.client import get_structured_client
from studyflow.app.orchestration.jobs import JobOrchestrator
from studyflow.app.storage import LocalFileBlobStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-wide service graph."""

    documents: DocumentRepository
    chapters: ChapterRepository
    plans: StudyPlanRepository
    orchestrator: JobOrchestrator
    planner: StudyPlanner


def build_services(settings: Settings) -> Services:
    """Wire repositories, generation client and orchestrator from settings."""
    documents: DocumentRepository
    chapters: ChapterRepository
    plans: StudyPlanRepository

    if settings.database_url:
        session_factory = create_session_factory(create_async_engine_from_settings(settings))
        documents = SqlDocumentRepository(session_factory)
        chapters = SqlChapterRepository(session_factory)
        plans = SqlStudyPlanRepository(session_factory)
    else:
        logger.warning("DATABASE_URL not set; using in-memory repositories")
        documents = InMemoryDocumentRepository()
        chapters = InMemoryChapterRepository()
        plans = InMemoryStudyPlanRepository()

    client = get_structured_client(settings)
    orchestrator = JobOrchestrator(
        documents=documents,
        chapters=chapters,
        progress=InMemoryProgressStore(),
        blobs=LocalFileBlobStore(settings.storage_dir),
        extractor=PdfTextExtractor(),
        client=client,
        settings=settings,
    )
    planner = StudyPlanner(documents=documents, chapters=chapters, plans=plans, client=client)

    return Services(
        documents=documents,
        chapters=chapters,
        plans=plans,
        orchestrator=orchestrator,
        planner=planner,
    )


async def create_schema(settings: Settings) -> None:
    """Create tables when running against a database."""
    if not settings.database_url:
        return
    engine = create_async_engine_from_settings(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()


@lru_cache
def get_services() -> Services:
    """Get cached service graph."""
    return build_services(get_settings())


def get_orchestrator() -> JobOrchestrator:
    """FastAPI dependency for the job orchestrator."""
    return get_services().orchestrator


def get_study_planner() -> StudyPlanner:
    """FastAPI dependency for the study planner."""
    return get_services().planner


def get_chapter_repository() -> ChapterRepository:
    """FastAPI dependency for chapter reads."""
    return get_services().chapters
