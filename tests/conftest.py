"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from studyflow.app.config import Settings
from studyflow.app.db.inmemory import (
    InMemoryChapterRepository,
    InMemoryDocumentRepository,
    InMemoryProgressStore,
    InMemoryStudyPlanRepository,
)
from studyflow.app.db.models import Base
from studyflow.app.enrichment.study_plan import StudyPlanner
from studyflow.app.llm.client import StructuredGenerationClient
from studyflow.app.orchestration.jobs import JobOrchestrator
from studyflow.app.storage import InMemoryBlobStore
from tests.fakes import COURSE_TEXT, ScriptedGenerator, StaticTextExtractor, Workspace


@pytest.fixture
def settings() -> Settings:
    """Settings with a short progress grace period."""
    return Settings(
        database_url=None,
        openai_api_key=None,
        progress_grace_seconds=0.05,
    )


@pytest.fixture
def generator() -> ScriptedGenerator:
    """Scripted text generator."""
    return ScriptedGenerator()


@pytest.fixture
def client(generator: ScriptedGenerator) -> StructuredGenerationClient:
    """Structured client over the scripted generator."""
    return StructuredGenerationClient(generator, model="test-model", max_tokens=1000)


@pytest_asyncio.fixture
async def workspace(
    settings: Settings, generator: ScriptedGenerator, client: StructuredGenerationClient
) -> AsyncGenerator[Workspace, None]:
    """Orchestrator and planner wired to in-memory collaborators."""
    documents = InMemoryDocumentRepository()
    chapters = InMemoryChapterRepository()
    plans = InMemoryStudyPlanRepository()
    progress = InMemoryProgressStore()
    blobs = InMemoryBlobStore()
    extractor = StaticTextExtractor(COURSE_TEXT)

    orchestrator = JobOrchestrator(
        documents=documents,
        chapters=chapters,
        progress=progress,
        blobs=blobs,
        extractor=extractor,
        client=client,
        settings=settings,
    )
    planner = StudyPlanner(documents=documents, chapters=chapters, plans=plans, client=client)

    yield Workspace(
        settings=settings,
        generator=generator,
        extractor=extractor,
        documents=documents,
        chapters=chapters,
        plans=plans,
        progress=progress,
        blobs=blobs,
        orchestrator=orchestrator,
        planner=planner,
    )

    generator.resume.set()
    await orchestrator.shutdown()


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Async in-memory SQLite engine with all tables created.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the SQLite engine."""
    return async_sessionmaker(sqlite_engine, expire_on_commit=False)
