"""Tests for study plan generation."""

import uuid
from datetime import date

import pytest

from studyflow.app.enrichment.study_plan import NoChaptersError
from studyflow.app.llm.client import ServiceUnavailableError
from studyflow.app.models.documents import ChapterSegment
from studyflow.app.orchestration.jobs import DocumentNotFoundError
from tests.fakes import Workspace


@pytest.mark.asyncio
async def test_create_plan_persists_days(workspace: Workspace) -> None:
    """Generated days are validated and stored."""
    document_id = await workspace.add_document()
    await workspace.chapters.persist_segment(
        document_id, ChapterSegment(title="Cells", content="Cells are small."), 0
    )
    chapter = (await workspace.chapters.list_chapters(document_id))[0]

    plan = await workspace.planner.create_plan(
        document_id, date(2030, 1, 10), 2.5, today=date(2030, 1, 1)
    )

    assert [day.type for day in plan.days] == ["study", "review"]
    assert plan.days[0].date == date(2030, 1, 2)
    assert plan.hours_per_day == 2.5

    stored = workspace.plans.get_plan(plan.plan_id)
    assert stored is not None
    assert stored[0] == document_id
    assert stored[1] == date(2030, 1, 10)

    purpose, prompt = workspace.generator.calls[0]
    assert purpose == "study_plan"
    assert "Today: 2030-01-01" in prompt
    assert "Exam date: 2030-01-10" in prompt
    assert str(chapter.chapter_id) in prompt


@pytest.mark.asyncio
async def test_unknown_document_rejected(workspace: Workspace) -> None:
    """Plans require an existing document."""
    with pytest.raises(DocumentNotFoundError):
        await workspace.planner.create_plan(uuid.uuid4(), date(2030, 1, 10), 2)


@pytest.mark.asyncio
async def test_document_without_chapters_rejected(workspace: Workspace) -> None:
    """Plans require processed chapters; the model is not called."""
    document_id = await workspace.add_document()

    with pytest.raises(NoChaptersError):
        await workspace.planner.create_plan(document_id, date(2030, 1, 10), 2)

    assert workspace.generator.calls == []


@pytest.mark.asyncio
async def test_generation_failure_propagates(workspace: Workspace) -> None:
    """Service errors are not swallowed and nothing is stored."""
    document_id = await workspace.add_document()
    await workspace.chapters.persist_segment(
        document_id, ChapterSegment(title="Cells", content="Cells are small."), 0
    )
    workspace.generator.fail_on[("study_plan", 1)] = ServiceUnavailableError("down")

    with pytest.raises(ServiceUnavailableError):
        await workspace.planner.create_plan(document_id, date(2030, 1, 10), 2)
