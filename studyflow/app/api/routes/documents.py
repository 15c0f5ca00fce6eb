"""Document processing endpoints - start, cancel, progress, chapters."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from studyflow.app.api.deps import get_chapter_repository, get_orchestrator
from studyflow.app.db.repositories import ChapterRepository
from studyflow.app.models.documents import DocumentStatus, JobProgress
from studyflow.app.models.enrichment import ChapterSummary
from studyflow.app.orchestration.jobs import (
    AlreadyProcessingError,
    DocumentNotFoundError,
    JobOrchestrator,
    NotProcessingError,
)

router = APIRouter(prefix="/documents", tags=["documents"])


class JobControlResponse(BaseModel):
    """Response for process/cancel requests."""

    document_id: uuid.UUID
    status: DocumentStatus


class QuestionResponse(BaseModel):
    """Stored question with its translations."""

    kind: str
    question: str
    suggested_answer: str
    translations: dict[str, dict[str, str]]


class ChapterResponse(BaseModel):
    """Chapter as presented to the client."""

    chapter_id: uuid.UUID
    title: str
    content: str
    sort_index: int
    summary: ChapterSummary | None
    questions: list[QuestionResponse]


@router.post(
    "/{document_id}/process",
    response_model=JobControlResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def process_document(
    document_id: uuid.UUID,
    orchestrator: Annotated[JobOrchestrator, Depends(get_orchestrator)],
) -> JobControlResponse:
    """Start background processing of an uploaded document.

    Returns:
        202 once the document is marked processing

    Raises:
        HTTPException: 404 unknown document, 409 already processing
    """
    try:
        await orchestrator.start(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except AlreadyProcessingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    return JobControlResponse(document_id=document_id, status=DocumentStatus.processing)


@router.post("/{document_id}/cancel", response_model=JobControlResponse)
async def cancel_processing(
    document_id: uuid.UUID,
    orchestrator: Annotated[JobOrchestrator, Depends(get_orchestrator)],
) -> JobControlResponse:
    """Cancel a processing run and discard its partial chapters.

    Raises:
        HTTPException: 404 unknown document, 400 not processing
    """
    try:
        await orchestrator.cancel(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NotProcessingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return JobControlResponse(document_id=document_id, status=DocumentStatus.uploaded)


@router.get("/{document_id}/progress", response_model=JobProgress)
async def get_progress(
    document_id: uuid.UUID,
    orchestrator: Annotated[JobOrchestrator, Depends(get_orchestrator)],
) -> JobProgress:
    """Live progress; step is "unknown" when no run is tracked."""
    return await orchestrator.get_progress(document_id)


@router.get("/{document_id}/chapters", response_model=list[ChapterResponse])
async def list_chapters(
    document_id: uuid.UUID,
    chapters: Annotated[ChapterRepository, Depends(get_chapter_repository)],
) -> list[ChapterResponse]:
    """Chapters of a document in source order."""
    records = await chapters.list_chapters(document_id)
    return [
        ChapterResponse(
            chapter_id=r.chapter_id,
            title=r.title,
            content=r.content,
            sort_index=r.sort_index,
            summary=r.summary,
            questions=[
                QuestionResponse(
                    kind=q.kind,
                    question=q.question,
                    suggested_answer=q.suggested_answer,
                    translations=q.translations,
                )
                for q in r.questions
            ],
        )
        for r in records
    ]
