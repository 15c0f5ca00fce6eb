"""Study plan endpoint."""

import logging
import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from studyflow.app.api.deps import get_study_planner
from studyflow.app.enrichment.study_plan import NoChaptersError, StudyPlanner
from studyflow.app.llm.client import GenerationError
from studyflow.app.models.enrichment import StudyPlan
from studyflow.app.orchestration.jobs import DocumentNotFoundError
from studyflow.app.parsing.sanitizer import MalformedOutputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["study-plans"])


class CreateStudyPlanRequest(BaseModel):
    """Request body for POST /documents/{id}/study-plan."""

    exam_date: date
    hours_per_day: float = Field(..., gt=0, le=24)


@router.post(
    "/{document_id}/study-plan",
    response_model=StudyPlan,
    status_code=status.HTTP_201_CREATED,
)
async def create_study_plan(
    document_id: uuid.UUID,
    request: CreateStudyPlanRequest,
    planner: Annotated[StudyPlanner, Depends(get_study_planner)],
) -> StudyPlan:
    """Generate a study plan covering the document's chapters.

    Raises:
        HTTPException: 404 unknown document, 409 no chapters yet,
            502 generation failed or returned unusable output
    """
    try:
        return await planner.create_plan(document_id, request.exam_date, request.hours_per_day)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except NoChaptersError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    except (GenerationError, MalformedOutputError) as e:
        logger.warning(f"Study plan generation failed for {document_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Study plan generation failed, please retry",
        ) from e
