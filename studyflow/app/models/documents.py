"""Document, segmentation and job progress models."""

from enum import Enum

from pydantic import BaseModel, Field


class DocumentStatus(str, Enum):
    """Processing status of an uploaded document."""

    uploaded = "uploaded"
    processing = "processing"
    ready = "ready"
    error = "error"


class ProgressStep(str, Enum):
    """Pipeline step reported to polling clients."""

    extracting = "extracting"
    detecting = "detecting"
    saving_chapters = "saving_chapters"
    done = "done"
    unknown = "unknown"


class BoundarySuggestion(BaseModel):
    """Chapter start proposed by the generation service (untrusted)."""

    title: str = Field(..., min_length=1)
    snippet_text: str = Field(..., description="Excerpt claimed to open the chapter")


class ResolvedBoundary(BaseModel):
    """Suggestion promoted to a verified character offset in the source text."""

    title: str
    offset: int = Field(..., ge=0)


class ChapterSegment(BaseModel):
    """Contiguous, trimmed slice of the source text."""

    title: str
    content: str
    offset: int = Field(0, ge=0, description="Source offset of the slice start")


class JobProgress(BaseModel):
    """Live progress of a processing run."""

    step: ProgressStep = ProgressStep.unknown
    current_unit: int = Field(0, ge=0)
    total_units: int = Field(0, ge=0)
    current_label: str = ""

    @classmethod
    def unknown(cls) -> "JobProgress":
        """Progress returned when no run is tracked for a document."""
        return cls()
