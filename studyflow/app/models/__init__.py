"""Models package - re-exports for convenience."""

from studyflow.app.models.documents import (
    BoundarySuggestion,
    ChapterSegment,
    DocumentStatus,
    JobProgress,
    ProgressStep,
    ResolvedBoundary,
)
from studyflow.app.models.enrichment import (
    ChapterQuestions,
    ChapterSummary,
    DiscussionQuestion,
    ExamQuestion,
    MainTopic,
    MultilingualText,
    PlanChapterRef,
    SideTopic,
    StudyPlan,
    StudyPlanDay,
)

__all__ = [
    "BoundarySuggestion",
    "ChapterQuestions",
    "ChapterSegment",
    "ChapterSummary",
    "DiscussionQuestion",
    "DocumentStatus",
    "ExamQuestion",
    "JobProgress",
    "MainTopic",
    "MultilingualText",
    "PlanChapterRef",
    "ProgressStep",
    "ResolvedBoundary",
    "SideTopic",
    "StudyPlan",
    "StudyPlanDay",
]
