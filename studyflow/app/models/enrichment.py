"""Per-chapter enrichment and study plan models."""

from datetime import date
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class MainTopic(BaseModel):
    """Core concept a student must know for the exam."""

    topic: str
    explanation: str
    key_terms: list[str] = Field(default_factory=list)


class SideTopic(BaseModel):
    """Supporting detail or example."""

    topic: str
    explanation: str


class ChapterSummary(BaseModel):
    """Structured summary of one chapter."""

    main_topics: list[MainTopic] = Field(default_factory=list)
    side_topics: list[SideTopic] = Field(default_factory=list)


class MultilingualText(BaseModel):
    """Same text in English, Dutch and French."""

    en: str
    nl: str = ""
    fr: str = ""


class ExamQuestion(BaseModel):
    """Question a professor would ask on a written exam."""

    question: MultilingualText
    suggested_answer: MultilingualText


class DiscussionQuestion(BaseModel):
    """Question a student could ask during class."""

    question: MultilingualText
    why_useful: MultilingualText


class ChapterQuestions(BaseModel):
    """Exam and discussion questions for one chapter."""

    exam_questions: list[ExamQuestion] = Field(default_factory=list)
    discussion_questions: list[DiscussionQuestion] = Field(default_factory=list)


class PlanChapterRef(BaseModel):
    """Chapter referenced by a study plan day."""

    id: str
    title: str


class StudyPlanDay(BaseModel):
    """One scheduled day of a study plan."""

    date: date
    chapters: list[PlanChapterRef] = Field(default_factory=list)
    total_minutes: int = Field(0, ge=0)
    type: Literal["study", "review", "buffer"] = "study"


class StudyPlan(BaseModel):
    """Generated study schedule for one document."""

    plan_id: UUID
    document_id: UUID
    exam_date: date
    hours_per_day: float = Field(..., gt=0)
    days: list[StudyPlanDay] = Field(default_factory=list)
