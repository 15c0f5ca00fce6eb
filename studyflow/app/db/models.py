"""SQLAlchemy ORM models for documents, chapters, questions and study plans."""

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Float, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class Document(Base):
    """Uploaded document - processing status lives here."""

    __tablename__ = "document"

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="uploaded")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    chapters: Mapped[list["Chapter"]] = relationship(
        "Chapter", back_populates="document", cascade="all, delete-orphan"
    )


class Chapter(Base):
    """Chapter segment of a document with its generated summary."""

    __tablename__ = "chapter"
    __table_args__ = (Index("idx_chapter_document_sort", "document_id", "sort_index"),)

    chapter_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("document.document_id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sort_index: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)

    # Relationships
    document: Mapped["Document"] = relationship("Document", back_populates="chapters")
    questions: Mapped[list["Question"]] = relationship(
        "Question", back_populates="chapter", cascade="all, delete-orphan"
    )


class Question(Base):
    """Exam or discussion question generated for a chapter."""

    __tablename__ = "question"
    __table_args__ = (Index("idx_question_chapter", "chapter_id"),)

    question_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    chapter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("chapter.chapter_id", ondelete="CASCADE"), nullable=False
    )
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    suggested_answer: Mapped[str] = mapped_column(Text, nullable=False)
    translations: Mapped[dict[str, Any]] = mapped_column(JsonType, nullable=False, default=dict)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    chapter: Mapped["Chapter"] = relationship("Chapter", back_populates="questions")


class StudyPlan(Base):
    """Generated study schedule - days stored as JSON."""

    __tablename__ = "study_plan"
    __table_args__ = (Index("idx_study_plan_document", "document_id"),)

    plan_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("document.document_id", ondelete="CASCADE"), nullable=False
    )
    exam_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours_per_day: Mapped[float] = mapped_column(Float, nullable=False)
    days: Mapped[list[dict[str, Any]]] = mapped_column(JsonType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
