"""Test doubles and sample data shared across test suites."""

import asyncio
import json
import uuid
from collections import Counter
from dataclasses import dataclass

from studyflow.app.config import Settings
from studyflow.app.db.inmemory import (
    InMemoryChapterRepository,
    InMemoryDocumentRepository,
    InMemoryProgressStore,
    InMemoryStudyPlanRepository,
)
from studyflow.app.enrichment.study_plan import StudyPlanner
from studyflow.app.llm.prompts import (
    BOUNDARY_SYSTEM_PROMPT,
    QUESTIONS_SYSTEM_PROMPT,
    STUDY_PLAN_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
)
from studyflow.app.orchestration.jobs import JobOrchestrator
from studyflow.app.storage import InMemoryBlobStore

CHAPTER_ONE = "Chapter 1: Cells\n" + "Cells are the basic unit of all living things. " * 8
CHAPTER_TWO = "Chapter 2: Genetics\n" + "Genes carry hereditary information between generations. " * 8
COURSE_TEXT = CHAPTER_ONE + "\n\n" + CHAPTER_TWO

BOUNDARY_RESPONSE = json.dumps(
    [
        {"title": "Cells", "start_text": "Chapter 1: Cells"},
        {"title": "Genetics", "start_text": "Chapter 2: Genetics"},
    ]
)

SUMMARY_RESPONSE = json.dumps(
    {
        "main_topics": [
            {"topic": "Cell theory", "explanation": "All life is made of cells.", "key_terms": ["cell"]}
        ],
        "side_topics": [{"topic": "Microscopes", "explanation": "Used to observe cells."}],
    }
)

QUESTIONS_RESPONSE = json.dumps(
    {
        "exam_questions": [
            {
                "question": {"en": "What is a cell?", "nl": "Wat is een cel?", "fr": "Qu'est-ce qu'une cellule ?"},
                "suggested_answer": {"en": "The unit of life.", "nl": "De eenheid van leven.", "fr": "L'unité du vivant."},
            }
        ],
        "discussion_questions": [
            {
                "question": {"en": "Are viruses alive?", "nl": "Leven virussen?", "fr": "Les virus sont-ils vivants ?"},
                "why_useful": {"en": "Tests the definition.", "nl": "Toetst de definitie.", "fr": "Teste la définition."},
            }
        ],
    }
)

STUDY_PLAN_RESPONSE = json.dumps(
    [
        {"date": "2030-01-02", "chapters": [{"id": "c1", "title": "Cells"}], "total_minutes": 120, "type": "study"},
        {"date": "2030-01-03", "chapters": [], "total_minutes": 90, "type": "review"},
    ]
)

PURPOSES = {
    BOUNDARY_SYSTEM_PROMPT: "segmentation",
    SUMMARY_SYSTEM_PROMPT: "summary",
    QUESTIONS_SYSTEM_PROMPT: "questions",
    STUDY_PLAN_SYSTEM_PROMPT: "study_plan",
}


class ScriptedGenerator:
    """Fake TextGenerator answering by prompt purpose.

    pause_on / fail_on address the n-th call (1-based) of a purpose.
    """

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self.responses = {
            "segmentation": BOUNDARY_RESPONSE,
            "summary": SUMMARY_RESPONSE,
            "questions": QUESTIONS_RESPONSE,
            "study_plan": STUDY_PLAN_RESPONSE,
            **(responses or {}),
        }
        self.calls: list[tuple[str, str]] = []
        self.counts: Counter[str] = Counter()
        self.pause_on: tuple[str, int] | None = None
        self.fail_on: dict[tuple[str, int], Exception] = {}
        self.paused = asyncio.Event()
        self.resume = asyncio.Event()

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: int,
        model: str,
    ) -> str:
        purpose = PURPOSES.get(system_prompt, "unknown")
        self.calls.append((purpose, user_prompt))
        self.counts[purpose] += 1
        key = (purpose, self.counts[purpose])

        if self.pause_on == key:
            self.paused.set()
            await self.resume.wait()
        if key in self.fail_on:
            raise self.fail_on[key]
        return self.responses[purpose]


class StaticTextExtractor:
    """Extractor returning fixed text regardless of input bytes."""

    def __init__(self, text: str) -> None:
        self.text = text

    async def extract(self, data: bytes) -> str:
        return self.text


@dataclass
class Workspace:
    """In-memory service graph for orchestration tests."""

    settings: Settings
    generator: ScriptedGenerator
    extractor: StaticTextExtractor
    documents: InMemoryDocumentRepository
    chapters: InMemoryChapterRepository
    plans: InMemoryStudyPlanRepository
    progress: InMemoryProgressStore
    blobs: InMemoryBlobStore
    orchestrator: JobOrchestrator
    planner: StudyPlanner

    async def add_document(self, title: str = "Biology 101") -> uuid.UUID:
        storage_path = f"uploads/{uuid.uuid4()}.pdf"
        self.blobs.put(storage_path, b"%PDF-1.4 fake")
        return await self.documents.create_document(title, storage_path)

