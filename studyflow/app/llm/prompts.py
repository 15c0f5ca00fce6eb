"""Prompt builders for segmentation, enrichment and study planning."""

from datetime import date

JSON_ONLY = "Return ONLY valid JSON, no markdown fences."

BOUNDARY_SYSTEM_PROMPT = f"You identify chapter boundaries in course text. {JSON_ONLY}"

SUMMARY_SYSTEM_PROMPT = (
    "You are a study assistant that creates structured summaries strictly based on the "
    f"provided course material. {JSON_ONLY} Keep language consistent with the source material."
)

QUESTIONS_SYSTEM_PROMPT = (
    "You generate study questions in multiple languages strictly based on the provided "
    f"course material. {JSON_ONLY}"
)

STUDY_PLAN_SYSTEM_PROMPT = (
    f"You create realistic study schedules. {JSON_ONLY} Use ISO date format (YYYY-MM-DD)."
)

_MATERIAL_RULES = """IMPORTANT RULES:
- Only use concepts, theories and information explicitly covered in the chapter text below.
- Do NOT add information from external sources or other courses.
- Do NOT include topics about the author, publisher or publication metadata."""


def build_boundary_prompt(text: str, *, max_chapters: int = 20) -> str:
    """Ask for chapter titles plus the opening characters of each chapter."""
    return f"""Analyze this course text and identify where each chapter starts.

Return a JSON array: [{{"title": "Chapter title", "start_text": "first 50-60 characters of that chapter exactly as they appear"}}]

Rules:
- "start_text" must be an EXACT substring from the text (it is used to find the position)
- Include enough characters to be unique (50-60 chars)
- Maximum {max_chapters} chapters
- If there are no clear chapters, split by major topic shifts
- If the text is very short, return a single chapter

Text:
---
{text}
---"""


def build_summary_prompt(title: str, content: str) -> str:
    """Ask for main and side topics of one chapter."""
    return f"""Analyze this chapter and provide a structured summary based ONLY on the content provided below.

1. MAIN TOPICS: The core concepts a student MUST know for an exam.
   Return as: {{"topic": "...", "explanation": "...", "key_terms": ["..."]}}

2. SIDE TOPICS: Supporting details, examples, context that help understanding.
   Return as: {{"topic": "...", "explanation": "..."}}

{_MATERIAL_RULES}

Return JSON: {{"main_topics": [...], "side_topics": [...]}}

Chapter: "{title}"
---
{content}
---"""


def build_questions_prompt(title: str, content: str) -> str:
    """Ask for exam and discussion questions in English, Dutch and French."""
    return f"""Based ONLY on the chapter content provided below, generate:

1. Five questions a university professor would ask on a written exam.
   These should test deep understanding, not just memorization.

2. Five questions a student could ask the professor during class
   to get more insight or clarification.

{_MATERIAL_RULES}
- Provide each question and answer in THREE languages: English (en), Dutch (nl), and French (fr).

Return JSON:
{{
  "exam_questions": [
    {{
      "question": {{"en": "...", "nl": "...", "fr": "..."}},
      "suggested_answer": {{"en": "...", "nl": "...", "fr": "..."}}
    }}
  ],
  "discussion_questions": [
    {{
      "question": {{"en": "...", "nl": "...", "fr": "..."}},
      "why_useful": {{"en": "...", "nl": "...", "fr": "..."}}
    }}
  ]
}}

Chapter: "{title}"
---
{content}
---"""


def build_study_plan_prompt(
    chapters: list[tuple[str, str]],
    *,
    exam_date: date,
    hours_per_day: float,
    today: date,
) -> str:
    """Ask for a day-by-day schedule covering the given (id, title) chapters."""
    chapter_lines = "\n".join(
        f'  {i + 1}. "{title}" (id: "{chapter_id}")' for i, (chapter_id, title) in enumerate(chapters)
    )
    return f"""Create a study plan for a student with these parameters:

- Today: {today.isoformat()}
- Exam date: {exam_date.isoformat()}
- Available study hours per day: {hours_per_day}
- Chapters to cover:
{chapter_lines}

Rules:
- Spread chapters evenly across available days
- Include 1-2 review days before the exam
- Add a buffer day if there's enough time
- Each day should have a realistic workload
- Don't schedule study on the exam day itself

Return a JSON array:
[{{"date": "YYYY-MM-DD", "chapters": [{{"id": "...", "title": "..."}}], "total_minutes": 120, "type": "study|review|buffer"}}]"""
