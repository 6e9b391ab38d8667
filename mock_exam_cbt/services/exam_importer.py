"""
services/exam_importer.py

Question import and exam creation.
Public API:
  - parse_questions(raw, category) -> List[Question] : JSON question list -> Question
  - create_exam(name, subject, time_limit, questions) -> ExamDefinition

Import format (one object per question):
    {"question": "...", "option_1": "...", "option_2": "...",
     "option_3": "...", "option_4": "...", "correct_answer": "...",
     "question_year": "2021"}   # question_year optional
"""

import json
import logging
import time
import uuid
from typing import List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from mock_exam_cbt.errors import InvalidExamError
from mock_exam_cbt.models.question_model import ExamDefinition, Question

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"


class ImportedQuestion(BaseModel):
    question: str = Field(..., min_length=1, description="Question text")
    option_1: str = Field(..., min_length=1)
    option_2: str = Field(..., min_length=1)
    option_3: str = Field(..., min_length=1)
    option_4: str = Field(..., min_length=1)
    correct_answer: str = Field(..., min_length=1)
    question_year: Optional[str] = None

    @property
    def options(self) -> List[str]:
        return [self.option_1, self.option_2, self.option_3, self.option_4]


_IMPORT_ADAPTER = TypeAdapter(List[ImportedQuestion])


def _format_errors(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def parse_questions(
    raw: Union[str, bytes, list],
    category: str = DEFAULT_CATEGORY,
) -> List[Question]:
    """
    Validate an imported question list and convert it to Question objects.

    Args:
        raw:      JSON text/bytes, or an already decoded list.
        category: category label given to every imported question.

    Returns:
        Questions with ids q1..qN in file order.

    Raises:
        InvalidExamError: bad JSON, schema violation, or a correct_answer
                          that is not one of the four options.
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidExamError(f"Invalid JSON format: {e}") from e
    else:
        data = raw

    try:
        imported = _IMPORT_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise InvalidExamError(f"Invalid question format: {_format_errors(e)}") from e

    questions: List[Question] = []
    for n, item in enumerate(imported, start=1):
        if item.correct_answer not in item.options:
            raise InvalidExamError(
                f"Invalid question format: question {n} correct_answer "
                f"'{item.correct_answer}' is not one of its options"
            )
        questions.append(
            Question(
                id=f"q{n}",
                question=item.question,
                options=item.options,
                correct_answer=item.correct_answer,
                category=category or DEFAULT_CATEGORY,
                year=item.question_year,
            )
        )

    logger.info(f"Imported {len(questions)} questions")
    return questions


def create_exam(
    name: str,
    subject: str,
    time_limit: int,
    questions: List[Question],
    category: str = "",
    exam_id: Optional[str] = None,
    created_at: Optional[float] = None,
) -> ExamDefinition:
    """
    Build a new catalog exam from the create-exam form.

    Raises:
        InvalidExamError: empty name/subject, time_limit < 1 or no questions.
    """
    try:
        return ExamDefinition(
            id=exam_id or uuid.uuid4().hex,
            name=name.strip(),
            subject=subject.strip(),
            category=category,
            time_limit=time_limit,
            questions=questions,
            created_at=created_at if created_at is not None else time.time(),
        )
    except ValidationError as e:
        raise InvalidExamError(f"Invalid exam: {_format_errors(e)}") from e
