import time
import uuid
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Question(BaseModel):
    """
    Multiple-choice exam question.
    Immutable once the exam is created (Pydantic v2, frozen).
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Question id, unique within its exam (e.g. 'q1')"
    )
    question: str = Field(
        ...,
        min_length=1,
        description="Question text (may contain markdown)"
    )
    options: List[str] = Field(
        ...,
        description="Ordered answer options"
    )
    correct_answer: str = Field(
        ...,
        description="Correct option, must be one of options"
    )
    category: str = Field(
        default="General",
        description="Category label used for the per-category breakdown"
    )
    year: Optional[str] = Field(
        None,
        description="Year the question appeared in a past paper (from import)"
    )

    @field_validator('options')
    @classmethod
    def validate_options_length(cls, v: List[str]) -> List[str]:
        """
        Rule 1: a question needs at least two options.
        """
        if len(v) < 2:
            raise ValueError("options must contain at least 2 entries")
        return v

    @model_validator(mode='after')
    def validate_answer_in_options(self) -> 'Question':
        """
        Rule 2: correct_answer must be one of the listed options.
        """
        if self.correct_answer not in self.options:
            raise ValueError(
                f"correct_answer '{self.correct_answer}' is not one of the options {self.options}"
            )
        return self


class ExamDefinition(BaseModel):
    """
    An exam in the catalog.

    The aggregate stats (total_attempts, best_score, avg_score) are
    denormalized and only ever rewritten by ExamCatalog when attempts change.
    """

    id: str = Field(
        default_factory=lambda: uuid.uuid4().hex,
        min_length=1,
        description="Exam id"
    )
    name: str = Field(..., min_length=1, description="Display name")
    subject: str = Field(..., min_length=1, description="Subject")
    category: str = Field(default="", description="Catalog category (defaults to subject)")
    time_limit: int = Field(..., ge=1, description="Time limit in minutes")
    questions: List[Question] = Field(..., description="Ordered question list")
    created_at: float = Field(
        default_factory=time.time,
        description="Creation time (Unix timestamp)"
    )
    total_attempts: int = Field(default=0, ge=0)
    best_score: int = Field(default=0, ge=0, le=100)
    avg_score: int = Field(default=0, ge=0, le=100)
    is_bookmarked: bool = False

    @field_validator('questions')
    @classmethod
    def validate_questions(cls, v: List[Question]) -> List[Question]:
        if not v:
            raise ValueError("an exam needs at least one question")
        ids = [q.id for q in v]
        if len(set(ids)) != len(ids):
            raise ValueError("question ids must be unique within an exam")
        return v

    @model_validator(mode='after')
    def default_category(self) -> 'ExamDefinition':
        if not self.category:
            self.category = self.subject
        return self

    @property
    def question_count(self) -> int:
        return len(self.questions)
