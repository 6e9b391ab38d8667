"""
models/session_state.py

Data held by one exam attempt (the OMR card) and the frozen results snapshot.
Pydantic BaseModel based, no UI code.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mock_exam_cbt.models.question_model import ExamDefinition


class Screen(str, Enum):
    START = "start"
    IN_PROGRESS = "in_progress"
    RESULTS = "results"


class CategoryScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str
    total: int
    correct: int
    percentage: float


class QuestionReview(BaseModel):
    """Per-question line of the results review list."""
    model_config = ConfigDict(frozen=True)

    question_id: str
    status: str  # correct | incorrect | skipped
    user_answer: Optional[str] = None
    correct_answer: str
    time_spent: float = 0.0


class Results(BaseModel):
    """
    Immutable scoring summary produced by exam_service.score().

    Attributes:
        score:                 number of correct answers.
        max_score:             number of questions.
        percentage:            100 * score / max_score, rounded half-up.
        time_spent:            wall-clock session duration in seconds.
        avg_time_per_question: time_spent / max_score.
        mastery_level:         Advanced / Intermediate / Basic / Beginner.
    """
    model_config = ConfigDict(frozen=True)

    score: int
    max_score: int
    correct_count: int
    incorrect_count: int
    skipped_count: int
    percentage: int
    time_spent: float
    avg_time_per_question: float
    mastery_level: str
    category_scores: List[CategoryScore] = Field(default_factory=list)
    question_reviews: List[QuestionReview] = Field(default_factory=list)


class SessionState(BaseModel):
    """
    Full mutable state of one exam attempt, owned by a single ExamSession.

    Attributes:
        screen:                 current phase (start / in_progress / results).
        active_exam:            exam being attempted.
        current_question_index: index of the question on screen (0-based).
        answers:                recorded option per question, None if unset.
        skipped:                explicit skip flag per question.
        time_per_question:      accumulated seconds per question.
        question_started_at:    clock reading when the active question's
                                timer started, None while no timer runs.
        remaining_seconds:      countdown, time_limit * 60 down to 0.
        session_start_time:     Unix timestamp set by start_exam().
        session_end_time:       Unix timestamp set by submit_exam().
        results:                set only on the results screen.
    """

    screen: Screen = Screen.START
    active_exam: Optional[ExamDefinition] = None
    current_question_index: int = Field(default=0, ge=0)
    answers: List[Optional[str]] = Field(default_factory=list)
    skipped: List[bool] = Field(default_factory=list)
    time_per_question: List[float] = Field(default_factory=list)
    question_started_at: Optional[float] = None
    remaining_seconds: int = Field(default=0, ge=0)
    session_start_time: Optional[float] = None
    session_end_time: Optional[float] = None
    results: Optional[Results] = None
