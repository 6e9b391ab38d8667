"""
models/catalog_model.py

Records kept by the exam catalog: attempts, bookmarked questions and the
dashboard summary.
"""

import time
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field


def _new_id() -> str:
    return uuid.uuid4().hex


class SubmittedAnswer(BaseModel):
    question_id: str
    answer: Optional[str] = None


class ExamAttempt(BaseModel):
    """
    One completed pass through an exam.

    score is the percentage (0-100), time_spent is in seconds.
    """

    id: str = Field(default_factory=_new_id)
    exam_id: str
    date: float = Field(default_factory=time.time)
    score: int = Field(..., ge=0, le=100)
    time_spent: float = Field(default=0.0, ge=0)
    answered_questions: int = Field(default=0, ge=0)
    total_questions: int = Field(..., ge=1)
    submitted_answers: List[SubmittedAnswer] = Field(default_factory=list)


class BookmarkedQuestion(BaseModel):
    id: str = Field(default_factory=_new_id)
    exam_id: str
    exam_name: str
    question_id: str
    question: str
    options: List[str]
    correct_answer: str
    bookmarked_at: float = Field(default_factory=time.time)


class DashboardSummary(BaseModel):
    total_exams: int = 0
    total_attempts: int = 0
    avg_score: int = 0
    total_time_spent: float = 0.0
    bookmarked_count: int = 0
