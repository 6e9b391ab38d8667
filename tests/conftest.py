"""
Mock Exam CBT - Test Configuration
Pytest fixtures shared by the core and API tests
"""
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

import api.session as session
from api.app import create_app
from mock_exam_cbt.models.question_model import ExamDefinition, Question
from mock_exam_cbt.services.exam_catalog import ExamCatalog
from mock_exam_cbt.services.exam_session import ExamSession
from mock_exam_cbt.services.storage import MemoryStore


class FakeClock:
    """Manually advanced clock, usable as both the monotonic and the wall clock."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_exam(
    correct: list[str],
    categories: list[str] | None = None,
    exam_id: str = "exam-1",
    time_limit: int = 10,
    **kwargs: Any,
) -> ExamDefinition:
    """Exam with one question per entry of correct; every question offers A-D."""
    categories = categories or ["General"] * len(correct)
    return ExamDefinition(
        id=exam_id,
        name=kwargs.pop("name", f"Exam {exam_id}"),
        subject=kwargs.pop("subject", "Testing"),
        time_limit=time_limit,
        questions=[
            Question(
                id=f"q{i + 1}",
                question=f"Question {i + 1}?",
                options=["A", "B", "C", "D"],
                correct_answer=answer,
                category=categories[i],
            )
            for i, answer in enumerate(correct)
        ],
        **kwargs,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def exam() -> ExamDefinition:
    """Four questions, correct answers A, B, C, D."""
    return make_exam(["A", "B", "C", "D"], categories=["Math", "Math", "Art", "Art"])


@pytest.fixture
def exam_session(exam: ExamDefinition, clock: FakeClock) -> ExamSession:
    """Session with the exam bound, still on the start screen."""
    return ExamSession(exam, clock=clock, wall_clock=clock)


@pytest.fixture
def started_session(exam_session: ExamSession) -> ExamSession:
    exam_session.start_exam()
    return exam_session


@pytest.fixture
def catalog() -> ExamCatalog:
    return ExamCatalog(MemoryStore())


@pytest.fixture
def sample_question_data() -> list[dict[str, Any]]:
    """Questions in the import file format."""
    return [
        {
            "question": "2 + 2 = ?",
            "option_1": "3",
            "option_2": "4",
            "option_3": "5",
            "option_4": "22",
            "correct_answer": "4",
            "question_year": "2021",
        },
        {
            "question": "Capital of France?",
            "option_1": "Paris",
            "option_2": "Lyon",
            "option_3": "Nice",
            "option_4": "Lille",
            "correct_answer": "Paris",
        },
    ]


@pytest_asyncio.fixture(scope="function")
async def client(catalog: ExamCatalog) -> AsyncGenerator[AsyncClient, None]:
    """API client against an app backed by an in-memory catalog, no background threads."""
    session.clear()
    app = create_app(catalog=catalog, start_background=False)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    session.clear()
