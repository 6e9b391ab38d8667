"""
Mock Exam CBT - API Tests
"""
import json

import pytest
from httpx import AsyncClient

from api.app import tick_sessions
import api.session as session
from conftest import make_exam
from mock_exam_cbt.errors import InvalidStateError
from mock_exam_cbt.models.session_state import Screen
from mock_exam_cbt.services.exam_catalog import ExamCatalog


@pytest.fixture
def seeded_catalog(catalog: ExamCatalog) -> ExamCatalog:
    catalog.add_exam(make_exam(["A", "B"], exam_id="e1", time_limit=1))
    return catalog


@pytest.mark.asyncio
async def test_create_and_list_exams(client: AsyncClient, sample_question_data):
    response = await client.post("/api/exams", json={
        "name": "Quiz",
        "subject": "General",
        "time_limit": 5,
        "questions": sample_question_data,
    })
    assert response.status_code == 201
    exam_id = response.json()["id"]

    response = await client.get("/api/exams", params={"search": "qu"})
    assert response.status_code == 200
    exams = response.json()["exams"]
    assert [e["id"] for e in exams] == [exam_id]
    assert exams[0]["question_count"] == 2
    assert "questions" not in exams[0]


@pytest.mark.asyncio
async def test_create_exam_validation_error(client: AsyncClient):
    response = await client.post("/api/exams", json={
        "name": "Empty", "subject": "x", "time_limit": 5, "questions": [],
    })
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_sort(client: AsyncClient):
    response = await client.get("/api/exams", params={"sort": "random"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_import_file(client: AsyncClient, sample_question_data):
    files = {"file": ("questions.json", json.dumps(sample_question_data), "application/json")}
    response = await client.post("/api/exams/import", files=files, data={"category": "Quiz"})
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 2
    assert data["questions"][0]["category"] == "Quiz"

    files = {"file": ("broken.json", "[{", "application/json")}
    response = await client.post("/api/exams/import", files=files)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_full_exam_flow(client: AsyncClient, seeded_catalog: ExamCatalog):
    response = await client.post("/api/session/init", json={"exam_id": "e1"})
    assert response.status_code == 200
    data = response.json()
    assert data["screen"] == "start"
    assert data["remaining_seconds"] == 60
    assert data["formatted_time"] == "01:00"

    response = await client.post("/api/session/start")
    data = response.json()
    assert data["screen"] == "in_progress"
    assert "correct_answer" not in data["current_question"]

    await client.post("/api/session/answer", json={"answer": "A"})
    response = await client.post("/api/session/next")
    assert response.json()["current_question_index"] == 1
    await client.post("/api/session/answer", json={"answer": "C"})

    response = await client.post("/api/session/submit")
    assert response.status_code == 200
    data = response.json()
    assert data["screen"] == "results"
    assert data["results"]["percentage"] == 50
    assert data["results"]["mastery_level"] == "Basic"
    assert data["passed"] is False
    assert data["attempt_id"]

    e1 = seeded_catalog.get_exam("e1")
    assert e1.total_attempts == 1
    assert e1.best_score == 50

    response = await client.post("/api/session/submit")
    assert response.status_code == 409

    response = await client.post("/api/session/retake")
    data = response.json()
    assert data["screen"] == "start"
    assert data["results"] is None
    assert data["attempt_id"] is None


@pytest.mark.asyncio
async def test_session_errors(client: AsyncClient, seeded_catalog: ExamCatalog):
    response = await client.post("/api/session/answer", json={"answer": "A"})
    assert response.status_code == 409

    response = await client.post("/api/session/init", json={"exam_id": "missing"})
    assert response.status_code == 404

    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    response = await client.post("/api/session/start")
    assert response.status_code == 409

    response = await client.post("/api/session/navigate", json={"index": 7})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_skip_and_bookmark(client: AsyncClient, seeded_catalog: ExamCatalog):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")

    response = await client.post("/api/session/bookmark")
    assert response.status_code == 200
    assert response.json()["question_id"] == "q1"

    response = await client.post("/api/session/skip")
    data = response.json()
    assert data["skipped"] == [True, False]
    assert data["current_question_index"] == 1

    response = await client.get("/api/bookmarks")
    bookmarks = response.json()["bookmarks"]
    assert len(bookmarks) == 1

    await client.delete(f"/api/bookmarks/{bookmarks[0]['id']}")
    response = await client.get("/api/bookmarks")
    assert response.json()["bookmarks"] == []


@pytest.mark.asyncio
async def test_countdown_expiry_records_attempt(client: AsyncClient, seeded_catalog: ExamCatalog):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    await client.post("/api/session/answer", json={"answer": "A"})

    submitted = 0
    for _ in range(60):
        submitted += tick_sessions(seeded_catalog)
    assert submitted == 1

    response = await client.get("/api/session")
    data = response.json()
    assert data["screen"] == "results"
    assert data["remaining_seconds"] == 0
    assert data["timer_status"] == "danger"
    assert data["attempt_id"]
    assert seeded_catalog.get_exam("e1").total_attempts == 1
    assert tick_sessions(seeded_catalog) == 0


@pytest.mark.asyncio
async def test_sample_exam(client: AsyncClient, catalog: ExamCatalog):
    response = await client.post("/api/session/sample")
    assert response.status_code == 200
    data = response.json()
    assert data["exam"]["question_count"] == 10
    assert data["remaining_seconds"] == 30 * 60

    await client.post("/api/session/sample")
    assert len(catalog.exams) == 1


@pytest.mark.asyncio
async def test_exam_bookmarks_dashboard_and_delete(client: AsyncClient, seeded_catalog: ExamCatalog):
    response = await client.post("/api/exams/e1/bookmark")
    assert response.json()["is_bookmarked"] is True
    response = await client.delete("/api/exams/e1/bookmark")
    assert response.json()["is_bookmarked"] is False

    response = await client.get("/api/dashboard")
    assert response.json()["summary"]["total_exams"] == 1

    response = await client.get("/api/exams/e1/attempts")
    assert response.json()["attempts"] == []

    response = await client.delete("/api/exams/e1")
    assert response.status_code == 200
    response = await client.get("/api/exams/e1")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reset_gives_a_blank_session(client: AsyncClient, seeded_catalog: ExamCatalog):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/reset")
    response = await client.get("/api/session")
    assert response.json()["exam"] is None
    assert len(session.exam_sessions()) == 1


@pytest.mark.asyncio
async def test_init_another_exam_after_results(client: AsyncClient, seeded_catalog: ExamCatalog):
    seeded_catalog.add_exam(make_exam(["C", "C", "C"], exam_id="e2", time_limit=2))

    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    response = await client.post("/api/session/submit")
    assert response.json()["screen"] == "results"

    response = await client.post("/api/session/init", json={"exam_id": "e2"})
    assert response.status_code == 200
    data = response.json()
    assert data["screen"] == "start"
    assert data["results"] is None
    assert data["passed"] is None
    assert data["attempt_id"] is None
    assert data["exam"]["id"] == "e2"

    response = await client.post("/api/session/start")
    assert response.status_code == 200
    assert response.json()["screen"] == "in_progress"


@pytest.mark.asyncio
async def test_retake_shows_full_time_on_start_screen(client: AsyncClient, seeded_catalog: ExamCatalog):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    for _ in range(60):
        tick_sessions(seeded_catalog)

    response = await client.post("/api/session/retake")
    data = response.json()
    assert data["remaining_seconds"] == 60
    assert data["formatted_time"] == "01:00"
    assert data["screen"] == "start"


class _BrokenSession:
    def tick_attempt(self):
        raise InvalidStateError(Screen.START, Screen.RESULTS, "to_attempt")


@pytest.mark.asyncio
async def test_tick_survives_a_failing_session(client: AsyncClient, seeded_catalog: ExamCatalog, monkeypatch):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    live = session.exam_sessions()
    monkeypatch.setattr(session, "exam_sessions", lambda: [("broken-sid", _BrokenSession())] + live)

    submitted = 0
    for _ in range(60):
        submitted += tick_sessions(seeded_catalog)
    assert submitted == 1
    assert seeded_catalog.get_exam("e1").total_attempts == 1


@pytest.mark.asyncio
async def test_answered_count_in_session_payload(client: AsyncClient, seeded_catalog: ExamCatalog):
    await client.post("/api/session/init", json={"exam_id": "e1"})
    await client.post("/api/session/start")
    response = await client.post("/api/session/answer", json={"answer": "B"})
    assert response.json()["answered_count"] == 1
    response = await client.post("/api/session/skip")
    assert response.json()["answered_count"] == 0
