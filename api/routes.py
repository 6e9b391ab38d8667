"""
api/routes.py — FastAPI endpoints
"""

import logging

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import BaseModel

import api.session as session
from api.sample_questions import SAMPLE_EXAM_ID, sample_exam
from mock_exam_cbt.errors import (
    ExamError, ExamNotFoundError, InvalidExamError, InvalidIndexError, InvalidStateError,
)
from mock_exam_cbt.models.question_model import ExamDefinition, Question
from mock_exam_cbt.models.session_state import Screen
from mock_exam_cbt.services.exam_catalog import SORT_KEYS, ExamCatalog
from mock_exam_cbt.services.exam_importer import DEFAULT_CATEGORY, create_exam, parse_questions
from mock_exam_cbt.services.exam_service import is_passed
from mock_exam_cbt.services.exam_session import ExamSession, count_answered
from mock_exam_cbt.services.timer import format_time, timer_status

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_IMPORT_SIZE = 5 * 1024 * 1024  # 5 MB

# ── Pydantic request bodies ──────────────────────────────────────────────────

class CreateExamBody(BaseModel):
    name: str
    subject: str
    time_limit: int
    category: str = ""
    questions: list[dict] = []

class InitExamBody(BaseModel):
    exam_id: str

class SaveAnswerBody(BaseModel):
    answer: str

class NavigateBody(BaseModel):
    index: int = 0


# ── helpers ──────────────────────────────────────────────────────────────────

def _http_error(e: ExamError) -> HTTPException:
    if isinstance(e, ExamNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidIndexError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, InvalidStateError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, InvalidExamError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _catalog(request: Request) -> ExamCatalog:
    return request.app.state.catalog


def _exam_session(request: Request) -> ExamSession:
    exam_session = session.get(request.state.session_id, "exam_session")
    if exam_session is None:
        raise HTTPException(status_code=404, detail="No exam session.")
    return exam_session


def _question_to_dict(q: Question, with_answer: bool = True) -> dict:
    d = {
        "id": q.id,
        "question": q.question,
        "options": q.options,
        "category": q.category,
        "year": q.year,
    }
    if with_answer:
        d["correct_answer"] = q.correct_answer
    return d


def _exam_summary(exam: ExamDefinition) -> dict:
    d = exam.model_dump(mode="json", exclude={"questions"})
    d["question_count"] = len(exam.questions)
    return d


def _session_to_dict(request: Request, exam_session: ExamSession) -> dict:
    state = exam_session.snapshot()
    exam = state.active_exam
    in_progress = state.screen == Screen.IN_PROGRESS
    current = exam.questions[state.current_question_index] if exam else None
    return {
        "screen": state.screen.value,
        "exam": _exam_summary(exam) if exam else None,
        "current_question_index": state.current_question_index,
        "current_question": _question_to_dict(current, with_answer=not in_progress) if current else None,
        "answers": state.answers,
        "skipped": state.skipped,
        "time_per_question": state.time_per_question,
        "answered_count": count_answered(state),
        "remaining_seconds": state.remaining_seconds,
        "formatted_time": format_time(state.remaining_seconds),
        "timer_status": timer_status(state.remaining_seconds),
        "session_start_time": state.session_start_time,
        "session_end_time": state.session_end_time,
        "results": state.results.model_dump(mode="json") if state.results else None,
        "passed": is_passed(state.results.percentage) if state.results else None,
        "attempt_id": session.get(request.state.session_id, "attempt_id"),
    }


# ── catalog endpoints ────────────────────────────────────────────────────────

@router.get("/api/exams")
async def list_exams(request: Request, search: str = "", sort: str = "recent"):
    if sort not in SORT_KEYS:
        raise HTTPException(status_code=400, detail=f"Unknown sort '{sort}'. Use one of {list(SORT_KEYS)}.")
    exams = _catalog(request).list_exams(search_query=search, sort_by=sort)
    return {"exams": [_exam_summary(e) for e in exams]}


@router.post("/api/exams/import")
async def import_questions(file: UploadFile = File(...), category: str = Form(DEFAULT_CATEGORY)):
    file_bytes = await file.read()
    if len(file_bytes) > MAX_IMPORT_SIZE:
        raise HTTPException(status_code=413, detail="Import file is too large (max 5MB).")
    try:
        questions = parse_questions(file_bytes, category=category)
    except InvalidExamError as e:
        raise _http_error(e)
    return {"count": len(questions), "questions": [_question_to_dict(q) for q in questions], "ok": True}


@router.post("/api/exams", status_code=201)
async def add_exam(request: Request, body: CreateExamBody):
    try:
        questions = parse_questions(body.questions, category=body.category or body.subject)
        exam = create_exam(body.name, body.subject, body.time_limit, questions, category=body.category)
        _catalog(request).add_exam(exam)
    except InvalidExamError as e:
        raise _http_error(e)
    return {"id": exam.id, "question_count": len(exam.questions), "ok": True}


@router.get("/api/exams/{exam_id}")
async def get_exam(request: Request, exam_id: str):
    try:
        exam = _catalog(request).get_exam(exam_id)
    except ExamNotFoundError as e:
        raise _http_error(e)
    return exam.model_dump(mode="json")


@router.delete("/api/exams/{exam_id}")
async def remove_exam(request: Request, exam_id: str):
    try:
        _catalog(request).remove_exam(exam_id)
    except ExamNotFoundError as e:
        raise _http_error(e)
    return {"ok": True}


@router.post("/api/exams/{exam_id}/bookmark")
async def bookmark_exam(request: Request, exam_id: str):
    try:
        exam = _catalog(request).bookmark_exam(exam_id)
    except ExamNotFoundError as e:
        raise _http_error(e)
    return {"is_bookmarked": exam.is_bookmarked, "ok": True}


@router.delete("/api/exams/{exam_id}/bookmark")
async def unbookmark_exam(request: Request, exam_id: str):
    try:
        exam = _catalog(request).unbookmark_exam(exam_id)
    except ExamNotFoundError as e:
        raise _http_error(e)
    return {"is_bookmarked": exam.is_bookmarked, "ok": True}


@router.get("/api/exams/{exam_id}/attempts")
async def exam_attempts(request: Request, exam_id: str):
    catalog = _catalog(request)
    try:
        catalog.get_exam(exam_id)
    except ExamNotFoundError as e:
        raise _http_error(e)
    return {"attempts": [a.model_dump(mode="json") for a in catalog.attempts_for(exam_id)]}


@router.get("/api/dashboard")
async def dashboard(request: Request):
    catalog = _catalog(request)
    return {
        "summary": catalog.dashboard_summary().model_dump(),
        "recent_attempts": [a.model_dump(mode="json") for a in catalog.recent_attempts()],
        "recent_bookmarks": [b.model_dump(mode="json") for b in catalog.recent_bookmarks()],
    }


@router.get("/api/bookmarks")
async def list_bookmarks(request: Request):
    catalog = _catalog(request)
    return {"bookmarks": [b.model_dump(mode="json") for b in catalog.recent_bookmarks(limit=None)]}


@router.delete("/api/bookmarks/{bookmark_id}")
async def remove_bookmark(request: Request, bookmark_id: str):
    _catalog(request).remove_bookmarked_question(bookmark_id)
    return {"ok": True}


# ── exam session endpoints ───────────────────────────────────────────────────

@router.get("/api/session")
async def get_exam_session(request: Request):
    return _session_to_dict(request, _exam_session(request))


@router.post("/api/session/init")
async def init_exam(request: Request, body: InitExamBody):
    exam_session = _exam_session(request)
    try:
        exam = _catalog(request).get_exam(body.exam_id)
        exam_session.select_exam(exam)
    except ExamError as e:
        raise _http_error(e)
    session.put(request.state.session_id, "attempt_id", None)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/sample")
async def start_sample_exam(request: Request):
    """Load the built-in sample exam into the catalog (once) and bind it to this session."""
    catalog = _catalog(request)
    try:
        exam = catalog.get_exam(SAMPLE_EXAM_ID)
    except ExamNotFoundError:
        exam = catalog.add_exam(sample_exam())

    exam_session = _exam_session(request)
    try:
        exam_session.select_exam(exam)
    except ExamError as e:
        raise _http_error(e)
    session.put(request.state.session_id, "attempt_id", None)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/start")
async def start_exam(request: Request):
    exam_session = _exam_session(request)
    try:
        exam_session.start_exam()
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/answer")
async def save_answer(request: Request, body: SaveAnswerBody):
    exam_session = _exam_session(request)
    try:
        exam_session.submit_answer(body.answer)
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/skip")
async def skip_question(request: Request):
    exam_session = _exam_session(request)
    try:
        exam_session.skip_question()
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/navigate")
async def navigate(request: Request, body: NavigateBody):
    exam_session = _exam_session(request)
    try:
        exam_session.navigate_to_question(body.index)
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/next")
async def next_question(request: Request):
    exam_session = _exam_session(request)
    try:
        exam_session.next_question()
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/previous")
async def previous_question(request: Request):
    exam_session = _exam_session(request)
    try:
        exam_session.previous_question()
    except ExamError as e:
        raise _http_error(e)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/submit")
async def submit_exam(request: Request):
    exam_session = _exam_session(request)
    try:
        attempt = exam_session.submit_exam_attempt()
    except ExamError as e:
        raise _http_error(e)

    try:
        attempt = _catalog(request).add_attempt(attempt)
        session.put(request.state.session_id, "attempt_id", attempt.id)
    except ExamNotFoundError:
        logger.warning("Exam removed during the attempt, result not recorded")
    return _session_to_dict(request, exam_session)


@router.post("/api/session/retake")
async def retake_exam(request: Request):
    exam_session = _exam_session(request)
    exam_session.retake_exam()
    session.put(request.state.session_id, "attempt_id", None)
    return _session_to_dict(request, exam_session)


@router.post("/api/session/bookmark")
async def bookmark_question(request: Request):
    exam_session = _exam_session(request)
    try:
        bookmark = _catalog(request).add_bookmarked_question(exam_session.bookmark_current_question())
    except ExamError as e:
        raise _http_error(e)
    return bookmark.model_dump(mode="json")


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(request.state.session_id)
    return {"ok": True}
