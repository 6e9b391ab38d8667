"""
api/app.py — FastAPI app + session middleware + countdown ticker + static files
"""

import logging
import os
import threading
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse

from config import CLEANUP_INTERVAL, SESSION_COOKIE, SESSION_TTL, STATIC_DIR, STORE_FILE, TICK_INTERVAL
from api.routes import router
import api.session as session
from mock_exam_cbt.errors import ExamError, ExamNotFoundError
from mock_exam_cbt.services.exam_catalog import ExamCatalog
from mock_exam_cbt.services.storage import JsonFileStore

logger = logging.getLogger(__name__)


def tick_sessions(catalog: ExamCatalog) -> int:
    """
    Advance the countdown of every in-progress exam by one second.

    Exams whose time ran out are submitted by ExamSession.tick_attempt();
    their attempts are recorded in the catalog here, same as a manual submit.
    A session that fails to tick is logged and skipped.
    Returns the number of exams submitted by this tick.
    """
    submitted = 0
    for sid, exam_session in session.exam_sessions():
        try:
            attempt = exam_session.tick_attempt()
        except ExamError as e:
            logger.warning(f"Countdown tick failed for session {sid[:8]}: {e}")
            continue
        if attempt is None:
            continue
        submitted += 1
        try:
            attempt = catalog.add_attempt(attempt)
        except ExamNotFoundError:
            logger.warning(f"Exam removed during the attempt, result not recorded (session {sid[:8]})")
            continue
        session.put(sid, "attempt_id", attempt.id)
    return submitted


def create_app(catalog: ExamCatalog | None = None, start_background: bool = True) -> FastAPI:
    app = FastAPI(title="Mock Exam CBT", docs_url=None, redoc_url=None)
    app.state.catalog = catalog if catalog is not None else ExamCatalog(JsonFileStore(STORE_FILE))

    # CORS (allow any origin, e.g. mobile browsers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Session middleware: read the session id from the cookie, issue one if missing
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    # static files
    if os.path.isdir(STATIC_DIR):
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # root -> index.html
    @app.get("/")
    async def serve_index():
        index_path = os.path.join(STATIC_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"error": "index.html not found"}

    if not start_background:
        return app

    # countdown, once per second
    def _tick_loop():
        while True:
            time.sleep(TICK_INTERVAL)
            try:
                tick_sessions(app.state.catalog)
            except Exception:
                logger.exception("Countdown tick failed")

    # expired-session sweep, every 5 minutes
    def _cleanup_loop():
        while True:
            time.sleep(CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"Removed {removed} expired sessions")

    threading.Thread(target=_tick_loop, daemon=True).start()
    threading.Thread(target=_cleanup_loop, daemon=True).start()

    return app
