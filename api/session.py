"""
api/session.py — per-browser in-memory sessions (cookie based)

Each browser gets a UUID session id and its own ExamSession instance.
Sessions expire after SESSION_TTL seconds without access.
"""

import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL
from mock_exam_cbt.services.exam_session import ExamSession

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "exam_session": ExamSession(),
        "attempt_id": None,
    }


def create_session() -> str:
    """Create a session and return its id."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """Session data for sid, or None if missing or expired."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            del _sessions[sid]
            del _timestamps[sid]
            return None
        _timestamps[sid] = time.time()  # refresh on access
        return _sessions[sid]


def get(sid: str, key: str, default=None):
    """Read a value from the session."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """Write a value to the session."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """Drop the exam attempt and start over with a blank ExamSession."""
    with _lock:
        if sid in _sessions:
            _sessions[sid] = _new_state()
            _timestamps[sid] = time.time()


def exam_sessions() -> list[tuple[str, ExamSession]]:
    """(sid, ExamSession) pairs of all live sessions, for the countdown ticker."""
    with _lock:
        return [(sid, s["exam_session"]) for sid, s in _sessions.items()]


def cleanup_expired() -> int:
    """Remove expired sessions. Returns how many were removed."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            del _sessions[sid]
            del _timestamps[sid]
            removed += 1
    return removed


def clear() -> None:
    """Drop every session."""
    with _lock:
        _sessions.clear()
        _timestamps.clear()
