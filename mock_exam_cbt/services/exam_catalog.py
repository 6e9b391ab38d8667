"""
services/exam_catalog.py

The exam catalog: exam definitions, attempt history and bookmarked
questions, persisted as one record in a key-value store.

Aggregate exam stats (total_attempts, best_score, avg_score) are
recomputed from the attempt history whenever it changes.
"""

import logging
import threading
from typing import List, Optional

from config import RECENT_LIMIT, STORE_KEY
from mock_exam_cbt.errors import ExamNotFoundError, InvalidExamError
from mock_exam_cbt.models.catalog_model import BookmarkedQuestion, DashboardSummary, ExamAttempt
from mock_exam_cbt.models.question_model import ExamDefinition
from mock_exam_cbt.services.exam_service import round_half_up
from mock_exam_cbt.services.storage import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)

SORT_KEYS = ("recent", "oldest", "name-asc", "name-desc", "attempts", "score")


class ExamCatalog:
    def __init__(self, store: Optional[KeyValueStore] = None, key: str = STORE_KEY):
        self._store = store if store is not None else MemoryStore()
        self._key = key
        self._lock = threading.Lock()
        self.exams: List[ExamDefinition] = []
        self.attempts: List[ExamAttempt] = []
        self.bookmarked_questions: List[BookmarkedQuestion] = []
        self._load()

    # ── persistence ────────────────────────────────────────────────────────

    def _load(self) -> None:
        raw = self._store.get(self._key) or {}
        self.exams = [ExamDefinition.model_validate(e) for e in raw.get("exams", [])]
        self.attempts = [ExamAttempt.model_validate(a) for a in raw.get("attempts", [])]
        self.bookmarked_questions = [
            BookmarkedQuestion.model_validate(b) for b in raw.get("bookmarked_questions", [])
        ]
        if self.exams:
            logger.info(f"Catalog loaded: {len(self.exams)} exams, {len(self.attempts)} attempts")

    def _save(self) -> None:
        self._store.put(self._key, {
            "exams": [e.model_dump(mode="json") for e in self.exams],
            "attempts": [a.model_dump(mode="json") for a in self.attempts],
            "bookmarked_questions": [b.model_dump(mode="json") for b in self.bookmarked_questions],
        })

    def _index_of(self, exam_id: str) -> int:
        for i, exam in enumerate(self.exams):
            if exam.id == exam_id:
                return i
        raise ExamNotFoundError(exam_id)

    # ── exams ──────────────────────────────────────────────────────────────

    def add_exam(self, exam: ExamDefinition) -> ExamDefinition:
        with self._lock:
            if any(e.id == exam.id for e in self.exams):
                raise InvalidExamError(f"exam id '{exam.id}' already exists")
            self.exams.append(exam)
            self._save()
        logger.info(f"Exam added: '{exam.name}' ({len(exam.questions)} questions)")
        return exam

    def get_exam(self, exam_id: str) -> ExamDefinition:
        with self._lock:
            return self.exams[self._index_of(exam_id)]

    def remove_exam(self, exam_id: str) -> None:
        """Remove an exam together with its attempts and bookmarked questions."""
        with self._lock:
            i = self._index_of(exam_id)
            removed = self.exams.pop(i)
            self.attempts = [a for a in self.attempts if a.exam_id != exam_id]
            self.bookmarked_questions = [
                b for b in self.bookmarked_questions if b.exam_id != exam_id
            ]
            self._save()
        logger.info(f"Exam removed: '{removed.name}'")

    def _set_bookmark(self, exam_id: str, value: bool) -> ExamDefinition:
        with self._lock:
            i = self._index_of(exam_id)
            self.exams[i] = self.exams[i].model_copy(update={"is_bookmarked": value})
            self._save()
            return self.exams[i]

    def bookmark_exam(self, exam_id: str) -> ExamDefinition:
        return self._set_bookmark(exam_id, True)

    def unbookmark_exam(self, exam_id: str) -> ExamDefinition:
        return self._set_bookmark(exam_id, False)

    def list_exams(self, search_query: str = "", sort_by: str = "recent") -> List[ExamDefinition]:
        """
        Case-insensitive name search plus sorting.

        sort_by: recent | oldest | name-asc | name-desc | attempts | score.
        Any other value keeps insertion order.
        """
        with self._lock:
            exams = list(self.exams)

        query = search_query.strip().lower()
        if query:
            exams = [e for e in exams if query in e.name.lower()]

        if sort_by == "recent":
            exams.sort(key=lambda e: e.created_at, reverse=True)
        elif sort_by == "oldest":
            exams.sort(key=lambda e: e.created_at)
        elif sort_by == "name-asc":
            exams.sort(key=lambda e: e.name.lower())
        elif sort_by == "name-desc":
            exams.sort(key=lambda e: e.name.lower(), reverse=True)
        elif sort_by == "attempts":
            exams.sort(key=lambda e: e.total_attempts, reverse=True)
        elif sort_by == "score":
            exams.sort(key=lambda e: e.best_score, reverse=True)
        return exams

    # ── attempts ───────────────────────────────────────────────────────────

    def _refresh_stats(self, exam_id: str) -> None:
        for i, exam in enumerate(self.exams):
            if exam.id != exam_id:
                continue
            scores = [a.score for a in self.attempts if a.exam_id == exam_id]
            total = len(scores)
            self.exams[i] = exam.model_copy(update={
                "total_attempts": total,
                "best_score": max(scores, default=0),
                "avg_score": round_half_up(sum(scores), total) if total else 0,
            })
            return

    def add_attempt(self, attempt: ExamAttempt) -> ExamAttempt:
        """Record an attempt and fold it into the exam's aggregate stats."""
        with self._lock:
            self._index_of(attempt.exam_id)
            self.attempts.append(attempt)
            self._refresh_stats(attempt.exam_id)
            self._save()
        logger.info(f"Attempt recorded for exam {attempt.exam_id}: {attempt.score}%")
        return attempt

    def remove_attempt(self, attempt_id: str) -> None:
        with self._lock:
            removed = [a for a in self.attempts if a.id == attempt_id]
            if not removed:
                return
            self.attempts = [a for a in self.attempts if a.id != attempt_id]
            self._refresh_stats(removed[0].exam_id)
            self._save()

    def attempts_for(self, exam_id: str) -> List[ExamAttempt]:
        with self._lock:
            return [a for a in self.attempts if a.exam_id == exam_id]

    def recent_attempts(self, limit: Optional[int] = RECENT_LIMIT) -> List[ExamAttempt]:
        with self._lock:
            return sorted(self.attempts, key=lambda a: a.date, reverse=True)[:limit]

    # ── bookmarked questions ───────────────────────────────────────────────

    def add_bookmarked_question(self, question: BookmarkedQuestion) -> BookmarkedQuestion:
        """
        Bookmark a question. Bookmarking the same exam question twice
        returns the existing bookmark.
        """
        with self._lock:
            for b in self.bookmarked_questions:
                if b.exam_id == question.exam_id and b.question_id == question.question_id:
                    return b
            self.bookmarked_questions.append(question)
            self._save()
            return question

    def remove_bookmarked_question(self, bookmark_id: str) -> None:
        with self._lock:
            self.bookmarked_questions = [
                b for b in self.bookmarked_questions if b.id != bookmark_id
            ]
            self._save()

    def recent_bookmarks(self, limit: Optional[int] = RECENT_LIMIT) -> List[BookmarkedQuestion]:
        with self._lock:
            return sorted(
                self.bookmarked_questions, key=lambda b: b.bookmarked_at, reverse=True
            )[:limit]

    # ── dashboard ──────────────────────────────────────────────────────────

    def dashboard_summary(self) -> DashboardSummary:
        with self._lock:
            scores = [a.score for a in self.attempts]
            return DashboardSummary(
                total_exams=len(self.exams),
                total_attempts=len(scores),
                avg_score=round_half_up(sum(scores), len(scores)) if scores else 0,
                total_time_spent=sum(a.time_spent for a in self.attempts),
                bookmarked_count=len(self.bookmarked_questions),
            )

