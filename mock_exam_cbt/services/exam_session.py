"""
services/exam_session.py

State machine for one exam attempt: start -> in_progress -> results.

Screen transitions, answer/skip recording, per-question timing, the
countdown and the hand-off to the scoring service all live here.
Every public method runs under one re-entrant lock, so a session may be
shared between a request handler and the countdown ticker thread.

Per-question time is measured from clock deltas committed at every
navigation/submit boundary (stop the old timer, start the new one).
The countdown is a plain counter decremented by tick(). The two are
independent and can drift apart by a second or so; this is accepted.
"""

import logging
import threading
import time
from typing import List, Optional, Union

from pydantic import ValidationError

from mock_exam_cbt.errors import ExamError, InvalidExamError, InvalidIndexError, InvalidStateError
from mock_exam_cbt.models.catalog_model import BookmarkedQuestion, ExamAttempt, SubmittedAnswer
from mock_exam_cbt.models.question_model import ExamDefinition, Question
from mock_exam_cbt.models.session_state import Results, Screen, SessionState
from mock_exam_cbt.services import exam_service
from mock_exam_cbt.services.timer import Clock

logger = logging.getLogger(__name__)


class ExamSession:
    """
    Drives one exam attempt.

    Args:
        exam:       optional exam to bind immediately (same as init_exam()).
        clock:      monotonic clock for per-question elapsed time.
        wall_clock: clock for session start/end timestamps.
    """

    def __init__(
        self,
        exam: Optional[Union[ExamDefinition, dict]] = None,
        clock: Clock = time.monotonic,
        wall_clock: Clock = time.time,
    ):
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self._state = SessionState()
        if exam is not None:
            self.init_exam(exam)

    # ── read side ──────────────────────────────────────────────────────────

    @property
    def screen(self) -> Screen:
        return self._state.screen

    @property
    def active_exam(self) -> Optional[ExamDefinition]:
        return self._state.active_exam

    @property
    def question_count(self) -> int:
        exam = self._state.active_exam
        return len(exam.questions) if exam else 0

    @property
    def current_question_index(self) -> int:
        return self._state.current_question_index

    @property
    def current_question(self) -> Optional[Question]:
        exam = self._state.active_exam
        if exam is None:
            return None
        return exam.questions[self._state.current_question_index]

    @property
    def answers(self) -> List[Optional[str]]:
        return list(self._state.answers)

    @property
    def skipped(self) -> List[bool]:
        return list(self._state.skipped)

    @property
    def time_per_question(self) -> List[float]:
        return list(self._state.time_per_question)

    @property
    def remaining_seconds(self) -> int:
        return self._state.remaining_seconds

    @property
    def session_start_time(self) -> Optional[float]:
        return self._state.session_start_time

    @property
    def session_end_time(self) -> Optional[float]:
        return self._state.session_end_time

    @property
    def results(self) -> Optional[Results]:
        return self._state.results

    @property
    def answered_count(self) -> int:
        """Questions with a recorded answer that are not flagged as skipped."""
        with self._lock:
            return count_answered(self._state)

    def snapshot(self) -> SessionState:
        """Deep copy of the current state."""
        with self._lock:
            return self._state.model_copy(deep=True)

    # ── helpers ────────────────────────────────────────────────────────────

    def _require(self, expected: Screen, operation: str) -> None:
        if self._state.screen != expected:
            raise InvalidStateError(self._state.screen, expected, operation)

    def _require_exam(self, operation: str) -> ExamDefinition:
        exam = self._state.active_exam
        if exam is None:
            raise InvalidStateError(self._state.screen, "exam loaded", operation)
        return exam

    def _start_question_timer(self) -> None:
        self._state.question_started_at = self._clock()

    def _commit_question_time(self) -> None:
        """Stop the active question's timer and add the elapsed time to its slot."""
        s = self._state
        if s.question_started_at is None:
            return
        elapsed = max(0.0, self._clock() - s.question_started_at)
        s.time_per_question[s.current_question_index] += elapsed
        s.question_started_at = None

    # ── operations ─────────────────────────────────────────────────────────

    def init_exam(self, exam: Union[ExamDefinition, dict]) -> SessionState:
        """
        Bind an exam and size the per-question arrays.

        Does not change the screen. Rejected while an attempt is in progress.

        Raises:
            InvalidExamError: exam is empty or malformed.
            InvalidStateError: an attempt is in progress.
        """
        if isinstance(exam, dict):
            try:
                exam = ExamDefinition.model_validate(exam)
            except ValidationError as e:
                raise InvalidExamError(f"malformed exam definition: {e}") from e
        if not isinstance(exam, ExamDefinition):
            raise InvalidExamError(f"expected an ExamDefinition, got {type(exam).__name__}")
        if not exam.questions:
            raise InvalidExamError(f"exam '{exam.id}' has no questions")

        with self._lock:
            if self._state.screen == Screen.IN_PROGRESS:
                raise InvalidStateError(
                    self._state.screen, (Screen.START, Screen.RESULTS), "init_exam"
                )
            n = len(exam.questions)
            s = self._state
            s.active_exam = exam.model_copy(deep=True)
            s.current_question_index = 0
            s.answers = [None] * n
            s.skipped = [False] * n
            s.time_per_question = [0.0] * n
            s.question_started_at = None
            s.remaining_seconds = exam.time_limit * 60
            logger.info(f"Exam '{exam.name}' loaded ({n} questions, {exam.time_limit} min)")
            return self.snapshot()

    def select_exam(self, exam: Union[ExamDefinition, dict]) -> SessionState:
        """
        Discard the current attempt and bind a different exam.

        Lands on the start screen with no stale results, ready for
        start_exam(). The previous state is kept if the exam is rejected.

        Raises:
            InvalidExamError: exam is empty or malformed.
            InvalidStateError: an attempt is in progress.
        """
        with self._lock:
            if self._state.screen == Screen.IN_PROGRESS:
                raise InvalidStateError(
                    self._state.screen, (Screen.START, Screen.RESULTS), "select_exam"
                )
            previous = self._state
            self._state = SessionState()
            try:
                return self.init_exam(exam)
            except ExamError:
                self._state = previous
                raise

    def start_exam(self) -> SessionState:
        """
        start -> in_progress.

        Re-runs init_exam() on the bound exam so a start after retake_exam()
        begins from freshly sized arrays, then starts question 0's timer.
        """
        with self._lock:
            self._require(Screen.START, "start_exam")
            exam = self._require_exam("start_exam")
            self.init_exam(exam)

            s = self._state
            s.screen = Screen.IN_PROGRESS
            s.session_start_time = self._wall_clock()
            s.session_end_time = None
            self._start_question_timer()
            logger.info(f"Exam '{exam.name}' started")
            return self.snapshot()

    def submit_answer(self, option: str) -> SessionState:
        """
        Record an answer for the current question and clear its skip flag.

        Any string is stored; only an exact match with correct_answer
        scores as correct.
        """
        with self._lock:
            self._require(Screen.IN_PROGRESS, "submit_answer")
            s = self._state
            i = s.current_question_index
            if option not in s.active_exam.questions[i].options:
                logger.debug(f"Q{i + 1}: answer {option!r} is not a listed option")
            s.answers[i] = option
            s.skipped[i] = False
            logger.debug(f"Q{i + 1}: answered")
            return self.snapshot()

    def skip_question(self) -> SessionState:
        """
        Flag the current question as skipped and move to the next one.

        A previously recorded answer is kept; scoring ignores it while the
        skip flag is set. Nothing moves on the last question.
        """
        with self._lock:
            self._require(Screen.IN_PROGRESS, "skip_question")
            s = self._state
            i = s.current_question_index
            s.skipped[i] = True
            logger.debug(f"Q{i + 1}: skipped")
            if i < len(s.skipped) - 1:
                self.navigate_to_question(i + 1)
            return self.snapshot()

    def navigate_to_question(self, index: int) -> SessionState:
        """
        Jump to any question, backwards included.

        Commits the elapsed time of the question being left, then starts
        the timer of the target question.

        Raises:
            InvalidStateError: not in progress.
            InvalidIndexError: index outside [0, question_count).
        """
        with self._lock:
            self._require(Screen.IN_PROGRESS, "navigate_to_question")
            count = len(self._state.answers)
            if isinstance(index, bool) or not isinstance(index, int) or not (0 <= index < count):
                raise InvalidIndexError(index, count)

            self._commit_question_time()
            self._state.current_question_index = index
            self._start_question_timer()
            return self.snapshot()

    def next_question(self) -> SessionState:
        """Move forward one question; no-op on the last question."""
        with self._lock:
            self._require(Screen.IN_PROGRESS, "next_question")
            i = self._state.current_question_index
            if i < len(self._state.answers) - 1:
                return self.navigate_to_question(i + 1)
            return self.snapshot()

    def previous_question(self) -> SessionState:
        """Move back one question; no-op on the first question."""
        with self._lock:
            self._require(Screen.IN_PROGRESS, "previous_question")
            i = self._state.current_question_index
            if i > 0:
                return self.navigate_to_question(i - 1)
            return self.snapshot()

    def submit_exam(self) -> Results:
        """
        in_progress -> results.

        Commits the current question's time, stamps the end time and scores
        the attempt. One-way: answers can no longer change afterwards.
        """
        with self._lock:
            self._require(Screen.IN_PROGRESS, "submit_exam")
            s = self._state
            self._commit_question_time()

            s.session_end_time = self._wall_clock()
            time_spent = max(0.0, s.session_end_time - s.session_start_time)

            s.results = exam_service.score(
                s.active_exam,
                s.answers,
                s.skipped,
                time_spent=time_spent,
                time_per_question=s.time_per_question,
            )
            s.screen = Screen.RESULTS
            logger.info(
                f"Exam '{s.active_exam.name}' submitted: {s.results.correct_count}/"
                f"{s.results.max_score} ({s.results.percentage}%, {s.results.mastery_level})"
            )
            return s.results

    def retake_exam(self) -> SessionState:
        """
        Back to the start screen with everything cleared except the bound exam.
        The countdown is re-armed to the full time limit. Always allowed.
        """
        with self._lock:
            exam = self._state.active_exam
            self._state = SessionState(
                active_exam=exam,
                remaining_seconds=exam.time_limit * 60 if exam else 0,
            )
            logger.info("Session reset for retake")
            return self.snapshot()

    def tick(self) -> bool:
        """
        Advance the countdown by one second.

        Called once per second by an external scheduler. Ignored outside
        in_progress. Submits the exam when the countdown reaches zero.

        Returns:
            True if this tick submitted the exam.
        """
        with self._lock:
            s = self._state
            if s.screen != Screen.IN_PROGRESS:
                return False
            s.remaining_seconds = max(0, s.remaining_seconds - 1)
            if s.remaining_seconds <= 0:
                logger.warning(f"Time is up for '{s.active_exam.name}', submitting")
                self.submit_exam()
                return True
            return False

    def tick_attempt(self) -> Optional[ExamAttempt]:
        """tick(), returning the attempt record if the tick submitted the exam."""
        with self._lock:
            if self.tick():
                return self.to_attempt()
            return None

    def submit_exam_attempt(self) -> ExamAttempt:
        """submit_exam() and its attempt record, with no retake in between."""
        with self._lock:
            self.submit_exam()
            return self.to_attempt()

    # ── records for the catalog ────────────────────────────────────────────

    def to_attempt(self) -> ExamAttempt:
        """
        Attempt record for the catalog, built from a submitted session.

        Skipped questions are reported with answer None.
        """
        with self._lock:
            self._require(Screen.RESULTS, "to_attempt")
            s = self._state
            submitted = [
                SubmittedAnswer(question_id=q.id, answer=None if s.skipped[i] else s.answers[i])
                for i, q in enumerate(s.active_exam.questions)
            ]
            return ExamAttempt(
                exam_id=s.active_exam.id,
                date=s.session_end_time,
                score=s.results.percentage,
                time_spent=s.results.time_spent,
                answered_questions=sum(1 for a in submitted if a.answer is not None),
                total_questions=len(submitted),
                submitted_answers=submitted,
            )

    def bookmark_current_question(self) -> BookmarkedQuestion:
        """Bookmark record for the question currently on screen."""
        with self._lock:
            exam = self._require_exam("bookmark_current_question")
            q = exam.questions[self._state.current_question_index]
            return BookmarkedQuestion(
                exam_id=exam.id,
                exam_name=exam.name,
                question_id=q.id,
                question=q.question,
                options=list(q.options),
                correct_answer=q.correct_answer,
                bookmarked_at=self._wall_clock(),
            )


def count_answered(state: SessionState) -> int:
    """Questions with a recorded answer that are not flagged as skipped."""
    return sum(1 for a, sk in zip(state.answers, state.skipped) if a is not None and not sk)
