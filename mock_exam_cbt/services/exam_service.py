"""
services/exam_service.py

Scoring and result analysis.
Pure Python functions: no UI code, no global state, inputs are never mutated.
"""

from typing import Dict, List, Optional, Sequence

from config import PASS_SCORE
from mock_exam_cbt.errors import InvalidExamError
from mock_exam_cbt.models.question_model import ExamDefinition, Question
from mock_exam_cbt.models.session_state import CategoryScore, QuestionReview, Results

CORRECT = "correct"
INCORRECT = "incorrect"
SKIPPED = "skipped"

# (lower bound inclusive, label), highest first
_MASTERY_BANDS = (
    (80, "Advanced"),
    (60, "Intermediate"),
    (40, "Basic"),
)
_LOWEST_MASTERY = "Beginner"


def round_half_up(numerator: int, denominator: int) -> int:
    """
    Round numerator / denominator to the nearest integer, ties away from zero.

    Integer arithmetic only, so 1/2 -> 1 and 25/2 -> 13 hold exactly
    (Python's round() would give banker's rounding).
    Both arguments must be non-negative and denominator > 0.
    """
    return (2 * numerator + denominator) // (2 * denominator)


def percentage_of(score: int, max_score: int) -> int:
    """100 * score / max_score rounded half-up. 0 when max_score is 0."""
    if max_score <= 0:
        return 0
    return round_half_up(100 * score, max_score)


def mastery_level(percentage: float) -> str:
    """
    Band a percentage into a mastery level.
    Lower bounds are inclusive: 80 is Advanced, 79 is Intermediate.
    """
    for lower, label in _MASTERY_BANDS:
        if percentage >= lower:
            return label
    return _LOWEST_MASTERY


def classify_answer(question: Question, answer: Optional[str], skipped: bool) -> str:
    """
    Classify one question.

    - skipped flag set          -> skipped (a stale answer is ignored)
    - answer == correct_answer  -> correct
    - any other recorded answer -> incorrect
    - never answered            -> skipped
    """
    if skipped:
        return SKIPPED
    if answer is not None and answer == question.correct_answer:
        return CORRECT
    if answer is not None:
        return INCORRECT
    return SKIPPED


def _check_lengths(exam: ExamDefinition, *columns: Sequence) -> None:
    count = len(exam.questions)
    for column in columns:
        if column is not None and len(column) != count:
            raise InvalidExamError(
                f"expected {count} entries per question, got {len(column)}"
            )


def calculate_category_scores(
    exam: ExamDefinition,
    answers: Sequence[Optional[str]],
    skipped: Sequence[bool],
) -> List[CategoryScore]:
    """
    Per-category performance.

    Returns:
        One CategoryScore per category, in order of first appearance.
        percentage is 0.0 ~ 100.0, rounded to one decimal.
    """
    _check_lengths(exam, answers, skipped)
    buckets: Dict[str, Dict[str, int]] = {}

    for i, q in enumerate(exam.questions):
        bucket = buckets.setdefault(q.category, {"total": 0, "correct": 0})
        bucket["total"] += 1
        if classify_answer(q, answers[i], skipped[i]) == CORRECT:
            bucket["correct"] += 1

    return [
        CategoryScore(
            category=category,
            total=b["total"],
            correct=b["correct"],
            percentage=round(b["correct"] / b["total"] * 100, 1),
        )
        for category, b in buckets.items()
    ]


def score(
    exam: ExamDefinition,
    answers: Sequence[Optional[str]],
    skipped: Sequence[bool],
    time_spent: float = 0.0,
    time_per_question: Optional[Sequence[float]] = None,
) -> Results:
    """
    Score one attempt.

    Args:
        exam:              exam that was attempted.
        answers:           recorded option per question (None if unset).
        skipped:           explicit skip flag per question.
        time_spent:        wall-clock session duration in seconds.
        time_per_question: accumulated seconds per question, for the review list.

    Returns:
        Results snapshot. Deterministic for the same inputs.

    Raises:
        InvalidExamError: the exam has no questions or a column has the wrong length.
    """
    if not exam.questions:
        raise InvalidExamError("cannot score an exam without questions")
    _check_lengths(exam, answers, skipped, time_per_question)

    counts = {CORRECT: 0, INCORRECT: 0, SKIPPED: 0}
    reviews: List[QuestionReview] = []

    for i, q in enumerate(exam.questions):
        status = classify_answer(q, answers[i], skipped[i])
        counts[status] += 1
        reviews.append(
            QuestionReview(
                question_id=q.id,
                status=status,
                user_answer=answers[i],
                correct_answer=q.correct_answer,
                time_spent=time_per_question[i] if time_per_question is not None else 0.0,
            )
        )

    max_score = len(exam.questions)
    correct = counts[CORRECT]
    percentage = percentage_of(correct, max_score)

    return Results(
        score=correct,
        max_score=max_score,
        correct_count=correct,
        incorrect_count=counts[INCORRECT],
        skipped_count=counts[SKIPPED],
        percentage=percentage,
        time_spent=time_spent,
        avg_time_per_question=time_spent / max_score,
        mastery_level=mastery_level(percentage),
        category_scores=calculate_category_scores(exam, answers, skipped),
        question_reviews=reviews,
    )


def is_passed(percentage: float, pass_score: float = PASS_SCORE) -> bool:
    """
    Pass/fail verdict.

    Args:
        percentage: Results.percentage (0 ~ 100).
        pass_score: pass mark (default PASS_SCORE from config).

    Returns:
        True if percentage >= pass_score.
    """
    return percentage >= pass_score
