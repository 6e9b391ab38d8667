"""
errors.py

Exceptions raised by the exam core.
All of them are caller errors: they are raised synchronously and never retried.
"""

from typing import Optional


class ExamError(Exception):
    """Base class for every error raised by mock_exam_cbt."""


class InvalidExamError(ExamError, ValueError):
    """Exam definition (or imported question data) is empty or malformed."""


class InvalidStateError(ExamError):
    """An operation was called in a screen phase that does not allow it."""

    def __init__(self, current, expected, operation: Optional[str] = None):
        self.current = current
        self.expected = expected
        self.operation = operation
        action = f"{operation}() " if operation else ""
        super().__init__(
            f"{action}requires screen '{_label(expected)}', current screen is '{_label(current)}'"
        )


class InvalidIndexError(ExamError, IndexError):
    """navigate_to_question() was given an index outside the exam."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"question index {index} is out of range [0, {count})")


class ExamNotFoundError(ExamError, KeyError):
    """No exam with the given id exists in the catalog."""

    def __init__(self, exam_id: str):
        self.exam_id = exam_id
        super().__init__(exam_id)

    def __str__(self) -> str:
        return f"exam '{self.exam_id}' not found"


class StorageError(ExamError):
    """Persisted catalog data could not be read or written."""


def _label(screen) -> str:
    if isinstance(screen, (tuple, list, set, frozenset)):
        return " or ".join(sorted(_label(s) for s in screen))
    return getattr(screen, "value", screen) or "-"
