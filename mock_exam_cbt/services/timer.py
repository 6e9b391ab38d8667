"""
services/timer.py

Countdown display helpers and the clock type used by ExamSession.
The countdown itself is driven by ExamSession.tick(); nothing here sleeps.
"""

from typing import Callable

from config import DANGER_SECONDS, WARNING_SECONDS

# Returns seconds as float. time.monotonic for elapsed time, time.time for timestamps.
Clock = Callable[[], float]


def format_time(seconds: float) -> str:
    """
    Remaining time as MM:SS.

    Minutes are not wrapped at 60 (a 90 minute exam starts at 90:00).
    Negative input is shown as 00:00.
    """
    remaining = max(0, int(seconds))
    minutes = remaining // 60
    secs = remaining % 60
    return f"{minutes:02d}:{secs:02d}"


def timer_status(seconds: float) -> str:
    """normal / warning (<= 5 min) / danger (<= 1 min)."""
    if seconds <= DANGER_SECONDS:
        return "danger"
    if seconds <= WARNING_SECONDS:
        return "warning"
    return "normal"
