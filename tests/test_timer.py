"""
Countdown display helper tests
"""
import pytest

from mock_exam_cbt.services.timer import format_time, timer_status


@pytest.mark.parametrize("seconds,expected", [
    (0, "00:00"),
    (59, "00:59"),
    (61, "01:01"),
    (1800, "30:00"),
    (5400, "90:00"),
    (-3, "00:00"),
])
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


@pytest.mark.parametrize("seconds,expected", [
    (600, "normal"),
    (301, "normal"),
    (300, "warning"),
    (61, "warning"),
    (60, "danger"),
    (0, "danger"),
])
def test_timer_status(seconds, expected):
    assert timer_status(seconds) == expected
