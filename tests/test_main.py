"""
Mock Exam CBT - Launcher Tests
"""
import logging
import socket

import pytest

import main


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_configure_logging_writes_to_file(tmp_path, restore_logging):
    log_file = tmp_path / "launch.log"
    main.configure_logging(str(log_file))

    kinds = {type(h) for h in restore_logging.handlers}
    assert logging.FileHandler in kinds
    assert logging.StreamHandler in kinds

    logging.getLogger("mock_exam_cbt.test").info("hello")
    for handler in restore_logging.handlers:
        handler.flush()
    assert "[INFO] mock_exam_cbt.test: hello" in log_file.read_text(encoding="utf-8")


def test_configure_logging_falls_back_to_console(tmp_path, restore_logging):
    main.configure_logging(str(tmp_path / "missing-dir" / "launch.log"))
    assert [type(h) for h in restore_logging.handlers] == [logging.StreamHandler]


def test_pick_port_returns_a_bindable_port():
    port = main.pick_port("127.0.0.1", 0)
    assert isinstance(port, int)
    assert port > 0


def test_pick_port_falls_back_when_taken():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen(1)
        busy = taken.getsockname()[1]
        port = main.pick_port("127.0.0.1", busy)
    assert port != busy


def test_wait_for_server_times_out_on_closed_port():
    port = main.pick_port("127.0.0.1", 0)
    assert main.wait_for_server("127.0.0.1", port, timeout=0.3) is False
