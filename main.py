"""
main.py — run the Mock Exam CBT server and open it in a browser
"""

import logging
import socket
import sys
import threading
import time
import webbrowser

import uvicorn

from config import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TIMEOUT, LOG_FILE

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(log_file: str = LOG_FILE, level: int = logging.INFO) -> None:
    """Log to stdout and, when the file can be opened, to log_file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    try:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    except OSError as e:
        print(f"Logging to console only, cannot open {log_file}: {e}", file=sys.stderr)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def pick_port(host: str = DEFAULT_HOST, preferred: int = DEFAULT_PORT) -> int:
    """The preferred port if it is free, otherwise any free port."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, preferred))
        except OSError:
            s.bind((host, 0))
        return s.getsockname()[1]


def wait_for_server(host: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.1)
    return False


def _serve(host: str, port: int) -> None:
    from api.app import create_app

    logger.info(f"Starting uvicorn on {host}:{port}")
    uvicorn.run(create_app(), host=host, port=port, log_level="warning")


def main(open_browser: bool = True) -> int:
    configure_logging()
    host = DEFAULT_HOST
    port = pick_port(host)

    threading.Thread(target=_serve, args=(host, port), daemon=True).start()
    if not wait_for_server(host, port):
        logger.error(f"Server did not come up on port {port} within {DEFAULT_TIMEOUT}s")
        return 1

    url = f"http://{host}:{port}"
    logger.info(f"Server ready at {url}")
    if open_browser:
        webbrowser.open(url)

    try:
        while True:
            time.sleep(10)
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
