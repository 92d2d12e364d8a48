"""
Logging configuration for the Legal Eye API.

``setup_logging`` attaches a console handler (and optionally a file
handler) to the root logger once per process.  Modules obtain their
own loggers with ``logging.getLogger(__name__)``; request lines are
emitted by the ``legal_eye_api.access`` logger from the HTTP
middleware in ``main``.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    Does nothing if the root logger already has handlers, which happens
    under test runners or when ``create_app`` is called repeatedly.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
