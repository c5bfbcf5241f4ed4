"""Logging setup and the handler that mirrors log records into the activity log."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from textual.message import Message
from textual.widgets import Log

if TYPE_CHECKING:
    from textual.app import App

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TUI_LOG_FORMAT = "[%(asctime)s] %(message)s"


class TuiLogMessage(Message):
    """Carries a formatted log line from a worker thread to the app thread."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__()


class TuiLogHandler(logging.Handler):
    """Writes records to a Textual ``Log`` widget.

    Records emitted on the app thread are written directly. Records from
    worker threads are posted to the app as ``TuiLogMessage`` so the widget is
    only touched from the event loop.
    """

    def __init__(self, app: App[None], log_widget: Log) -> None:
        super().__init__()
        self.app = app
        self.log_widget = log_widget
        self.setFormatter(logging.Formatter(TUI_LOG_FORMAT, datefmt="%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        msg = self.format(record)
        try:
            if not self.app.is_running:
                return
            if self.app._thread_id == threading.get_ident():
                self.log_widget.write_line(msg)
                return
            self.app.post_message(TuiLogMessage(msg))
        except (RuntimeError, AttributeError):
            self.handleError(record)


def configure_logging(level: str = "INFO", log_file: str | Path | None = None) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger()
    root.setLevel(numeric_level)
    if log_file:
        file_handler = logging.FileHandler(Path(log_file).expanduser(), encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)
