"""Per-process log file writers emitting JSON lines."""

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from dataclasses import dataclass
from typing import IO

_log = logging.getLogger(__name__)

_QUEUE_SIZE = 100


@dataclass(frozen=True)
class _LogEvent:
    message: str
    process: str
    replica: int
    is_error: bool


class ProcessLogger:
    """Writes process output to a file from a background thread."""

    def __init__(self) -> None:
        self._events: queue.Queue[_LogEvent | None] = queue.Queue(maxsize=_QUEUE_SIZE)
        self._file: IO[str] | None = None
        self._collector: threading.Thread | None = None
        self._closed = False
        self._close_lock = threading.Lock()
        self._close_done = False

    def __enter__(self) -> ProcessLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self, file_path: str) -> None:
        """Open the file for appending and start the writer thread."""
        if self._file is not None:
            _log.error("log file for %s is already open", file_path)
            return
        if not file_path:
            _log.error("empty file path")
            return
        directory = os.path.dirname(file_path)
        if directory:
            try:
                os.makedirs(directory, mode=0o700, exist_ok=True)
            except OSError as err:
                self._closed = True
                _log.error("failed to create log file directory %s: %s", directory, err)
        try:
            fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
            self._file = os.fdopen(fd, "a", encoding="utf-8")
        except OSError as err:
            self._closed = True
            _log.error("failed to open log file %s: %s", file_path, err)
            return
        self._collector = threading.Thread(target=self._collect, daemon=True)
        self._collector.start()

    def info(self, message: str, process: str, replica: int) -> None:
        self._enqueue(_LogEvent(message, process, replica, is_error=False))

    def error(self, message: str, process: str, replica: int) -> None:
        self._enqueue(_LogEvent(message, process, replica, is_error=True))

    def close(self) -> None:
        """Flush pending lines and close the file; later calls do nothing."""
        if self._file is None:
            return
        with self._close_lock:
            if self._close_done:
                return
            self._close_done = True
            self._closed = True
            self._events.put(None)
            if self._collector is not None:
                self._collector.join()
            self._file.flush()
            self._file.close()

    def _enqueue(self, event: _LogEvent) -> None:
        if self._closed:
            return
        self._events.put(event)

    def _collect(self) -> None:
        while (event := self._events.get()) is not None:
            self._write(event)

    def _write(self, event: _LogEvent) -> None:
        assert self._file is not None
        record = {
            "level": "error" if event.is_error else "info",
            "process": event.process,
            "replica": event.replica,
            "message": event.message,
        }
        self._file.write(json.dumps(record, ensure_ascii=False, separators=(",", ":")) + "\n")


class NilLogger:
    """A logger that writes nothing; it only counts what it discards."""

    def __init__(self) -> None:
        self.file_path: str | None = None
        self.discarded = 0

    def __enter__(self) -> NilLogger:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def open(self, file_path: str) -> None:
        """Remember the requested path without creating any file."""
        self.file_path = file_path

    def info(self, message: str, process: str, replica: int) -> None:
        self._discard()

    def error(self, message: str, process: str, replica: int) -> None:
        self._discard()

    def close(self) -> None:
        """Forget the requested path."""
        self.file_path = None

    def _discard(self) -> None:
        self.discarded += 1