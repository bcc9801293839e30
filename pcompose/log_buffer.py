"""In-memory process log buffer with live observers."""

from __future__ import annotations

import secrets
import threading
from typing import Callable, Protocol, Sequence, runtime_checkable

SLACK = 100


def generate_unique_id(length: int) -> str:
    """Return a random hex string; odd lengths are rounded up to even."""
    if length % 2 != 0:
        length += 1
    return secrets.token_hex(length // 2)


@runtime_checkable
class LogObserver(Protocol):
    """Receives log lines as they are written to a buffer."""

    def write_string(self, line: str) -> int: ...

    def set_lines(self, lines: Sequence[str]) -> None: ...

    @property
    def tail_length(self) -> int: ...

    @property
    def unique_id(self) -> str: ...


class ProcessLogBuffer:
    """Bounded log history for one process that fans lines out to observers."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._buffer: list[str] = []
        self._observers: dict[str, LogObserver] = {}
        self._lock = threading.RLock()

    def write(self, message: str) -> None:
        """Append a line and pass it to every observer."""
        with self._lock:
            self._buffer.append(message)
            if len(self._buffer) > self.size + SLACK:
                self._buffer = self._buffer[SLACK:]
            for observer in self._observers.values():
                observer.write_string(message)

    def get_log_range(self, offset_from_end: int, limit: int) -> list[str]:
        """Return lines starting offset_from_end from the end; limit 0 means to the end."""
        with self._lock:
            total = len(self._buffer)
            if total == 0:
                return []
            offset_from_end = min(max(offset_from_end, 0), total)
            limit = min(max(limit, 0), total)
            if offset_from_end + limit > total:
                limit = total - offset_from_end
            start = total - offset_from_end
            if limit == 0:
                return self._buffer[start:]
            return self._buffer[start : offset_from_end + limit]

    def __len__(self) -> int:
        return len(self._buffer)

    def get_logs_and_subscribe(self, observer: LogObserver) -> None:
        """Hand the observer its tail of the history, then subscribe it."""
        with self._lock:
            observer.set_lines(self.get_log_range(observer.tail_length, 0))
            self._observers[observer.unique_id] = observer

    def subscribe(self, observer: LogObserver) -> None:
        with self._lock:
            self._observers[observer.unique_id] = observer

    def unsubscribe(self, observer: LogObserver) -> None:
        with self._lock:
            self._observers.pop(observer.unique_id, None)

    def close(self) -> None:
        """Drop all observers."""
        with self._lock:
            self._observers = {}


class Connector(LogObserver):
    """An observer that forwards lines to plain callables."""

    def __init__(
        self,
        lines_handler: Callable[[Sequence[str]], None],
        line_handler: Callable[[str], int],
        tail_length: int,
    ) -> None:
        self._lines_handler = lines_handler
        self._line_handler = line_handler
        self._tail_length = tail_length
        self._unique_id = generate_unique_id(10)

    def write_string(self, line: str) -> int:
        return self._line_handler(line)

    def set_lines(self, lines: Sequence[str]) -> None:
        self._lines_handler(lines)

    @property
    def tail_length(self) -> int:
        return self._tail_length

    @property
    def unique_id(self) -> str:
        return self._unique_id