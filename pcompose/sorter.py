"""Ordering of process state rows by a chosen column."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable

from .process import ProcessesState, ProcessState


class ColumnID(IntEnum):
    """Columns of the process table, numbered by their position."""

    UNDEFINED = -1
    PID = 0
    NAME = 1
    NAMESPACE = 2
    STATUS = 3
    AGE = 4
    HEALTH = 5
    RESTARTS = 6
    EXIT = 7


_COLUMN_FIELDS = {
    ColumnID.PID: "pid",
    ColumnID.NAMESPACE: "namespace",
    ColumnID.STATUS: "status",
    ColumnID.AGE: "age",
    ColumnID.HEALTH: "health",
    ColumnID.RESTARTS: "restarts",
    ColumnID.EXIT: "exit_code",
}


def _sort_key(sort_by: int) -> Callable[[ProcessState], Any]:
    attribute = _COLUMN_FIELDS.get(sort_by)
    if attribute is None:
        return lambda state: state.name
    return lambda state: (getattr(state, attribute), state.name)


def sort_processes_state(sort_by: int, asc: bool, states: ProcessesState | None) -> None:
    """Sort states in place by the column, ties broken by name.

    Unknown columns sort by name. Raises ValueError when states is None.
    """
    if states is None:
        raise ValueError("empty states")
    states.states.sort(key=_sort_key(sort_by), reverse=not asc)


@dataclass
class StateSorter:
    """The column the process table is sorted by and its direction."""

    sort_by_column: ColumnID = ColumnID.NAME
    is_asc: bool = True

    def select(self, column: ColumnID) -> ColumnID:
        """Sort by column; choosing the current column flips the direction.

        Returns the column sorted by before, or UNDEFINED if it did not change.
        """
        if self.sort_by_column == column:
            self.is_asc = not self.is_asc
            return ColumnID.UNDEFINED
        previous = self.sort_by_column
        self.sort_by_column = column
        self.is_asc = True
        return previous