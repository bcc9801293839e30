"""A project: the set of processes to run, with ordering and validation."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

from .process import DEFAULT_NAMESPACE, ProcessConfig

_log = logging.getLogger(__name__)
_package_log = logging.getLogger(__name__.split(".")[0])

DEFAULT_LOG_LENGTH = 1000

_LOG_LEVELS = {
    "trace": 5,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": logging.CRITICAL + 10,
}


class ProcessNotFoundError(LookupError):
    """Raised when a requested process is not part of the project."""

    def __init__(self, name: str) -> None:
        super().__init__(f"no such process: {name}")
        self.name = name


class CircularDependencyError(ValueError):
    """Raised when process dependencies form a cycle."""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class Project:
    """All processes of a configuration together with global settings."""

    version: str = ""
    log_location: str = ""
    log_level: str = ""
    log_length: int = 0
    processes: dict[str, ProcessConfig] = field(default_factory=dict)
    environment: list[str] = field(default_factory=list)
    shell_config: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Project:
        """Build a project from its configuration mapping."""
        data = data or {}
        log_length = data.get("log_length")
        shell = data.get("shell")
        processes = data.get("processes") or {}
        return cls(
            version=_text(data.get("version")),
            log_location=_text(data.get("log_location")),
            log_level=_text(data.get("log_level")),
            log_length=DEFAULT_LOG_LENGTH if log_length is None else int(log_length),
            processes={
                str(name): ProcessConfig.from_dict(config)
                for name, config in processes.items()
            },
            environment=[str(item) for item in data.get("environment") or []],
            shell_config=None if shell is None else dict(shell),
        )

    def with_processes(
        self, names: Iterable[str] | None, fn: Callable[[ProcessConfig], None]
    ) -> None:
        """Call fn on the named processes (all if none) and their dependencies, dependencies first."""
        self._with_processes(list(names or []), fn, set())

    def get_dependencies_order_names(self) -> list[str]:
        """Replica names of all enabled processes in dependency order."""
        order: list[str] = []
        self.with_processes([], lambda process: order.append(process.replica_name))
        return order

    def get_lexicographic_process_names(self) -> list[str]:
        return sorted(self.processes)

    def validate(self) -> None:
        """Apply the configured log level and report unknown process keys."""
        self._validate_log_level()
        self._validate_process_config()

    def validate_after_merge(self) -> None:
        """Fill in defaults, expand replicas and check for dependency cycles."""
        self._assign_default_process_values()
        self._clone_replicas()
        self._copy_working_dir_to_probes()
        self._check_no_circular_dependencies()

    def _get_processes(self, names: list[str]) -> list[ProcessConfig]:
        if not names:
            return [proc for proc in self.processes.values() if not proc.disabled]
        result: list[ProcessConfig] = []
        for name in names:
            proc = self.processes.get(name)
            if proc is not None:
                if not proc.disabled:
                    result.append(proc)
                continue
            matches = [p for p in self.processes.values() if p.name == name]
            if not matches:
                raise ProcessNotFoundError(name)
            result.extend(p for p in matches if not p.disabled)
        return result

    def _with_processes(
        self,
        names: list[str],
        fn: Callable[[ProcessConfig], None],
        done: set[str],
    ) -> None:
        for process in self._get_processes(names):
            if process.replica_name in done:
                continue
            done.add(process.replica_name)
            dependencies = process.get_dependencies()
            if dependencies:
                self._with_processes(dependencies, fn, done)
            fn(process)

    def _validate_log_level(self) -> None:
        if not self.log_level:
            return
        level = _LOG_LEVELS.get(self.log_level.lower())
        if level is None:
            _log.warning(
                "Unknown log level %s defaulting to %s",
                self.log_level,
                logging.getLevelName(_package_log.getEffectiveLevel()),
            )
            return
        _package_log.setLevel(level)

    def _validate_process_config(self) -> None:
        for name, proc in self.processes.items():
            for key in proc.extensions:
                if not key.startswith("x-"):
                    _log.error("Unknown key %s found in process %s", key, name)

    def _assign_default_process_values(self) -> None:
        for name, proc in self.processes.items():
            if not proc.namespace:
                proc.namespace = DEFAULT_NAMESPACE
            if proc.replicas == 0:
                proc.replicas = 1
            proc.name = name

    def _clone_replicas(self) -> None:
        cloned: dict[str, ProcessConfig] = {}
        for name, proc in self.processes.items():
            if proc.replicas < 1:
                cloned[name] = proc
                continue
            for replica in range(proc.replicas):
                copy = dataclasses.replace(proc, replica_num=replica)
                copy.replica_name = copy.calculate_replica_name()
                cloned[copy.replica_name] = copy
        self.processes = cloned

    def _copy_working_dir_to_probes(self) -> None:
        for proc in self.processes.values():
            for probe in (proc.liveness_probe, proc.readiness_probe):
                if probe is not None and probe.exec is not None and not probe.exec.working_dir:
                    probe.exec.working_dir = proc.working_dir

    def _check_no_circular_dependencies(self) -> None:
        visited: set[str] = set()
        stack: set[str] = set()
        for name in self.processes:
            if name not in visited and self._is_cyclic(name, visited, stack):
                raise CircularDependencyError(f"circular dependency found in {name}")

    def _is_cyclic(self, name: str, visited: set[str], stack: set[str]) -> bool:
        visited.add(name)
        stack.add(name)
        try:
            processes = self._get_processes([name])
        except ProcessNotFoundError:
            return False
        for process in processes:
            for neighbor in process.get_dependencies():
                if neighbor not in visited:
                    if self._is_cyclic(neighbor, visited, stack):
                        return True
                elif neighbor in stack:
                    return True
        stack.discard(name)
        return False