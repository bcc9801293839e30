"""Process configuration, runtime state records and deprecation handling."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from .probe import Probe

_log = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"

RESTART_POLICY_ALWAYS = "always"
RESTART_POLICY_ON_FAILURE = "on_failure"
RESTART_POLICY_EXIT_ON_FAILURE = "exit_on_failure"
RESTART_POLICY_NO = "no"

PROCESS_STATE_DISABLED = "Disabled"
PROCESS_STATE_PENDING = "Pending"
PROCESS_STATE_RUNNING = "Running"
PROCESS_STATE_LAUNCHING = "Launching"
PROCESS_STATE_LAUNCHED = "Launched"
PROCESS_STATE_RESTARTING = "Restarting"
PROCESS_STATE_TERMINATING = "Terminating"
PROCESS_STATE_COMPLETED = "Completed"
PROCESS_STATE_ERROR = "Error"

PROCESS_HEALTH_READY = "Ready"
PROCESS_HEALTH_NOT_READY = "Not Ready"
PROCESS_HEALTH_UNKNOWN = "N/A"

# Wait until the process has completed, whatever its exit code.
PROCESS_CONDITION_COMPLETED = "process_completed"
# Wait until the process has completed with exit code 0.
PROCESS_CONDITION_COMPLETED_SUCCESSFULLY = "process_completed_successfully"
# Wait until the process is healthy.
PROCESS_CONDITION_HEALTHY = "process_healthy"
# Wait until the process has started (the default).
PROCESS_CONDITION_STARTED = "process_started"

_MONTH = timedelta(days=30)

_PROCESS_KEYS = frozenset(
    {
        "name",
        "disabled",
        "is_daemon",
        "command",
        "log_location",
        "environment",
        "availability",
        "depends_on",
        "liveness_probe",
        "readiness_probe",
        "shutdown",
        "disable_ansi_colors",
        "working_dir",
        "namespace",
        "replicas",
        "replicanum",
        "replicaname",
    }
)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _number(value: Any) -> int:
    return int(value or 0)


@dataclass
class RestartPolicyConfig:
    """When and how often a process is restarted."""

    restart: str = ""
    backoff_seconds: int = 0
    max_restarts: int = 0
    exit_on_end: bool = False


@dataclass
class ShutDownParams:
    """How a process is asked to stop."""

    shutdown_command: str = ""
    shutdown_timeout: int = 0
    signal: int = 0
    parent_only: bool = False


@dataclass
class ProcessDependency:
    """The condition a dependency must reach before its dependant starts."""

    condition: str = ""
    extensions: dict[str, Any] = field(default_factory=dict)


def _restart_policy_from_dict(data: Mapping[str, Any] | None) -> RestartPolicyConfig:
    data = data or {}
    return RestartPolicyConfig(
        restart=_text(data.get("restart")),
        backoff_seconds=_number(data.get("backoff_seconds")),
        max_restarts=_number(data.get("max_restarts")),
        exit_on_end=bool(data.get("exit_on_end", False)),
    )


def _shutdown_from_dict(data: Mapping[str, Any] | None) -> ShutDownParams:
    data = data or {}
    return ShutDownParams(
        shutdown_command=_text(data.get("command")),
        shutdown_timeout=_number(data.get("timeout_seconds")),
        signal=_number(data.get("signal")),
        parent_only=bool(data.get("parent_only", False)),
    )


def _dependency_from_dict(data: Mapping[str, Any] | None) -> ProcessDependency:
    data = data or {}
    return ProcessDependency(
        condition=_text(data.get("condition")),
        extensions={key: value for key, value in data.items() if key != "condition"},
    )


def _probe_or_none(data: Mapping[str, Any] | None) -> Probe | None:
    return None if data is None else Probe.from_dict(data)


@dataclass
class ProcessConfig:
    """Configuration of one process (or one replica of it)."""

    name: str = ""
    disabled: bool = False
    is_daemon: bool = False
    command: str = ""
    log_location: str = ""
    environment: list[str] = field(default_factory=list)
    restart_policy: RestartPolicyConfig = field(default_factory=RestartPolicyConfig)
    depends_on: dict[str, ProcessDependency] = field(default_factory=dict)
    liveness_probe: Probe | None = None
    readiness_probe: Probe | None = None
    shutdown_params: ShutDownParams = field(default_factory=ShutDownParams)
    disable_ansi_colors: bool = False
    working_dir: str = ""
    namespace: str = ""
    replicas: int = 0
    extensions: dict[str, Any] = field(default_factory=dict)
    replica_num: int = 0
    replica_name: str = ""

    def get_dependencies(self) -> list[str]:
        """Names of the processes this one depends on."""
        return list(self.depends_on)

    def calculate_replica_name(self) -> str:
        """The name of this replica, zero-padded to the width of the replica count."""
        if self.replicas <= 1:
            return self.name
        width = len(str(self.replicas))
        return f"{self.name}-{self.replica_num:0{width}d}"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ProcessConfig:
        """Build a process from its configuration mapping; unknown keys go to extensions."""
        data = data or {}
        depends_on = data.get("depends_on") or {}
        return cls(
            name=_text(data.get("name")),
            disabled=bool(data.get("disabled", False)),
            is_daemon=bool(data.get("is_daemon", False)),
            command=_text(data.get("command")),
            log_location=_text(data.get("log_location")),
            environment=[str(item) for item in data.get("environment") or []],
            restart_policy=_restart_policy_from_dict(data.get("availability")),
            depends_on={
                str(name): _dependency_from_dict(dep) for name, dep in depends_on.items()
            },
            liveness_probe=_probe_or_none(data.get("liveness_probe")),
            readiness_probe=_probe_or_none(data.get("readiness_probe")),
            shutdown_params=_shutdown_from_dict(data.get("shutdown")),
            disable_ansi_colors=bool(data.get("disable_ansi_colors", False)),
            working_dir=_text(data.get("working_dir")),
            namespace=_text(data.get("namespace")),
            replicas=_number(data.get("replicas")),
            extensions={
                str(key): value for key, value in data.items() if key not in _PROCESS_KEYS
            },
            replica_num=_number(data.get("replicanum")),
            replica_name=_text(data.get("replicaname")),
        )


@dataclass
class ProcessState:
    """Runtime status of one process replica."""

    name: str = ""
    namespace: str = ""
    status: str = ""
    system_time: str = ""
    age: timedelta = field(default_factory=timedelta)
    health: str = ""
    restarts: int = 0
    exit_code: int = 0
    pid: int = 0
    is_running: bool = False


@dataclass
class ProcessPorts:
    """Ports a process listens on."""

    name: str = ""
    tcp_ports: list[int] = field(default_factory=list)
    udp_ports: list[int] = field(default_factory=list)


@dataclass
class ProcessesState:
    """States of all processes."""

    states: list[ProcessState] = field(default_factory=list)


def new_process_state(proc: ProcessConfig) -> ProcessState:
    """Initial state of a process that has not been started."""
    return ProcessState(
        name=proc.replica_name,
        namespace=proc.namespace,
        status=PROCESS_STATE_DISABLED if proc.disabled else PROCESS_STATE_PENDING,
        health=PROCESS_HEALTH_UNKNOWN,
    )


def deprecation_handler(start: str, proc: str, deprecated: str, new: str, scope: str) -> None:
    """Warn about a deprecated setting, growing stricter as time passes since start.

    Within a month of start a warning is logged; within two months an error is
    logged and execution pauses; after that the program exits.
    """
    try:
        start_time = datetime.strptime(start, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        start_time = datetime.min.replace(tzinfo=timezone.utc)
    now = datetime.now(timezone.utc)
    message = (
        f"Process {proc} uses deprecated {scope} '{deprecated}' please change to '{new}'"
    )
    if now < start_time + _MONTH:
        _log.warning(message)
    elif now < start_time + 2 * _MONTH:
        _log.error(message)
        time.sleep(5)
    else:
        _log.error("%s exiting...", message)
        sys.exit(1)