import logging

import pytest

from pcompose.probe import ExecProbe, Probe
from pcompose.process import DEFAULT_NAMESPACE, ProcessConfig, ProcessDependency
from pcompose.project import (
    DEFAULT_LOG_LENGTH,
    CircularDependencyError,
    ProcessNotFoundError,
    Project,
)


def _proc(name, *deps, **kwargs):
    return ProcessConfig(
        name=name,
        replica_name=name,
        depends_on={dep: ProcessDependency() for dep in deps},
        **kwargs,
    )


def _project(*procs):
    return Project(processes={p.name: p for p in procs})


@pytest.fixture
def restore_level():
    logger = logging.getLogger("pcompose")
    saved = logger.level
    yield logger
    logger.setLevel(saved)


def test_from_dict_default_log_length():
    project = Project.from_dict({"processes": {"web": {"command": "serve"}}})
    assert project.log_length == DEFAULT_LOG_LENGTH == 1000
    assert project.processes["web"].command == "serve"


def test_from_dict_reads_globals():
    project = Project.from_dict(
        {
            "version": "0.5",
            "log_location": "/tmp/pc.log",
            "log_level": "debug",
            "log_length": 50,
            "environment": ["A=1"],
            "shell": {"shell_command": "bash"},
        }
    )
    assert project.version == "0.5"
    assert project.log_location == "/tmp/pc.log"
    assert project.log_level == "debug"
    assert project.log_length == 50
    assert project.environment == ["A=1"]
    assert project.shell_config == {"shell_command": "bash"}
    assert project.processes == {}


def test_lexicographic_names():
    project = _project(_proc("gamma"), _proc("alpha"), _proc("beta"))
    assert project.get_lexicographic_process_names() == ["alpha", "beta", "gamma"]


def test_with_processes_runs_dependencies_first():
    project = _project(_proc("a", "b"), _proc("b", "c"), _proc("c"))
    seen = []
    project.with_processes(["a"], lambda p: seen.append(p.name))
    assert seen == ["c", "b", "a"]


def test_dependency_order_covers_all_once_in_order():
    project = _project(
        _proc("app", "db", "cache"), _proc("db"), _proc("cache", "db"), _proc("lone")
    )
    order = project.get_dependencies_order_names()
    assert sorted(order) == ["app", "cache", "db", "lone"]
    for proc in project.processes.values():
        for dep in proc.get_dependencies():
            assert order.index(dep) < order.index(proc.name)


def test_disabled_processes_are_skipped():
    project = _project(_proc("on"), _proc("off", disabled=True))
    assert project.get_dependencies_order_names() == ["on"]


def test_unknown_process_raises():
    project = _project(_proc("a", "missing"))
    with pytest.raises(ProcessNotFoundError, match="no such process: missing"):
        project.get_dependencies_order_names()


def test_callback_error_propagates():
    project = _project(_proc("a"))

    def fail(process):
        raise RuntimeError(process.name)

    with pytest.raises(RuntimeError, match="a"):
        project.with_processes(None, fail)


def test_validate_after_merge_assigns_defaults():
    project = Project(processes={"web": ProcessConfig(command="serve")})
    project.validate_after_merge()
    proc = project.processes["web"]
    assert proc.name == "web"
    assert proc.replica_name == "web"
    assert proc.namespace == DEFAULT_NAMESPACE
    assert proc.replicas == 1


def test_validate_after_merge_keeps_namespace():
    project = Project(processes={"web": ProcessConfig(namespace="ns")})
    project.validate_after_merge()
    assert project.processes["web"].namespace == "ns"


def test_replicas_are_cloned():
    project = Project(processes={"web": ProcessConfig(replicas=3)})
    project.validate_after_merge()
    assert len(project.processes) == 3
    assert "web" not in project.processes
    assert sorted(p.replica_num for p in project.processes.values()) == [0, 1, 2]
    for key, proc in project.processes.items():
        assert proc.name == "web"
        assert key == proc.replica_name == proc.calculate_replica_name()
    seen = []
    project.with_processes(["web"], lambda p: seen.append(p.replica_name))
    assert sorted(seen) == sorted(project.processes)


def test_dependency_on_replicated_process():
    project = Project(
        processes={
            "web": ProcessConfig(replicas=2),
            "api": ProcessConfig(depends_on={"web": ProcessDependency()}),
        }
    )
    project.validate_after_merge()
    order = project.get_dependencies_order_names()
    assert order[-1] == "api"
    assert len(order) == 3


def test_working_dir_copied_to_exec_probes():
    project = Project(
        processes={
            "web": ProcessConfig(
                working_dir="/srv",
                liveness_probe=Probe(exec=ExecProbe(command="check")),
                readiness_probe=Probe(exec=ExecProbe(command="check", working_dir="/own")),
            )
        }
    )
    project.validate_after_merge()
    proc = project.processes["web"]
    assert proc.liveness_probe.exec.working_dir == "/srv"
    assert proc.readiness_probe.exec.working_dir == "/own"


def test_circular_dependency_raises():
    project = Project(
        processes={
            "a": ProcessConfig(depends_on={"b": ProcessDependency()}),
            "b": ProcessConfig(depends_on={"a": ProcessDependency()}),
        }
    )
    with pytest.raises(CircularDependencyError, match="circular dependency found in"):
        project.validate_after_merge()


def test_self_dependency_raises():
    project = Project(processes={"a": ProcessConfig(depends_on={"a": ProcessDependency()})})
    with pytest.raises(CircularDependencyError):
        project.validate_after_merge()


def test_acyclic_project_validates():
    project = Project(
        processes={
            "a": ProcessConfig(depends_on={"b": ProcessDependency()}),
            "b": ProcessConfig(),
        }
    )
    project.validate_after_merge()
    assert project.get_dependencies_order_names() == ["b", "a"]


def test_validate_sets_log_level(restore_level):
    warn_project = Project(log_level="warn")
    warn_project.validate()
    assert warn_project.log_level == "warn"
    assert restore_level.level == logging.WARNING
    debug_project = Project(log_level="DEBUG")
    debug_project.validate()
    assert debug_project.log_level == "DEBUG"
    assert restore_level.level == logging.DEBUG


def test_validate_unknown_log_level_keeps_level(restore_level, caplog):
    restore_level.setLevel(logging.INFO)
    with caplog.at_level(logging.DEBUG, logger="pcompose.project"):
        Project(log_level="chatty").validate()
    assert restore_level.level == logging.INFO
    assert any("chatty" in r.getMessage() for r in caplog.records)


def test_validate_reports_unknown_keys(caplog):
    project = Project(
        processes={"web": ProcessConfig(extensions={"x-ok": 1, "bogus": 2})}
    )
    with caplog.at_level(logging.DEBUG, logger="pcompose.project"):
        project.validate()
    messages = [r.getMessage() for r in caplog.records if r.levelno == logging.ERROR]
    assert len(messages) == 1
    assert "bogus" in messages[0]
    assert "web" in messages[0]