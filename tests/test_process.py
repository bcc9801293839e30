import logging
from datetime import date, timedelta
from unittest import mock

import pytest

from pcompose.process import (
    PROCESS_CONDITION_HEALTHY,
    PROCESS_HEALTH_UNKNOWN,
    PROCESS_STATE_DISABLED,
    PROCESS_STATE_PENDING,
    RESTART_POLICY_ALWAYS,
    ProcessConfig,
    ProcessDependency,
    deprecation_handler,
    new_process_state,
)


def _days_ago(days):
    return (date.today() - timedelta(days=days)).isoformat()


def test_replica_name_single_replica_is_plain_name():
    proc = ProcessConfig(name="web", replicas=1)
    assert proc.calculate_replica_name() == "web"


def test_replica_name_zero_or_negative_replicas_is_plain_name():
    assert ProcessConfig(name="web", replicas=0).calculate_replica_name() == "web"
    assert ProcessConfig(name="web", replicas=-3).calculate_replica_name() == "web"


def test_replica_name_is_zero_padded():
    proc = ProcessConfig(name="web", replicas=10, replica_num=3)
    assert proc.calculate_replica_name() == "web-03"


def test_replica_name_without_padding_below_ten():
    proc = ProcessConfig(name="w", replicas=5, replica_num=4)
    assert proc.calculate_replica_name() == "w-4"


def test_replica_names_unique_and_same_width():
    names = [
        ProcessConfig(name="api", replicas=12, replica_num=n).calculate_replica_name()
        for n in range(12)
    ]
    assert len(set(names)) == 12
    assert len({len(name) for name in names}) == 1
    assert all(name.startswith("api-") for name in names)


def test_get_dependencies_lists_keys():
    proc = ProcessConfig(
        depends_on={"db": ProcessDependency(), "cache": ProcessDependency()}
    )
    assert sorted(proc.get_dependencies()) == ["cache", "db"]
    assert ProcessConfig().get_dependencies() == []


def test_from_dict_reads_all_sections():
    data = {
        "command": "run server",
        "working_dir": "/srv",
        "namespace": "backend",
        "replicas": 2,
        "disabled": True,
        "is_daemon": True,
        "environment": ["A=1", "B=2"],
        "availability": {"restart": RESTART_POLICY_ALWAYS, "backoff_seconds": 2, "max_restarts": 4},
        "depends_on": {"db": {"condition": PROCESS_CONDITION_HEALTHY}},
        "liveness_probe": {"exec": {"command": "check"}, "period_seconds": 7},
        "shutdown": {"command": "stop it", "timeout_seconds": 9, "signal": 15},
        "disable_ansi_colors": True,
        "x-custom": 1,
        "bogus": True,
    }
    proc = ProcessConfig.from_dict(data)
    assert proc.command == "run server"
    assert proc.working_dir == "/srv"
    assert proc.namespace == "backend"
    assert proc.replicas == 2
    assert proc.disabled and proc.is_daemon and proc.disable_ansi_colors
    assert proc.environment == ["A=1", "B=2"]
    assert proc.restart_policy.restart == RESTART_POLICY_ALWAYS
    assert proc.restart_policy.backoff_seconds == 2
    assert proc.restart_policy.max_restarts == 4
    assert proc.depends_on["db"].condition == PROCESS_CONDITION_HEALTHY
    assert proc.liveness_probe.exec.command == "check"
    assert proc.liveness_probe.period_seconds == 7
    assert proc.readiness_probe is None
    assert proc.shutdown_params.shutdown_command == "stop it"
    assert proc.shutdown_params.shutdown_timeout == 9
    assert proc.shutdown_params.signal == 15
    assert proc.extensions == {"x-custom": 1, "bogus": True}


def test_from_dict_empty_gives_defaults():
    proc = ProcessConfig.from_dict(None)
    assert proc == ProcessConfig()


def test_new_process_state_pending():
    proc = ProcessConfig(name="web", replica_name="web-1", namespace="ns")
    state = new_process_state(proc)
    assert state.name == "web-1"
    assert state.namespace == "ns"
    assert state.status == PROCESS_STATE_PENDING == "Pending"
    assert state.health == PROCESS_HEALTH_UNKNOWN
    assert state.age == timedelta(0)
    assert (state.pid, state.restarts, state.exit_code, state.is_running) == (0, 0, 0, False)


def test_new_process_state_disabled():
    state = new_process_state(ProcessConfig(name="web", disabled=True))
    assert state.status == PROCESS_STATE_DISABLED


def test_deprecation_recent_only_warns(caplog):
    with caplog.at_level(logging.DEBUG, logger="pcompose.process"), mock.patch(
        "time.sleep"
    ) as sleep:
        deprecation_handler(_days_ago(0), "web", "old_key", "new_key", "key")
    assert sleep.call_count == 0
    assert [r.levelno for r in caplog.records] == [logging.WARNING]
    assert "old_key" in caplog.records[0].getMessage()
    assert "new_key" in caplog.records[0].getMessage()


def test_deprecation_second_month_errors_and_pauses(caplog):
    with caplog.at_level(logging.DEBUG, logger="pcompose.process"), mock.patch(
        "time.sleep"
    ) as sleep:
        deprecation_handler(_days_ago(45), "web", "old_key", "new_key", "key")
    sleep.assert_called_once_with(5)
    assert [r.levelno for r in caplog.records] == [logging.ERROR]


def test_deprecation_expired_exits():
    with pytest.raises(SystemExit) as exc:
        deprecation_handler(_days_ago(90), "web", "old_key", "new_key", "key")
    assert exc.value.code == 1


def test_deprecation_unparsable_date_exits():
    with pytest.raises(SystemExit) as exc:
        deprecation_handler("not a date", "web", "old_key", "new_key", "key")
    assert exc.value.code == 1