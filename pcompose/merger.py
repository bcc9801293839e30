"""Merge several project configurations, later ones overriding earlier ones."""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Mapping, Sequence

from .process import ProcessConfig
from .project import Project

_Special = Callable[[Any, Any], Any]


def _env_to_map(env: Sequence[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    for item in env:
        parts = item.split("=")
        if len(parts) == 2:
            result[parts[0]] = parts[1]
    return result


def merge_env(base: Sequence[str] | None, override: Sequence[str] | None) -> list[str]:
    """Merge KEY=VALUE lists; override wins per key and the result is sorted.

    When base is empty the override list is taken as it is. Otherwise entries
    that are not exactly KEY=VALUE are dropped.
    """
    if not base:
        return list(override or [])
    merged = _env_to_map(base)
    merged.update(_env_to_map(override or []))
    return sorted(f"{key}={value}" for key, value in merged.items())


def _merge_dict(dst: Mapping[Any, Any], src: Mapping[Any, Any]) -> dict[Any, Any]:
    result = dict(dst)
    for key, value in src.items():
        if result.get(key) and isinstance(value, (dict, list)):
            continue
        result[key] = value
    return result


def _merge_value(dst: Any, src: Any) -> Any:
    if src is None:
        return dst
    if dst is None:
        return src
    if dataclasses.is_dataclass(dst) and not isinstance(dst, type):
        _merge_fields(dst, src, {})
        return dst
    if isinstance(dst, list):
        return list(dst) + list(src)
    if isinstance(dst, dict):
        return _merge_dict(dst, src)
    return src if src else dst


def _merge_fields(dst: Any, src: Any, specials: Mapping[str, _Special]) -> None:
    for item in dataclasses.fields(dst):
        current = getattr(dst, item.name)
        incoming = getattr(src, item.name)
        special = specials.get(item.name)
        if special is not None and current:
            setattr(dst, item.name, special(current, incoming))
            continue
        setattr(dst, item.name, _merge_value(current, incoming))


def _merge_shell(
    base: Mapping[str, Any], override: Mapping[str, Any] | None
) -> dict[str, Any]:
    merged = dict(base)
    merged.update({key: value for key, value in (override or {}).items() if value})
    return merged


_PROCESS_SPECIALS: dict[str, _Special] = {"environment": merge_env}


def merge_process(base: ProcessConfig, override: ProcessConfig) -> ProcessConfig:
    """Merge override into base in place and return base.

    Non-empty values of override win, nested settings are merged field by field,
    dependencies are replaced per name and the environment is merged per key.
    """
    _merge_fields(base, override, _PROCESS_SPECIALS)
    return base


def merge_processes(
    base: dict[str, ProcessConfig], override: Mapping[str, ProcessConfig]
) -> dict[str, ProcessConfig]:
    """Merge override processes into base by name and return base."""
    for name, process in override.items():
        if name in base:
            base[name] = merge_process(base[name], process)
        else:
            base[name] = process
    return base


_PROJECT_SPECIALS: dict[str, _Special] = {
    "environment": merge_env,
    "processes": merge_processes,
    "shell_config": _merge_shell,
}


def merge_projects(base: Project, override: Project) -> Project:
    """Merge override into base in place and return base."""
    _merge_fields(base, override, _PROJECT_SPECIALS)
    return base


def merge(projects: Sequence[Project], file_names: Sequence[str] | None = None) -> Project:
    """Fold all projects into the first one, each overriding the ones before it."""
    if not projects:
        raise ValueError("no projects to merge")
    names = list(file_names or [])
    base = projects[0]
    for index, override in enumerate(projects[1:]):
        try:
            merge_projects(base, override)
        except (TypeError, ValueError) as err:
            source = names[index] if index < len(names) else "<unknown>"
            raise ValueError(f"cannot merge projects from {source} - {err}") from err
    return base