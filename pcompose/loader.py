"""Discover, read and merge project configuration files."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Sequence

import yaml
from dotenv import load_dotenv

from .merger import merge
from .project import Project

_log = logging.getLogger(__name__)

# Compose file names for auto-discovery, in order of preference.
DEFAULT_FILE_NAMES = (
    "compose.yml",
    "compose.yaml",
    "process-compose.yml",
    "process-compose.yaml",
)

# Compose override file names for auto-discovery, in order of preference.
DEFAULT_OVERRIDE_FILE_NAMES = (
    "compose.override.yml",
    "compose.override.yaml",
    "process-compose.override.yml",
    "process-compose.override.yaml",
)

_VARIABLE = re.compile(
    r"\$(?:\{(?P<braced>[^}]*)\}|(?P<special>[*#$@!?\-0-9])|(?P<name>[A-Za-z0-9_]+)|(?P<open>\{))"
)


class LoadError(Exception):
    """Raised when configuration files cannot be found, read or parsed."""


@dataclass
class LoaderOptions:
    """Which files to load and where to look for them."""

    working_dir: str = ""
    file_names: list[str] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)

    def get_working_dir(self) -> str:
        """The explicit working directory, else the directory of the first real file, else the cwd."""
        if self.working_dir:
            return self.working_dir
        for path in self.file_names:
            if path != "-":
                return os.path.dirname(os.path.abspath(path))
        return os.getcwd()


def find_files(names: Sequence[str], pwd: str) -> list[str]:
    """Paths of the given names under pwd that exist, in the given order."""
    candidates = (os.path.join(pwd, name) for name in names)
    return [path for path in candidates if os.path.exists(path)]


def _pick_first(candidates: list[str], kind: str) -> str:
    if len(candidates) > 1:
        _log.warning(
            "Found multiple %s with supported names: %s", kind, ", ".join(candidates)
        )
        _log.warning("Using %s", candidates[0])
    return candidates[0]


def auto_discover_compose_file(opts: LoaderOptions) -> None:
    """Fill opts.file_names with a discovered config file and its override, if none were given."""
    if opts.file_names:
        return
    pwd = opts.get_working_dir()
    candidates = find_files(DEFAULT_FILE_NAMES, pwd)
    if not candidates:
        raise LoadError(f"no config files found in {pwd}")
    opts.file_names.append(_pick_first(candidates, "config files"))
    overrides = find_files(DEFAULT_OVERRIDE_FILE_NAMES, pwd)
    if overrides:
        opts.file_names.append(_pick_first(overrides, "override files"))


def _substitute(match: re.Match[str]) -> str:
    if match.group("open") is not None:
        return ""
    name = match.group("braced")
    if name is None:
        name = match.group("special") or match.group("name")
    if not name:
        return ""
    return os.environ.get(name, "")


def _expand_env(text: str) -> str:
    """Replace $NAME and ${NAME} with environment values; unset names become empty."""
    return _VARIABLE.sub(_substitute, text)


def load_project_from_file(path: str) -> Project:
    """Read one configuration file, expanding environment variables, and validate it."""
    try:
        with open(path, encoding="utf-8") as handle:
            content = handle.read()
    except FileNotFoundError as err:
        raise LoadError(f"File {path} doesn't exist") from err
    except OSError as err:
        raise LoadError(str(err)) from err

    # A .env file is optional.
    load_dotenv(dotenv_path=".env")

    try:
        data = yaml.safe_load(_expand_env(content))
    except yaml.YAMLError as err:
        raise LoadError(f"Failed to parse {path} - {err}") from err
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise LoadError(f"Failed to parse {path} - not a mapping")
    try:
        project = Project.from_dict(data)
    except (TypeError, ValueError, AttributeError) as err:
        raise LoadError(f"Failed to parse {path} - {err}") from err
    project.validate()
    _log.info("Loaded project from %s", path)
    return project


def load(opts: LoaderOptions) -> Project:
    """Load all configured (or discovered) files, merge them and validate the result."""
    auto_discover_compose_file(opts)
    for path in opts.file_names:
        opts.projects.append(load_project_from_file(path))
    merged = merge(opts.projects, opts.file_names)
    merged.validate_after_merge()
    return merged