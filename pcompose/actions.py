"""Keyboard actions of the terminal view and their configurable shortcuts."""

from __future__ import annotations

import logging
import os
import string
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import yaml

_log = logging.getLogger(__name__)


def _key_members() -> list[tuple[str, str]]:
    members = [
        ("ENTER", "Enter"),
        ("BACKSPACE", "Backspace"),
        ("TAB", "Tab"),
        ("BACKTAB", "Backtab"),
        ("ESC", "Esc"),
        ("BACKSPACE2", "Backspace2"),
        ("DELETE", "Delete"),
        ("INSERT", "Insert"),
        ("UP", "Up"),
        ("DOWN", "Down"),
        ("LEFT", "Left"),
        ("RIGHT", "Right"),
        ("HOME", "Home"),
        ("END", "End"),
        ("UP_LEFT", "UpLeft"),
        ("UP_RIGHT", "UpRight"),
        ("DOWN_LEFT", "DownLeft"),
        ("DOWN_RIGHT", "DownRight"),
        ("CENTER", "Center"),
        ("PGUP", "PgUp"),
        ("PGDN", "PgDn"),
        ("PRINT", "Print"),
        ("PAUSE", "Pause"),
        ("CANCEL", "Cancel"),
        ("EXIT", "Exit"),
        ("CLEAR", "Clear"),
        ("HELP", "Help"),
    ]
    members += [(f"F{number}", f"F{number}") for number in range(1, 65)]
    # Ctrl-H, Ctrl-I and Ctrl-M are the same keys as Backspace, Tab and Enter.
    members += [
        (f"CTRL_{letter}", f"Ctrl-{letter}")
        for letter in string.ascii_uppercase
        if letter not in "HIM"
    ]
    members += [
        ("CTRL_SPACE", "Ctrl-Space"),
        ("CTRL_UNDERSCORE", "Ctrl-_"),
        ("CTRL_RIGHT_SQ", "Ctrl-]"),
        ("CTRL_BACKSLASH", "Ctrl-\\"),
        ("CTRL_CARAT", "Ctrl-^"),
        ("RUNE", "Rune"),
    ]
    return members


Key = Enum("Key", _key_members(), type=str, module=__name__)
Key.__doc__ = "Special keys, valued by the names used in shortcut files."


class ActionName(str, Enum):
    """Actions that can be bound to a key."""

    LOG_SCREEN = "log_screen"
    FOLLOW_LOG = "log_follow"
    WRAP_LOG = "log_wrap"
    LOG_SELECTION = "log_select"
    PROCESS_START = "process_start"
    PROCESS_SCALE = "process_scale"
    PROCESS_INFO = "process_info"
    PROCESS_STOP = "process_stop"
    PROCESS_RESTART = "process_restart"
    PROCESS_SCREEN = "process_screen"
    QUIT = "quit"
    LOG_FIND = "find"
    LOG_FIND_NEXT = "find_next"
    LOG_FIND_PREV = "find_prev"
    LOG_FIND_EXIT = "find_exit"


_DEFAULT_SHORTCUTS: dict[ActionName, Any] = {
    ActionName.LOG_SCREEN: Key.F4,
    ActionName.FOLLOW_LOG: Key.F5,
    ActionName.WRAP_LOG: Key.F6,
    ActionName.LOG_SELECTION: Key.CTRL_S,
    ActionName.PROCESS_SCALE: Key.F2,
    ActionName.PROCESS_INFO: Key.F3,
    ActionName.PROCESS_START: Key.F7,
    ActionName.PROCESS_STOP: Key.F9,
    ActionName.PROCESS_RESTART: Key.CTRL_R,
    ActionName.PROCESS_SCREEN: Key.F8,
    ActionName.QUIT: Key.F10,
    ActionName.LOG_FIND: Key.CTRL_F,
    ActionName.LOG_FIND_NEXT: Key.CTRL_N,
    ActionName.LOG_FIND_PREV: Key.CTRL_P,
    ActionName.LOG_FIND_EXIT: Key.ESC,
}


def key_name_to_key(name: str) -> Any:
    """The key with the given name; raises ValueError for unknown names."""
    try:
        return Key(name)
    except ValueError:
        raise ValueError(f"no matching key found {name}") from None


@dataclass
class Action:
    """A bindable action: its labels and the key that triggers it."""

    description: str = ""
    toggle_description: dict[bool, str] = field(default_factory=dict)
    shortcut: str = ""
    key: Any = None

    def button(self) -> str:
        """The help-bar label of the action."""
        return f"{self.shortcut}[black:green]{self.description}[-:-:-]"

    def toggle_button(self, state: bool) -> str:
        """The help-bar label for a toggle in the given state."""
        if len(self.toggle_description) != 2:
            return self.button()
        return f"{self.shortcut}[black:green]{self.toggle_description[state]}[-:-:-]"


def _action_name(raw: Any) -> Any:
    try:
        return ActionName(raw)
    except ValueError:
        return str(raw)


def _assign_default_keys(name: Any, action: Action) -> None:
    key = _DEFAULT_SHORTCUTS.get(name)
    action.key = key
    action.shortcut = key.value if key is not None else ""


def _action_from_dict(data: Mapping[str, Any] | None) -> Action:
    data = data or {}
    toggle = data.get("toggledescription") or {}
    return Action(
        description=str(data.get("description") or ""),
        toggle_description={bool(state): str(text) for state, text in toggle.items()},
        shortcut=str(data.get("shortcut") or ""),
    )


def _action_to_dict(action: Action) -> dict[str, Any]:
    return {
        "description": action.description,
        "toggledescription": dict(action.toggle_description),
        "shortcut": action.shortcut,
    }


def _parse_shortcuts(shortcuts: ShortCuts) -> None:
    for name, action in shortcuts.shortcut_keys.items():
        try:
            action.key = key_name_to_key(action.shortcut)
        except ValueError as err:
            _assign_default_keys(name, action)
            _log.error(
                "Failed in parsing '%s' shortcut - %s. Using default: %s",
                name,
                err,
                action.shortcut,
            )


@dataclass
class ShortCuts:
    """The action bindings, keyed by action name."""

    shortcut_keys: dict[Any, Action] = field(default_factory=dict)

    def save_to_file(self, file_path: str) -> None:
        """Write the bindings as YAML, readable only by the owner."""
        data = {
            "shortcuts": {
                str(getattr(name, "value", name)): _action_to_dict(action)
                for name, action in self.shortcut_keys.items()
            }
        }
        text = yaml.safe_dump(data)
        try:
            fd = os.open(file_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as err:
            _log.error("Failed to save file %s - %s", file_path, err)
            raise

    def load_from_file(self, file_path: str) -> None:
        """Read bindings from YAML and apply the valid ones over the current ones."""
        try:
            with open(file_path, encoding="utf-8") as handle:
                content = handle.read()
        except OSError as err:
            _log.error("Failed to load shortcuts - %s", err)
            raise
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as err:
            _log.error("Failed to unmarshal file %s - %s", file_path, err)
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Failed to unmarshal file {file_path} - not a mapping")
        entries = data.get("shortcuts") or {}
        loaded = ShortCuts(
            {_action_name(name): _action_from_dict(entry) for name, entry in entries.items()}
        )
        _parse_shortcuts(loaded)
        self.apply_valid(loaded)
        _log.debug("Shortcuts loaded from %s", file_path)

    def apply_valid(self, new_shortcuts: ShortCuts) -> None:
        """Take over bindings for known actions; unknown action names are reported."""
        for name, action in new_shortcuts.shortcut_keys.items():
            current = self.shortcut_keys.get(name)
            if current is None:
                _log.error("Invalid action '%s' shortcut", name)
                continue
            current.shortcut = action.shortcut
            current.key = action.key
            if action.description.strip():
                current.description = action.description
            if len(action.toggle_description) == 2:
                current.toggle_description = dict(action.toggle_description)


def _toggle(on: str, off: str) -> dict[bool, str]:
    return {True: on, False: off}


def get_default_actions() -> ShortCuts:
    """All actions with their default labels and keys."""
    actions = {
        ActionName.LOG_SCREEN: Action(toggle_description=_toggle("Full Screen", "Half Screen")),
        ActionName.FOLLOW_LOG: Action(toggle_description=_toggle("Follow On", "Follow Off")),
        ActionName.WRAP_LOG: Action(toggle_description=_toggle("Wrap On", "Wrap Off")),
        ActionName.LOG_SELECTION: Action(toggle_description=_toggle("Select On", "Select Off")),
        ActionName.PROCESS_SCALE: Action(description="Scale"),
        ActionName.PROCESS_INFO: Action(description="Info"),
        ActionName.PROCESS_START: Action(description="Start"),
        ActionName.PROCESS_SCREEN: Action(
            toggle_description=_toggle("Full Screen", "Half Screen")
        ),
        ActionName.PROCESS_STOP: Action(description="Stop"),
        ActionName.PROCESS_RESTART: Action(description="Restart"),
        ActionName.QUIT: Action(description="Quit"),
        ActionName.LOG_FIND: Action(description="Find"),
        ActionName.LOG_FIND_NEXT: Action(description="Next"),
        ActionName.LOG_FIND_PREV: Action(description="Previous"),
        ActionName.LOG_FIND_EXIT: Action(description="Exit Search"),
    }
    for name, action in actions.items():
        _assign_default_keys(name, action)
    return ShortCuts(actions)