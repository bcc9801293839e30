"""A log pane model: buffered, tagged text with search highlighting."""

from __future__ import annotations

import re
import sys
import threading
from typing import Iterable, Iterator

from .log_buffer import generate_unique_id

_REGION_PATTERN = re.compile(r'\["([a-zA-Z0-9_,;: \-\.]*)"\]')
_NON_ESCAPE_PATTERN = re.compile(r'(\[[a-zA-Z0-9_,;: \-\."#]+\[*)\]')
_ESCAPED_PATTERN = re.compile(r'\[([a-zA-Z0-9_,;: \-\."#]+)\[(\[*)\]')
_COLOR_PATTERN = re.compile(
    r"\[([a-zA-Z]+|#[0-9a-zA-Z]{6}|\-)?(:([a-zA-Z]+|#[0-9a-zA-Z]{6}|\-)?(:([lbidrus]+|\-)?)?)?\]"
)
_CSI_PATTERN = re.compile(r"\x1b\[([0-9;]*)([A-Za-z])")

_BASIC_COLORS = ("black", "maroon", "green", "olive", "navy", "purple", "teal", "silver")
_BRIGHT_COLORS = ("gray", "red", "lime", "yellow", "blue", "fuchsia", "aqua", "white")
_CUBE_LEVELS = (0, 95, 135, 175, 215, 255)
_ATTRIBUTES = {1: "b", 2: "d", 3: "i", 4: "u", 5: "l", 7: "r", 9: "s"}
_ATTRIBUTE_RESETS = {22: "bd", 23: "i", 24: "u", 25: "l", 27: "r", 29: "s"}


def escape(text: str) -> str:
    """Escape bracketed sequences so they are shown rather than read as tags."""
    return _NON_ESCAPE_PATTERN.sub(r"\1[]", text)


def _strip_tags(text: str) -> str:
    text = _REGION_PATTERN.sub("", text)
    text = _COLOR_PATTERN.sub(lambda m: "" if len(m.group(0)) > 2 else m.group(0), text)
    return _ESCAPED_PATTERN.sub(r"[\1\2]", text)


def _palette_color(number: int) -> str:
    if number < 8:
        return _BASIC_COLORS[number]
    if number < 16:
        return _BRIGHT_COLORS[number - 8]
    if number < 232:
        index = number - 16
        red, green, blue = index // 36, (index // 6) % 6, index % 6
        return "#{:02x}{:02x}{:02x}".format(
            _CUBE_LEVELS[red], _CUBE_LEVELS[green], _CUBE_LEVELS[blue]
        )
    gray = 8 + 10 * (min(number, 255) - 232)
    return f"#{gray:02x}{gray:02x}{gray:02x}"


class _AnsiTranslator:
    """Turns ANSI SGR escape sequences into colour tags, keeping state across calls."""

    def __init__(self) -> None:
        self.foreground = ""
        self.background = ""
        self.attributes = ""

    def translate(self, text: str) -> str:
        return _CSI_PATTERN.sub(self._replace, text)

    def _replace(self, match: re.Match[str]) -> str:
        if match.group(2) != "m":
            return ""
        codes = iter(int(code) if code else 0 for code in match.group(1).split(";"))
        for code in codes:
            self._apply(code, codes)
        return "[{}:{}:{}]".format(
            self.foreground or "-", self.background or "-", self.attributes or "-"
        )

    def _apply(self, code: int, rest: Iterator[int]) -> None:
        if code == 0:
            self.foreground = self.background = self.attributes = ""
        elif code in _ATTRIBUTES:
            if _ATTRIBUTES[code] not in self.attributes:
                self.attributes += _ATTRIBUTES[code]
        elif code in _ATTRIBUTE_RESETS:
            removed = _ATTRIBUTE_RESETS[code]
            self.attributes = "".join(a for a in self.attributes if a not in removed)
        elif 30 <= code <= 37:
            self.foreground = _BASIC_COLORS[code - 30]
        elif 90 <= code <= 97:
            self.foreground = _BRIGHT_COLORS[code - 90]
        elif code == 39:
            self.foreground = ""
        elif 40 <= code <= 47:
            self.background = _BASIC_COLORS[code - 40]
        elif 100 <= code <= 107:
            self.background = _BRIGHT_COLORS[code - 100]
        elif code == 49:
            self.background = ""
        elif code in (38, 48):
            color = self._extended_color(rest)
            if color is None:
                return
            if code == 38:
                self.foreground = color
            else:
                self.background = color

    @staticmethod
    def _extended_color(rest: Iterator[int]) -> str | None:
        mode = next(rest, None)
        if mode == 5:
            number = next(rest, None)
            return None if number is None else _palette_color(number)
        if mode == 2:
            red, green, blue = next(rest, 0), next(rest, 0), next(rest, 0)
            return f"#{red & 0xFF:02x}{green & 0xFF:02x}{blue & 0xFF:02x}"
        return None


class LogView:
    """Log text for one process: lines are buffered, then flushed into the view."""

    def __init__(self, max_lines: int) -> None:
        self.max_lines = max_lines
        self.use_ansi = False
        self.wrap = True
        self._text = ""
        self._pending: list[str] = []
        self._lock = threading.Lock()
        self._ansi = _AnsiTranslator()
        self._unique_id = generate_unique_id(10)
        self._search_term = ""
        self._searching = False
        self._search_index = 0
        self._total_search_count = 0
        self._highlighted: tuple[str, ...] = ()

    @property
    def unique_id(self) -> str:
        return self._unique_id

    @property
    def tail_length(self) -> int:
        """The view wants the whole history."""
        return sys.maxsize

    @property
    def text(self) -> str:
        """The displayed text, tags included."""
        return self._text

    @property
    def plain_text(self) -> str:
        """The displayed text without colour or region tags."""
        return _strip_tags(self._text)

    @property
    def pending(self) -> str:
        """Text written but not yet flushed."""
        with self._lock:
            return "".join(self._pending)

    @property
    def is_searching(self) -> bool:
        return self._searching

    @property
    def search_term(self) -> str:
        return self._search_term

    @property
    def current_search_index(self) -> int:
        """Index of the highlighted match, or -1 when nothing matched."""
        if self._total_search_count == 0:
            return -1
        return self._search_index

    @property
    def total_search_count(self) -> int:
        return self._total_search_count

    @property
    def highlighted(self) -> tuple[str, ...]:
        """Region ids currently highlighted."""
        return self._highlighted

    def write_string(self, line: str) -> int:
        """Buffer one line; without ANSI colours, lines mentioning errors are tinted."""
        if self.use_ansi:
            chunk = escape(line) + "\n"
        elif "error" in line.lower():
            chunk = f"[deeppink]{escape(line)}[-:-:-]\n"
        else:
            chunk = f"{escape(line)}\n"
        with self._lock:
            self._pending.append(chunk)
        return len(chunk)

    def add_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.write_string(line)

    def set_lines(self, lines: Iterable[str]) -> None:
        """Clear the displayed text and buffer the given lines."""
        self.clear()
        self.add_lines(lines)

    def clear(self) -> None:
        """Remove all displayed text."""
        self._text = ""

    def flush(self) -> None:
        """Move buffered text into the view, translating ANSI codes if enabled."""
        with self._lock:
            chunk = "".join(self._pending)
            self._pending.clear()
            if self.use_ansi:
                chunk = self._ansi.translate(chunk)
            self._text += chunk
            self._trim()

    def toggle_wrap(self) -> None:
        self.wrap = not self.wrap

    def search_string(self, search: str, is_regex: bool, case_sensitive: bool) -> None:
        """Mark every match with a numbered region and highlight the first.

        An empty search does nothing; an invalid pattern raises re.error.
        """
        if not search:
            return
        self.reset_search()
        pattern = search if is_regex else re.escape(search)
        flags = 0 if case_sensitive else re.IGNORECASE
        regex = re.compile(pattern, flags)
        self._text = regex.sub(self._add_region, self._text.strip())
        if self._total_search_count > 0:
            self._highlighted = ("0",)
        self._searching = True
        self._search_term = search

    def search_next(self) -> None:
        if self._total_search_count > 0:
            self._search_index = (self._search_index + 1) % self._total_search_count
            self._highlighted = (str(self._search_index),)

    def search_prev(self) -> None:
        if self._total_search_count > 0:
            self._search_index = (
                self._search_index - 1 + self._total_search_count
            ) % self._total_search_count
            self._highlighted = (str(self._search_index),)

    def reset_search(self) -> None:
        """Drop search marks and highlighting."""
        if not self._searching:
            return
        self._searching = False
        self._search_index = 0
        self._total_search_count = 0
        self._highlighted = ()
        self._text = _REGION_PATTERN.sub("", self._text)

    def _add_region(self, match: re.Match[str]) -> str:
        region = f'["{self._total_search_count}"]{match.group(0)}[""]'
        self._total_search_count += 1
        return region

    def _trim(self) -> None:
        if self.max_lines <= 0:
            return
        lines = self._text.split("\n")
        trailing = lines[-1] == ""
        if trailing:
            lines.pop()
        if len(lines) > self.max_lines:
            lines = lines[-self.max_lines :]
            self._text = "\n".join(lines) + ("\n" if trailing else "")