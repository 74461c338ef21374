from __future__ import annotations

import html
import sys
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

from .runtime import utc_now


class Level(IntEnum):
    TRACE = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


# Emphasis names used by the updater, mapped to mail-safe colors.
HTML_COLORS: dict[str, str] = {
    "red": "#d50d0d",
    "green": "#00b200",
    "yellow": "#d98000",
    "blue": "#0f3abb",
    "magenta": "#b215b2",
    "cyan": "#00b0c0",
    "orange": "#FFA500",
    "lightGreen": "#67b767",
    "lightBlue": "#7ba5b0",
    "purple": "#800080",
}

# Called for every kept line: (level_name, message, container_name)
JournalHook = Callable[[str, str, Optional[str]], None]


@dataclass(frozen=True)
class ReportLine:
    level: Level
    message: str
    emphasis: str | None = None
    container: str | None = None
    ts: str = field(default_factory=utc_now)

    def to_html(self) -> str:
        text = html.escape(self.message)
        color = HTML_COLORS.get(self.emphasis or "")
        if color is None:
            return text
        return f'<span style="color:{color}">{text}</span>'


class ReportLog:
    """Append-only, leveled report of a run, delivered after the run completes.

    A line is kept when its level reaches ``min_level`` or when ``force`` is set.
    Kept lines are echoed to the console (errors to stderr) and, when a journal
    hook is attached, persisted as events.
    """

    def __init__(self, min_level: int = Level.INFO, echo: bool = True, journal: JournalHook | None = None) -> None:
        self.min_level = Level(min_level)
        self.echo = echo
        self.journal = journal
        self.container: str | None = None
        self.lines: list[ReportLine] = []

    def add(self, level: Level, message: str, emphasis: str | None = None, force: bool = False) -> ReportLine | None:
        if level < self.min_level and not force:
            return None
        line = ReportLine(level=level, message=message, emphasis=emphasis, container=self.container)
        self.lines.append(line)
        if self.echo:
            print(message, file=sys.stderr if level >= Level.ERROR else sys.stdout)
        if self.journal is not None:
            self.journal(level.name, message, self.container)
        return line

    def trace(self, message: str, emphasis: str | None = None, force: bool = False) -> ReportLine | None:
        return self.add(Level.TRACE, message, emphasis, force)

    def info(self, message: str, emphasis: str | None = None, force: bool = False) -> ReportLine | None:
        return self.add(Level.INFO, message, emphasis, force)

    def warning(self, message: str, emphasis: str | None = "orange", force: bool = False) -> ReportLine | None:
        return self.add(Level.WARNING, message, emphasis, force)

    def error(self, message: str, emphasis: str | None = "red", force: bool = False) -> ReportLine | None:
        return self.add(Level.ERROR, message, emphasis, force)

    def messages(self, min_level: int = Level.TRACE) -> list[str]:
        return [ln.message for ln in self.lines if ln.level >= min_level]

    def plain_text(self) -> str:
        return "\n".join(ln.message for ln in self.lines)

    def html(self) -> str:
        body = "\n".join(ln.to_html() for ln in self.lines)
        return f'<pre style="font-family:system-ui,sans-serif;font-size:14px;">{body}</pre>'
