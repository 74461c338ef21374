from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class UpdateOutcome(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RuntimeState:
    """Snapshot of a container taken before any mutation."""

    exists: bool
    was_running: bool = False  # only meaningful when exists


@dataclass
class BatchSummary:
    total: int = 0
    success: int = 0
    failed: int = 0
    updated: list[str] = field(default_factory=list)
    started_at: str = field(default_factory=utc_now)

    def record(self, name: str, outcome: UpdateOutcome) -> None:
        self.total += 1
        if outcome is UpdateOutcome.UPDATED:
            self.success += 1
            self.updated.append(name)
        elif outcome is UpdateOutcome.FAILED:
            self.failed += 1
        # UNCHANGED and NOT_FOUND count toward neither success nor failure.


@dataclass(frozen=True)
class CompiledCommand:
    """One runtime invocation as an ordered, immutable token sequence.

    ``tokens`` is the display form, with values holding whitespace quoted.
    ``argv`` is what gets executed; it defaults to ``tokens``.
    """

    tokens: tuple[str, ...]
    argv: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.argv:
            object.__setattr__(self, "argv", self.tokens)

    def __str__(self) -> str:
        return " ".join(self.tokens)

    def __iter__(self):
        return iter(self.tokens)
