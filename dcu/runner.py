from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from typing import Iterable

from .report import ReportLog
from .runtime import CompiledCommand


class CommandError(Exception):
    """A runtime command exited non-zero (or could not be started)."""

    def __init__(self, command_line: str, returncode: int, stdout: str = "", stderr: str = ""):
        detail = (stderr or stdout).strip()
        super().__init__(f"Command failed ({returncode}): {command_line}" + (f"\n{detail}" if detail else ""))
        self.command_line = command_line
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}"


@dataclass(frozen=True)
class CommandResult:
    command_line: str
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    dry_run: bool = False


def pretty_command(command_line: str) -> str:
    """Put every flag of a long command on its own indented line."""
    return re.sub(r"\s+(?=-)", "\n    ", command_line).strip()


class CommandRunner:
    """Executes one runtime command and captures its output.

    The argv is executed as is, without a shell. In dry-run mode the display
    form of the command is reported instead.
    """

    def __init__(self, report: ReportLog, dry_run: bool = False):
        self.report = report
        self.dry_run = dry_run

    def run(self, command: CompiledCommand | Iterable[str], dry_run: bool = False) -> CommandResult:
        if not isinstance(command, CompiledCommand):
            command = CompiledCommand(tuple(command))
        command_line = str(command)

        if self.dry_run or dry_run:
            self.report.info(f'$ "{pretty_command(command_line)}"', emphasis="orange", force=True)
            return CommandResult(command_line, dry_run=True)

        try:
            proc = subprocess.run(list(command.argv), capture_output=True, text=True, check=False)
        except OSError as e:
            raise CommandError(command_line, 127, stderr=str(e)) from e

        if proc.returncode != 0:
            raise CommandError(command_line, proc.returncode, proc.stdout, proc.stderr)
        return CommandResult(command_line, proc.returncode, proc.stdout.strip(), proc.stderr.strip())
