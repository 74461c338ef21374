import sys
from collections.abc import Callable

import pytest

# Ensure project root is importable (so `import cli` works reliably across environments)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from dcu.config import UpdaterConfig, parse_config  # noqa: E402
from dcu.report import Level, ReportLog  # noqa: E402
from dcu.runner import CommandError, CommandResult  # noqa: E402


class FakeRunner:
    """Stands in for CommandRunner: records command lines, answers from a script.

    ``responses`` maps a command prefix (e.g. "docker pull") to a stdout string,
    a CommandError, or a callable returning either.
    """

    def __init__(self, responses: dict | None = None):
        self.responses = responses or {}
        self.commands: list[str] = []
        self.dry_runs: list[bool] = []

    def run(self, command, dry_run: bool = False) -> CommandResult:
        line = str(command) if not isinstance(command, (list, tuple)) else " ".join(command)
        self.commands.append(line)
        self.dry_runs.append(dry_run)
        if dry_run:
            return CommandResult(line, dry_run=True)
        for prefix in sorted(self.responses, key=len, reverse=True):
            if line.startswith(prefix):
                answer = self.responses[prefix]
                if callable(answer):
                    answer = answer(line)
                if isinstance(answer, CommandError):
                    raise answer
                return CommandResult(line, stdout=answer)
        return CommandResult(line)


class RecordingOps:
    """Stands in for DockerOps in reconciler tests; records every call in order."""

    def __init__(self, exists=False, running=False, update=True, fail_on: dict | None = None):
        self._exists = exists
        self._running = running
        self._update = update
        self.fail_on = fail_on or {}
        self.calls: list[str] = []
        self.dry_runs: list[bool] = []

    def _call(self, op: str, dry_run: bool):
        self.calls.append(op)
        self.dry_runs.append(dry_run)
        err = self.fail_on.get(op)
        if err is not None:
            raise err

    def exists(self, name, dry_run=False):
        self._call("exists", dry_run)
        return self._exists

    def is_running(self, name, dry_run=False):
        self._call("is_running", dry_run)
        return self._running

    def pull(self, image, dry_run=False):
        self._call("pull", dry_run)
        self.pulled = image
        return self._update

    def stop(self, name, dry_run=False):
        self._call("stop", dry_run)

    def remove(self, name, dry_run=False):
        self._call("remove", dry_run)

    def create(self, name, spec, image, config_dir, dry_run=False):
        self._call("create", dry_run)
        self.created = (name, image, config_dir)

    def start(self, name, dry_run=False):
        self._call("start", dry_run)

    def prune_images(self, dry_run=False):
        self._call("prune_images", dry_run)

    @property
    def mutations(self) -> list[str]:
        return [c for c in self.calls if c in {"stop", "remove", "create", "start", "prune_images"}]


@pytest.fixture
def report() -> ReportLog:
    return ReportLog(min_level=Level.TRACE, echo=False)


@pytest.fixture
def make_config(tmp_path) -> Callable[..., UpdaterConfig]:
    def _make(containers: dict | None = None, **options) -> UpdaterConfig:
        opts = {"config_base_path": str(tmp_path / "docker"), "PUID": 1000, "PGID": 100, **options}
        return parse_config({"options": opts, "containers": containers or {}})

    return _make


@pytest.fixture
def fake_runner_cls():
    return FakeRunner


@pytest.fixture
def recording_ops_cls():
    return RecordingOps
