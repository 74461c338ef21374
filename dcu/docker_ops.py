from __future__ import annotations

import os

import docker
from docker.errors import DockerException

from .arguments import ArgumentCompiler
from .config import ContainerSpec
from .report import ReportLog
from .runner import CommandError, CommandRunner, CommandResult
from .runtime import CompiledCommand


NO_SUCH_OBJECT = "No such object"
UP_TO_DATE = "up to date"


def _client() -> docker.DockerClient:
    return docker.from_env()


def docker_available() -> bool:
    try:
        c = _client()
        c.ping()
        return True
    except DockerException:
        return False


class DockerOps:
    """Inspection and lifecycle primitives over the docker CLI.

    Mutations report a confirmation on success and let ``CommandError``
    propagate; the caller decides what a failure means. Nothing is retried.
    """

    def __init__(self, runner: CommandRunner, report: ReportLog, compiler: ArgumentCompiler):
        self.runner = runner
        self.report = report
        self.compiler = compiler

    @property
    def docker_bin(self) -> str:
        return self.compiler.docker_bin

    def _run(self, *tokens: str, dry_run: bool = False) -> CommandResult:
        return self.runner.run(CompiledCommand((self.docker_bin, *tokens)), dry_run=dry_run)

    # -- inspection -----------------------------------------------------------

    def exists(self, name: str, dry_run: bool = False) -> bool:
        try:
            self._run("inspect", name, dry_run=dry_run)
        except CommandError as e:
            # Only the runtime's own "absent" answer is a negative; anything else is an error.
            if f"{NO_SUCH_OBJECT}: {name}" in e.output:
                return False
            raise
        return True

    def is_running(self, name: str, dry_run: bool = False) -> bool:
        try:
            result = self._run("inspect", "--format={{.State.Running}}", name, dry_run=dry_run)
        except CommandError:
            return False
        return result.stdout.strip() == "true"

    # -- lifecycle ------------------------------------------------------------

    def pull(self, image: str, dry_run: bool = False) -> bool:
        """Pull ``image``; True unless the runtime says it is already up to date."""
        result = self._run("pull", image, dry_run=dry_run)
        return UP_TO_DATE not in result.stdout

    def stop(self, name: str, dry_run: bool = False) -> None:
        self._run("stop", name, dry_run=dry_run)
        self.report.trace("Container stopped.")

    def remove(self, name: str, dry_run: bool = False) -> None:
        self._run("rm", name, dry_run=dry_run)
        self.report.trace("Container removed.")

    def create(self, name: str, spec: ContainerSpec, image: str, config_dir: str, dry_run: bool = False) -> None:
        if not os.path.isdir(config_dir):
            os.makedirs(config_dir, exist_ok=True)
            self.report.warning("Config directory didn't exist, so it was created", force=dry_run)
        else:
            self.report.trace("Config directory exists.", force=dry_run)

        if name.lower() not in image.lower():
            self.report.warning(
                f"Warning: there seems to be a mismatch in the container's name ('{name}') "
                f"and the image used ('{image}'). Check your configuration, or ignore this warning if you are sure.",
                force=dry_run,
            )

        command = self.compiler.compile(name, spec.arguments, config_dir, image)
        self.runner.run(command, dry_run=dry_run)
        self.report.trace("Container created.", force=True)

    def start(self, name: str, dry_run: bool = False) -> None:
        self._run("start", name, dry_run=dry_run)
        self.report.info("Container started.")

    def prune_images(self, dry_run: bool = False) -> None:
        # -f: docker otherwise waits for a y/N confirmation that never comes.
        self._run("image", "prune", "-a", "-f", dry_run=dry_run)
        self.report.info("Pruning done!", force=True)
