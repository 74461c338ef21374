from __future__ import annotations

from .config import ContainerSpec, UpdaterConfig, resolve_config_dir
from .docker_ops import DockerOps
from .report import ReportLog
from .runner import CommandError
from .runtime import RuntimeState, UpdateOutcome


SEPARATOR = "-" * 36


class Reconciler:
    """Brings one configured container onto its newest image.

    Inspect -> pull -> (unchanged | stop if running -> remove if existed ->
    create -> start if it ran before or must always run).
    """

    def __init__(self, config: UpdaterConfig, ops: DockerOps, report: ReportLog):
        self.config = config
        self.defaults = config.options
        self.ops = ops
        self.report = report

    def inspect(self, name: str, dry_run: bool = False) -> RuntimeState:
        if not self.ops.exists(name, dry_run=dry_run):
            return RuntimeState(exists=False)
        return RuntimeState(exists=True, was_running=self.ops.is_running(name, dry_run=dry_run))

    def update(self, name: str, forced_image: str | None = None, forced_update: bool = False) -> UpdateOutcome:
        self.report.container = name
        self.report.info(f"Container: '{name}'", force=True)
        try:
            spec = self.config.get(name)
            if spec is None:
                self.report.error(f"Error: No configuration found for container '{name}'.")
                return UpdateOutcome.NOT_FOUND

            debug = self.defaults.debug if spec.debug is None else spec.debug
            if debug:
                self.report.warning("Note: Container config has debugging enabled! Only showing commands, not running them.", force=True)

            try:
                return self._reconcile(name, spec, forced_image, forced_update, debug)
            except Exception as e:
                self.report.error(f"Container '{name}' update failed: {type(e).__name__}: {e}", force=debug)
                return UpdateOutcome.FAILED
        finally:
            self.report.container = None

    def _reconcile(
        self,
        name: str,
        spec: ContainerSpec,
        forced_image: str | None,
        forced_update: bool,
        debug: bool,
    ) -> UpdateOutcome:
        image = forced_image or spec.image
        config_dir = resolve_config_dir(self.defaults.config_base_path, name)
        always_run = self.defaults.always_run if spec.always_run is None else spec.always_run

        # Snapshot before any mutation: the only input for restarting afterwards.
        state = self.inspect(name, dry_run=debug)

        self.report.trace("Checking for image update...", force=debug)
        has_update = self.ops.pull(image, dry_run=debug)
        self.report.info("Update available!" if has_update else "No update available.", force=True)

        if not (has_update or forced_update or not state.exists or forced_image):
            self.report.info(SEPARATOR, force=True)
            return UpdateOutcome.UNCHANGED

        if forced_update:
            self.report.warning("Update was forced!", force=True)

        if state.exists:
            if state.was_running:
                self.report.trace("Container running, so start after update.", force=debug)
            else:
                self.report.trace(
                    "Container not running." + (" Will start after update." if always_run else ""), force=debug
                )
            try:
                if state.was_running:
                    self.ops.stop(name, dry_run=debug)
                self.ops.remove(name, dry_run=debug)
            except CommandError as e:
                self.report.error(f"Something went wrong: {e}")
                return UpdateOutcome.FAILED
        else:
            self.report.warning("Container does not exist.", force=debug)

        # A failure from here on leaves the container removed; the caller records it.
        self.ops.create(name, spec, image, config_dir, dry_run=debug)

        if always_run or state.was_running:
            self.ops.start(name, dry_run=debug)

        self.report.info(f"Container '{name}' was updated!", emphasis="lightGreen", force=True)
        self.report.info(SEPARATOR, force=True)
        return UpdateOutcome.UPDATED
