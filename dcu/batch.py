from __future__ import annotations

from .config import UpdaterConfig
from .db import Journal
from .docker_ops import DockerOps
from .reconciler import SEPARATOR, Reconciler
from .report import ReportLog
from .runner import CommandError
from .runtime import BatchSummary


class BatchDriver:
    """Runs the reconciler over every configured container, one at a time."""

    def __init__(
        self,
        config: UpdaterConfig,
        reconciler: Reconciler,
        ops: DockerOps,
        report: ReportLog,
        journal: Journal | None = None,
    ):
        self.config = config
        self.reconciler = reconciler
        self.ops = ops
        self.report = report
        self.journal = journal

    def run(self, forced_update: bool = False) -> BatchSummary:
        self.report.info("Updating all containers...", force=True)
        summary = BatchSummary()

        for name in self.config.containers:
            summary.record(name, self.reconciler.update(name, forced_update=forced_update))

        options = self.config.options
        if options.prune and summary.success:
            self.report.info("Containers updated, now pruning...", force=True)
            try:
                self.ops.prune_images(dry_run=options.debug)
            except CommandError as e:
                self.report.error(f"Pruning failed: {e}")

        self.report.info(f"{summary.total} Containers processed -- summary:", force=True)
        self.report.info(SEPARATOR, force=True)
        self.report.info(f"{summary.success} updated, {summary.failed} failed.", force=True)

        if self.journal is not None:
            self.journal.record_run(summary)
        return summary
