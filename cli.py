from __future__ import annotations

import argparse
import json
import sys

from dcu.alerts import DeliveryError, send_report
from dcu.arguments import ArgumentCompiler
from dcu.batch import BatchDriver
from dcu.config import ConfigurationError, load_config
from dcu.db import Journal
from dcu.docker_ops import DockerOps, docker_available
from dcu.reconciler import SEPARATOR, Reconciler
from dcu.report import ReportLog
from dcu.runner import CommandRunner
from dcu.runtime import UpdateOutcome
from dcu.settings import settings

USAGE = "Usage: dcu-update <container> [image] [--force] | dcu-update --all [--force]"


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Docker Container Updater")
    p.add_argument("container", nargs="?", help="Container name as configured")
    p.add_argument("image", nargs="?", help="Use this image reference instead of the configured one")
    p.add_argument("--all", dest="all_containers", action="store_true", help="Update every configured container")
    p.add_argument("--force", action="store_true", help="Recreate even when no newer image was pulled")
    p.add_argument("--config", default=settings.config_path, help="Container configuration file (YAML)")
    p.add_argument("--dry-run", action="store_true", default=settings.dry_run, help="Only show the docker commands")
    p.add_argument("--events", type=int, metavar="N", help="Show the latest N journal events and exit")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.events is not None:
        if not settings.db_path:
            print("Error: DCU_DB_PATH is not set, there is no journal to read.", file=sys.stderr)
            return 1
        _print(Journal(settings.db_path).latest_events(limit=args.events))
        return 0

    if not args.container and not args.all_containers:
        print("Error: Container not specified.", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 1

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    options = config.options
    journal = Journal(settings.db_path) if settings.db_path else None
    report = ReportLog(min_level=options.log_level, journal=journal.log_event if journal else None)
    report.info("Docker Container Updater", emphasis="cyan", force=True)
    report.info(SEPARATOR, force=True)

    dry_run = args.dry_run or options.debug
    if not dry_run and not docker_available():
        report.error("Docker is not available. Start the docker daemon and try again.")
        return 1

    runner = CommandRunner(report, dry_run=args.dry_run)
    ops = DockerOps(runner, report, ArgumentCompiler(options, docker_bin=settings.docker_bin))
    reconciler = Reconciler(config, ops, report)

    if args.all_containers:
        if args.container:
            report.warning(f"Ignoring '{args.container}': --all updates every configured container.", force=True)
        BatchDriver(config, reconciler, ops, report, journal=journal).run(forced_update=args.force)
        deliver = True
    else:
        outcome = reconciler.update(args.container, forced_image=args.image, forced_update=args.force)
        deliver = outcome is UpdateOutcome.UPDATED

    if deliver:
        try:
            sent = send_report(report, options, dry_run=dry_run)
        except DeliveryError as e:
            report.error(f"Done, but mail failed: {e}")
            return 1
        if sent:
            report.info("Done. Report sent. Bye!", force=True)
            return 0

    report.info("Done. Bye!", force=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
