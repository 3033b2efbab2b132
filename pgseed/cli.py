from __future__ import annotations

import argparse
import importlib
import json
import sys
from collections.abc import Iterable, Sequence

from pgseed.errors import SeederError
from pgseed.logging import configure_logging, get_logger
from pgseed.seed import SeedExec
from pgseed.seeder import Seeder
from pgseed.settings import SETTINGS


def load_seeds(ref: str) -> list[SeedExec]:
    """
    Resolve "package.module:attr" to a list of seed executors. `attr` may be an
    iterable of executors or a zero-argument callable returning one.
    """
    module_name, sep, attr = ref.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected 'module:attr', got {ref!r}")
    obj = getattr(importlib.import_module(module_name), attr)
    if isinstance(obj, type) or (callable(obj) and not isinstance(obj, SeedExec)):
        obj = obj()
    if isinstance(obj, SeedExec):
        return [obj]
    if not isinstance(obj, Iterable):
        raise ValueError(f"{ref!r} is not an iterable of seed executors")
    seeds = list(obj)
    for s in seeds:
        if not isinstance(s, SeedExec):
            raise ValueError(f"{ref!r} contains a non seed executor: {s!r}")
    return seeds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pgseed", description="Apply database seed steps to Postgres.")
    parser.add_argument(
        "--log-level",
        default=SETTINGS.log_level,
        type=str.lower,
        choices=["debug", "info", "warning", "error", "critical"],
    )
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON.")
    parser.add_argument("--name", default="seeder", help="Seeder name reported in logs.")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Create database/bookkeeping table if needed and apply seeds.")
    run.add_argument("--seeds", required=True, help="Seed executors as 'package.module:attr'.")
    run.add_argument("--no-tracking", action="store_true", help="Run every seed, ignoring the bookkeeping table.")

    sub.add_parser("setup", help="Only create the database and bookkeeping table.")
    sub.add_parser("status", help="List applied seeds.")

    unmark = sub.add_parser("unmark", help="Forget that a seed was applied.")
    unmark.add_argument("seed_name")

    sub.add_parser("drop-table", help="Drop the bookkeeping table.")
    return parser


def _dispatch(seeder: Seeder, args: argparse.Namespace, seeds: list[SeedExec]) -> None:
    if args.command == "run":
        for s in seeds:
            seeder.add_seed(s)
        report = seeder.seed()
        print(json.dumps({"applied": report.applied, "skipped": report.skipped}, indent=2))
    elif args.command == "setup":
        seeder.pre_setup()
    elif args.command == "status":
        rows = [{"name": r.name, "fx": r.fx, "created_at": r.created_at} for r in seeder.applied()]
        print(json.dumps(rows, indent=2, default=str))
    elif args.command == "unmark":
        print(json.dumps({"seed": args.seed_name, "unmarked": seeder.unmark(args.seed_name)}))
    elif args.command == "drop-table":
        seeder.drop_seeder_table()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, json_logs=SETTINGS.log_json and not args.plain_logs)
    log = get_logger("pgseed.cli")

    try:
        seeds = load_seeds(args.seeds) if args.command == "run" else []
        seeder = Seeder.from_settings(SETTINGS, name=args.name, track_applied=not getattr(args, "no_tracking", False))
        try:
            _dispatch(seeder, args, seeds)
        finally:
            seeder.close()
    except (SeederError, ValueError, ImportError, AttributeError) as exc:
        log.error("seeder_failed", command=args.command, error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
