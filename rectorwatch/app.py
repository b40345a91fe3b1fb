import argparse
import sys
from contextlib import closing
from pathlib import Path
from typing import List, Optional

from . import __version__
from .compactor import compact
from .database import SqliteHistoryStore
from .env import github_token, load_env, log_level
from .errors import PersistenceError, UpstreamUnavailable
from .logger import LOG_LEVELS, get_logger
from .normalize import normalize_unit
from .sources.github import DEFAULT_OWNER, DEFAULT_PATH, DEFAULT_REPO, GitHubSnapshotSource
from .storage import JsonHistoryStore, save_json
from .tracker import DEFAULT_PAUSE, run_incremental

logger = get_logger()


def _store_from_args(args: argparse.Namespace):
    if args.db:
        return SqliteHistoryStore(Path(args.db))
    return JsonHistoryStore(Path(args.history), Path(args.consumed))


def cmd_build_history(args: argparse.Namespace) -> int:
    source = GitHubSnapshotSource(
        owner=args.owner,
        repo=args.repo,
        path=args.path,
        token=github_token(),
    )
    with closing(_store_from_args(args)) as store:
        summary = run_incremental(store, source, pause=args.pause)
    logger.log_metrics_summary()
    target = args.db or args.history
    print(f"History written to {target} ({summary['units']} académies).")
    return 0


def cmd_compact(args: argparse.Namespace) -> int:
    with closing(_store_from_args(args)) as store:
        history = store.load_history()
        compacted = compact(history)
        store.save(compacted, store.load_consumed())
    before = sum(len(v) for v in history.values())
    after = sum(len(v) for v in compacted.values())
    print(f"Compacted: {before} -> {after} tenures.")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    with closing(_store_from_args(args)) as store:
        history = store.load_history()
    if not history:
        print("History is empty.")
        return 0
    units = sorted(history)
    if args.unit:
        unit = normalize_unit(args.unit)
        if unit not in history:
            print(f"No history for {unit}.")
            return 1
        units = [unit]
    for unit in units:
        print(unit)
        for entry in history[unit]:
            marker = f"{entry['gender_marker']} " if entry.get("gender_marker") else ""
            print(f"  since {entry['since']}: {marker}{entry['name']}")
        print()
    return 0


def cmd_scrape(args: argparse.Namespace) -> int:
    from .scraper import scrape

    results = scrape()
    save_json(Path(args.output), results)
    found = sum(1 for r in results if "nom" in r)
    print(f"Done. {found}/{len(results)} rectors written to {args.output}")
    return 0


def _add_store_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--history", default="history.json", help="Path to history JSON (default: history.json)")
    p.add_argument("--consumed", default=".history-commits.json", help="Path to consumed commit list (default: .history-commits.json)")
    p.add_argument("--db", help="Use a SQLite database instead of the JSON files")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rectorwatch", description="Tenure history of French académie rectors")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None,
                        help="Console log level (default: RECTORWATCH_LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command")

    bld = subparsers.add_parser("build-history", help="Merge new recteurs.json commits into the history")
    _add_store_args(bld)
    bld.add_argument("--owner", default=DEFAULT_OWNER, help="GitHub owner of the snapshot repository")
    bld.add_argument("--repo", default=DEFAULT_REPO, help="GitHub snapshot repository")
    bld.add_argument("--path", default=DEFAULT_PATH, help="File tracked in the repository (default: recteurs.json)")
    bld.add_argument("--pause", type=float, default=DEFAULT_PAUSE, help="Seconds between snapshot downloads")
    bld.set_defaults(func=cmd_build_history)

    cmp_ = subparsers.add_parser("compact", help="Collapse duplicate tenures of a stored history")
    _add_store_args(cmp_)
    cmp_.set_defaults(func=cmd_compact)

    shw = subparsers.add_parser("show", help="Print the stored history")
    _add_store_args(shw)
    shw.add_argument("--unit", help="Only this académie")
    shw.set_defaults(func=cmd_show)

    scr = subparsers.add_parser("scrape", help="Scrape current rectors from education.gouv.fr")
    scr.add_argument("--output", default="recteurs.json", help="Output file (default: recteurs.json)")
    scr.set_defaults(func=cmd_scrape)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    logger.set_level(args.log_level or log_level())

    if args.version:
        print(__version__)
        return 0

    if not hasattr(args, "func"):
        # Bare invocation runs one incremental pass with the default options
        args = parser.parse_args(list(sys.argv[1:] if argv is None else argv) + ["build-history"])

    try:
        return args.func(args)
    except (PersistenceError, UpstreamUnavailable) as e:
        logger.critical(f"Fatal error: {e}", error_type=type(e).__name__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
