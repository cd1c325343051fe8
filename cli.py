from __future__ import annotations

import argparse
import json
import logging
import sys

from svu.adapters import get_adapters
from svu.db import init_db, latest_events, log_event
from svu.manifest import ManifestError, dump_manifest, load_manifest
from svu.reconciler import Reconciler
from svu.settings import settings


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)-7s %(message)s",
        stream=sys.stderr,
    )
    # Keep per-request noise out of the run log.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Bundled service version updater")
    p.add_argument("--manifest", default=settings.manifest_path, help="Path to versions.json")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_upd = sub.add_parser("update", help="Check upstreams and update the manifest")
    s_upd.add_argument("--dry-run", action="store_true", help="Report changes without writing anything")
    s_upd.add_argument("--only", action="append", metavar="SERVICE", help="Restrict to a service (repeatable)")

    sub.add_parser("services", help="Show the pinned versions")

    s_ev = sub.add_parser("events", help="Show journaled events (needs SVU_DB_PATH)")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)
    _setup_logging(args.verbose)

    if args.cmd == "update":
        try:
            adapters = get_adapters(args.only)
        except KeyError as e:
            p.error(str(e.args[0]))
        init_db()
        try:
            result = Reconciler(manifest_path=args.manifest, adapters=adapters, dry_run=args.dry_run).run()
        except ManifestError as e:
            log_event("ERROR", f"Update failed: {e}")
            return 1
        except Exception as e:
            log_event("ERROR", f"Update failed: {type(e).__name__}: {e}")
            return 1
        _print(result.report())
        return 0

    if args.cmd == "services":
        try:
            _print(dump_manifest(load_manifest(args.manifest)))
        except ManifestError as e:
            log_event("ERROR", str(e))
            return 1
        return 0

    if args.cmd == "events":
        _print(latest_events(limit=args.limit))
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
