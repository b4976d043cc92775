"""Command-line tools for inventorying and cloning a site."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from backend.config import Settings
from backend.database import create_engine, create_service_tables
from backend.exceptions import InvalidDirectoryError
from backend.filesystem.inventory import scan_inventory
from backend.main import configure_logging
from backend.services.snapshot_service import (
    copy_files_to_staging,
    load_file_snapshot,
    record_file_snapshot,
)

logger = logging.getLogger(__name__)


def cmd_scan(args: argparse.Namespace, settings: Settings) -> int:
    """Print the inventory of a directory as JSON."""
    root = Path(args.root) if args.root else settings.production_root
    records = scan_inventory(root)
    print(json.dumps([asdict(record) for record in records], indent=2))
    return 0


async def _snapshot(settings: Settings, show: bool) -> int:
    engine, session_factory = create_engine(settings)
    try:
        await create_service_tables(engine)
        async with session_factory() as session:
            if show:
                snapshot = await load_file_snapshot(session)
                print(json.dumps(snapshot, indent=2, sort_keys=True))
                return 0
            records = scan_inventory(settings.production_root)
            inserted = await record_file_snapshot(session, records)
    finally:
        await engine.dispose()
    print(f"Recorded {inserted} new file hashes ({len(records)} files scanned).")
    return 0


def cmd_snapshot(args: argparse.Namespace, settings: Settings) -> int:
    """Record the production root's file hashes in the snapshot table."""
    return asyncio.run(_snapshot(settings, args.show))


def cmd_clone(args: argparse.Namespace, settings: Settings) -> int:
    """Copy the production root's files into the staging directory."""
    records = scan_inventory(settings.production_root)
    copied = copy_files_to_staging(settings.production_root, records, settings.staging_name)
    print(f"Copied {copied} files to {settings.production_root / settings.staging_name}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stl", description="Staging2Live site tools")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Print the file inventory of a directory")
    scan.add_argument("root", nargs="?", help="Directory to scan (default: production root)")
    scan.set_defaults(func=cmd_scan)

    snapshot = subparsers.add_parser("snapshot", help="Record file hashes of the production root")
    snapshot.add_argument("--show", action="store_true", help="Print the recorded hashes instead")
    snapshot.set_defaults(func=cmd_snapshot)

    clone = subparsers.add_parser("clone", help="Copy the production root into the staging dir")
    clone.set_defaults(func=cmd_clone)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.debug, stream=sys.stderr)
    try:
        result: int = args.func(args, settings)
    except InvalidDirectoryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    return result


if __name__ == "__main__":
    sys.exit(main())
