"""File inventory: recursive scan of a site root with content hashes."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from backend.exceptions import InvalidDirectoryError

logger = logging.getLogger(__name__)

# Dot-entries are skipped, except this one which must travel with the site.
INCLUDED_DOT_FILE = ".htaccess"
CACHE_DIR_PREFIX = "cache"


@dataclass(frozen=True)
class FileRecord:
    """A file found by a scan, keyed by its root-relative POSIX path."""

    relative_path: str
    content_hash: str


def hash_file(file_path: Path) -> str:
    """Compute SHA-256 hash of a file."""
    sha = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha.update(chunk)
    return sha.hexdigest()


def is_excluded(entry: Path) -> bool:
    """Return True if a directory entry must be left out of the inventory.

    Hidden entries are skipped except ``.htaccess``. Directories whose name
    starts with ``cache`` are skipped; files with that prefix are kept.
    """
    name = entry.name
    if name in (".", ".."):
        return True
    if name.startswith(".") and name != INCLUDED_DOT_FILE:
        return True
    return name.startswith(CACHE_DIR_PREFIX) and entry.is_dir()


def scan_inventory(root: Path) -> list[FileRecord]:
    """Recursively list every included file under ``root`` with its hash.

    Entries are visited in name order within each directory so repeated
    scans of an unchanged tree return identical sequences. Symlinked
    directories are not descended into.
    """
    if not root.is_dir():
        raise InvalidDirectoryError(root)
    records: list[FileRecord] = []
    _scan_directory(root, root, records)
    logger.debug("Scanned %d files under %s", len(records), root)
    return records


def _scan_directory(directory: Path, root: Path, records: list[FileRecord]) -> None:
    for item in sorted(directory.iterdir(), key=lambda p: p.name):
        if is_excluded(item):
            continue
        if item.is_file():
            records.append(
                FileRecord(
                    relative_path=item.relative_to(root).as_posix(),
                    content_hash=hash_file(item),
                )
            )
        elif item.is_dir() and not item.is_symlink():
            _scan_directory(item, root, records)
