"""Apply file changes from the staging root onto the production root."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from backend.exceptions import (
    CopyFailedError,
    DeleteFailedError,
    DirectoryCreateError,
    FileNotInChangeListError,
    SourceFileMissingError,
    SyncItemError,
    UnknownChangeTypeError,
    UnsafePathError,
)
from backend.schemas.changes import ChangeType
from backend.services.ledger import ResultLedger

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

FILE_COPIED = "File copied successfully."
FILE_DELETED = "File deleted successfully."
FILE_ALREADY_DELETED = "File already deleted."


def _resolve_safe_path(root: Path, file_path: str) -> Path:
    """Resolve a relative path within root, rejecting traversal attempts."""
    target = file_path.lstrip("/")
    if not target:
        raise UnsafePathError(file_path)
    full_path = root / target
    try:
        inside = full_path.resolve().is_relative_to(root.resolve())
    except (OSError, ValueError) as exc:
        raise UnsafePathError(file_path) from exc
    if not inside:
        raise UnsafePathError(file_path)
    return full_path


def _copy_file(file_path: str, source: Path, destination: Path) -> str:
    if not source.is_file():
        raise SourceFileMissingError(file_path)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(file_path, exc) from exc
    try:
        shutil.copy2(source, destination)
    except OSError as exc:
        raise CopyFailedError(file_path, exc) from exc
    return FILE_COPIED


def _delete_file(file_path: str, destination: Path) -> str:
    if not destination.exists() and not destination.is_symlink():
        return FILE_ALREADY_DELETED
    try:
        destination.unlink()
    except OSError as exc:
        raise DeleteFailedError(file_path, exc) from exc
    return FILE_DELETED


def apply_file_change(
    file_path: str,
    change_type: str,
    staging_root: Path,
    production_root: Path,
) -> str:
    """Apply one file change and return the success message.

    Raises a ``SyncItemError`` subclass describing the failure otherwise.
    """
    destination = _resolve_safe_path(production_root, file_path)
    if change_type in (ChangeType.ADDED, ChangeType.MODIFIED):
        source = _resolve_safe_path(staging_root, file_path)
        return _copy_file(file_path, source, destination)
    if change_type == ChangeType.DELETED:
        return _delete_file(file_path, destination)
    raise UnknownChangeTypeError(change_type, file_path)


def apply_file_changes(
    changes: Mapping[str, str],
    staging_root: Path,
    production_root: Path,
    paths: Iterable[str] | None = None,
) -> ResultLedger:
    """Apply file changes, recording each outcome in a ledger.

    With ``paths`` given only those files are applied and any path absent
    from ``changes`` is an error; otherwise every entry of ``changes`` is.
    """
    ledger = ResultLedger()
    requested = list(dict.fromkeys(paths)) if paths is not None else list(changes)
    for file_path in requested:
        try:
            if file_path not in changes:
                raise FileNotInChangeListError(file_path)
            message = apply_file_change(
                file_path, changes[file_path], staging_root, production_root
            )
        except SyncItemError as exc:
            ledger.record_failure(file_path, exc)
            continue
        ledger.record_success(file_path, message)
    logger.info(
        "File sync finished: %d succeeded, %d failed", len(ledger.success), len(ledger.error)
    )
    return ledger
