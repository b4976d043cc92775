"""Sync orchestration: push selected staging files and rows to production."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from backend.exceptions import EntryNotFoundError, InvalidTableDataError, SyncItemError
from backend.schemas.changes import canonical_id
from backend.services.cache_service import DB_CHANGES_KEY, FILE_CHANGES_KEY
from backend.services.change_locator import locate_change
from backend.services.file_sync_service import apply_file_changes
from backend.services.ledger import ResultLedger
from backend.services.row_sync_service import RowChangeApplier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from backend.datastore import DataStore
    from backend.schemas.changes import ChangeList, RowId

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"[A-Za-z0-9_]+")


class FileChangeSource(Protocol):
    def get_changes(self) -> Mapping[str, str]: ...


class DbChangeSource(Protocol):
    def get_changes(self) -> ChangeList: ...


class CacheInvalidator(Protocol):
    def invalidate(self, key: str) -> None: ...


class PostSyncHook(Protocol):
    async def replace_staging_url_in_live_database(self) -> None: ...


class NullPostSyncHook:
    """Post-sync hook that only logs; URL rewriting is provided by the host site."""

    async def replace_staging_url_in_live_database(self) -> None:
        logger.debug("No staging URL replacer configured; skipping")


@dataclass
class SyncReport:
    """Ledgers of one sync call."""

    files: ResultLedger = field(default_factory=ResultLedger)
    db: ResultLedger = field(default_factory=ResultLedger)

    def to_dict(self) -> dict[str, dict[str, dict[str, str]]]:
        return {"files": self.files.to_dict(), "db": self.db.to_dict()}


def row_key(table: str, row_id: object) -> str:
    """Ledger key of a database row."""
    return f"{table}:{canonical_id(row_id)}"


def invalid_key(index: int) -> str:
    """Ledger key of a malformed row request; never a valid ``table:id`` pair."""
    return f"#invalid:{index}"


def _parse_table_data(table_data: Mapping[str, Any]) -> tuple[str, RowId] | None:
    table = table_data.get("table")
    row_id = table_data.get("id")
    if not isinstance(table, str) or not _TABLE_NAME_RE.fullmatch(table):
        return None
    if isinstance(row_id, bool) or not isinstance(row_id, (str, int)):
        return None
    if isinstance(row_id, str) and not row_id.strip():
        return None
    return table, row_id


class Synchronizer:
    """Applies requested staging changes to production, item by item.

    Not safe for concurrent use against the same production target; the
    caller must serialize sync calls.
    """

    def __init__(
        self,
        *,
        staging_root: Path,
        production_root: Path,
        store: DataStore,
        file_changes: FileChangeSource,
        db_changes: DbChangeSource,
        cache: CacheInvalidator,
        staging_prefix: str,
        production_prefix: str,
        post_sync_hook: PostSyncHook | None = None,
    ) -> None:
        self.staging_root = staging_root
        self.production_root = production_root
        self.file_changes = file_changes
        self.db_changes = db_changes
        self.cache = cache
        self.post_sync_hook = post_sync_hook or NullPostSyncHook()
        self.row_applier = RowChangeApplier(
            store, staging_prefix=staging_prefix, production_prefix=production_prefix
        )

    def sync_files(
        self, files: Iterable[str], changes: Mapping[str, str] | None = None
    ) -> ResultLedger:
        """Copy or delete the requested files; unknown paths are errors.

        ``changes`` defaults to the file comparer's current change list.
        """
        if changes is None:
            changes = self.file_changes.get_changes()
        ledger = apply_file_changes(
            changes,
            self.staging_root,
            self.production_root,
            paths=files,
        )
        self.cache.invalidate(FILE_CHANGES_KEY)
        return ledger

    async def sync_db(
        self, tables: Iterable[Mapping[str, Any]], changes: ChangeList | None = None
    ) -> ResultLedger:
        """Apply the change recorded for each requested ``{table, id}`` pair.

        ``changes`` defaults to the database comparer's current change list.
        The post-sync hook runs once at the end, whatever the outcome of
        the individual rows.
        """
        ledger = ResultLedger()
        if changes is None:
            changes = self.db_changes.get_changes()
        seen: set[str] = set()

        for index, table_data in enumerate(tables):
            parsed = _parse_table_data(table_data)
            if parsed is None:
                ledger.record_failure(invalid_key(index), InvalidTableDataError())
                continue
            table, row_id = parsed
            key = row_key(table, row_id)
            if key in seen:
                continue
            seen.add(key)
            try:
                located = locate_change(changes, table, row_id)
                if located is None:
                    raise EntryNotFoundError(table, row_id)
                logger.debug(
                    "Applying %s %s from %s section %r (stored in %s)",
                    located.record.type,
                    key,
                    located.origin,
                    located.section,
                    located.table,
                )
                message = await self.row_applier.apply(table, row_id, located.record)
            except SyncItemError as exc:
                ledger.record_failure(key, exc)
                continue
            ledger.record_success(key, message)

        self.cache.invalidate(DB_CHANGES_KEY)
        await self.post_sync_hook.replace_staging_url_in_live_database()
        logger.info(
            "Database sync finished: %d succeeded, %d failed",
            len(ledger.success),
            len(ledger.error),
        )
        return ledger

    async def sync(
        self, files: Iterable[str], tables: Iterable[Mapping[str, Any]]
    ) -> SyncReport:
        """Sync files then rows; an empty selection leaves its ledger empty.

        Both change lists are loaded before anything is written, so an
        unreadable list fails the call with production untouched.
        """
        report = SyncReport()
        requested_files = list(files)
        requested_rows = list(tables)
        file_changes = self.file_changes.get_changes() if requested_files else None
        db_changes = self.db_changes.get_changes() if requested_rows else None
        if requested_files:
            report.files = self.sync_files(requested_files, file_changes)
        if requested_rows:
            report.db = await self.sync_db(requested_rows, db_changes)
        return report
