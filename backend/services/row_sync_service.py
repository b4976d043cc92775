"""Apply a located row change from the staging schema onto the production schema."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from backend.exceptions import (
    DeleteRowFailedError,
    InsertFailedError,
    PrimaryKeyNotFoundError,
    RowNotFoundInStagingError,
    UnknownChangeTypeError,
    UpdateFailedError,
)
from backend.schemas.changes import ChangeType

if TYPE_CHECKING:
    from typing import Any

    from backend.datastore import DataStore
    from backend.schemas.changes import ChangeRecord, RowId

logger = logging.getLogger(__name__)

# Requested table names that are stored in another table.
REQUEST_TABLE_ALIASES = {"attachment_meta": "postmeta"}


class RowChangeApplier:
    """Copies, updates or deletes single production rows.

    Each operation commits on its own; a failure never rolls back rows
    applied before it. The primary key is discovered per call from the
    production table.
    """

    def __init__(self, store: DataStore, *, staging_prefix: str, production_prefix: str) -> None:
        self.store = store
        self.staging_prefix = staging_prefix
        self.production_prefix = production_prefix

    async def apply(self, table: str, row_id: RowId, change: ChangeRecord) -> str:
        """Apply ``change`` to the row ``row_id`` of ``table``; return the success message.

        Raises a ``SyncItemError`` subclass on failure.
        """
        actual_table = REQUEST_TABLE_ALIASES.get(table, table)
        production_table = self.production_prefix + actual_table
        staging_table = self.staging_prefix + actual_table

        try:
            primary_key = await self.store.get_primary_key(production_table)
        except SQLAlchemyError as exc:
            logger.debug("Primary key lookup failed for %s: %s", production_table, exc)
            primary_key = None
        if primary_key is None:
            raise PrimaryKeyNotFoundError(actual_table)

        if change.type == ChangeType.ADDED:
            return await self._insert(
                actual_table, production_table, staging_table, primary_key, row_id
            )
        if change.type == ChangeType.MODIFIED:
            return await self._update(
                actual_table, production_table, staging_table, primary_key, row_id
            )
        if change.type == ChangeType.DELETED:
            return await self._delete(actual_table, production_table, primary_key, row_id)
        raise UnknownChangeTypeError(change.type, f"entry with ID {row_id} in table {actual_table}")

    async def _read_staging_row(
        self, actual_table: str, staging_table: str, primary_key: str, row_id: RowId
    ) -> dict[str, Any]:
        try:
            row = await self.store.get_row(staging_table, primary_key, row_id)
        except (SQLAlchemyError, KeyError) as exc:
            logger.debug("Reading %s from %s failed: %s", row_id, staging_table, exc)
            row = None
        if row is None:
            raise RowNotFoundInStagingError(actual_table, row_id)
        return row

    async def _insert(
        self,
        actual_table: str,
        production_table: str,
        staging_table: str,
        primary_key: str,
        row_id: RowId,
    ) -> str:
        row = await self._read_staging_row(actual_table, staging_table, primary_key, row_id)
        try:
            columns = await self.store.get_columns(staging_table)
            # NULL columns are left to the production defaults.
            values = {column: row[column] for column in columns if row.get(column) is not None}
            await self.store.insert_row(production_table, values)
        except SQLAlchemyError as exc:
            logger.debug("Insert into %s failed: %s", production_table, exc)
            raise InsertFailedError(actual_table, row_id) from exc
        return f"Entry with ID {row_id} inserted successfully in table {actual_table}."

    async def _update(
        self,
        actual_table: str,
        production_table: str,
        staging_table: str,
        primary_key: str,
        row_id: RowId,
    ) -> str:
        row = await self._read_staging_row(actual_table, staging_table, primary_key, row_id)
        values = {column: value for column, value in row.items() if column != primary_key}
        if values:
            try:
                await self.store.update_row(production_table, values, primary_key, row_id)
            except (SQLAlchemyError, KeyError) as exc:
                logger.debug("Update of %s failed: %s", production_table, exc)
                raise UpdateFailedError(actual_table, row_id) from exc
        return f"Entry with ID {row_id} updated successfully in table {actual_table}."

    async def _delete(
        self, actual_table: str, production_table: str, primary_key: str, row_id: RowId
    ) -> str:
        try:
            await self.store.delete_row(production_table, primary_key, row_id)
        except (SQLAlchemyError, KeyError) as exc:
            logger.debug("Delete from %s failed: %s", production_table, exc)
            raise DeleteRowFailedError(actual_table, row_id) from exc
        return f"Entry with ID {row_id} deleted successfully from table {actual_table}."
