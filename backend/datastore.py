"""Relational data store used to read staging rows and write production rows.

Tables are reflected at call time, so any table of either schema can be
addressed by name. Every write runs in its own transaction.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, MetaData, Table, delete, insert, inspect, select, update

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?\d+")


def _coerce_key(column: Column[Any], value: object) -> object:
    """Convert an integer-looking key to int when the column stores integers."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is int and isinstance(value, str) and _INTEGER_RE.fullmatch(value.strip()):
        return int(value)
    return value


async def _reflect(conn: AsyncConnection, table: str) -> Table:
    def _load(sync_conn: Connection) -> Table:
        return Table(table, MetaData(), autoload_with=sync_conn)

    return await conn.run_sync(_load)


class DataStore:
    """Row-level access to the site database through a SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    async def get_primary_key(self, table: str) -> str | None:
        """Return the first primary-key column of ``table``, or None if it has none."""

        def _inspect(sync_conn: Connection) -> list[str]:
            inspector = inspect(sync_conn)
            if not inspector.has_table(table):
                return []
            return list(inspector.get_pk_constraint(table).get("constrained_columns") or [])

        async with self.engine.connect() as conn:
            columns = await conn.run_sync(_inspect)
        return columns[0] if columns else None

    async def get_columns(self, table: str) -> list[str]:
        """Return the column names of ``table`` in declaration order."""

        def _inspect(sync_conn: Connection) -> list[str]:
            return [column["name"] for column in inspect(sync_conn).get_columns(table)]

        async with self.engine.connect() as conn:
            return await conn.run_sync(_inspect)

    async def get_row(self, table: str, column: str, value: object) -> dict[str, Any] | None:
        """Fetch the first row whose ``column`` equals ``value``."""
        async with self.engine.connect() as conn:
            reflected = await _reflect(conn, table)
            key = reflected.c[column]
            result = await conn.execute(
                select(reflected).where(key == _coerce_key(key, value)).limit(1)
            )
            row = result.mappings().first()
        return dict(row) if row is not None else None

    async def insert_row(self, table: str, values: Mapping[str, Any]) -> None:
        async with self.engine.begin() as conn:
            reflected = await _reflect(conn, table)
            await conn.execute(insert(reflected).values(dict(values)))

    async def update_row(
        self, table: str, values: Mapping[str, Any], key_column: str, key_value: object
    ) -> int:
        """Update rows matching the key; returns the number of affected rows."""
        async with self.engine.begin() as conn:
            reflected = await _reflect(conn, table)
            key = reflected.c[key_column]
            result = await conn.execute(
                update(reflected).where(key == _coerce_key(key, key_value)).values(dict(values))
            )
        return result.rowcount

    async def delete_row(self, table: str, key_column: str, key_value: object) -> int:
        """Delete rows matching the key; returns the number of affected rows."""
        async with self.engine.begin() as conn:
            reflected = await _reflect(conn, table)
            key = reflected.c[key_column]
            result = await conn.execute(delete(reflected).where(key == _coerce_key(key, key_value)))
        return result.rowcount
