"""Tests for the relational data store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tests.conftest import fetch_rows, insert_rows

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from backend.datastore import DataStore


class TestIntrospection:
    async def test_primary_key(self, store: DataStore) -> None:
        assert await store.get_primary_key("wp_posts") == "ID"
        assert await store.get_primary_key("wp_options") == "option_name"

    async def test_table_without_primary_key(self, store: DataStore) -> None:
        assert await store.get_primary_key("wp_log") is None

    async def test_missing_table_has_no_primary_key(self, store: DataStore) -> None:
        assert await store.get_primary_key("wp_nope") is None

    async def test_columns_in_declaration_order(self, store: DataStore) -> None:
        assert await store.get_columns("wp_staging_posts") == [
            "ID",
            "post_title",
            "post_status",
            "post_parent",
        ]


class TestRows:
    async def test_get_row_coerces_integer_keys(
        self, store: DataStore, site_engine: AsyncEngine
    ) -> None:
        await insert_rows(site_engine, "wp_posts", {"ID": 5, "post_title": "A"})
        row = await store.get_row("wp_posts", "ID", "5")
        assert row is not None
        assert row["post_title"] == "A"

    async def test_get_row_missing(self, store: DataStore) -> None:
        assert await store.get_row("wp_posts", "ID", 404) is None

    async def test_insert_update_delete(self, store: DataStore, site_engine: AsyncEngine) -> None:
        await store.insert_row("wp_options", {"option_name": "blogname", "option_value": "A"})
        updated = await store.update_row(
            "wp_options", {"option_value": "B"}, "option_name", "blogname"
        )
        assert updated == 1
        assert (await fetch_rows(site_engine, "wp_options"))[0]["option_value"] == "B"
        assert await store.delete_row("wp_options", "option_name", "blogname") == 1
        assert await fetch_rows(site_engine, "wp_options") == []

    async def test_delete_missing_row_affects_nothing(self, store: DataStore) -> None:
        assert await store.delete_row("wp_posts", "ID", 1) == 0

    async def test_insert_unknown_column_raises(self, store: DataStore) -> None:
        with pytest.raises(SQLAlchemyError):
            await store.insert_row("wp_posts", {"ID": 1, "post_title": "A", "bogus": 1})

    async def test_reflecting_missing_table_raises(self, store: DataStore) -> None:
        with pytest.raises(SQLAlchemyError):
            await store.get_row("wp_missing", "ID", 1)
