"""Property-based tests for change-list lookup invariants."""

from __future__ import annotations

from typing import Any

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from backend.schemas.changes import ChangeList, canonical_id
from backend.services.change_locator import ChangeOrigin, locate_change, section_matches

PROPERTY_SETTINGS = settings(
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)

_SECTION = st.sampled_from(["posts", "attachments", "child_posts", "postmeta", "attachment_meta"])
_TABLE = st.sampled_from(["posts", "postmeta", "options"])
_ID = st.one_of(st.integers(min_value=0, max_value=20), st.integers(0, 20).map(str))
_RECORD = st.fixed_dictionaries(
    {"type": st.sampled_from(["added", "modified", "deleted"]), "id": _ID}
)
_GROUP = st.fixed_dictionaries(
    {"changes": st.dictionaries(_SECTION, st.lists(_RECORD, max_size=4), max_size=3)}
)
_RAW = st.fixed_dictionaries(
    {
        "post_type_groups": st.dictionaries(
            st.sampled_from(["post", "page", "product"]), st.lists(_GROUP, max_size=2), max_size=2
        ),
        "content_groups": st.lists(_GROUP, max_size=3),
    },
    optional={
        "posts": st.lists(_RECORD, max_size=4),
        "options": st.lists(_RECORD, max_size=4),
    },
)


def _grouped_ids(groups: list[dict[str, Any]], table: str) -> set[str]:
    return {
        canonical_id(record["id"])
        for group in groups
        for section, records in group["changes"].items()
        if section_matches(section, table)
        for record in records
    }


class TestLocateChangeProperties:
    @PROPERTY_SETTINGS
    @given(raw=_RAW, table=_TABLE, row_id=_ID)
    def test_located_record_matches_request(
        self, raw: dict[str, Any], table: str, row_id: int | str
    ) -> None:
        located = locate_change(ChangeList.from_raw(raw), table, row_id)
        if located is None:
            return
        assert located.record.canonical_id == canonical_id(row_id)
        assert section_matches(located.section, table)

    @PROPERTY_SETTINGS
    @given(raw=_RAW, table=_TABLE, row_id=_ID)
    def test_newest_shape_wins(self, raw: dict[str, Any], table: str, row_id: int | str) -> None:
        located = locate_change(ChangeList.from_raw(raw), table, row_id)
        wanted = canonical_id(row_id)
        newest = [group for groups in raw["post_type_groups"].values() for group in groups]
        flat_ids = {canonical_id(record["id"]) for record in raw.get(table, [])}

        if wanted in _grouped_ids(newest, table):
            assert located is not None
            assert located.origin == ChangeOrigin.POST_TYPE_GROUPS
        elif wanted in _grouped_ids(raw["content_groups"], table):
            assert located is not None
            assert located.origin == ChangeOrigin.CONTENT_GROUPS
        elif wanted in flat_ids:
            assert located is not None
            assert located.origin == ChangeOrigin.TABLES
        else:
            assert located is None
