"""Locate the change record for a requested ``(table, id)`` in a change list.

Shapes are searched newest first: post-type groups, then legacy content
groups, then flat per-table lists. The first matching record wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from backend.schemas.changes import canonical_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from backend.schemas.changes import ChangeGroup, ChangeList, ChangeRecord, RowId

# Section labels that stand for rows of a canonical table.
SECTION_ALIASES: dict[str, frozenset[str]] = {
    "posts": frozenset({"attachments", "child_posts"}),
    "postmeta": frozenset({"attachment_meta"}),
}
CANONICAL_TABLES: dict[str, str] = {
    alias: table for table, aliases in SECTION_ALIASES.items() for alias in aliases
}


class ChangeOrigin(StrEnum):
    POST_TYPE_GROUPS = "post_type_groups"
    CONTENT_GROUPS = "content_groups"
    TABLES = "tables"


@dataclass(frozen=True)
class LocatedChange:
    """A change record together with where it was found."""

    record: ChangeRecord
    origin: ChangeOrigin
    section: str

    @property
    def table(self) -> str:
        """Canonical table the section's rows belong to."""
        return canonical_table(self.section)


def canonical_table(name: str) -> str:
    """Map an alias section label to the table that actually stores its rows."""
    return CANONICAL_TABLES.get(name, name)


def section_matches(section: str, table: str) -> bool:
    """True if a section holds rows of the requested table."""
    return section == table or section in SECTION_ALIASES.get(table, frozenset())


def _find_record(records: Iterable[ChangeRecord], wanted: str) -> ChangeRecord | None:
    for record in records:
        if record.canonical_id == wanted:
            return record
    return None


def _search_groups(
    groups: Iterable[ChangeGroup], table: str, wanted: str
) -> tuple[str, ChangeRecord] | None:
    for group in groups:
        for section, records in group.changes.items():
            if not section_matches(section, table):
                continue
            record = _find_record(records, wanted)
            if record is not None:
                return section, record
    return None


def _search_post_type_groups(
    post_type_groups: Mapping[str, list[ChangeGroup]], table: str, wanted: str
) -> tuple[str, ChangeRecord] | None:
    for groups in post_type_groups.values():
        found = _search_groups(groups, table, wanted)
        if found is not None:
            return found
    return None


def locate_change(changes: ChangeList, table: str, row_id: RowId) -> LocatedChange | None:
    """Return the first change recorded for ``table``/``row_id``, or None."""
    wanted = canonical_id(row_id)

    found = _search_post_type_groups(changes.post_type_groups, table, wanted)
    if found is not None:
        return LocatedChange(record=found[1], origin=ChangeOrigin.POST_TYPE_GROUPS, section=found[0])

    found = _search_groups(changes.content_groups, table, wanted)
    if found is not None:
        return LocatedChange(record=found[1], origin=ChangeOrigin.CONTENT_GROUPS, section=found[0])

    record = _find_record(changes.tables.get(table, ()), wanted)
    if record is not None:
        return LocatedChange(record=record, origin=ChangeOrigin.TABLES, section=table)
    return None
