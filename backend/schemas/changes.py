"""Change-list shapes delivered by the file and database comparers."""

from __future__ import annotations

import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend.exceptions import ChangeListError

_INTEGER_RE = re.compile(r"[+-]?\d+")

# Keys of a raw database change list that hold grouped shapes; every other
# key is a flat ``table -> records`` list.
POST_TYPE_GROUPS_KEY = "post_type_groups"
CONTENT_GROUPS_KEY = "content_groups"


class ChangeType(StrEnum):
    """Kind of change applied to a file or a database row."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


RowId = str | int


def canonical_id(value: object) -> str:
    """Normalize a row identifier for equality checks.

    Integers and integer-looking strings compare by numeric value
    (``7 == "7" == "007"``); any other string compares exactly after
    stripping surrounding whitespace.
    """
    if isinstance(value, bool):
        raise TypeError("Row identifiers cannot be booleans")
    if isinstance(value, int):
        return str(value)
    text = str(value).strip()
    if _INTEGER_RE.fullmatch(text):
        return str(int(text))
    return text


class ChangeRecord(BaseModel):
    """One changed row. ``type`` stays a plain string so that unknown kinds
    reach the applier and are reported per item instead of failing the load."""

    model_config = ConfigDict(extra="allow")

    type: str
    id: RowId

    @property
    def canonical_id(self) -> str:
        return canonical_id(self.id)


class ChangeGroup(BaseModel):
    """Logical group of related changes, split into table sections."""

    model_config = ConfigDict(extra="allow")

    changes: dict[str, list[ChangeRecord]] = Field(default_factory=dict)


class ChangeList(BaseModel):
    """All change-list shapes a database comparer may produce at once."""

    post_type_groups: dict[str, list[ChangeGroup]] = Field(default_factory=dict)
    content_groups: list[ChangeGroup] = Field(default_factory=list)
    tables: dict[str, list[ChangeRecord]] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> ChangeList:
        """Parse the comparer's raw mapping, where flat tables sit beside the group keys."""
        if not isinstance(raw, Mapping):
            raise ChangeListError(f"Change list must be a mapping, got {type(raw).__name__}")
        payload = {
            POST_TYPE_GROUPS_KEY: raw.get(POST_TYPE_GROUPS_KEY) or {},
            CONTENT_GROUPS_KEY: raw.get(CONTENT_GROUPS_KEY) or [],
            "tables": {
                key: value
                for key, value in raw.items()
                if key not in (POST_TYPE_GROUPS_KEY, CONTENT_GROUPS_KEY)
            },
        }
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise ChangeListError(f"Malformed database change list: {exc}") from exc


def parse_file_changes(raw: Mapping[str, Any]) -> dict[str, str]:
    """Validate a ``relative path -> change type`` mapping from the file comparer."""
    if not isinstance(raw, Mapping):
        raise ChangeListError(f"File change list must be a mapping, got {type(raw).__name__}")
    changes: dict[str, str] = {}
    for path, change_type in raw.items():
        if not isinstance(path, str) or not isinstance(change_type, str):
            raise ChangeListError(f"Malformed file change entry: {path!r} -> {change_type!r}")
        changes[path] = change_type
    return changes
