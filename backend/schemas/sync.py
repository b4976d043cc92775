"""Request and response schemas for the sync endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TableRow(BaseModel):
    """A requested database row.

    Fields are not validated here: a missing or malformed ``table`` or ``id``
    is reported as an error for that row only.
    """

    table: Any = None
    id: Any = None


class SyncRequest(BaseModel):
    """Files and rows to push from staging to production."""

    files: list[str] = Field(default_factory=list)
    tables: list[TableRow] = Field(default_factory=list)


class LedgerResponse(BaseModel):
    """Per-item outcome messages."""

    success: dict[str, str] = Field(default_factory=dict)
    error: dict[str, str] = Field(default_factory=dict)


class SyncResponse(BaseModel):
    """Ledgers of a sync call."""

    files: LedgerResponse
    db: LedgerResponse
