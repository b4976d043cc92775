"""Sync API endpoint: push selected staging changes to production."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from backend.api.deps import get_synchronizer, require_sync_token
from backend.schemas.sync import LedgerResponse, SyncRequest, SyncResponse
from backend.services.sync_service import Synchronizer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])

# One sync at a time: concurrent runs against the same production target
# would interleave file copies and row writes.
_sync_lock = asyncio.Lock()


@router.post("", response_model=SyncResponse, dependencies=[Depends(require_sync_token)])
async def sync_changes(
    body: SyncRequest,
    synchronizer: Annotated[Synchronizer, Depends(get_synchronizer)],
) -> SyncResponse:
    """Apply the requested file and row changes and report per-item results."""
    tables = [row.model_dump() for row in body.tables]
    logger.info("Sync requested: %d files, %d rows", len(body.files), len(tables))
    async with _sync_lock:
        report = await synchronizer.sync(body.files, tables)
    return SyncResponse(
        files=LedgerResponse(**report.files.to_dict()),
        db=LedgerResponse(**report.db.to_dict()),
    )
