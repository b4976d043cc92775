"""Health check endpoint."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.deps import get_session, get_settings
from backend.config import Settings
from backend.version import VERSION

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    production_tables: int
    staging_tables: int


def count_prefixed_tables(
    table_names: list[str], production_prefix: str, staging_prefix: str
) -> tuple[int, int]:
    """Count production and staging site tables by prefix.

    A table matching both prefixes belongs to the longer one.
    """
    production = staging = 0
    for name in table_names:
        matches_staging = name.startswith(staging_prefix)
        matches_production = name.startswith(production_prefix)
        if matches_staging and matches_production:
            if len(staging_prefix) >= len(production_prefix):
                staging += 1
            else:
                production += 1
        elif matches_staging:
            staging += 1
        elif matches_production:
            production += 1
    return production, staging


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Report database reachability and whether both site schemas are present."""

    def _table_names(sync_session: Session) -> list[str]:
        return inspect(sync_session.connection()).get_table_names()

    db_status = "ok"
    production_tables = staging_tables = 0
    try:
        names = await session.run_sync(_table_names)
    except SQLAlchemyError:
        logger.warning("Health check database query failed", exc_info=True)
        db_status = "error"
    else:
        production_tables, staging_tables = count_prefixed_tables(
            names, settings.production_prefix, settings.staging_prefix
        )
        if not production_tables or not staging_tables:
            logger.warning(
                "Site schema incomplete: %d production, %d staging tables",
                production_tables,
                staging_tables,
            )
            db_status = "missing_tables"

    return HealthResponse(
        status="ok" if db_status == "ok" else "degraded",
        version=VERSION,
        database=db_status,
        production_tables=production_tables,
        staging_tables=staging_tables,
    )
