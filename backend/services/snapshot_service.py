"""File-hash snapshots and the staging clone taken when a staging site is created."""

from __future__ import annotations

import logging
import shutil
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select

from backend.models.snapshot import FileHashSnapshot

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession

    from backend.filesystem.inventory import FileRecord

logger = logging.getLogger(__name__)


async def record_file_snapshot(session: AsyncSession, records: Iterable[FileRecord]) -> int:
    """Store file hashes for paths not recorded yet; existing rows are kept.

    Returns the number of newly recorded files.
    """
    result = await session.execute(select(FileHashSnapshot.file_path))
    known = set(result.scalars().all())
    recorded_at = datetime.now(UTC).isoformat()
    inserted = 0
    for record in records:
        if record.relative_path in known:
            continue
        session.add(
            FileHashSnapshot(
                file_path=record.relative_path,
                hash=record.content_hash,
                recorded_at=recorded_at,
            )
        )
        known.add(record.relative_path)
        inserted += 1
    await session.commit()
    logger.info("Recorded %d new file hashes (%d known)", inserted, len(known))
    return inserted


async def load_file_snapshot(session: AsyncSession) -> dict[str, str]:
    """Return the recorded ``relative path -> hash`` map."""
    result = await session.execute(select(FileHashSnapshot.file_path, FileHashSnapshot.hash))
    return {file_path: file_hash for file_path, file_hash in result.all()}


def copy_files_to_staging(root: Path, records: Iterable[FileRecord], staging_name: str) -> int:
    """Copy every inventoried file under ``root/staging_name``.

    Sources removed since the scan are skipped. Returns the number of
    copied files.
    """
    target_root = root / staging_name
    target_root.mkdir(parents=True, exist_ok=True)
    copied = 0
    for record in records:
        source = root / record.relative_path
        if not source.is_file():
            logger.warning("Skipping %s: no longer present", record.relative_path)
            continue
        destination = target_root / record.relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
        copied += 1
    logger.info("Copied %d files to %s", copied, target_root)
    return copied
