"""Per-item result ledger returned by every sync call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from backend.exceptions import SyncItemError

logger = logging.getLogger(__name__)


@dataclass
class ResultLedger:
    """Success and error messages keyed by item (a path, or ``table:id``).

    An item lives in at most one of the two maps; recording it again moves
    it to the map of the latest outcome.
    """

    success: dict[str, str] = field(default_factory=dict)
    error: dict[str, str] = field(default_factory=dict)

    def record_success(self, key: str, message: str) -> None:
        self.error.pop(key, None)
        self.success[key] = message

    def record_error(self, key: str, message: str) -> None:
        self.success.pop(key, None)
        self.error[key] = message

    def record_failure(self, key: str, exc: SyncItemError) -> None:
        """Record a per-item exception and log it."""
        logger.warning("Sync item %s failed (%s): %s", key, exc.code, exc)
        self.record_error(key, str(exc))

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"success": dict(self.success), "error": dict(self.error)}
