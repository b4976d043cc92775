"""Process-wide cache of comparer output, invalidated after each sync."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from backend.exceptions import ChangeListError
from backend.schemas.changes import ChangeList, parse_file_changes

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)

FILE_CHANGES_KEY = "stl_file_changes"
DB_CHANGES_KEY = "stl_db_changes"

T = TypeVar("T")


class ChangeCache:
    """In-memory key/value store for computed change lists.

    Thread-safety: safe under asyncio's single-threaded cooperative model;
    get/set/invalidate have no await points. Do NOT share across OS threads
    without external synchronization.
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def invalidate(self, key: str) -> None:
        """Drop a cached value; a missing key is not an error."""
        if self._values.pop(key, None) is not None:
            logger.debug("Invalidated cached %s", key)

    def __contains__(self, key: str) -> bool:
        return key in self._values


class JsonChangeSource(Generic[T]):
    """Comparer output read from a JSON file and cached until invalidated.

    A missing file means the comparer found no changes.
    """

    def __init__(
        self,
        path: Path,
        cache: ChangeCache,
        cache_key: str,
        parse: Callable[[Any], T],
    ) -> None:
        self.path = path
        self.cache = cache
        self.cache_key = cache_key
        self.parse = parse

    def get_changes(self) -> T:
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            return cached  # type: ignore[no-any-return]
        raw: Any = {}
        if self.path.exists():
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                raise ChangeListError(f"Could not read change list {self.path}: {exc}") from exc
        else:
            logger.info("No change list at %s; treating as empty", self.path)
        changes = self.parse(raw)
        self.cache.set(self.cache_key, changes)
        return changes


def file_change_source(path: Path, cache: ChangeCache) -> JsonChangeSource[dict[str, str]]:
    return JsonChangeSource(path, cache, FILE_CHANGES_KEY, parse_file_changes)


def db_change_source(path: Path, cache: ChangeCache) -> JsonChangeSource[ChangeList]:
    return JsonChangeSource(path, cache, DB_CHANGES_KEY, ChangeList.from_raw)
