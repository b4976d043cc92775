"""Exception types raised by the synchronization engine.

Convention:
- ``SyncItemError`` and its subclasses describe the failure of a *single*
  file or row. The orchestrator records them in the result ledger and moves
  on to the next item; they never abort a sync call.
- ``InvalidDirectoryError`` and ``ChangeListError`` are precondition
  failures of a whole operation and propagate to the caller.
"""

from __future__ import annotations

from typing import ClassVar


class SyncError(Exception):
    """Base class for all synchronization errors."""


class InvalidDirectoryError(SyncError):
    """Raised when a scan root is not an existing directory."""

    def __init__(self, path: object) -> None:
        super().__init__(f"The specified directory does not exist: {path}")
        self.path = path


class ChangeListError(SyncError, ValueError):
    """Raised when a comparer delivers a change list of unknown shape."""


class SyncItemError(SyncError):
    """Failure of one file or row; recorded in the ledger, never fatal."""

    code: ClassVar[str] = "SyncItemError"


class FileNotInChangeListError(SyncItemError):
    code = "FileNotInChangeList"

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found in change list: {path}")


class UnsafePathError(SyncItemError):
    code = "UnsafePath"

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid file path: {path}")


class SourceFileMissingError(SyncItemError):
    code = "SourceFileMissing"

    def __init__(self, path: str) -> None:
        super().__init__(f"Source file missing in staging: {path}")


class DirectoryCreateError(SyncItemError):
    code = "DirectoryCreateFailed"

    def __init__(self, path: str, reason: object) -> None:
        super().__init__(f"Could not create directory for {path}: {reason}")


class CopyFailedError(SyncItemError):
    code = "CopyFailed"

    def __init__(self, path: str, reason: object) -> None:
        super().__init__(f"Could not copy file {path}: {reason}")


class DeleteFailedError(SyncItemError):
    code = "DeleteFailed"

    def __init__(self, path: str, reason: object) -> None:
        super().__init__(f"Could not delete file {path}: {reason}")


class EntryNotFoundError(SyncItemError):
    code = "EntryNotFoundInChangeList"

    def __init__(self, table: str, row_id: object) -> None:
        super().__init__(f"Entry with ID {row_id} not found in change list for table {table}.")


class PrimaryKeyNotFoundError(SyncItemError):
    code = "PrimaryKeyNotFound"

    def __init__(self, table: str) -> None:
        super().__init__(f"Could not find primary key for table {table}.")


class RowNotFoundInStagingError(SyncItemError):
    code = "RowNotFoundInStaging"

    def __init__(self, table: str, row_id: object) -> None:
        super().__init__(f"Could not find entry with ID {row_id} in staging table {table}.")


class InsertFailedError(SyncItemError):
    code = "InsertFailed"

    def __init__(self, table: str, row_id: object) -> None:
        super().__init__(f"Could not insert entry with ID {row_id} in table {table}.")


class UpdateFailedError(SyncItemError):
    code = "UpdateFailed"

    def __init__(self, table: str, row_id: object) -> None:
        super().__init__(f"Could not update entry with ID {row_id} in table {table}.")


class DeleteRowFailedError(SyncItemError):
    code = "DeleteRowFailed"

    def __init__(self, table: str, row_id: object) -> None:
        super().__init__(f"Could not delete entry with ID {row_id} from table {table}.")


class UnknownChangeTypeError(SyncItemError):
    code = "UnknownChangeType"

    def __init__(self, change_type: object, item: str) -> None:
        super().__init__(f"Unknown change type {change_type!r} for {item}.")


class InvalidTableDataError(SyncItemError):
    code = "InvalidTableData"

    def __init__(self) -> None:
        super().__init__("Invalid table data: both 'table' and 'id' are required.")
