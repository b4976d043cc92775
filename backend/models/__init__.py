"""SQLAlchemy ORM models owned by Staging2Live."""

from backend.models.base import Base
from backend.models.snapshot import FileHashSnapshot

__all__ = [
    "Base",
    "FileHashSnapshot",
]
