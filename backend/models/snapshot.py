"""File-hash snapshot model."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base


class FileHashSnapshot(Base):
    """Content hash of a file as recorded when the staging copy was taken."""

    __tablename__ = "stl_filehash"

    file_path: Mapped[str] = mapped_column(Text, primary_key=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)
    recorded_at: Mapped[str] = mapped_column(Text, nullable=False)
