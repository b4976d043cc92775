"""Application configuration loaded from environment variables."""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_SYNC_TOKEN = "change-me-in-production"
_PREFIX_RE = re.compile(r"[A-Za-z0-9_]*")


class Settings(BaseSettings):
    """Staging2Live application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False
    sync_token: str = _DEFAULT_SYNC_TOKEN

    # Database (holds both the staging and the production schema)
    database_url: str = "sqlite+aiosqlite:///data/db/staging2live.db"
    production_prefix: str = "wp_"
    staging_prefix: str = "wp_staging_"

    # Paths
    production_root: Path = Path("./site")
    staging_name: str = "staging"
    staging_root: Path | None = None

    # Change lists written by the comparer collaborators
    file_changes_path: Path = Path("./data/file_changes.json")
    db_changes_path: Path = Path("./data/db_changes.json")

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    @property
    def resolved_staging_root(self) -> Path:
        """Staging document root, defaulting to a directory under the production root."""
        if self.staging_root is not None:
            return self.staging_root
        return self.production_root / self.staging_name

    def validate_runtime_security(self) -> None:
        """Validate settings that would make a sync unsafe."""
        violations: list[str] = []
        for name in ("production_prefix", "staging_prefix"):
            if not _PREFIX_RE.fullmatch(getattr(self, name)):
                violations.append(f"{name.upper()} must contain only letters, digits and '_'")
        if self.production_prefix == self.staging_prefix:
            violations.append("STAGING_PREFIX must differ from PRODUCTION_PREFIX")

        if not self.debug and (
            self.sync_token == _DEFAULT_SYNC_TOKEN or len(self.sync_token) < 32
        ):
            violations.append("SYNC_TOKEN must be overridden with a high-entropy value (>=32 chars)")

        if violations:
            joined = "; ".join(violations)
            raise ValueError(f"Insecure configuration: {joined}")
