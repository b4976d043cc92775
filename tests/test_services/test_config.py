"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from backend.config import Settings


class TestSettings:
    def test_default_settings(self) -> None:
        s = Settings(_env_file=None)
        assert s.sync_token == "change-me-in-production"
        assert s.debug is False
        assert s.port == 8000
        assert s.production_prefix == "wp_"
        assert s.staging_prefix == "wp_staging_"

    def test_staging_root_defaults_under_production_root(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, production_root=tmp_path, staging_name="stage")
        assert s.resolved_staging_root == tmp_path / "stage"

    def test_explicit_staging_root(self, tmp_path: Path) -> None:
        s = Settings(_env_file=None, production_root=tmp_path, staging_root=tmp_path / "other")
        assert s.resolved_staging_root == tmp_path / "other"

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STAGING_PREFIX", "stg_")
        monkeypatch.setenv("PORT", "9000")
        s = Settings(_env_file=None)
        assert s.staging_prefix == "stg_"
        assert s.port == 9000

    def test_settings_from_fixture(self, test_settings: Settings) -> None:
        assert test_settings.debug is True
        assert test_settings.resolved_staging_root.is_dir()


class TestRuntimeSecurity:
    def test_default_token_rejected_outside_debug(self) -> None:
        with pytest.raises(ValueError, match="SYNC_TOKEN"):
            Settings(_env_file=None).validate_runtime_security()

    def test_short_token_rejected(self) -> None:
        with pytest.raises(ValueError, match="SYNC_TOKEN"):
            Settings(_env_file=None, sync_token="short").validate_runtime_security()

    def test_debug_allows_default_token(self) -> None:
        Settings(_env_file=None, debug=True).validate_runtime_security()

    def test_strong_token_accepted(self) -> None:
        Settings(_env_file=None, sync_token="x" * 32).validate_runtime_security()

    def test_identical_prefixes_rejected(self) -> None:
        settings = Settings(_env_file=None, debug=True, staging_prefix="wp_")
        with pytest.raises(ValueError, match="STAGING_PREFIX must differ"):
            settings.validate_runtime_security()

    @pytest.mark.parametrize("prefix", ["wp-", "wp_; DROP", "wp staging"])
    def test_unsafe_prefix_rejected(self, prefix: str) -> None:
        settings = Settings(_env_file=None, debug=True, staging_prefix=prefix)
        with pytest.raises(ValueError, match="STAGING_PREFIX"):
            settings.validate_runtime_security()


class TestCliEntry:
    def test_cli_entry_uses_app_settings(self) -> None:
        """cli_entry() should use the global app's settings, not create a new Settings()."""
        from backend.main import app, cli_entry

        original_settings = getattr(app.state, "settings", None)
        app.state.settings = Settings(_env_file=None, host="127.0.0.1", port=9999, debug=True)

        try:
            with patch("uvicorn.run") as mock_run:
                cli_entry()

            mock_run.assert_called_once_with(
                "backend.main:app",
                host="127.0.0.1",
                port=9999,
                reload=True,
            )
        finally:
            if original_settings is None:
                del app.state.settings
            else:
                app.state.settings = original_settings
