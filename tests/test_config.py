"""
Tests for Settings validation and the startup catalog check.
"""

from unittest.mock import AsyncMock, patch

import pytest

from bankportal import main
from bankportal.config import Settings
from bankportal.utils.errors import CatalogDriftError


def test_missing_service_role_key(monkeypatch):
    monkeypatch.setattr(Settings, "SUPABASE_SERVICE_ROLE_KEY", "")

    assert Settings.has_service_role() is False
    with pytest.raises(ValueError, match="SUPABASE_SERVICE_ROLE_KEY"):
        Settings.validate_service_role()


def test_missing_anon_key(monkeypatch):
    monkeypatch.setattr(Settings, "SUPABASE_ANON_KEY", "")

    with pytest.raises(ValueError, match="SUPABASE_ANON_KEY"):
        Settings.validate()


def test_jwks_url_derived_from_project_url(monkeypatch):
    monkeypatch.setattr(Settings, "SUPABASE_URL", "https://abc.supabase.co")

    assert Settings().SUPABASE_JWKS_URL == "https://abc.supabase.co/auth/v1/.well-known/jwks.json"


def test_retry_delay_in_seconds(monkeypatch):
    monkeypatch.setattr(Settings, "RETRY_BASE_DELAY_MS", 250)

    assert Settings.retry_base_delay_seconds() == 0.25


class TestCatalogCheck:

    @pytest.fixture
    def enabled(self, monkeypatch):
        monkeypatch.setattr(Settings, "TABLE_CATALOG_CHECK", True)
        monkeypatch.setattr(Settings, "SUPABASE_SERVICE_ROLE_KEY", "service-key")

    @pytest.mark.asyncio
    async def test_skipped_when_disabled(self, monkeypatch):
        monkeypatch.setattr(Settings, "TABLE_CATALOG_CHECK", False)

        with patch("bankportal.main.verify_catalog", new_callable=AsyncMock) as mock_verify:
            await main.check_table_catalog()

        mock_verify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_drift_aborts_outside_development(self, enabled, monkeypatch):
        monkeypatch.setattr(Settings, "ENVIRONMENT", "production")

        with patch("bankportal.main.get_service_role_client"), \
                patch("bankportal.main.verify_catalog", new_callable=AsyncMock,
                      side_effect=CatalogDriftError({"accounts": "missing columns ['x']"})):
            with pytest.raises(CatalogDriftError):
                await main.check_table_catalog()

    @pytest.mark.asyncio
    async def test_drift_only_logged_in_development(self, enabled, monkeypatch):
        monkeypatch.setattr(Settings, "ENVIRONMENT", "development")

        with patch("bankportal.main.get_service_role_client"), \
                patch("bankportal.main.verify_catalog", new_callable=AsyncMock,
                      side_effect=CatalogDriftError({"accounts": "missing columns ['x']"})):
            await main.check_table_catalog()
