"""
Tests for environment-driven configuration.

Run with:
    pytest tests/test_config.py -v
"""

from basis_tracker.config import (
    AppConfig,
    BrowserConfig,
    SourcesConfig,
    SupabaseConfig,
    TablePageConfig,
)
from basis_tracker.models import BasisEntry, Commodity, Location


class TestSupabaseConfig:
    """Tests for SupabaseConfig"""

    def test_anon_key_fallback(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")

        config = SupabaseConfig.from_env()

        assert config.url == "https://x.supabase.co"
        assert config.key == "anon"
        assert config.table == "basis_entries"


class TestBrowserConfig:
    """Tests for BrowserConfig"""

    def test_remote_endpoint(self):
        assert BrowserConfig(browserless_token="t").remote_endpoint == "wss://chrome.browserless.io?token=t"
        config = BrowserConfig(browserless_token="t", browserless_url="wss://b.test?stealth=true")
        assert config.remote_endpoint == "wss://b.test?stealth=true&token=t"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BROWSERLESS_TOKEN", "secret")
        monkeypatch.setenv("BROWSER_NAV_TIMEOUT_MS", "10000")

        config = BrowserConfig.from_env()

        assert config.browserless_token == "secret"
        assert config.navigation_timeout_ms == 10000
        assert config.widget_delay_ms == 5000


class TestAppConfig:
    """Tests for AppConfig"""

    def test_ranges_from_env(self, monkeypatch):
        monkeypatch.setenv("CASH_PRICE_MAX", "25")
        monkeypatch.setenv("BASIS_MIN_ABS", "1")

        config = AppConfig.from_env()

        assert config.cash_price_range == (2.0, 25.0)
        assert config.basis_min_abs == 1.0
        assert config.basis_range == (-200.0, 200.0)


class TestSourcesConfig:
    """Tests for SourcesConfig"""

    def test_default_location_tables(self):
        config = SourcesConfig()

        assert len(config.agricharts.locations) == 8
        assert config.cashgrid.locations[0].id == 3076

    def test_sheet_from_env(self, monkeypatch):
        monkeypatch.setenv("BASIS_SHEET_URL", "https://docs.google.com/spreadsheets/d/abc/edit")
        monkeypatch.setenv("BASIS_SHEET_ELEVATOR", "Heartland Co-op")

        config = SourcesConfig.from_env()

        assert config.sheet.is_configured
        assert config.sheet.elevator_name == "Heartland Co-op"

    def test_page_needs_url_and_elevator(self):
        assert not TablePageConfig(url="https://x.test").is_configured
        assert TablePageConfig(url="https://x.test", sections={"dysart": "Dysart"}).is_configured


class TestModels:
    """Tests for model helpers"""

    def test_location_accepts(self):
        location = Location("Shell Rock Soy", 82509, [Commodity.SOYBEANS])

        assert location.accepts(Commodity.SOYBEANS)
        assert not location.accepts(Commodity.CORN)
        assert not location.accepts(None)

    def test_entry_from_dict(self):
        row = {
            "id": 12,
            "date": "2026-03-02",
            "commodity": "soybeans",
            "elevator_name": "Cargill Cedar Rapids",
            "basis_value": "-80",
            "cash_price": None,
            "futures_month": "Mar 2026",
            "notes": "Auto-imported",
        }

        entry = BasisEntry.from_dict(row)

        assert entry.commodity == Commodity.SOYBEANS
        assert entry.basis_value == -80.0
        assert entry.key == ("2026-03-02", "soybeans", "Cargill Cedar Rapids")
