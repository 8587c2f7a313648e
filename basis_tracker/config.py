"""
Configuration module for Basis Tracker.

Loads environment variables and provides configuration constants.
All sensitive values should be in .env file (never commit to git).

Location tables and source URLs live here rather than in the scrapers so
they can be injected (tests, alternate deployments) without touching
source code.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from .models import Commodity, Location

# Load environment variables from .env file
load_dotenv()


@dataclass
class SupabaseConfig:
    """Supabase connection configuration."""
    url: str
    key: str
    table: str = "basis_entries"

    @classmethod
    def from_env(cls) -> "SupabaseConfig":
        return cls(
            url=os.getenv("SUPABASE_URL", ""),
            key=os.getenv("SUPABASE_KEY") or os.getenv("SUPABASE_ANON_KEY", ""),
            table=os.getenv("SUPABASE_TABLE", "basis_entries"),
        )


@dataclass
class BrowserConfig:
    """Headless browser settings (remote service and bundled Chromium)."""
    browserless_token: str = ""
    browserless_url: str = "wss://chrome.browserless.io"

    # Timeouts in milliseconds (Playwright convention)
    navigation_timeout_ms: int = 30000
    widget_delay_ms: int = 5000

    # How many <iframe> sources to follow when the page itself has no bids
    max_iframes: int = 3

    @property
    def remote_endpoint(self) -> str:
        """CDP endpoint for the remote browser service, token included."""
        separator = "&" if "?" in self.browserless_url else "?"
        return f"{self.browserless_url}{separator}token={self.browserless_token}"

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        return cls(
            browserless_token=os.getenv("BROWSERLESS_TOKEN", ""),
            browserless_url=os.getenv("BROWSERLESS_URL", "wss://chrome.browserless.io"),
            navigation_timeout_ms=int(os.getenv("BROWSER_NAV_TIMEOUT_MS", "30000")),
            widget_delay_ms=int(os.getenv("BROWSER_WIDGET_DELAY_MS", "5000")),
            max_iframes=int(os.getenv("BROWSER_MAX_IFRAMES", "3")),
        )


@dataclass
class AppConfig:
    """Main application configuration."""
    # Plain HTTP fetch timeout (seconds)
    request_timeout: int = 10

    # Numeric heuristic: cash prices are quoted in $/bu, basis in cents
    cash_price_range: tuple[float, float] = (2.0, 20.0)
    basis_range: tuple[float, float] = (-200.0, 200.0)
    basis_min_abs: float = 0.5

    # Stored on every inserted entry
    entry_notes: str = "Auto-imported"

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "10")),
            cash_price_range=(
                float(os.getenv("CASH_PRICE_MIN", "2")),
                float(os.getenv("CASH_PRICE_MAX", "20")),
            ),
            basis_range=(
                float(os.getenv("BASIS_MIN", "-200")),
                float(os.getenv("BASIS_MAX", "200")),
            ),
            basis_min_abs=float(os.getenv("BASIS_MIN_ABS", "0.5")),
            entry_notes=os.getenv("ENTRY_NOTES", "Auto-imported"),
        )


# =============================================================================
# SOURCE LOCATION TABLES
# =============================================================================

CORN = [Commodity.CORN]
SOYBEANS = [Commodity.SOYBEANS]

AGRICHARTS_LOCATIONS = [
    Location("ADM Cedar Rapids", 66521, CORN),
    Location("Cargill Cedar Rapids (Corn Mill)", 26279, CORN),
    Location("Cargill Cedar Rapids", 75163, SOYBEANS),
    Location("Shell Rock Soy", 82509, SOYBEANS),
    Location("La Porte City", 64477, CORN),
    Location("Pine Lake Corn Processors", 75160, CORN),
    Location("POET Fairbank", 79809, CORN),
    Location("Sinclair (Mid-Iowa)", 81965, CORN),
]

CASHGRID_LOCATIONS = [
    Location("Vinton (Tama-Benton)", 3076, CORN),
]


@dataclass
class AgrichartsConfig:
    """midiowa.agricharts.com - one page per location, writeBidRow() markup."""
    base_url: str = "https://midiowa.agricharts.com/markets/cash.php?location_filter="
    locations: list[Location] = field(default_factory=lambda: list(AGRICHARTS_LOCATIONS))


@dataclass
class CashGridConfig:
    """tamabentoncoop.com - one grid page for all locations, writeBidCell() markup."""
    url: str = (
        "https://tamabentoncoop.com/markets/cashgrid.php"
        "?basis=1&showenddate=1&dateformat=%25m/%25d/%25y"
    )
    label: str = "Tama-Benton (Vinton)"
    locations: list[Location] = field(default_factory=lambda: list(CASHGRID_LOCATIONS))


@dataclass
class TablePageConfig:
    """
    A page (CSV export or rendered HTML) whose table rows hold bids for one
    elevator, optionally split into sections by header rows.

    sections maps a header keyword (case-insensitive) to the elevator name
    used for the rows that follow it.
    """
    url: str = ""
    elevator_name: str = ""
    label: str = ""
    sections: dict[str, str] = field(default_factory=dict)

    @property
    def is_configured(self) -> bool:
        return bool(self.url and (self.elevator_name or self.sections))


@dataclass
class SourcesConfig:
    """All source definitions used by the handlers."""
    agricharts: AgrichartsConfig = field(default_factory=AgrichartsConfig)
    cashgrid: CashGridConfig = field(default_factory=CashGridConfig)
    sheet: TablePageConfig = field(default_factory=TablePageConfig)
    remote_page: TablePageConfig = field(default_factory=TablePageConfig)
    rendered_page: TablePageConfig = field(default_factory=TablePageConfig)

    @classmethod
    def from_env(cls) -> "SourcesConfig":
        return cls(
            sheet=TablePageConfig(
                url=os.getenv("BASIS_SHEET_URL", ""),
                elevator_name=os.getenv("BASIS_SHEET_ELEVATOR", ""),
                label=os.getenv("BASIS_SHEET_LABEL", "Google Sheet"),
            ),
            remote_page=TablePageConfig(
                url=os.getenv("BASIS_REMOTE_PAGE_URL", ""),
                elevator_name=os.getenv("BASIS_REMOTE_PAGE_ELEVATOR", ""),
                label=os.getenv("BASIS_REMOTE_PAGE_LABEL", "Remote browser page"),
            ),
            rendered_page=TablePageConfig(
                url=os.getenv("BASIS_PAGE_URL", ""),
                elevator_name=os.getenv("BASIS_PAGE_ELEVATOR", ""),
                label=os.getenv("BASIS_PAGE_LABEL", "Rendered page"),
            ),
        )


# Global configuration instances (lazy loaded)
_supabase_config: Optional[SupabaseConfig] = None
_browser_config: Optional[BrowserConfig] = None
_app_config: Optional[AppConfig] = None
_sources_config: Optional[SourcesConfig] = None


def get_supabase_config() -> SupabaseConfig:
    """Get Supabase configuration (cached)."""
    global _supabase_config
    if _supabase_config is None:
        _supabase_config = SupabaseConfig.from_env()
    return _supabase_config


def get_browser_config() -> BrowserConfig:
    """Get headless browser configuration (cached)."""
    global _browser_config
    if _browser_config is None:
        _browser_config = BrowserConfig.from_env()
    return _browser_config


def get_app_config() -> AppConfig:
    """Get app configuration (cached)."""
    global _app_config
    if _app_config is None:
        _app_config = AppConfig.from_env()
    return _app_config


def get_sources_config() -> SourcesConfig:
    """Get source definitions (cached)."""
    global _sources_config
    if _sources_config is None:
        _sources_config = SourcesConfig.from_env()
    return _sources_config
