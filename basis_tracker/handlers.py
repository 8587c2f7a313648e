"""
Handler definitions for Basis Tracker.

A handler is a named set of sources plus a failure policy. Handlers are
built from SourcesConfig on every invocation so configuration can be
injected per call.

| name              | sources                  | partial failures |
|-------------------|--------------------------|------------------|
| fetch-basis       | agricharts + cash grid   | yes              |
| fetch-sheet       | Google Sheet CSV         | no               |
| fetch-browserless | remote browser page      | no               |
| fetch-rendered    | bundled browser page     | no               |
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config import BrowserConfig, SourcesConfig, TablePageConfig, get_sources_config
from .db import Database
from .errors import ConfigError
from .pipeline import ImportRun
from .sources import (
    AgrichartsSource,
    BaseSource,
    CashGridSource,
    RenderedPageSource,
    SheetSource,
)

logger = logging.getLogger(__name__)


@dataclass
class Handler:
    """A named import run over a fixed set of sources."""
    name: str
    sources: list[BaseSource]
    partial_failures: bool = False


def _require(page: TablePageConfig, setting: str) -> None:
    if not page.is_configured:
        raise ConfigError(f"{setting}_URL and {setting}_ELEVATOR must be set")


def build_fetch_basis(sources: SourcesConfig, browser: Optional[BrowserConfig] = None) -> Handler:
    return Handler(
        name="fetch-basis",
        sources=[AgrichartsSource(sources.agricharts), CashGridSource(sources.cashgrid)],
        partial_failures=True,
    )


def build_fetch_sheet(sources: SourcesConfig, browser: Optional[BrowserConfig] = None) -> Handler:
    _require(sources.sheet, "BASIS_SHEET")
    return Handler(name="fetch-sheet", sources=[SheetSource(sources.sheet)])


def build_fetch_browserless(sources: SourcesConfig, browser: Optional[BrowserConfig] = None) -> Handler:
    _require(sources.remote_page, "BASIS_REMOTE_PAGE")
    return Handler(
        name="fetch-browserless",
        sources=[RenderedPageSource(sources.remote_page, browser_config=browser, remote=True)],
    )


def build_fetch_rendered(sources: SourcesConfig, browser: Optional[BrowserConfig] = None) -> Handler:
    _require(sources.rendered_page, "BASIS_PAGE")
    return Handler(
        name="fetch-rendered",
        sources=[RenderedPageSource(sources.rendered_page, browser_config=browser)],
    )


HANDLERS: dict[str, Callable[..., Handler]] = {
    "fetch-basis": build_fetch_basis,
    "fetch-sheet": build_fetch_sheet,
    "fetch-browserless": build_fetch_browserless,
    "fetch-rendered": build_fetch_rendered,
}


def build_handler(
    name: str,
    sources: Optional[SourcesConfig] = None,
    browser: Optional[BrowserConfig] = None,
) -> Handler:
    """
    Build a handler by name.

    Raises:
        KeyError: for an unknown handler name
        ConfigError: if the handler's sources are not configured
    """
    builder = HANDLERS[name]
    return builder(sources or get_sources_config(), browser)


def invoke(
    name: str,
    db: Optional[Database] = None,
    today: Optional[str] = None,
    sources: Optional[SourcesConfig] = None,
    browser: Optional[BrowserConfig] = None,
) -> tuple[int, dict]:
    """
    Run a handler and build the HTTP status and JSON body.

    Returns:
        (200, summary) on success, (500, {success, error, log}) on failure
    """
    run = ImportRun(db=db, today=today)

    try:
        handler = build_handler(name, sources, browser)
        result = run.run(handler.sources, partial_failures=handler.partial_failures)
    except Exception as e:
        logger.exception(f"Handler {name} failed: {e}")
        return 500, {
            "success": False,
            "error": str(e),
            "log": run.result.log,
        }

    return 200, result.to_response()
