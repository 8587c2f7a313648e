"""
Rendered page source (headless browser).

Some elevators render their bid tables client-side (DTN/Barchart style
widgets), so a static fetch returns an empty shell. This source loads the
page in a headless Chromium, waits for the network to settle plus a fixed
delay for the widgets, then pulls every table row and iframe src with one
in-page DOM query.

Two browser modes:
- remote: connect to a hosted browser service (Browserless) over CDP
- bundled: launch the locally installed Playwright Chromium

The browser is closed on every exit path.
"""

import logging
from typing import Optional
from playwright.sync_api import sync_playwright, Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from .base import TablePageSource
from ..classifier import detect_commodity
from ..config import BrowserConfig, TablePageConfig, get_browser_config
from ..errors import ConfigError, SourceFetchError
from ..models import FetchTarget, RawDocument

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)

# Runs inside the page: every table row as a list of cell texts, plus iframe sources
EXTRACT_SCRIPT = """
() => ({
    rows: Array.from(document.querySelectorAll('table tr')).map(
        tr => Array.from(tr.querySelectorAll('th, td')).map(cell => (cell.innerText || '').trim())
    ).filter(cells => cells.some(text => text.length > 0)),
    iframes: Array.from(document.querySelectorAll('iframe'))
        .map(frame => frame.src)
        .filter(src => src && src.startsWith('http')),
})
"""

# Rows echoed back in the debug payload
DEBUG_SAMPLE_ROWS = 10


def has_commodity_rows(rows: list[list[str]]) -> bool:
    return any(detect_commodity(" ".join(cells)) for cells in rows)


class RenderedPageSource(TablePageSource):
    """
    Bids rendered into an HTML table by client-side scripts.

    Uses headless browser automation to handle JavaScript-rendered content.
    """

    name = "rendered_page"

    def __init__(
        self,
        page: TablePageConfig,
        browser_config: Optional[BrowserConfig] = None,
        remote: bool = False,
        **kwargs,
    ):
        super().__init__(page, **kwargs)
        self.browser_config = browser_config or get_browser_config()
        self.remote = remote
        if remote:
            self.name = "browserless_page"

    def _open_browser(self, playwright):
        """Connect to the remote service or launch the bundled browser."""
        try:
            if self.remote:
                if not self.browser_config.browserless_token:
                    raise ConfigError("BROWSERLESS_TOKEN must be set for the remote browser")
                logger.info(f"Connecting to remote browser at {self.browser_config.browserless_url}")
                return playwright.chromium.connect_over_cdp(
                    self.browser_config.remote_endpoint,
                    timeout=self.browser_config.navigation_timeout_ms,
                )

            logger.info("Launching bundled headless Chromium")
            return playwright.chromium.launch(headless=True, args=["--no-sandbox"])
        except PlaywrightError as e:
            mode = "remote browser" if self.remote else "browser"
            raise SourceFetchError(f"{self.page.label or self.name}: {mode} launch failed: {e}") from e

    def _load(self, page, url: str, label: str) -> tuple[list[list[str]], list[str]]:
        """Navigate to url and return (table rows, iframe sources)."""
        timeout = self.browser_config.navigation_timeout_ms
        try:
            response = page.goto(url, timeout=timeout, wait_until="networkidle")
        except PlaywrightTimeout as e:
            raise SourceFetchError(f"{label}: navigation timed out after {timeout / 1000:.0f}s") from e
        except PlaywrightError as e:
            raise SourceFetchError(f"{label}: {e}") from e

        if response is not None and not response.ok:
            raise SourceFetchError(f"{label}: HTTP {response.status}")

        # Client-side widgets keep drawing after the network goes idle
        page.wait_for_timeout(self.browser_config.widget_delay_ms)

        result = page.evaluate(EXTRACT_SCRIPT)
        rows = result.get("rows") or []
        iframes = result.get("iframes") or []
        logger.info(f"Extracted {len(rows)} table rows and {len(iframes)} iframes from {url}")
        return rows, iframes

    def fetch_raw(self, target: FetchTarget) -> RawDocument:
        with sync_playwright() as p:
            browser = self._open_browser(p)
            try:
                context = browser.new_context(user_agent=USER_AGENT)
                page = context.new_page()

                rows, iframes = self._load(page, target.url, target.label)
                followed = []

                if not has_commodity_rows(rows):
                    for src in iframes[:self.browser_config.max_iframes]:
                        try:
                            frame_rows, _ = self._load(page, src, f"{target.label} iframe")
                        except SourceFetchError as e:
                            logger.warning(f"Skipping iframe {src}: {e}")
                            continue
                        rows.extend(frame_rows)
                        followed.append(src)
                        if has_commodity_rows(frame_rows):
                            break
            finally:
                browser.close()

        return RawDocument(
            target=target,
            rows=rows,
            iframes=iframes,
            debug={
                "url": target.url,
                "table_rows": len(rows),
                "iframes": iframes,
                "followed_iframes": followed,
                "sample_rows": rows[:DEBUG_SAMPLE_ROWS],
            },
        )

    def to_rows(self, raw: RawDocument) -> list[list[str]]:
        return raw.rows
