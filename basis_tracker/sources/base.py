"""
Base source class for basis data.

All sources inherit from BaseSource and implement:
- targets(): The documents to fetch
- fetch_raw(): Get the raw document from the source
- to_rows(): Split a raw document into rows of text cells

The default extract() runs every row through the shared classifier.
Sources whose markup already carries structured bids override extract().
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional
import requests
from bs4 import BeautifulSoup

from ..classifier import classify_row, extract_numbers
from ..config import AppConfig, TablePageConfig, get_app_config
from ..errors import SourceFetchError
from ..models import Bid, FetchTarget, Location, RawDocument, Skip

logger = logging.getLogger(__name__)


class BaseSource(ABC):
    """
    Abstract base class for basis sources.

    Provides common functionality:
    - HTTP requests with a browser-like user agent
    - Error handling (non-2xx and transport errors become SourceFetchError)
    - Row classification into bids and skips

    Subclasses must implement:
    - targets(): The list of documents to fetch
    - fetch_raw(): Fetch one target
    - to_rows(): Split a raw document into rows
    """

    name: str  # Subclass must set this

    def __init__(self, config: Optional[AppConfig] = None, session: Optional[requests.Session] = None):
        """Initialize the source."""
        self.config = config or get_app_config()
        self.session = session or requests.Session()

        # Set a reasonable user agent
        self.session.headers.update({
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) BasisTracker/1.0",
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,text/csv,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        })

    def _get(self, url: str, label: str, **kwargs) -> requests.Response:
        """
        Make a GET request with error handling.

        Args:
            url: The URL to fetch
            label: Human-readable name used in error messages
            **kwargs: Additional arguments to pass to requests.get()

        Returns:
            Response object

        Raises:
            SourceFetchError: on a non-2xx status or a transport error
        """
        kwargs.setdefault("timeout", self.config.request_timeout)
        try:
            response = self.session.get(url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise SourceFetchError(f"{label}: {e}") from e

        if not response.ok:
            logger.error(f"Request failed for {url}: HTTP {response.status_code}")
            raise SourceFetchError(f"{label}: HTTP {response.status_code}")
        return response

    def expected_entries(self) -> Optional[int]:
        """Number of entries a complete run should save, if known."""
        return None

    @abstractmethod
    def targets(self) -> list[FetchTarget]:
        """
        List the documents this source needs.

        Returns:
            FetchTarget per page (one per location for per-location sites)
        """
        pass

    @abstractmethod
    def fetch_raw(self, target: FetchTarget) -> RawDocument:
        """
        Fetch one target.

        Raises:
            SourceFetchError: if the document cannot be retrieved
        """
        pass

    @abstractmethod
    def to_rows(self, raw: RawDocument) -> list[list[str]]:
        """
        Split a raw document into rows of text cells.

        Returns:
            List of rows, each a list of cell strings
        """
        pass

    def elevator_for(self, raw: RawDocument) -> str:
        """Elevator name that rows of this document belong to."""
        if raw.target.location:
            return raw.target.location.name
        return raw.target.label

    def extract(self, raw: RawDocument) -> tuple[list[Bid], list[Skip]]:
        """
        Turn a raw document into bids and skips.

        Rows without a commodity are ignored; commodity rows without a basis
        value become skips.
        """
        bids, skips = self.classify_rows(self.to_rows(raw), self.elevator_for(raw), raw.target.location)
        return nearest_bids(bids, skips)

    def classify_rows(
        self,
        rows: list[list[str]],
        elevator_name: str,
        location: Optional[Location] = None,
    ) -> tuple[list[Bid], list[Skip]]:
        """Classify rows that all belong to one elevator."""
        bids: list[Bid] = []
        skips: list[Skip] = []

        for cells in rows:
            result = classify_row(cells, self.config)
            if result.commodity is None:
                continue
            if location and not location.accepts(result.commodity):
                continue

            if result.basis_value is None:
                skips.append(Skip(elevator_name, result.commodity, result.reason))
                continue

            bids.append(Bid(
                elevator_name=elevator_name,
                commodity=result.commodity,
                basis_value=result.basis_value,
                cash_price=result.cash_price,
                futures_month=result.futures_month,
                source=self.name,
            ))

        return bids, skips


class TablePageSource(BaseSource):
    """
    Base for sources that publish a plain table for one elevator.

    Header rows (rows with a configured section keyword and no bid numbers)
    switch the elevator name for the rows that follow.
    """

    def __init__(self, page: TablePageConfig, **kwargs):
        super().__init__(**kwargs)
        self.page = page

    def targets(self) -> list[FetchTarget]:
        return [FetchTarget(url=self.page.url, label=self.page.label or self.name)]

    def elevator_for(self, raw: RawDocument) -> str:
        return self.page.elevator_name or raw.target.label

    def section_for(self, cells: list[str]) -> Optional[str]:
        """Elevator name if this row is a configured section header."""
        if not self.page.sections:
            return None
        text = " ".join(cells).lower()
        for keyword, elevator_name in self.page.sections.items():
            if keyword.lower() in text:
                return elevator_name
        return None

    def extract(self, raw: RawDocument) -> tuple[list[Bid], list[Skip]]:
        if not self.page.sections:
            return super().extract(raw)

        bids: list[Bid] = []
        skips: list[Skip] = []
        elevator_name = self.elevator_for(raw)
        section_rows: list[list[str]] = []

        for cells in self.to_rows(raw):
            header = self.section_for(cells)
            if header and not extract_numbers(cells):
                # Flush rows collected under the previous header
                found, skipped = self.classify_rows(section_rows, elevator_name)
                bids.extend(found)
                skips.extend(skipped)
                elevator_name = header
                section_rows = []
                continue
            section_rows.append(cells)

        found, skipped = self.classify_rows(section_rows, elevator_name)
        bids.extend(found)
        skips.extend(skipped)
        return nearest_bids(bids, skips)


def nearest_bids(bids: list[Bid], skips: list[Skip]) -> tuple[list[Bid], list[Skip]]:
    """
    Keep only the first bid per (elevator, commodity).

    Sources list delivery periods nearest-first, so the first bid is the
    spot quote. Skips for a pair that did produce a bid are dropped.
    """
    kept: dict[tuple[str, str], Bid] = {}
    for bid in bids:
        kept.setdefault((bid.elevator_name, bid.commodity.value), bid)

    remaining = []
    seen_skips = set()
    for skip in skips:
        key = (skip.elevator_name, skip.commodity.value if skip.commodity else "")
        if key in kept or key in seen_skips:
            continue
        seen_skips.add(key)
        remaining.append(skip)

    return list(kept.values()), remaining


def inline_scripts(html: str) -> str:
    """
    Concatenated text of every inline <script> block in html.

    Falls back to the whole document when the page has no inline scripts,
    so regex sources still see markup that was served without <script> tags.
    """
    soup = BeautifulSoup(html, "html.parser")
    scripts = [tag.string for tag in soup.find_all("script") if tag.string]
    if not scripts:
        return html
    return "\n".join(scripts)
