"""
Google Sheets CSV source.

Some elevators publish their bids in a public Google Sheet. The sheet's
CSV export is a plain static fetch, so no browser is needed.
"""

import csv
import io
import re
import logging

from .base import TablePageSource
from ..models import FetchTarget, RawDocument

logger = logging.getLogger(__name__)

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([A-Za-z0-9_-]+)")
GID_PATTERN = re.compile(r"[#&?]gid=(\d+)")


def export_url(url: str) -> str:
    """
    Convert a sheet share/edit URL into its CSV export URL.

    URLs that already point at an export (or are not sheet URLs) are
    returned unchanged.
    """
    if "format=csv" in url or "output=csv" in url:
        return url

    sheet_match = SHEET_ID_PATTERN.search(url)
    if not sheet_match:
        return url

    export = f"https://docs.google.com/spreadsheets/d/{sheet_match.group(1)}/export?format=csv"
    gid_match = GID_PATTERN.search(url)
    if gid_match:
        export += f"&gid={gid_match.group(1)}"
    return export


def split_csv(text: str) -> list[list[str]]:
    """
    Split CSV text into rows of trimmed cells.

    Handles quoted cells containing commas, doubled quotes and line breaks.
    Blank lines are dropped.
    """
    rows = []
    for row in csv.reader(io.StringIO(text.lstrip("﻿"))):
        cells = [cell.strip() for cell in row]
        if any(cells):
            rows.append(cells)
    return rows


class SheetSource(TablePageSource):
    """Bids published as a public Google Sheet, fetched as CSV."""

    name = "google_sheet"

    def targets(self) -> list[FetchTarget]:
        return [FetchTarget(url=export_url(self.page.url), label=self.page.label or "Google Sheet")]

    def fetch_raw(self, target: FetchTarget) -> RawDocument:
        response = self._get(target.url, target.label)
        logger.info(f"Fetched {len(response.text)} bytes of CSV from {target.url}")
        return RawDocument(target=target, text=response.text)

    def to_rows(self, raw: RawDocument) -> list[list[str]]:
        return split_csv(raw.text)
