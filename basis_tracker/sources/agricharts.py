"""
Agricharts cash bid pages (midiowa.agricharts.com).

The cash bid page is rendered by inline script calls, one per delivery
period:

    writeBidRow('Corn', -45, false, false, false, 0.75, 'Mar 2026', ...)

The page takes a location_filter id, so every location is a separate
fetch. Bids are listed nearest delivery first; only the first bid per
commodity is kept.
"""

import re
import logging
from typing import Optional

from .base import BaseSource, inline_scripts, nearest_bids
from ..config import AgrichartsConfig
from ..models import Bid, Commodity, FetchTarget, RawDocument, Skip

logger = logging.getLogger(__name__)

# Captures: commodity name, basis, delivery period
BID_ROW_PATTERN = re.compile(
    r"writeBidRow\('([^']+)',\s*(-?\d+(?:\.\d+)?),(?:[^,]*,){4}\s*'([^']+)'"
)


def commodity_from_name(name: str) -> Optional[Commodity]:
    """Map an agricharts commodity label to a Commodity."""
    name_lower = name.lower()
    if "soybean" in name_lower:
        return Commodity.SOYBEANS
    if "corn" in name_lower and "popcorn" not in name_lower:
        return Commodity.CORN
    return None


class AgrichartsSource(BaseSource):
    """Scraper for agricharts writeBidRow() cash bid pages."""

    name = "agricharts"

    def __init__(self, settings: Optional[AgrichartsConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self.settings = settings or AgrichartsConfig()

    def expected_entries(self) -> int:
        return sum(len(location.commodities) for location in self.settings.locations)

    def targets(self) -> list[FetchTarget]:
        return [
            FetchTarget(url=f"{self.settings.base_url}{location.id}", label=location.name, location=location)
            for location in self.settings.locations
        ]

    def fetch_raw(self, target: FetchTarget) -> RawDocument:
        response = self._get(target.url, target.label)
        return RawDocument(target=target, text=response.text)

    def to_rows(self, raw: RawDocument) -> list[list[str]]:
        """One [name, basis, delivery] row per writeBidRow() call."""
        return [list(match) for match in BID_ROW_PATTERN.findall(inline_scripts(raw.text))]

    def extract(self, raw: RawDocument) -> tuple[list[Bid], list[Skip]]:
        location = raw.target.location
        bids = []

        for name, basis, delivery in self.to_rows(raw):
            commodity = commodity_from_name(name)
            if not location.accepts(commodity):
                continue
            bids.append(Bid(
                elevator_name=location.name,
                commodity=commodity,
                basis_value=float(basis),
                futures_month=delivery.strip(),
                source=self.name,
            ))

        return nearest_bids(bids, [])
