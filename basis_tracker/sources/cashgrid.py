"""
Cash grid pages (tamabentoncoop.com).

One grid page carries every location. Each cell is an inline script call:

    writeBidCell(-38, ..., 'c=2&l=3076&d=H26', ..., quotes['ZCH26'])

The location id sits in the cell's query string and the commodity is only
identifiable from the futures symbol: ZC = corn, ZS = soybeans.
"""

import re
import logging
from typing import Optional

from .base import BaseSource, inline_scripts, nearest_bids
from ..config import CashGridConfig
from ..models import Bid, Commodity, FetchTarget, RawDocument, Skip

logger = logging.getLogger(__name__)

# Captures: basis, location id, futures symbol
BID_CELL_PATTERN = re.compile(
    r"writeBidCell\((-?\d+(?:\.\d+)?),(?:[^,]*,){4}\s*'c=\d+&l=(\d+)&[^']*',(?:[^,]*,){1}\s*quotes\['(Z[A-Z]+\d+)'\]"
)

SYMBOL_PREFIXES: dict[str, Commodity] = {
    "ZC": Commodity.CORN,
    "ZS": Commodity.SOYBEANS,
}


def commodity_from_symbol(symbol: str) -> Optional[Commodity]:
    """Map a futures symbol (e.g. ZCH26) to a Commodity."""
    return SYMBOL_PREFIXES.get(symbol[:2].upper())


class CashGridSource(BaseSource):
    """Scraper for writeBidCell() cash grid pages."""

    name = "cashgrid"

    def __init__(self, settings: Optional[CashGridConfig] = None, **kwargs):
        super().__init__(**kwargs)
        self.settings = settings or CashGridConfig()

    def expected_entries(self) -> int:
        return sum(len(location.commodities) for location in self.settings.locations)

    def targets(self) -> list[FetchTarget]:
        return [FetchTarget(url=self.settings.url, label=self.settings.label)]

    def fetch_raw(self, target: FetchTarget) -> RawDocument:
        response = self._get(target.url, target.label)
        return RawDocument(target=target, text=response.text)

    def to_rows(self, raw: RawDocument) -> list[list[str]]:
        """One [basis, location id, symbol] row per writeBidCell() call."""
        return [list(match) for match in BID_CELL_PATTERN.findall(inline_scripts(raw.text))]

    def extract(self, raw: RawDocument) -> tuple[list[Bid], list[Skip]]:
        locations = {location.id: location for location in self.settings.locations}
        bids = []

        for basis, location_id, symbol in self.to_rows(raw):
            location = locations.get(int(location_id))
            if location is None:
                continue

            commodity = commodity_from_symbol(symbol)
            if not location.accepts(commodity):
                continue

            bids.append(Bid(
                elevator_name=location.name,
                commodity=commodity,
                basis_value=float(basis),
                futures_month=symbol,
                source=self.name,
            ))

        return nearest_bids(bids, [])
