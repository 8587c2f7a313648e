"""
Sources package - Adapters for cash bid data sources.

Each source module handles:
1. Listing the documents to fetch (one per page or location)
2. Fetching raw CSV/HTML or a rendered DOM
3. Splitting the raw document into rows and extracting bids
"""

from .base import BaseSource, TablePageSource
from .sheets import SheetSource
from .rendered import RenderedPageSource
from .agricharts import AgrichartsSource
from .cashgrid import CashGridSource

__all__ = [
    "BaseSource",
    "TablePageSource",
    "SheetSource",
    "RenderedPageSource",
    "AgrichartsSource",
    "CashGridSource",
]
