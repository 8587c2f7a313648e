"""
Row classification for Basis Tracker.

Turns a row of free-text table cells into a commodity plus cash price,
basis and futures month. Sources that publish plain tables (CSV exports,
rendered HTML) all go through classify_row(); the numeric heuristic is:

- cash price: first number inside the cash-price range ($/bu, default 2-20)
- basis: first remaining number outside that range, with |n| > 0.5 and
  inside the basis range (cents, default -200..200)
- futures month: the last "Month Year" pattern in the row

The ranges are tuned to current market levels and are configurable via
AppConfig.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .config import AppConfig, get_app_config
from .models import Commodity

logger = logging.getLogger(__name__)

NO_BASIS_REASON = "Could not identify basis value"


# =============================================================================
# KEYWORD MAPPINGS FOR COMMODITY DETECTION
# =============================================================================

# Checked before anything else; a popcorn row is never corn
EXCLUDED_KEYWORDS = ["popcorn"]

COMMODITY_KEYWORDS: dict[Commodity, list[str]] = {
    Commodity.CORN: ["corn"],
    Commodity.SOYBEANS: ["soybean", "soy bean", "beans"],
}

NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d{1,4})?|\.\d{1,4})$")

# Characters stripped from a token before number matching
STRIP_CHARS = "$¢,\"'"

# Full month names or their abbreviations only, so "Decorah 25" is no month
MONTH_YEAR_PATTERN = re.compile(
    r"\b(Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?"
    r"|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?\s*'?\s*(\d{4}|\d{2})\b",
    re.IGNORECASE,
)


@dataclass
class RowClassification:
    """Result of classifying a single row."""
    commodity: Optional[Commodity] = None
    cash_price: Optional[float] = None
    basis_value: Optional[float] = None
    futures_month: Optional[str] = None
    numbers: list[float] = field(default_factory=list)

    @property
    def reason(self) -> Optional[str]:
        """Why the row cannot become an entry, or None if it can."""
        if self.commodity is None:
            return "No commodity found"
        if self.basis_value is None:
            return NO_BASIS_REASON
        return None


def detect_commodity(text: str) -> Optional[Commodity]:
    """
    Detect the commodity named in a piece of text.

    Returns None for text mentioning no tracked commodity, and for any
    text containing an excluded keyword (popcorn).
    """
    text_lower = text.lower()

    if any(keyword in text_lower for keyword in EXCLUDED_KEYWORDS):
        return None

    for commodity, keywords in COMMODITY_KEYWORDS.items():
        if any(keyword in text_lower for keyword in keywords):
            return commodity

    return None


def parse_number(token: str) -> Optional[float]:
    """
    Parse a single token as a signed decimal (at most 4 decimal places).

    An accounting-style "(35)" is -35; unbalanced or signed parentheses
    are rejected.
    """
    cleaned = token.strip()
    negative = len(cleaned) > 2 and cleaned.startswith("(") and cleaned.endswith(")")
    if negative:
        cleaned = cleaned[1:-1]
    cleaned = cleaned.strip(STRIP_CHARS).replace(",", "").replace("$", "").replace("¢", "")
    if not cleaned or not NUMBER_PATTERN.match(cleaned):
        return None
    if negative:
        if cleaned[0] in "+-":
            return None
        return -float(cleaned)
    return float(cleaned)


def extract_numbers(cells: Iterable[str]) -> list[float]:
    """Extract every numeric token from a row, in order."""
    numbers = []
    for cell in cells:
        if not cell:
            continue
        for token in cell.split():
            value = parse_number(token)
            if value is not None:
                numbers.append(value)
    return numbers


def find_futures_month(cells: Iterable[str]) -> Optional[str]:
    """
    Return the last month-name + year pattern in a row (e.g. "Mar 26").

    Cells are matched one at a time; a month and a year in neighbouring
    cells are not a futures month.
    """
    found = None
    for cell in cells:
        if not cell:
            continue
        matches = list(MONTH_YEAR_PATTERN.finditer(cell))
        if matches:
            found = re.sub(r"\s+", " ", matches[-1].group(0)).strip()
    return found


def _in_range(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] <= value <= bounds[1]


def assign_fields(numbers: list[float], config: AppConfig) -> tuple[Optional[float], Optional[float]]:
    """
    Split a row's numbers into (cash_price, basis_value).

    A value inside the cash-price range is always preferred as cash price,
    so such values are never taken as basis.
    """
    cash_price = None
    cash_index = None
    for index, value in enumerate(numbers):
        if _in_range(value, config.cash_price_range):
            cash_price = value
            cash_index = index
            break

    basis_value = None
    for index, value in enumerate(numbers):
        if index == cash_index:
            continue
        if _in_range(value, config.cash_price_range):
            continue
        if abs(value) > config.basis_min_abs and _in_range(value, config.basis_range):
            basis_value = value
            break

    return cash_price, basis_value


def classify_row(cells: list[str], config: Optional[AppConfig] = None) -> RowClassification:
    """
    Classify a row of text cells.

    Args:
        cells: Cell texts of one table/CSV row
        config: Heuristic ranges (defaults to the app config)

    Returns:
        RowClassification; commodity is None for non-commodity rows
    """
    config = config or get_app_config()
    text = " ".join(cell for cell in cells if cell)

    commodity = detect_commodity(text)
    if commodity is None:
        return RowClassification()

    # Month-year tokens ("Mar 26") would otherwise read as numbers
    numbers = extract_numbers(MONTH_YEAR_PATTERN.sub(" ", cell) for cell in cells if cell)
    cash_price, basis_value = assign_fields(numbers, config)

    result = RowClassification(
        commodity=commodity,
        cash_price=cash_price,
        basis_value=basis_value,
        futures_month=find_futures_month(cells),
        numbers=numbers,
    )
    logger.debug(f"Classified row {cells!r}: {result}")
    return result
