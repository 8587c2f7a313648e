"""
Data models for Basis Tracker.

Defines the canonical dataclasses every source normalizes into. The only
persisted entity is BasisEntry; the rest describe a single import run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from enum import Enum


class Commodity(str, Enum):
    """Commodities tracked by the importer."""
    CORN = "corn"
    SOYBEANS = "soybeans"


@dataclass
class Location:
    """One elevator/location row of a source's location table."""
    name: str
    id: Optional[int] = None
    commodities: list[Commodity] = field(default_factory=lambda: [Commodity.CORN, Commodity.SOYBEANS])

    def accepts(self, commodity: Optional[Commodity]) -> bool:
        return commodity is not None and commodity in self.commodities


def today_iso() -> str:
    """Current UTC day in YYYY-MM-DD form."""
    return datetime.now(timezone.utc).date().isoformat()


@dataclass
class BasisEntry:
    """
    Canonical representation of a basis quote.

    At most one entry exists per (date, commodity, elevator_name). Entries
    are created by an import run and never mutated afterwards.
    """
    date: str
    commodity: Commodity
    elevator_name: str
    basis_value: float
    cash_price: Optional[float] = None
    futures_month: Optional[str] = None
    notes: str = "Auto-imported"

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.date, self.commodity.value, self.elevator_name)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "date": self.date,
            "commodity": self.commodity.value,
            "elevator_name": self.elevator_name,
            "basis_value": self.basis_value,
            "cash_price": self.cash_price,
            "futures_month": self.futures_month,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BasisEntry":
        """Create from dictionary (e.g., from database)."""
        return cls(
            date=data["date"],
            commodity=Commodity(data["commodity"]),
            elevator_name=data["elevator_name"],
            basis_value=float(data["basis_value"]),
            cash_price=float(data["cash_price"]) if data.get("cash_price") is not None else None,
            futures_month=data.get("futures_month"),
            notes=data.get("notes", ""),
        )


@dataclass
class Bid:
    """A quote extracted from a source, not yet checked or stored."""
    elevator_name: str
    commodity: Commodity
    basis_value: float
    cash_price: Optional[float] = None
    futures_month: Optional[str] = None
    source: str = ""

    def to_entry(self, date: str, notes: str) -> BasisEntry:
        return BasisEntry(
            date=date,
            commodity=self.commodity,
            elevator_name=self.elevator_name,
            basis_value=self.basis_value,
            cash_price=self.cash_price,
            futures_month=self.futures_month,
            notes=notes,
        )


@dataclass
class Skip:
    """
    A non-fatal rejection recorded in the run summary.

    Serialized as one line of text, e.g. "Dysart soybeans: Could not
    identify basis value" or "Dysart corn already saved for 2026-03-02".
    """
    elevator_name: str
    commodity: Optional[Commodity]
    reason: str
    duplicate: bool = False

    def __str__(self) -> str:
        subject = self.elevator_name
        if self.commodity:
            subject = f"{subject} {self.commodity.value}"
        if self.duplicate:
            return f"{subject} {self.reason}"
        return f"{subject}: {self.reason}"


@dataclass
class FetchTarget:
    """One document a source needs to fetch."""
    url: str
    label: str
    location: Optional[Location] = None


@dataclass
class RawDocument:
    """
    Raw content returned by a source fetch.

    Static sources fill text; rendered sources fill rows (one cell list per
    table row) and iframes (src attributes found on the page).
    """
    target: FetchTarget
    text: str = ""
    rows: list[list[str]] = field(default_factory=list)
    iframes: list[str] = field(default_factory=list)
    debug: dict = field(default_factory=dict)


@dataclass
class ImportResult:
    """Summary of one handler invocation, serialized as the HTTP response."""
    success: bool = True
    message: str = ""
    log: list[str] = field(default_factory=list)
    saved: list[BasisEntry] = field(default_factory=list)
    skipped: list[Skip] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    debug: Optional[dict] = None

    def to_response(self) -> dict:
        data = {
            "success": self.success,
            "message": self.message,
            "log": self.log,
            "saved": [entry.to_dict() for entry in self.saved],
            "skipped": [str(skip) for skip in self.skipped],
            "errors": self.errors,
        }
        if self.debug:
            data["debug"] = self.debug
        return data
