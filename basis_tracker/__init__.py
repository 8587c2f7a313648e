"""
Basis Tracker - daily cash bid importer

Scrapes corn and soybean cash bids from grain elevator websites, normalizes
them into basis entries and stores new ones in Supabase.

Modules:
- config: Configuration, environment variables and location tables
- models: Canonical data models (dataclasses)
- errors: Exception types
- classifier: Row classification heuristic (commodity, cash price, basis)
- db: Supabase integration for storage
- sources: Source adapters (Google Sheet CSV, rendered pages, regex HTML)
- pipeline: Fetch -> extract -> dedupe -> insert orchestration
- handlers: Named handler definitions
- server: Flask HTTP endpoints
- scheduler: APScheduler setup for daily runs
"""

__version__ = "0.1.0"

# Convenient imports
from .models import (
    BasisEntry,
    Bid,
    Commodity,
    ImportResult,
    Location,
    Skip,
)
from .errors import BasisTrackerError, ConfigError, DatastoreError, SourceFetchError
from .classifier import classify_row, detect_commodity, RowClassification
from .pipeline import run_import, ImportRun
from .handlers import build_handler, invoke, HANDLERS

__all__ = [
    # Models
    "BasisEntry",
    "Bid",
    "Commodity",
    "ImportResult",
    "Location",
    "Skip",
    # Errors
    "BasisTrackerError",
    "ConfigError",
    "DatastoreError",
    "SourceFetchError",
    # Classification
    "classify_row",
    "detect_commodity",
    "RowClassification",
    # Pipeline
    "run_import",
    "ImportRun",
    # Handlers
    "build_handler",
    "invoke",
    "HANDLERS",
]
