"""
Main Pipeline module for Basis Tracker.

Orchestrates one import run over a set of sources:
1. Fetch → Raw CSV/HTML/rendered rows from every source target
2. Extract → Rows classified into bids (or skips)
3. Dedupe → Skip bids already stored for today
4. Insert → Save new basis entries to Supabase
5. Summarize → JSON-ready ImportResult

Every handler uses this same pipeline; handlers only differ in which
sources they pass in.
"""

import json
import logging
from typing import Optional

from .config import get_app_config
from .db import Database, get_db
from .errors import DatastoreError, SourceFetchError
from .models import Bid, ImportResult, Skip, today_iso
from .sources.base import BaseSource

logger = logging.getLogger(__name__)


class ImportRun:
    """
    A single invocation of the import pipeline.

    The run log is kept on the result so it can be returned to the caller
    even when the run fails part way.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        today: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        self._db = db
        self.today = today or today_iso()
        self.notes = notes or get_app_config().entry_notes
        self.result = ImportResult()
        self._handled: set[tuple[str, str, str]] = set()

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = get_db()
        return self._db

    def note(self, message: str) -> None:
        """Append a line to the run log."""
        self.result.log.append(message)
        logger.info(message.strip())

    def skip(self, skip: Skip) -> None:
        self.result.skipped.append(skip)
        logger.info(f"Skipped {skip}")

    def error(self, message: str) -> None:
        self.result.errors.append(message)
        logger.warning(message)

    # =========================================================================
    # PIPELINE STAGES
    # =========================================================================

    def save_bid(self, bid: Bid) -> None:
        """Dedupe-check and insert one bid."""
        entry = bid.to_entry(self.today, self.notes)
        commodity = entry.commodity.value

        if entry.key in self._handled or self.db.entry_exists(self.today, entry.commodity, entry.elevator_name):
            self._handled.add(entry.key)
            self.skip(Skip(
                entry.elevator_name,
                entry.commodity,
                f"already saved for {self.today}",
                duplicate=True,
            ))
            return
        self._handled.add(entry.key)

        try:
            self.db.insert_entry(entry)
        except DatastoreError as e:
            self.error(f"{entry.elevator_name} {commodity}: {e}")
            return

        self.result.saved.append(entry)
        self.note(
            f"  ✓ {entry.elevator_name} | {commodity} | {entry.basis_value:g}¢ "
            f"({entry.futures_month or '—'})"
        )

    def process_source(self, source: BaseSource, partial_failures: bool) -> None:
        """Fetch, extract and save every target of one source."""
        for target in source.targets():
            self.note(f"Fetching {target.label}...")
            try:
                raw = source.fetch_raw(target)
            except SourceFetchError as e:
                if not partial_failures:
                    raise
                self.error(str(e))
                continue

            if raw.debug:
                if self.result.debug is None:
                    self.result.debug = {}
                self.result.debug[target.label] = raw.debug

            bids, skips = source.extract(raw)
            for skip in skips:
                self.skip(skip)
            for bid in bids:
                try:
                    self.save_bid(bid)
                except DatastoreError as e:
                    # Existence check failed; the insert was never attempted
                    self.error(f"{bid.elevator_name} {bid.commodity.value}: {e}")

            if not bids:
                self.note("  ⚠ No matching bids found")

    def run(self, sources: list[BaseSource], partial_failures: bool = True) -> ImportResult:
        """
        Run every source and build the summary.

        Args:
            sources: Source adapters to run, in order
            partial_failures: Record fetch failures and carry on (multi-source
                handlers) instead of propagating them

        Returns:
            ImportResult with saved/skipped/errors and a summary message
        """
        logger.info(f"Starting import for {self.today} with {len(sources)} source(s)")

        for source in sources:
            self.process_source(source, partial_failures)

        expected = [source.expected_entries() for source in sources]
        saved = len(self.result.saved)
        if expected and all(count is not None for count in expected):
            self.result.message = f"Saved {saved} of {sum(expected)} expected entries."
        else:
            self.result.message = f"Saved {saved} entries."

        logger.info(
            f"Import complete: {saved} saved, {len(self.result.skipped)} skipped, "
            f"{len(self.result.errors)} errors"
        )
        return self.result


def run_import(
    sources: list[BaseSource],
    db: Optional[Database] = None,
    today: Optional[str] = None,
    partial_failures: bool = True,
) -> ImportResult:
    """Run the import pipeline once over the given sources."""
    return ImportRun(db=db, today=today).run(sources, partial_failures=partial_failures)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """CLI entry point for running handlers from the command line."""
    import argparse
    from .handlers import HANDLERS, invoke

    parser = argparse.ArgumentParser(description="Basis Tracker Import")
    parser.add_argument(
        "--handler",
        action="append",
        choices=sorted(HANDLERS),
        help="Handler to run (repeatable)"
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Run every handler"
    )
    parser.add_argument(
        "--show",
        metavar="DATE",
        help="Print the entries stored for DATE (YYYY-MM-DD) and exit"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level"
    )

    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if args.show:
        for entry in get_db().get_entries(args.show):
            print(json.dumps(entry.to_dict()))
        return

    names = sorted(HANDLERS) if args.all else (args.handler or [])
    if not names:
        parser.print_help()
        return

    for name in names:
        status, body = invoke(name)
        print(f"{name} [{status}]: {json.dumps(body, indent=2)}")


if __name__ == "__main__":
    main()
