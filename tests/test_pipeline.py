"""
Tests for the import pipeline (dedupe, insert, error handling).

Run with:
    pytest tests/test_pipeline.py -v
"""

import re
import warnings
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import httpx
import pytest

from basis_tracker.config import AppConfig, SupabaseConfig
from basis_tracker.db import Database
from basis_tracker.errors import DatastoreError, SourceFetchError
from basis_tracker.models import FetchTarget, RawDocument
from basis_tracker.pipeline import ImportRun, run_import
from basis_tracker.sources.base import BaseSource

from conftest import FakeDatabase

TODAY = "2026-03-02"


class StubSource(BaseSource):
    """Serves canned rows per target label; labels in failures raise."""

    name = "stub"

    def __init__(self, documents, failures=(), expected=None):
        super().__init__(config=AppConfig(), session=MagicMock())
        self.documents = documents
        self.failures = set(failures)
        self.expected = expected

    def expected_entries(self):
        return self.expected

    def targets(self):
        labels = list(self.documents) + [label for label in self.failures if label not in self.documents]
        return [FetchTarget(url=f"https://stub.test/{label}", label=label) for label in labels]

    def fetch_raw(self, target):
        if target.label in self.failures:
            raise SourceFetchError(f"{target.label}: HTTP 500")
        return RawDocument(target=target, rows=self.documents[target.label])

    def to_rows(self, raw):
        return raw.rows


class TestImportRun:
    """Tests for ImportRun"""

    def test_saves_new_entries(self, fake_db):
        source = StubSource({"Dysart": [["Corn", "4.05", "-35", "Mar 26"], ["Soybeans", "10.20", "-75"]]})

        result = run_import([source], db=fake_db, today=TODAY)

        assert result.success
        assert result.message == "Saved 2 entries."
        assert [(e.elevator_name, e.commodity.value, e.basis_value) for e in result.saved] == [
            ("Dysart", "corn", -35.0),
            ("Dysart", "soybeans", -75.0),
        ]
        assert fake_db.rows[0] == {
            "date": TODAY,
            "commodity": "corn",
            "elevator_name": "Dysart",
            "basis_value": -35.0,
            "cash_price": 4.05,
            "futures_month": "Mar 26",
            "notes": "Auto-imported",
        }
        assert "Fetching Dysart..." in result.log
        assert "  ✓ Dysart | corn | -35¢ (Mar 26)" in result.log

    def test_rerun_same_day_is_idempotent(self, fake_db):
        documents = {"Dysart": [["Corn", "4.05", "-35"]]}

        first = run_import([StubSource(documents)], db=fake_db, today=TODAY)
        second = run_import([StubSource(documents)], db=fake_db, today=TODAY)

        assert len(first.saved) == 1
        assert second.saved == []
        assert len(fake_db.rows) == 1
        assert second.to_response()["skipped"] == [f"Dysart corn already saved for {TODAY}"]

    def test_next_day_inserts_again(self, fake_db):
        documents = {"Dysart": [["Corn", "4.05", "-35"]]}

        run_import([StubSource(documents)], db=fake_db, today=TODAY)
        run_import([StubSource(documents)], db=fake_db, today="2026-03-03")

        assert len(fake_db.rows) == 2

    def test_same_key_from_two_sources_saved_once(self, fake_db):
        documents = {"Dysart": [["Corn", "4.05", "-35"]]}

        result = run_import([StubSource(documents), StubSource(documents)], db=fake_db, today=TODAY)

        assert len(result.saved) == 1
        assert len(result.skipped) == 1

    def test_row_without_basis_is_skipped_not_fatal(self, fake_db):
        source = StubSource({"Dysart": [["Soybeans", "10.20", "10.95"], ["Corn", "4.05", "-35"]]})

        result = run_import([source], db=fake_db, today=TODAY)

        assert len(result.saved) == 1
        assert result.to_response()["skipped"] == ["Dysart soybeans: Could not identify basis value"]

    def test_fetch_failure_recorded_with_partial_failures(self, fake_db):
        source = StubSource({"Dysart": [["Corn", "4.05", "-35"]]}, failures=["Traer"])

        result = run_import([source], db=fake_db, today=TODAY, partial_failures=True)

        assert result.errors == ["Traer: HTTP 500"]
        assert len(result.saved) == 1

    def test_fetch_failure_propagates_without_partial_failures(self, fake_db):
        source = StubSource({}, failures=["Traer"])
        run = ImportRun(db=fake_db, today=TODAY)

        with pytest.raises(SourceFetchError):
            run.run([source], partial_failures=False)

        assert run.result.log == ["Fetching Traer..."]

    def test_datastore_error_recorded_per_record(self):
        db = FakeDatabase(fail_on=["Dysart"])
        source = StubSource({"Dysart": [["Corn", "4.05", "-35"]], "Traer": [["Corn", "4.00", "-40"]]})

        result = run_import([source], db=db, today=TODAY)

        assert result.errors == ["Dysart corn: new row violates row-level security policy"]
        assert [e.elevator_name for e in result.saved] == ["Traer"]

    def test_existence_check_failure_recorded(self, fake_db):
        fake_db.entry_exists = MagicMock(side_effect=DatastoreError("connection reset"))
        source = StubSource({"Dysart": [["Corn", "4.05", "-35"]]})

        result = run_import([source], db=fake_db, today=TODAY)

        assert result.errors == ["Dysart corn: connection reset"]
        assert result.saved == []

    def test_datastore_unreachable_recorded_per_record(self):
        client = MagicMock()
        existence = client.table.return_value.select.return_value.eq.return_value.eq.return_value.eq.return_value
        existence.limit.return_value.execute.return_value = MagicMock(data=[])
        client.table.return_value.insert.return_value.execute.side_effect = httpx.ConnectError("connection refused")
        db = Database(SupabaseConfig(url="https://x.supabase.co", key="key"), client=client)
        source = StubSource({"Dysart": [["Corn", "4.05", "-35"]], "Traer": [["Corn", "4.00", "-40"]]})

        result = run_import([source], db=db, today=TODAY, partial_failures=True)

        assert result.success
        assert result.errors == ["Dysart corn: connection refused", "Traer corn: connection refused"]
        assert result.saved == []
        assert "Fetching Traer..." in result.log

    def test_default_date_is_utc_day(self, fake_db):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            run = ImportRun(db=fake_db)

        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", run.today)
        assert run.today in {
            (datetime.now(timezone.utc) - timedelta(days=1)).date().isoformat(),
            datetime.now(timezone.utc).date().isoformat(),
        }

    def test_no_bids_logged(self, fake_db):
        result = run_import([StubSource({"Dysart": [["Wheat", "5.10", "-20"]]})], db=fake_db, today=TODAY)

        assert "  ⚠ No matching bids found" in result.log

    def test_expected_message(self, fake_db):
        source = StubSource({"Dysart": [["Corn", "4.05", "-35"]]}, expected=3)

        result = run_import([source], db=fake_db, today=TODAY)

        assert result.message == "Saved 1 of 3 expected entries."

    def test_debug_collected_from_documents(self, fake_db):
        class DebugSource(StubSource):
            def fetch_raw(self, target):
                raw = super().fetch_raw(target)
                raw.debug = {"table_rows": len(raw.rows)}
                return raw

        result = run_import([DebugSource({"Dysart": [["Corn", "4.05", "-35"]]})], db=fake_db, today=TODAY)

        assert result.to_response()["debug"] == {"Dysart": {"table_rows": 1}}
