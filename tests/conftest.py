"""
Shared fixtures for Basis Tracker tests.

Run with:
    pytest tests/ -v
"""

from unittest.mock import MagicMock

import pytest

from basis_tracker.config import AppConfig
from basis_tracker.errors import DatastoreError


class FakeDatabase:
    """In-memory stand-in for the Supabase wrapper."""

    def __init__(self, fail_on=None):
        self.rows = []
        self.fail_on = set(fail_on or [])
        self.exists_calls = 0

    def entry_exists(self, date, commodity, elevator_name):
        self.exists_calls += 1
        return any(
            row["date"] == date
            and row["commodity"] == commodity.value
            and row["elevator_name"] == elevator_name
            for row in self.rows
        )

    def insert_entry(self, entry):
        if entry.elevator_name in self.fail_on:
            raise DatastoreError("new row violates row-level security policy")
        row = entry.to_dict()
        self.rows.append(row)
        return row


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def make_session():
    """Build a mock requests.Session serving {url: (status, text)}."""

    def _make(pages):
        session = MagicMock()
        session.headers = {}

        def get(url, **kwargs):
            status, text = pages.get(url, (404, "Not Found"))
            response = MagicMock()
            response.status_code = status
            response.ok = 200 <= status < 300
            response.text = text
            return response

        session.get.side_effect = get
        return session

    return _make
