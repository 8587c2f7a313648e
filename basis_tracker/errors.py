"""
Exception types for Basis Tracker.

Three runtime failure kinds are distinguished:
- SourceFetchError: a source could not be fetched (HTTP status, timeout, browser launch)
- DatastoreError: a Supabase read or write failed
- ConfigError: required settings are missing
"""


class BasisTrackerError(Exception):
    """Base class for all Basis Tracker errors."""


class ConfigError(BasisTrackerError):
    """Raised when required configuration is missing or invalid."""


class SourceFetchError(BasisTrackerError):
    """Raised when a source document cannot be retrieved."""


class DatastoreError(BasisTrackerError):
    """Raised when the datastore rejects a query or insert."""
