"""
Ingestion error taxonomy.

Per-source and per-record problems (fetch failure, malformed block,
unknown catalog id, failed insert) are absorbed into the UpdateReport
and never raised out of a run. Only run-level failures (IngestionError
subclasses) propagate, each carrying the report accumulated so far.
"""

from typing import Optional

from satplan.ingestion.records import UpdateReport


class SourceFetchError(Exception):
    """Retrieving one source failed; scoped to that source only."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f'{url}: {reason}')
        self.url = url
        self.reason = reason
        self.status_code = status_code


class StoreAccessError(Exception):
    """A store could not be read, or a transaction could not be opened or committed."""


class RecordWriteError(Exception):
    """A single record could not be written; the transaction stays usable."""


class IngestionError(Exception):
    """Base class for run-level ingestion failures."""

    # HTTP status the interactive adapter responds with
    status_code = 500

    def __init__(self, message: str, report: Optional[UpdateReport] = None):
        super().__init__(message)
        self.message = message
        self.report = report if report is not None else UpdateReport()


class NoSourcesConfigured(IngestionError):
    status_code = 400


class NoDataFetched(IngestionError):
    status_code = 400


class ZeroInserted(IngestionError):
    """Every fetched record was skipped; the transaction was rolled back."""
    status_code = 400


class CommitFailure(IngestionError):
    """The store rejected the commit; no rows of this run were persisted."""
    status_code = 500


class StoreError(IngestionError):
    """Listing sources or opening the transaction failed."""
    status_code = 500


class IngestionInProgress(IngestionError):
    """Another run holds the single-flight guard in this process."""
    status_code = 409
