"""
Shared fixtures: sample TLE text, in-memory store fakes and a
temporary SQLite database.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

import pytest

from satplan.ingestion.errors import RecordWriteError, SourceFetchError, StoreAccessError
from satplan.ingestion.records import OrbitalElementRecord, SourceEndpoint
from satplan.models import init_db, make_engine, make_session_factory

FIXED_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

ISS = (
    'ISS (ZARYA)',
    '1 25544U 98067A   24001.50000000  .00016717  00000-0  10270-3 0  9005',
    '2 25544  51.6400 208.9163 0006317  69.9862  25.2906 15.49815308 12345',
)
HST = (
    'HST',
    '1 20580U 90037B   24001.51862482  .00001286  00000-0  66054-4 0  9991',
    '2 20580  28.4698 277.6441 0002624 254.5427 105.4906 15.14056012644350',
)
NOAA_19 = (
    'NOAA 19',
    '1 33591U 09005A   24001.55208744  .00000244  00000-0  15516-3 0  9994',
    '2 33591  99.1013  49.5063 0013566 215.8717 144.1558 14.12848770769497',
)
VANGUARD_1 = (
    'VANGUARD 1',
    '1 00005U 58002B   24001.13433744  .00000133  00000-0  15823-3 0  9991',
    '2 00005  34.2496 309.9018 1844219 307.6473  36.3538 10.84915693369318',
)


def tle_text(*groups) -> str:
    """Join three-line groups into a source body."""
    return '\n'.join('\n'.join(group) for group in groups) + '\n'


def fixed_clock() -> datetime:
    return FIXED_TIME


def make_record(catalog_id: str, line1: Optional[str] = None) -> OrbitalElementRecord:
    return OrbitalElementRecord(
        catalog_id=catalog_id,
        captured_at=FIXED_TIME,
        line1=line1 or f'1 {catalog_id}U 98067A',
        line2=f'2 {catalog_id}  51.6400',
    )


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeFetcher:
    """Returns canned bodies per URL; an Exception value is raised instead."""

    def __init__(self, responses: Dict[str, Union[str, Exception]]):
        self.responses = responses
        self.requested: List[str] = []

    def fetch(self, url: str) -> str:
        self.requested.append(url)
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


class FakeSourceStore:
    def __init__(self, endpoints: Iterable[SourceEndpoint] = (), error: Optional[Exception] = None):
        self.endpoints = list(endpoints)
        self.error = error

    def list_all(self) -> List[SourceEndpoint]:
        if self.error:
            raise self.error
        return list(self.endpoints)


class FakeCatalog:
    def __init__(self, ids: Iterable[str] = (), broken_ids: Iterable[str] = ()):
        self.ids = set(ids)
        self.broken_ids = set(broken_ids)

    def exists(self, catalog_id: str) -> bool:
        if catalog_id in self.broken_ids:
            raise StoreAccessError(f'lookup failed for {catalog_id}')
        return catalog_id in self.ids


class FakeTransaction:
    def __init__(self, store: 'FakeRecordStore'):
        self.store = store
        self.pending: List[OrbitalElementRecord] = []
        self.committed = False
        self.rolled_back = False

    def insert(self, record: OrbitalElementRecord) -> None:
        if record.catalog_id in self.store.reject_ids:
            raise RecordWriteError(f'rejected {record.catalog_id}')
        self.pending.append(record)

    def commit(self) -> None:
        if self.store.commit_error:
            raise self.store.commit_error
        self.store.rows.extend(self.pending)
        self.committed = True

    def rollback(self) -> None:
        self.pending = []
        self.rolled_back = True


class FakeRecordStore:
    def __init__(
        self,
        reject_ids: Iterable[str] = (),
        commit_error: Optional[Exception] = None,
        begin_error: Optional[Exception] = None,
    ):
        self.reject_ids = set(reject_ids)
        self.commit_error = commit_error
        self.begin_error = begin_error
        self.rows: List[OrbitalElementRecord] = []
        self.transactions: List[FakeTransaction] = []

    def begin(self) -> FakeTransaction:
        if self.begin_error:
            raise self.begin_error
        tx = FakeTransaction(self)
        self.transactions.append(tx)
        return tx


def fetch_failure(url: str, status_code: int = 503) -> SourceFetchError:
    return SourceFetchError(url, f'HTTP error: {status_code}', status_code=status_code)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture()
def db_engine(tmp_path):
    engine = make_engine(f'sqlite:///{tmp_path / "satplan-test.db"}')
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(db_engine):
    return make_session_factory(db_engine)
