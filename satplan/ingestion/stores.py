"""
Storage collaborators used by the ingestion engine.

The engine only talks to the three protocols below; the SQLAlchemy
implementations are what the application wires in. Tests substitute
in-memory versions.
"""

import logging
from typing import List, Protocol

from sqlalchemy import exists, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from satplan.ingestion.errors import RecordWriteError, StoreAccessError
from satplan.ingestion.records import OrbitalElementRecord, SourceEndpoint
from satplan.models import Satellite, Tle, TleSite

logger = logging.getLogger(__name__)


class SourceEndpointStore(Protocol):
    def list_all(self) -> List[SourceEndpoint]: ...


class SatelliteCatalogStore(Protocol):
    def exists(self, catalog_id: str) -> bool: ...


class RecordTransaction(Protocol):
    def insert(self, record: OrbitalElementRecord) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...


class OrbitalRecordStore(Protocol):
    def begin(self) -> RecordTransaction: ...


# -------------------------------------------------------------------------
# SQLAlchemy implementations
# -------------------------------------------------------------------------

class SqlSourceEndpointStore:
    """Reads configured sources from the tle_site table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def list_all(self) -> List[SourceEndpoint]:
        try:
            with self._session_factory() as session:
                sites = session.scalars(select(TleSite).order_by(TleSite.id)).all()
        except SQLAlchemyError as e:
            raise StoreAccessError(f'Failed to query TLE sites: {e}') from e

        return [
            SourceEndpoint(
                id=site.id,
                label=site.site,
                url=site.url,
                description=site.description,
            )
            for site in sites
        ]


class SqlSatelliteCatalog:
    """Roster membership by NORAD catalog number."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def exists(self, catalog_id: str) -> bool:
        stmt = select(exists().where(Satellite.noard_id == catalog_id))
        try:
            with self._session_factory() as session:
                return bool(session.scalar(stmt))
        except SQLAlchemyError as e:
            raise StoreAccessError(f'Failed to check satellite {catalog_id}: {e}') from e


class SqlRecordTransaction:
    """
    One open transaction on the tle table.

    Every insert runs in its own SAVEPOINT, so a rejected row is rolled
    back alone and the outer transaction stays usable.
    """

    def __init__(self, session: Session):
        self._session = session

    def insert(self, record: OrbitalElementRecord) -> None:
        try:
            with self._session.begin_nested():
                self._session.add(Tle(
                    sat_noard_id=record.catalog_id,
                    time=record.captured_at_unix,
                    line1=record.line1,
                    line2=record.line2,
                ))
                # Flush inside the savepoint so constraint errors surface here
                self._session.flush()
        except SQLAlchemyError as e:
            raise RecordWriteError(str(e)) from e

    def commit(self) -> None:
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StoreAccessError(f'Failed to commit transaction: {e}') from e
        finally:
            self._session.close()

    def rollback(self) -> None:
        try:
            self._session.rollback()
        finally:
            self._session.close()


class SqlOrbitalRecordStore:
    """Opens transactions for appending TLE rows."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def begin(self) -> SqlRecordTransaction:
        session = self._session_factory()
        try:
            session.begin()
        except SQLAlchemyError as e:
            session.close()
            raise StoreAccessError(f'Failed to begin transaction: {e}') from e
        return SqlRecordTransaction(session)
