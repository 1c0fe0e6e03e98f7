"""
Ingestion engine - one TLE update run from sources to database.

Run stages:
1. List: read configured sources (none -> NoSourcesConfigured)
2. Fetch: retrieve and parse every source concurrently; a failing
   source is recorded and never stops the others (no records at all
   -> NoDataFetched)
3. Match and write: inside one transaction, insert each record whose
   catalog number is on the roster; unknown ids and rejected rows are
   skipped without aborting the batch
4. Commit: zero inserted -> rollback + ZeroInserted; otherwise commit
   (commit error -> CommitFailure)

The engine holds no global state; stores and fetcher are passed in.
Callers must not run two engines against the same store at once, see
IngestionPipeline for the in-process guard.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from satplan.ingestion.errors import (
    CommitFailure,
    NoDataFetched,
    NoSourcesConfigured,
    RecordWriteError,
    SourceFetchError,
    StoreAccessError,
    StoreError,
    ZeroInserted,
)
from satplan.ingestion.fetcher import TleFetcher
from satplan.ingestion.records import OrbitalElementRecord, SourceEndpoint, UpdateReport
from satplan.ingestion.stores import (
    OrbitalRecordStore,
    SatelliteCatalogStore,
    SourceEndpointStore,
)
from satplan.ingestion.tle_parser import parse_tle_text

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IngestionEngine:
    """
    Runs TLE ingestion against the given collaborators.

    Both the startup job and the HTTP endpoint call run(); only the way
    they present the outcome differs.
    """

    def __init__(
        self,
        sources: SourceEndpointStore,
        catalog: SatelliteCatalogStore,
        records: OrbitalRecordStore,
        fetcher: TleFetcher,
        max_workers: int = 4,
        run_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize the engine.

        Args:
            sources: Source registry
            catalog: Roster membership lookups
            records: Transactional TLE store
            fetcher: Anything with fetch(url) -> str
            max_workers: Concurrent source fetches
            run_timeout: Deadline in seconds for the whole fetch stage;
                         sources still pending then count as failed
            clock: Supplies captured_at for parsed records
        """
        self.sources = sources
        self.catalog = catalog
        self.records = records
        self.fetcher = fetcher
        self.max_workers = max(1, max_workers)
        self.run_timeout = run_timeout
        self.clock = clock

    def run(self) -> UpdateReport:
        """
        Execute one ingestion run.

        Returns the final report on success.

        Raises:
            NoSourcesConfigured, NoDataFetched, ZeroInserted, CommitFailure,
            StoreError; each carries the report accumulated so far
        """
        report = UpdateReport()

        try:
            endpoints = self.sources.list_all()
        except StoreAccessError as e:
            raise StoreError(str(e), report) from e

        report.sources_total = len(endpoints)
        if not endpoints:
            raise NoSourcesConfigured('No TLE sites configured', report)

        candidates = self.fetch_all(endpoints, report)

        if not candidates:
            message = 'No TLE data fetched from any site'
            if report.failed_sources:
                message += f'. Failed sites: {report.failed_sources}'
            raise NoDataFetched(message, report)

        logger.info(
            f'Fetched {report.total_fetched} TLE record(s) from '
            f'{report.sources_succeeded}/{report.sources_total} site(s)'
        )

        return self.write_records(candidates, report)

    # -------------------------------------------------------------------------
    # Fetch stage
    # -------------------------------------------------------------------------

    def fetch_source(self, endpoint: SourceEndpoint) -> List[OrbitalElementRecord]:
        """Fetch and parse a single source."""
        text = self.fetcher.fetch(endpoint.url)
        return list(parse_tle_text(text, clock=self.clock))

    def fetch_all(
        self,
        endpoints: List[SourceEndpoint],
        report: UpdateReport,
    ) -> List[OrbitalElementRecord]:
        """
        Fetch every source concurrently.

        Records are concatenated in registry order. Failures land in
        report.failed_sources and never propagate.
        """
        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(endpoints))),
            thread_name_prefix='tle-fetch',
        )
        try:
            futures = [executor.submit(self.fetch_source, ep) for ep in endpoints]
            wait(futures, timeout=self.run_timeout)
        finally:
            # Don't block on stragglers past the deadline
            executor.shutdown(wait=False, cancel_futures=True)

        candidates: List[OrbitalElementRecord] = []
        for endpoint, future in zip(endpoints, futures):
            # Queued sources are cancelled by shutdown, running ones stay pending
            if future.cancelled() or not future.done():
                logger.error(f'Fetching TLE from {endpoint.label} exceeded the run deadline')
                report.record_source_failure(endpoint.label)
                continue

            try:
                parsed = future.result()
            except SourceFetchError as e:
                logger.error(f'Failed to fetch TLE from {endpoint.label}: {e.reason}')
                report.record_source_failure(endpoint.label)
                continue
            except Exception:
                logger.exception(f'Unexpected error fetching TLE from {endpoint.label}')
                report.record_source_failure(endpoint.label)
                continue

            logger.debug(f'{endpoint.label}: {len(parsed)} TLE record(s)')
            report.record_source_success(len(parsed))
            candidates.extend(parsed)

        return candidates

    # -------------------------------------------------------------------------
    # Match and write stage
    # -------------------------------------------------------------------------

    def write_records(
        self,
        candidates: Iterable[OrbitalElementRecord],
        report: UpdateReport,
    ) -> UpdateReport:
        """
        Insert roster-matched records inside one transaction.

        Commits only if at least one row went in. Used directly by the
        batch update endpoint, which supplies records instead of fetching.
        """
        try:
            tx = self.records.begin()
        except StoreAccessError as e:
            raise StoreError(str(e), report) from e

        try:
            for record in candidates:
                self._write_one(tx, record, report)
        except BaseException:
            tx.rollback()
            raise

        if report.inserted_count == 0:
            tx.rollback()
            message = (
                f'Failed to insert any TLE records. '
                f'All {report.skipped_count} records were skipped.'
            )
            if report.unknown_catalog_ids:
                message += f' Satellites not in database: {report.unknown_catalog_ids}'
            raise ZeroInserted(message, report)

        try:
            tx.commit()
        except StoreAccessError as e:
            raise CommitFailure(str(e), report) from e

        report.committed = True
        return report

    def _write_one(self, tx, record: OrbitalElementRecord, report: UpdateReport) -> None:
        try:
            known = self.catalog.exists(record.catalog_id)
        except StoreAccessError as e:
            logger.error(f'Failed to check satellite existence for {record.catalog_id}: {e}')
            report.record_write_failure()
            return

        if not known:
            logger.debug(f'Satellite {record.catalog_id} not in catalog, skipping')
            report.record_unknown(record.catalog_id)
            return

        try:
            tx.insert(record)
        except RecordWriteError as e:
            logger.error(f'Failed to insert TLE for satellite {record.catalog_id}: {e}')
            report.record_write_failure()
            return

        report.record_inserted()
