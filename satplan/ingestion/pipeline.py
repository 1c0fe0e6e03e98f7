"""
Ingestion pipeline - schedules engine runs inside the web process.

Wraps IngestionEngine with:
- A single-flight guard so two runs never interleave transactions
  against the same store (a second caller gets IngestionInProgress)
- A logging-only adapter for the startup and periodic background runs
- Run statistics for the health endpoint
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from sqlalchemy.orm import sessionmaker

from satplan.config import config
from satplan.ingestion.engine import IngestionEngine
from satplan.ingestion.errors import IngestionError, IngestionInProgress
from satplan.ingestion.fetcher import TleFetcher
from satplan.ingestion.records import OrbitalElementRecord, UpdateReport
from satplan.ingestion.stores import (
    SqlOrbitalRecordStore,
    SqlSatelliteCatalog,
    SqlSourceEndpointStore,
)

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Manages the TLE ingestion lifecycle.

    Can run once at startup and then periodically in a background thread.
    """

    def __init__(self, engine: IngestionEngine):
        self.engine = engine

        self._run_lock = threading.Lock()

        # State tracking
        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_run_time: float = 0
        self._run_count: int = 0
        self._error_count: int = 0
        self._last_report: Optional[UpdateReport] = None
        self._last_error: Optional[str] = None

        # Callbacks for external integration
        self._on_update_callbacks: List[Callable[[UpdateReport], None]] = []

    @classmethod
    def from_session_factory(
        cls,
        session_factory: sessionmaker,
        fetcher: Optional[TleFetcher] = None,
    ) -> 'IngestionPipeline':
        """Wire SQLAlchemy stores and configuration into a pipeline."""
        engine = IngestionEngine(
            sources=SqlSourceEndpointStore(session_factory),
            catalog=SqlSatelliteCatalog(session_factory),
            records=SqlOrbitalRecordStore(session_factory),
            fetcher=fetcher or TleFetcher.from_config(),
            max_workers=config.ingestion.max_workers,
            run_timeout=config.ingestion.run_timeout_seconds,
        )
        return cls(engine)

    def add_update_callback(self, callback: Callable[[UpdateReport], None]) -> None:
        """
        Register callback to be invoked after each successful run.

        Callback receives the final report.
        """
        self._on_update_callbacks.append(callback)

    def run_once(self) -> UpdateReport:
        """
        Execute one ingestion run, refusing to overlap with another.

        Raises:
            IngestionInProgress if a run is already active in this process,
            otherwise whatever IngestionEngine.run raises
        """
        if not self._run_lock.acquire(blocking=False):
            raise IngestionInProgress('A TLE update is already in progress')

        try:
            self._last_run_time = time.time()
            self._run_count += 1
            try:
                report = self.engine.run()
            except IngestionError as e:
                self._error_count += 1
                self._last_report = e.report
                self._last_error = e.message
                raise
            self._last_report = report
            self._last_error = None
        finally:
            self._run_lock.release()

        for callback in self._on_update_callbacks:
            try:
                callback(report)
            except Exception as e:
                logger.error(f'Update callback error: {e}')

        return report

    def write_batch(self, records: List[OrbitalElementRecord]) -> UpdateReport:
        """
        Match and write caller-supplied records, skipping the fetch stage.

        Shares the single-flight guard with run_once.
        """
        if not self._run_lock.acquire(blocking=False):
            raise IngestionInProgress('A TLE update is already in progress')

        try:
            report = UpdateReport(total_fetched=len(records))
            return self.engine.write_records(records, report)
        finally:
            self._run_lock.release()

    def run_and_log(self) -> Optional[UpdateReport]:
        """
        Execute one run and only log the outcome.

        Used for the startup and periodic runs, which have nobody to
        report back to. Returns the report on success, None on failure.
        """
        try:
            report = self.run_once()
        except IngestionInProgress:
            logger.info('Skipping scheduled TLE update, another run is in progress')
            return None
        except IngestionError as e:
            logger.error(f'TLE update failed: {e.message}')
            return None

        logger.info(report.summary())
        if report.failed_sources:
            logger.warning(f'TLE sites that failed: {report.failed_sources}')
        if report.unknown_catalog_ids:
            logger.info(f'{len(report.unknown_catalog_ids)} TLE record(s) for satellites not in database')
        return report

    def run_continuous(self, interval: Optional[float] = None) -> None:
        """
        Run once, then every ``interval`` seconds until stopped.

        An interval of 0 means a single run. This method blocks - use
        start_background() for non-blocking.
        """
        if interval is None:
            interval = config.ingestion.update_interval_seconds
        self._running = True

        try:
            self.run_and_log()
            if interval > 0:
                logger.info(f'Scheduling TLE updates every {interval:.0f}s')
                while not self._stop_event.wait(interval):
                    self.run_and_log()
        finally:
            self._running = False

    def start_background(self, interval: Optional[float] = None) -> None:
        """Start ingestion in background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning('TLE ingestion already running')
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_continuous,
            args=(interval,),
            name='tle-ingestion',
            daemon=True,
        )
        self._thread.start()
        logger.info('Background TLE ingestion started')

    def stop(self) -> None:
        """Stop background ingestion."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
        logger.info('TLE ingestion stopped')

    @property
    def stats(self) -> dict:
        """Get ingestion statistics."""
        return {
            'run_count': self._run_count,
            'error_count': self._error_count,
            'last_run_time': self._last_run_time,
            'last_error': self._last_error,
            'last_report': self._last_report.to_dict() if self._last_report else None,
            'running': self._running,
            'in_progress': self._run_lock.locked(),
        }
