"""
Tests for IngestionPipeline: single-flight guard, logging-only runs
and statistics.
"""

from __future__ import annotations

import logging
import threading

import pytest

from satplan.ingestion.engine import IngestionEngine
from satplan.ingestion.errors import IngestionInProgress, NoSourcesConfigured
from satplan.ingestion.pipeline import IngestionPipeline
from satplan.ingestion.records import SourceEndpoint
from tests.conftest import (
    HST,
    ISS,
    FakeCatalog,
    FakeFetcher,
    FakeRecordStore,
    FakeSourceStore,
    fixed_clock,
    make_record,
    tle_text,
)

SOURCE = SourceEndpoint(id=1, label='celestrak', url='https://celestrak.example/stations.txt')


def build_pipeline(endpoints=(SOURCE,), catalog_ids=('25544',), fetcher=None) -> IngestionPipeline:
    engine = IngestionEngine(
        sources=FakeSourceStore(endpoints),
        catalog=FakeCatalog(catalog_ids),
        records=FakeRecordStore(),
        fetcher=fetcher or FakeFetcher({SOURCE.url: tle_text(ISS, HST)}),
        clock=fixed_clock,
    )
    return IngestionPipeline(engine)


class TestRunOnce:
    def test_returns_report_and_updates_stats(self):
        pipeline = build_pipeline()

        report = pipeline.run_once()

        assert report.inserted_count == 1
        stats = pipeline.stats
        assert stats['run_count'] == 1
        assert stats['error_count'] == 0
        assert stats['last_report']['inserted'] == 1
        assert stats['last_error'] is None
        assert stats['in_progress'] is False

    def test_failure_propagates_and_is_counted(self):
        pipeline = build_pipeline(endpoints=())

        with pytest.raises(NoSourcesConfigured):
            pipeline.run_once()

        stats = pipeline.stats
        assert stats['error_count'] == 1
        assert stats['last_error'] == 'No TLE sites configured'

    def test_callbacks_receive_report(self):
        pipeline = build_pipeline()
        seen = []
        pipeline.add_update_callback(seen.append)

        report = pipeline.run_once()

        assert seen == [report]

    def test_failing_callback_does_not_fail_run(self):
        pipeline = build_pipeline()

        def boom(report):
            raise RuntimeError('callback broke')

        pipeline.add_update_callback(boom)

        assert pipeline.run_once().inserted_count == 1


class TestSingleFlight:
    def test_second_run_refused_while_first_active(self):
        started = threading.Event()
        release = threading.Event()

        class BlockingFetcher:
            def fetch(self, url):
                started.set()
                release.wait(5)
                return tle_text(ISS)

        pipeline = build_pipeline(fetcher=BlockingFetcher())
        worker = threading.Thread(target=pipeline.run_once)
        worker.start()
        try:
            assert started.wait(5)
            with pytest.raises(IngestionInProgress) as exc_info:
                pipeline.run_once()
            assert exc_info.value.status_code == 409

            with pytest.raises(IngestionInProgress):
                pipeline.write_batch([make_record('25544')])
        finally:
            release.set()
            worker.join(5)

        # Guard is released afterwards
        assert pipeline.run_once().inserted_count == 1

    def test_write_batch(self):
        pipeline = build_pipeline()

        report = pipeline.write_batch([make_record('25544'), make_record('1')])

        assert report.total_fetched == 2
        assert report.inserted_count == 1
        assert report.unknown_catalog_ids == ['1']


class TestLoggingRuns:
    def test_run_and_log_success(self, caplog):
        pipeline = build_pipeline()

        with caplog.at_level(logging.INFO, logger='satplan.ingestion.pipeline'):
            report = pipeline.run_and_log()

        assert report is not None
        assert 'Successfully updated 1 TLE record(s) from 1 site(s) (1 skipped)' in caplog.text

    def test_run_and_log_swallows_run_failure(self, caplog):
        pipeline = build_pipeline(endpoints=())

        with caplog.at_level(logging.ERROR, logger='satplan.ingestion.pipeline'):
            assert pipeline.run_and_log() is None

        assert 'No TLE sites configured' in caplog.text

    def test_run_continuous_with_zero_interval_runs_once(self):
        pipeline = build_pipeline()

        pipeline.run_continuous(interval=0)

        assert pipeline.stats['run_count'] == 1
        assert pipeline.stats['running'] is False

    def test_background_start_and_stop(self):
        pipeline = build_pipeline()
        done = threading.Event()
        pipeline.add_update_callback(lambda report: done.set())

        pipeline.start_background(interval=0)

        assert done.wait(5)
        pipeline.stop()
        assert pipeline.stats['run_count'] == 1
