"""Tests for UpdateReport bookkeeping and record construction."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from satplan.ingestion.records import OrbitalElementRecord, UpdateReport


class TestUpdateReport:
    def test_skips_split_between_unknown_and_write_failure(self) -> None:
        report = UpdateReport()

        report.record_unknown('99999')
        report.record_write_failure()
        report.record_inserted()

        assert report.skipped_count == 2
        assert report.write_failed_count == 1
        assert report.unknown_catalog_ids == ['99999']
        assert report.inserted_count == 1

    def test_source_bookkeeping_does_not_touch_skips(self) -> None:
        report = UpdateReport(sources_total=2)

        report.record_source_success(3)
        report.record_source_failure('mirror')

        assert report.sources_succeeded == 1
        assert report.total_fetched == 3
        assert report.failed_sources == ['mirror']
        assert report.skipped_count == 0

    def test_summary_without_skips(self) -> None:
        report = UpdateReport(inserted_count=3, sources_succeeded=1)

        assert report.summary() == 'Successfully updated 3 TLE record(s) from 1 site(s)'

    def test_to_dict_copies_lists(self) -> None:
        report = UpdateReport(failed_sources=['a'])

        data = report.to_dict()
        data['failed_sites'].append('b')

        assert report.failed_sources == ['a']


class TestOrbitalElementRecordFromDict:
    def test_builds_record(self) -> None:
        record = OrbitalElementRecord.from_dict({
            'sat_noard_id': 25544,
            'time': 1700000000,
            'line1': '1 25544U',
            'line2': '2 25544',
        })

        assert record.catalog_id == '25544'
        assert record.captured_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert record.captured_at_unix == 1700000000

    def test_time_defaults_to_now(self) -> None:
        before = datetime.now(timezone.utc).replace(microsecond=0)

        record = OrbitalElementRecord.from_dict({'sat_noard_id': '5', 'line1': '1 5U', 'line2': '2 5'})

        assert record.captured_at >= before

    @pytest.mark.parametrize(
        'data, error',
        [
            ({'line1': '1 5U', 'line2': '2 5'}, KeyError),
            ({'sat_noard_id': '  ', 'line1': '1 5U', 'line2': '2 5'}, ValueError),
            ({'sat_noard_id': '5', 'time': 'soon', 'line1': '1 5U', 'line2': '2 5'}, ValueError),
        ],
    )
    def test_rejects_bad_input(self, data, error) -> None:
        with pytest.raises(error):
            OrbitalElementRecord.from_dict(data)

    @pytest.mark.parametrize(
        'line1, line2',
        [
            ('2 25544', '2 25544'),
            ('1 25544U', '1 25544U'),
            ('125544U', '2 25544'),
        ],
    )
    def test_rejects_lines_with_wrong_markers(self, line1, line2) -> None:
        with pytest.raises(ValueError):
            OrbitalElementRecord.from_dict({'sat_noard_id': '25544', 'line1': line1, 'line2': line2})
