"""
Value types flowing through a TLE ingestion run.

OrbitalElementRecord only lives for the duration of one run: it is
either written as a tle row or discarded. UpdateReport is created at
run start, filled in as the run progresses and returned (or logged) at
the end; it is never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


@dataclass(frozen=True)
class OrbitalElementRecord:
    """
    One parsed TLE block.

    line1 starts with '1 ', line2 with '2 ', both from the same
    three-line block of the source text.
    """
    catalog_id: str
    captured_at: datetime
    line1: str
    line2: str

    @property
    def captured_at_unix(self) -> int:
        return int(self.captured_at.timestamp())

    @classmethod
    def from_dict(cls, data: dict) -> 'OrbitalElementRecord':
        """
        Build a record from the JSON shape used by the batch update endpoint.

        Expects sat_noard_id, line1, line2 and optionally a unix ``time``
        (defaults to now). Raises ValueError/TypeError/KeyError on bad input.
        """
        raw_time = data.get('time')
        if raw_time is None:
            captured_at = datetime.now(timezone.utc)
        else:
            captured_at = datetime.fromtimestamp(int(raw_time), tz=timezone.utc)

        catalog_id = str(data['sat_noard_id']).strip()
        if not catalog_id:
            raise ValueError('sat_noard_id must not be empty')

        line1 = str(data['line1']).strip()
        line2 = str(data['line2']).strip()
        if not line1.startswith('1 '):
            raise ValueError("line1 must start with '1 '")
        if not line2.startswith('2 '):
            raise ValueError("line2 must start with '2 '")

        return cls(
            catalog_id=catalog_id,
            captured_at=captured_at,
            line1=line1,
            line2=line2,
        )


@dataclass(frozen=True)
class SourceEndpoint:
    """A configured TLE source; immutable for the duration of a run."""
    id: Optional[int]
    label: str
    url: str
    description: Optional[str] = None


@dataclass
class UpdateReport:
    """
    Outcome of one ingestion run.

    Source fetch failures (before parsing) and record skips (after a
    successful fetch) are kept in separate fields and never mixed in
    the counts. skipped_count includes both unknown catalog ids and
    write failures; write_failed_count is the write-failure share.
    """
    inserted_count: int = 0
    skipped_count: int = 0
    write_failed_count: int = 0
    total_fetched: int = 0
    sources_total: int = 0
    sources_succeeded: int = 0
    failed_sources: List[str] = field(default_factory=list)
    unknown_catalog_ids: List[str] = field(default_factory=list)
    # False until the transaction commit returns without error
    committed: bool = False

    def record_source_success(self, record_count: int) -> None:
        self.sources_succeeded += 1
        self.total_fetched += record_count

    def record_source_failure(self, label: str) -> None:
        self.failed_sources.append(label)

    def record_unknown(self, catalog_id: str) -> None:
        self.skipped_count += 1
        self.unknown_catalog_ids.append(catalog_id)

    def record_write_failure(self) -> None:
        self.skipped_count += 1
        self.write_failed_count += 1

    def record_inserted(self) -> None:
        self.inserted_count += 1

    def summary(self) -> str:
        """Human-readable one-line outcome."""
        message = (
            f'Successfully updated {self.inserted_count} TLE record(s) '
            f'from {self.sources_succeeded} site(s)'
        )
        if self.skipped_count:
            message += f' ({self.skipped_count} skipped)'
        return message

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'inserted': self.inserted_count,
            'skipped': self.skipped_count,
            'write_failed': self.write_failed_count,
            'total': self.total_fetched,
            'sites_total': self.sources_total,
            'sites_count': self.sources_succeeded,
            'failed_sites': list(self.failed_sources),
            'not_found': list(self.unknown_catalog_ids),
            'committed': self.committed,
        }
