"""
TLE ingestion module for SatPlan.

Fetches TLE text from the configured sites, parses it, matches each
record against the satellite roster and appends the matches to the
tle table in one transaction per run.
"""

from satplan.ingestion.engine import IngestionEngine
from satplan.ingestion.fetcher import TleFetcher
from satplan.ingestion.pipeline import IngestionPipeline
from satplan.ingestion.records import OrbitalElementRecord, SourceEndpoint, UpdateReport

__all__ = [
    'IngestionEngine',
    'IngestionPipeline',
    'OrbitalElementRecord',
    'SourceEndpoint',
    'TleFetcher',
    'UpdateReport',
]
