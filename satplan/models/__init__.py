"""
Database models for SatPlan.

Schema priorities:
1. Append-only TLE history (no upserts, no deduplication)
2. Fast roster membership checks by NORAD catalog number
3. Latest-TLE-per-satellite lookups
"""

from satplan.models.base import (
    Base,
    init_db,
    make_engine,
    make_session_factory,
    session_scope,
)
from satplan.models.satellite import Satellite
from satplan.models.tle import Tle, TleSite

__all__ = [
    'Base',
    'init_db',
    'make_engine',
    'make_session_factory',
    'session_scope',
    'Satellite',
    'Tle',
    'TleSite',
]
