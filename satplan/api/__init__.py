"""
API module for SatPlan.

Provides REST endpoints for:
- TLE data (recent rows, per-satellite history, sources)
- TLE ingestion runs (auto-update from sources, JSON batch update)
- System status
"""

from satplan.api.tle import tle_bp

__all__ = ['tle_bp']
