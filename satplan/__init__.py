"""
SatPlan Backend Package.

Satellite tracking backend built with Flask, SQLAlchemy, and requests.

Modules:
    api/         REST endpoints for TLE data and ingestion runs
    models/      SQLAlchemy ORM models (Satellite, Tle, TleSite)
    ingestion/   TLE fetching, parsing, catalog matching and persistence
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
