"""
TLE API endpoints.

Provides endpoints for:
- GET    /api/v1/health                      - Service status and row counts
- GET    /api/v1/tle                         - 100 most recent TLE rows
- GET    /api/v1/tle/satellite/<norad_id>    - TLE rows for one satellite
- GET    /api/v1/tle/sites                   - Configured TLE sources
- POST   /api/v1/tle/auto-update             - Fetch all sources and ingest
- POST   /api/v1/sat/tle/update              - Ingest a JSON batch of TLEs
- DELETE /api/v1/tle/<id>                    - Delete one TLE row

Every response uses the envelope {"success", "message", "data"}.
"""

import logging
from typing import Any

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from satplan import __version__
from satplan.ingestion.errors import IngestionError
from satplan.ingestion.records import OrbitalElementRecord
from satplan.models import Satellite, Tle, TleSite, session_scope

logger = logging.getLogger(__name__)

tle_bp = Blueprint('tle', __name__, url_prefix='/api/v1')

RECENT_TLE_LIMIT = 100


def _respond(success: bool, message: str, data: Any = None, status: int = 200):
    body = {'success': success, 'message': message}
    if data is not None:
        body['data'] = data
    return jsonify(body), status


def _session_factory():
    return current_app.config['SESSION_FACTORY']


def _pipeline():
    return current_app.config['INGESTION_PIPELINE']


def _ingestion_failure(e: IngestionError):
    """Translate a run-level failure into an error response carrying the report."""
    if e.status_code >= 500:
        logger.error(f'TLE update failed: {e.message}')
    else:
        logger.warning(f'TLE update rejected: {e.message}')
    return _respond(False, e.message, e.report.to_dict(), e.status_code)


@tle_bp.route('/health', methods=['GET'])
def health_check():
    """Service status with roster and TLE counts."""
    try:
        with session_scope(_session_factory()) as session:
            counts = {
                'satellites': session.scalar(select(func.count()).select_from(Satellite)),
                'tle_count': session.scalar(select(func.count()).select_from(Tle)),
                'tle_sites': session.scalar(select(func.count()).select_from(TleSite)),
            }
    except SQLAlchemyError as e:
        logger.error(f'Database health check failed: {e}')
        return _respond(False, 'Database unavailable', {'status': 'degraded'}, 503)

    pipeline = _pipeline()
    return _respond(True, 'Server is healthy', {
        'status': 'ok',
        'version': __version__,
        **counts,
        'ingestion': pipeline.stats if pipeline else None,
    })


@tle_bp.route('/tle', methods=['GET'])
def get_tles():
    """Most recent TLE rows across all satellites."""
    stmt = select(Tle).order_by(Tle.time.desc(), Tle.id.desc()).limit(RECENT_TLE_LIMIT)
    try:
        with session_scope(_session_factory()) as session:
            tles = [t.to_dict() for t in session.scalars(stmt)]
    except SQLAlchemyError as e:
        return _respond(False, f'Failed to query TLE data: {e}', status=500)

    return _respond(True, 'TLE data retrieved successfully', tles)


@tle_bp.route('/tle/satellite/<norad_id>', methods=['GET'])
def get_tles_by_satellite(norad_id: str):
    """TLE history for one satellite, newest first."""
    stmt = (
        select(Tle)
        .where(Tle.sat_noard_id == norad_id)
        .order_by(Tle.time.desc(), Tle.id.desc())
    )
    try:
        with session_scope(_session_factory()) as session:
            tles = [t.to_dict() for t in session.scalars(stmt)]
    except SQLAlchemyError as e:
        return _respond(False, f'Failed to query TLE data: {e}', status=500)

    return _respond(True, 'TLE data retrieved successfully', tles)


@tle_bp.route('/tle/sites', methods=['GET'])
def get_tle_sites():
    """Configured TLE sources."""
    try:
        with session_scope(_session_factory()) as session:
            sites = [s.to_dict() for s in session.scalars(select(TleSite).order_by(TleSite.id))]
    except SQLAlchemyError as e:
        return _respond(False, f'Failed to query TLE sites: {e}', status=500)

    return _respond(True, 'TLE sites retrieved successfully', sites)


@tle_bp.route('/tle/auto-update', methods=['POST'])
def auto_update_tles():
    """
    Fetch TLE data from every configured site and store roster matches.

    200 with the report on success; 400 when there are no sites, nothing
    could be fetched or nothing was inserted; 409 when a run is already
    in progress; 500 on storage failures. Error responses carry the
    partial report in ``data``.
    """
    try:
        report = _pipeline().run_once()
    except IngestionError as e:
        return _ingestion_failure(e)

    return _respond(True, report.summary(), report.to_dict())


@tle_bp.route('/sat/tle/update', methods=['POST'])
def update_tles():
    """
    Store a batch of TLEs supplied in the request body.

    Body: [{"sat_noard_id": "25544", "time": 1700000000,
            "line1": "1 25544U ...", "line2": "2 25544 ..."}, ...]

    Same roster matching and zero-insert policy as auto-update.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, list):
        return _respond(False, 'Invalid request body: expected a JSON array of TLEs', status=400)

    if not payload:
        return _respond(False, 'No TLE data provided', status=400)

    try:
        records = [OrbitalElementRecord.from_dict(item) for item in payload]
    except (KeyError, TypeError, ValueError, AttributeError, OverflowError, OSError) as e:
        return _respond(False, f'Invalid request body: {e}', status=400)

    try:
        report = _pipeline().write_batch(records)
    except IngestionError as e:
        return _ingestion_failure(e)

    message = f'Successfully updated {report.inserted_count} TLE record(s)'
    if report.skipped_count:
        message += f' ({report.skipped_count} skipped)'
    return _respond(True, message, report.to_dict())


@tle_bp.route('/tle/<int:tle_id>', methods=['DELETE'])
def delete_tle(tle_id: int):
    """Delete a single TLE row by id."""
    try:
        with session_scope(_session_factory()) as session:
            result = session.execute(delete(Tle).where(Tle.id == tle_id))
            deleted = result.rowcount
    except SQLAlchemyError as e:
        return _respond(False, f'Failed to delete TLE: {e}', status=500)

    if not deleted:
        return _respond(False, 'TLE not found', status=404)

    return _respond(True, 'TLE deleted successfully')
