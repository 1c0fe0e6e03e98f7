"""
SatPlan Flask Application.

Main entry point for the web application. Initializes:
- Database engine and schema
- TLE ingestion pipeline (startup run, optional periodic refresh)
- API routes

Usage:
    python -m satplan.app

Or with gunicorn:
    gunicorn 'satplan.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from satplan.api import tle_bp
from satplan.config import config
from satplan.ingestion import IngestionPipeline, TleFetcher
from satplan.models import init_db, make_engine, make_session_factory

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(
    database_url: Optional[str] = None,
    start_ingestion: Optional[bool] = None,
    fetcher: Optional[TleFetcher] = None,
) -> Flask:
    """
    Application factory for Flask.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL)
        start_ingestion: Whether to start the background TLE update.
                        Defaults to TLE_UPDATE_ON_STARTUP; pass False for testing.
        fetcher: TLE fetcher override, mainly for tests

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    app.config['SECRET_KEY'] = config.secret_key

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    # Initialize database
    logger.info('Initializing database...')
    engine = make_engine(database_url or config.database.url, echo=config.debug)
    init_db(engine)
    session_factory = make_session_factory(engine)
    app.config['DB_ENGINE'] = engine
    app.config['SESSION_FACTORY'] = session_factory

    # Register API blueprints
    app.register_blueprint(tle_bp)

    pipeline = IngestionPipeline.from_session_factory(session_factory, fetcher=fetcher)
    app.config['INGESTION_PIPELINE'] = pipeline

    if start_ingestion is None:
        start_ingestion = config.ingestion.update_on_startup

    if start_ingestion:
        pipeline.start_background()
        logger.info('TLE update scheduled at startup')

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'success': False, 'message': 'Not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'success': False, 'message': 'Method not allowed'}, 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'success': False, 'message': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 8080))

    logger.info(f'Starting SatPlan on http://localhost:{port}')
    logger.info(f'API available at: http://localhost:{port}/api/v1/')

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug,
        use_reloader=False,  # Disable reloader to prevent duplicate ingestion threads
    )


if __name__ == '__main__':
    run_development_server()
