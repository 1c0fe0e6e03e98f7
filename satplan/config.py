"""
Configuration management for SatPlan.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from satplan import __version__

load_dotenv()


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///satplan.db')


@dataclass(frozen=True)
class IngestionConfig:
    """TLE ingestion settings."""
    fetch_timeout_seconds: float = float(os.getenv('TLE_FETCH_TIMEOUT_SECONDS', '30'))
    # Deadline for the whole fetch phase, across all sources
    run_timeout_seconds: float = float(os.getenv('TLE_RUN_TIMEOUT_SECONDS', '120'))
    max_workers: int = int(os.getenv('TLE_FETCH_WORKERS', '4'))

    update_on_startup: bool = os.getenv('TLE_UPDATE_ON_STARTUP', '1') == '1'
    # 0 disables the periodic refresh
    update_interval_hours: float = float(os.getenv('TLE_UPDATE_INTERVAL_HOURS', '0'))

    user_agent: str = os.getenv('TLE_USER_AGENT', f'satplan/{__version__}')

    @property
    def update_interval_seconds(self) -> float:
        return self.update_interval_hours * 3600


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)

    # Flask settings
    secret_key: str = 'dev-key-change-in-prod'
    debug: bool = False


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        database=DatabaseConfig(),
        ingestion=IngestionConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
