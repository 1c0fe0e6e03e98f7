"""
HTTP client for TLE sources.

One read-only GET per source, no retries. Any transport error or
non-2xx status is reported as SourceFetchError so the caller can record
that source as failed and carry on with the others.
"""

import logging
from typing import Optional

import requests

from satplan import __version__
from satplan.config import config
from satplan.ingestion.errors import SourceFetchError

logger = logging.getLogger(__name__)


class TleFetcher:
    """
    Fetches raw TLE text from source URLs.

    A single requests.Session is shared across sources so connections
    to the same host are reused; requests.Session is safe for the
    concurrent GETs issued by the ingestion engine's thread pool.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers['User-Agent'] = user_agent or f'satplan/{__version__}'

    @classmethod
    def from_config(cls) -> 'TleFetcher':
        """Create fetcher from application configuration."""
        return cls(
            timeout=config.ingestion.fetch_timeout_seconds,
            user_agent=config.ingestion.user_agent,
        )

    def fetch(self, url: str) -> str:
        """
        Fetch the body of ``url`` as text.

        Raises:
            SourceFetchError on timeout, connection error or non-2xx status
        """
        logger.debug(f'Fetching TLE source {url}')

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f'TLE source timed out after {self.timeout}s: {url}')
            raise SourceFetchError(url, f'timed out after {self.timeout}s')
        except requests.exceptions.RequestException as e:
            logger.error(f'TLE source request failed: {url}: {e}')
            raise SourceFetchError(url, f'request failed: {e}')

        if not 200 <= response.status_code < 300:
            logger.warning(f'TLE source returned HTTP {response.status_code}: {url}')
            raise SourceFetchError(
                url,
                f'HTTP error: {response.status_code}',
                status_code=response.status_code,
            )

        text = response.text
        logger.debug(f'Received {len(text)} characters from {url}')
        return text

    def close(self) -> None:
        self.session.close()
