"""
HTTP source for fetching the published corpus document.
"""

import logging
import time
from typing import Optional

import requests

from ..core.errors import FetchError, ParseError
from ..core.models import Snapshot, parse_snapshot
from ..core.source import SnapshotSource


logger = logging.getLogger(__name__)


class HttpSnapshotSource(SnapshotSource):
    """
    Fetches a snapshot document over HTTP(S).

    Makes exactly one GET per fetch. Connection errors, timeouts and
    non-2xx statuses are reported as FetchError; a body that is not a
    valid snapshot is reported as ParseError.
    """

    def __init__(
        self,
        name: str = "http",
        timeout: int = 30,
        user_agent: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the HTTP source.

        Args:
            name: Source name
            timeout: Request timeout in seconds
            user_agent: Custom User-Agent header
            session: Optional pre-configured session
        """
        self.name = name
        self.timeout = timeout
        self.user_agent = user_agent or "VerseCache/1.0"
        self.session = session or requests.Session()

    def fetch(self, location: str) -> Snapshot:
        """
        Fetch the snapshot document via HTTP.

        Args:
            location: URL of the JSON document

        Returns:
            The parsed snapshot
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

        start_time = time.time()
        try:
            response = self.session.get(location, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Request to {location} failed: {e}")
            raise FetchError(f"Request to {location} failed: {e}") from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"GET {location} -> {response.status_code} in {duration_ms}ms")

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"GET {location} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            document = response.json()
        except (ValueError, RecursionError) as e:
            raise ParseError(f"Response from {location} is not valid JSON: {e}") from e

        return parse_snapshot(document)

    def get_name(self) -> str:
        """Return the source name."""
        return self.name

    def close(self) -> None:
        """Close the session."""
        if self.session:
            self.session.close()
