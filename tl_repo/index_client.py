"""
Repository Index Client
Fetches and parses the translation repository manifest
"""

from __future__ import annotations

from typing import Optional

import requests

from utils.core.errors import IndexFetchError
from utils.core.logging import get_logger
from utils.download.http_client import get_json

from .models import RepoIndex

log = get_logger()


class IndexClient:
    """Client for the repository manifest"""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout

    def fetch_index(self, index_url: str) -> RepoIndex:
        """Download and decode the manifest at `index_url`

        Raises:
            IndexFetchError: network failure, HTTP error status or malformed manifest
        """
        kwargs = {} if self.timeout is None else {"timeout": self.timeout}
        try:
            data = get_json(index_url, self.session, **kwargs)
        except requests.RequestException as e:
            raise IndexFetchError(f"Failed to fetch repository index: {e}") from e
        except ValueError as e:
            raise IndexFetchError(f"Repository index is not valid JSON: {e}") from e

        try:
            index = RepoIndex.from_json(data)
        except (KeyError, TypeError, ValueError) as e:
            raise IndexFetchError(f"Malformed repository index: {e!r}") from e

        log.debug(f"Repository index: {len(index.files)} files from {index.base_url}")
        return index
