#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HTTP helpers shared by the translation updater
Session construction, JSON fetching and range-support probing
"""

from typing import Any, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import (
    APP_USER_AGENT,
    HTTP_CONNECT_TIMEOUT_S,
    HTTP_MAX_RETRIES,
    HTTP_READ_TIMEOUT_S,
    HTTP_RETRY_BACKOFF_S,
    HTTP_RETRY_STATUSES,
    INDEX_REQUEST_TIMEOUT_S,
)
from utils.core.logging import get_logger

log = get_logger()

DEFAULT_TIMEOUT = (HTTP_CONNECT_TIMEOUT_S, HTTP_READ_TIMEOUT_S)


def create_session() -> requests.Session:
    """Create a session with the application headers. One per worker thread."""
    session = requests.Session()

    # Only idempotent requests are retried; error statuses still surface via raise_for_status
    retry_strategy = Retry(
        total=HTTP_MAX_RETRIES,
        backoff_factor=HTTP_RETRY_BACKOFF_S,
        status_forcelist=HTTP_RETRY_STATUSES,
        allowed_methods=["HEAD", "GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    session.headers.update({
        'User-Agent': APP_USER_AGENT,
    })
    return session


def get_json(url: str, session: Optional[requests.Session] = None,
             timeout: float = INDEX_REQUEST_TIMEOUT_S) -> Any:
    """Fetch and decode a JSON document

    Raises:
        requests.RequestException: on connection errors or HTTP error status
        ValueError: if the body is not valid JSON
    """
    session = session or create_session()
    response = session.get(url, timeout=timeout)
    response.raise_for_status()
    return response.json()


def probe_download(url: str, session: requests.Session,
                   timeout=DEFAULT_TIMEOUT) -> Tuple[Optional[int], bool]:
    """HEAD a URL and report its size and byte-range support

    Returns:
        (content_length or None, accepts_byte_ranges)
    """
    response = session.head(url, timeout=timeout, allow_redirects=True)
    response.raise_for_status()

    content_length = None
    raw_length = response.headers.get('Content-Length')
    if raw_length is not None:
        try:
            content_length = int(raw_length)
        except ValueError:
            log.debug(f"Ignoring invalid Content-Length '{raw_length}' for {url}")
    accepts_ranges = response.headers.get('Accept-Ranges', '').strip().lower() == 'bytes'
    return content_length, accepts_ranges
