"""
Meta Index
Lists the translation repositories a user can pick from
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from utils.core.errors import IndexFetchError
from utils.core.logging import get_logger
from utils.download.http_client import get_json

log = get_logger()


@dataclass(frozen=True)
class RepoInfo:
    """One selectable translation repository"""
    name: str
    index: str
    short_desc: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "RepoInfo":
        return cls(
            name=str(data["name"]),
            index=str(data["index"]),
            short_desc=data.get("short_desc"),
            region=data.get("region"),
        )


def fetch_meta_index(meta_index_url: str, session: Optional[requests.Session] = None,
                     region: Optional[str] = None) -> List[RepoInfo]:
    """Fetch the list of available translation repositories

    Args:
        meta_index_url: URL of the JSON list
        session: optional session to reuse
        region: only keep repositories for this game region (or without one)

    Raises:
        IndexFetchError: network failure or malformed list
    """
    try:
        data = get_json(meta_index_url, session)
    except (requests.RequestException, ValueError) as e:
        raise IndexFetchError(f"Failed to fetch repository list: {e}") from e

    if not isinstance(data, list):
        raise IndexFetchError("Repository list must be a JSON array")

    repos = []
    for entry in data:
        try:
            repos.append(RepoInfo.from_json(entry))
        except (KeyError, TypeError) as e:
            log.warning(f"Skipping malformed repository entry: {e!r}")

    if region is not None:
        repos = [repo for repo in repos if repo.region in (None, region)]
    return repos
