"""
Repository Cache
Persisted record of the last verified hash of every localized data file
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from utils.core.logging import get_logger

from .models import RepoCache

log = get_logger()


def load_cache(cache_path: Path) -> RepoCache:
    """Load the repository cache

    A missing or unreadable file yields an empty cache, which forces a full
    resync because its base URL never matches a real index.
    """
    if not cache_path.exists():
        return RepoCache()

    try:
        with open(cache_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        files = data.get("files") or {}
        if not isinstance(files, dict):
            raise ValueError("'files' must be an object")
        return RepoCache(
            base_url=str(data.get("base_url") or ""),
            files={str(path): str(file_hash).lower() for path, file_hash in files.items()},
        )
    except (json.JSONDecodeError, ValueError, AttributeError, OSError) as e:
        log.warning(f"Failed to load repository cache, starting from scratch: {e}")
        return RepoCache()


def save_cache(cache: RepoCache, cache_path: Path) -> None:
    """Write the repository cache in one atomic replace

    Raises:
        OSError: the cache could not be written; the previous file is left intact
    """
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=cache_path.name, suffix=".tmp", dir=cache_path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(cache.to_json(), f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, cache_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    log.debug(f"Saved repository cache with {len(cache.files)} entries")
