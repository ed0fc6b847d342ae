"""
Incremental File Downloader
Fetches changed files one request at a time, verifying each BLAKE3 hash
"""

from __future__ import annotations

import queue
import threading
from pathlib import Path
from typing import Callable, Dict, List

import blake3
import requests

from config import CHUNK_SIZE
from utils.core.errors import HashMismatchError, classify_error
from utils.core.logging import get_logger
from utils.core.paths import concat_unix_path
from utils.download.http_client import DEFAULT_TIMEOUT, create_session
from utils.download.transfer import copy_stream
from utils.thread_manager import WorkerContext, run_worker_pool

from .models import RepoFile, TransferOutcome

log = get_logger()


def download_repo_file(session: requests.Session, repo_file: RepoFile, base_url: str, dest_root: Path,
                       on_bytes: Callable[[bytes], None], should_stop: Callable[[], bool],
                       timeout=DEFAULT_TIMEOUT) -> str:
    """Download one file into `dest_root` and return its verified hash

    Raises:
        HashMismatchError: content does not hash to the manifest value
        OutOfDiskSpaceError: short write
        requests.RequestException, OSError: per-file failures
    """
    path = repo_file.fs_path(dest_root)
    path.parent.mkdir(parents=True, exist_ok=True)

    url = concat_unix_path(base_url, repo_file.path)
    hasher = blake3.blake3()

    def consume(chunk: bytes) -> None:
        hasher.update(chunk)
        on_bytes(chunk)

    with session.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(path, 'wb') as fh:
            copy_stream(response, fh, CHUNK_SIZE, consume, should_stop=should_stop)

    file_hash = hasher.hexdigest()
    if file_hash != repo_file.hash:
        raise HashMismatchError(repo_file.path, repo_file.hash, file_hash)
    return file_hash


def run_incremental(files: List[RepoFile], base_url: str, dest_root: Path, worker_count: int,
                    on_bytes: Callable[[bytes], None],
                    session_factory: Callable[[], requests.Session] = create_session,
                    timeout=DEFAULT_TIMEOUT) -> TransferOutcome:
    """Download `files` from `base_url` with a pool of low-priority workers

    Hash mismatches and disk exhaustion stop every worker and are returned
    as `fatal_error`. Any other per-file failure is counted in
    `soft_errors` and the run continues.
    """
    pending: "queue.Queue[RepoFile]" = queue.Queue(maxsize=max(1, len(files)))
    for repo_file in files:
        pending.put_nowait(repo_file)

    context = WorkerContext()
    verified: Dict[str, str] = {}
    verified_lock = threading.Lock()

    def worker() -> None:
        with session_factory() as session:
            while not context.stopped:
                try:
                    repo_file = pending.get_nowait()
                except queue.Empty:
                    return

                try:
                    file_hash = download_repo_file(session, repo_file, base_url, dest_root, on_bytes,
                                                   lambda: context.stopped, timeout)
                except Exception as e:  # noqa: BLE001 - classified below
                    error = classify_error(e, repo_file.path)
                    if error.fatal:
                        if not context.stopped:
                            log.error(f"Update aborted: {error}")
                        context.fail(error)
                        return
                    log.warning(f"Failed to download '{repo_file.path}': {error}")
                    context.record_soft_error()
                    continue

                with verified_lock:
                    verified[repo_file.path] = file_hash

    log.debug(f"Incremental download of {len(files)} files with {worker_count} workers")
    run_worker_pool("downloader", min(max(1, worker_count), max(1, len(files))), worker)

    return TransferOutcome(
        verified=verified,
        soft_errors=context.soft_errors.value,
        fatal_error=context.fatal.error,
    )
