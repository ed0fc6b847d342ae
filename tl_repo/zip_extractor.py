"""
Zip Extractor
Extracts the wanted entries of a downloaded repository archive in parallel
"""

from __future__ import annotations

import os
import queue
import threading
import zipfile
import zlib
from pathlib import Path
from typing import Callable, Dict

import blake3

from config import CHUNK_SIZE
from utils.core.errors import ArchiveOpenError, HashMismatchError, classify_error
from utils.core.logging import get_logger
from utils.download.transfer import copy_stream
from utils.thread_manager import WorkerContext, run_worker_pool

from .models import RepoFile, TransferOutcome

log = get_logger()


class _EntryReadError(Exception):
    """Reading the archive entry failed (bad data, CRC mismatch)"""


class _EntryReader:
    """Wraps a zip entry so read failures are told apart from write failures"""

    def __init__(self, entry):
        self._entry = entry

    def read(self, size: int) -> bytes:
        try:
            return self._entry.read(size)
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise _EntryReadError(str(e)) from e


def run_archive(archive_path: Path, wanted: Dict[str, RepoFile], dest_root: Path, worker_count: int,
                on_bytes: Callable[[bytes], None]) -> TransferOutcome:
    """Extract `wanted` entries of `archive_path` into `dest_root`

    Args:
        archive_path: downloaded archive, deleted once extraction ends
        wanted: archive entry name -> manifest file
        dest_root: localized data directory
        worker_count: number of extractor threads
        on_bytes: called with every extracted chunk

    Returns:
        TransferOutcome; `fatal_error` is an ArchiveOpenError when the
        archive cannot be opened, or the first hash mismatch / disk error
    """
    try:
        archive = zipfile.ZipFile(archive_path)
    except (zipfile.BadZipFile, OSError) as e:
        log.error(f"Failed to open archive '{archive_path}': {e}")
        return TransferOutcome(fatal_error=ArchiveOpenError(f"Failed to open archive: {e}"))

    context = WorkerContext()
    verified: Dict[str, str] = {}
    verified_lock = threading.Lock()
    archive_lock = threading.Lock()

    with archive:
        entries = archive.infolist()
        pending: "queue.Queue[int]" = queue.Queue(maxsize=max(1, len(entries)))
        for index in range(len(entries)):
            pending.put_nowait(index)

        def extract_entry(info: zipfile.ZipInfo, repo_file: RepoFile) -> None:
            path = repo_file.fs_path(dest_root)
            path.parent.mkdir(parents=True, exist_ok=True)

            # ZipExtFile readers share the file handle safely; only opening needs the lock
            with archive_lock:
                entry = archive.open(info)

            hasher = blake3.blake3()

            def consume(chunk: bytes) -> None:
                hasher.update(chunk)
                on_bytes(chunk)

            with entry, open(path, 'wb') as fh:
                copy_stream(_EntryReader(entry), fh, CHUNK_SIZE, consume,
                            should_stop=lambda: context.stopped)

            file_hash = hasher.hexdigest()
            if file_hash != repo_file.hash:
                raise HashMismatchError(repo_file.path, repo_file.hash, file_hash)
            with verified_lock:
                verified[repo_file.path] = file_hash

        def worker() -> None:
            while not context.stopped:
                try:
                    index = pending.get_nowait()
                except queue.Empty:
                    return

                info = entries[index]
                repo_file = wanted.get(info.filename)
                if repo_file is None or info.is_dir():
                    continue

                try:
                    extract_entry(info, repo_file)
                except _EntryReadError as e:
                    log.warning(f"Failed to read archive entry '{info.filename}': {e}")
                    context.record_soft_error()
                except Exception as e:  # noqa: BLE001 - classified below
                    error = classify_error(e, repo_file.path)
                    if error.fatal:
                        if not context.stopped:
                            log.error(f"Extraction aborted: {error}")
                        context.fail(error)
                        return
                    log.warning(f"Failed to extract '{info.filename}': {error}")
                    context.record_soft_error()

        log.debug(f"Extracting {len(wanted)} of {len(entries)} archive entries with {worker_count} workers")
        run_worker_pool("zip_extractor", max(1, worker_count), worker)

    soft_errors = context.soft_errors.value
    try:
        os.remove(archive_path)
    except OSError as e:
        log.error(f"Failed to remove temporary file '{archive_path}': {e}")
        soft_errors += 1

    return TransferOutcome(verified=verified, soft_errors=soft_errors, fatal_error=context.fatal.error)
