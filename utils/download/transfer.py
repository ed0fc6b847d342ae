#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Streaming transfer primitives
Buffered response-to-file copy and the parallel byte-range downloader
"""

from __future__ import annotations

import os
import queue
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional

import requests

from utils.core.errors import NetworkError, OutOfDiskSpaceError, TransferCancelledError, is_disk_full
from utils.core.logging import get_logger
from utils.download.http_client import DEFAULT_TIMEOUT, create_session, probe_download
from utils.thread_manager import WorkerContext, run_worker_pool

log = get_logger()

BytesCallback = Callable[[bytes], None]


def _iter_chunks(source, chunk_size: int) -> Iterator[bytes]:
    # Streaming requests.Response
    if hasattr(source, "iter_content"):
        for chunk in source.iter_content(chunk_size=chunk_size):
            if chunk:
                yield chunk
        return
    # Any binary file-like (zip entries, local files)
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _write_all(dest: BinaryIO, data: bytes) -> None:
    try:
        written = dest.write(data)
    except OSError as e:
        if is_disk_full(e):
            raise OutOfDiskSpaceError() from e
        raise
    if written is not None and written != len(data):
        raise OutOfDiskSpaceError(f"Short write: {written} of {len(data)} bytes")


def copy_stream(source, dest: BinaryIO, buffer_size: int, on_bytes: BytesCallback,
                should_stop: Optional[Callable[[], bool]] = None) -> int:
    """Stream `source` into `dest` through a fixed-size buffer

    Every chunk read is handed to `on_bytes` (progress, hashing) before it
    is buffered. The buffer is flushed to `dest` whenever it fills up and
    once more at end of stream.

    Args:
        source: streaming requests.Response or binary file-like object
        dest: writable binary file
        buffer_size: bytes accumulated before each write
        on_bytes: called with every chunk read
        should_stop: polled between chunks; True aborts the copy

    Returns:
        Number of bytes copied

    Raises:
        OutOfDiskSpaceError: short write or ENOSPC
        TransferCancelledError: should_stop() returned True
    """
    buffer = bytearray()
    copied = 0
    for chunk in _iter_chunks(source, buffer_size):
        if should_stop is not None and should_stop():
            raise TransferCancelledError()
        on_bytes(chunk)
        copied += len(chunk)
        buffer += chunk
        if len(buffer) >= buffer_size:
            _write_all(dest, bytes(buffer))
            buffer.clear()

    if buffer:
        _write_all(dest, bytes(buffer))
    return copied


def _fsync(path: Path) -> None:
    with open(path, 'r+b') as fh:
        os.fsync(fh.fileno())


def _download_single(url: str, dest_path: Path, session: requests.Session, chunk_size: int,
                     on_bytes: BytesCallback, timeout) -> None:
    log.debug(f"Using single-threaded download for: {url}")
    with session.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with open(dest_path, 'wb') as fh:
            copy_stream(response, fh, chunk_size, on_bytes)
            fh.flush()
            os.fsync(fh.fileno())


def _download_ranges(url: str, dest_path: Path, length: int, worker_count: int, min_chunk_size: int,
                     chunk_size: int, on_bytes: BytesCallback,
                     session_factory: Callable[[], requests.Session], timeout) -> None:
    # Pre-size the file so every worker can write its window in place
    with open(dest_path, 'wb') as fh:
        fh.truncate(length)

    per_thread = max(length // worker_count, min_chunk_size)
    windows: "queue.Queue[tuple]" = queue.Queue()
    for start in range(0, length, per_thread):
        windows.put((start, min(start + per_thread, length) - 1))
    window_count = windows.qsize()
    log.debug(f"Parallel download of {url}: {length} bytes in {window_count} windows, {worker_count} workers")

    context = WorkerContext()

    def fetch_window(session: requests.Session, fh: BinaryIO, start: int, end: int) -> None:
        headers = {'Range': f"bytes={start}-{end}"}
        with session.get(url, headers=headers, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            if response.status_code != 206:
                raise NetworkError(f"Server ignored range request bytes={start}-{end} ({response.status_code})")
            fh.seek(start)
            copied = copy_stream(response, fh, chunk_size, on_bytes, should_stop=lambda: context.stopped)
        expected = end - start + 1
        if copied != expected:
            raise NetworkError(f"Range bytes={start}-{end} returned {copied} of {expected} bytes")

    def worker() -> None:
        try:
            fh = open(dest_path, 'r+b')
        except OSError as e:
            context.fail(e)
            return
        session = session_factory()
        with session, fh:
            while not context.stopped:
                try:
                    start, end = windows.get_nowait()
                except queue.Empty:
                    return
                try:
                    fetch_window(session, fh, start, end)
                except Exception as e:  # noqa: BLE001 - any failure aborts the whole download
                    if not isinstance(e, TransferCancelledError):
                        log.error(f"Range download failed for bytes={start}-{end}: {e}")
                    context.fail(e)
                    return

    run_worker_pool("downloader_chunk", min(worker_count, window_count), worker)

    error = context.fatal.error
    if error is not None:
        raise error
    _fsync(dest_path)


def download_parallel(url: str, dest_path: Path, worker_count: int, min_chunk_size: int,
                      chunk_size: int, on_bytes: BytesCallback,
                      session_factory: Callable[[], requests.Session] = create_session,
                      on_length: Optional[Callable[[Optional[int]], None]] = None,
                      timeout=DEFAULT_TIMEOUT) -> None:
    """Download `url` into `dest_path`, splitting it into byte ranges when possible

    Uses `worker_count` threads issuing disjoint Range requests when the
    server advertises `Accept-Ranges: bytes` and the body is larger than
    `min_chunk_size`; otherwise falls back to one streamed GET.

    Args:
        url: file to download
        dest_path: target file, created or overwritten
        worker_count: number of range workers
        min_chunk_size: smallest window per worker, also the parallel threshold
        chunk_size: buffer size used by copy_stream
        on_bytes: called with every received chunk, from any worker thread
        session_factory: builds one requests.Session per thread
        on_length: called once with the advertised Content-Length (or None)

    Raises:
        The first error raised by any worker (requests errors, OSError,
        OutOfDiskSpaceError, NetworkError)
    """
    dest_path = Path(dest_path)
    session = session_factory()
    with session:
        try:
            content_length, accepts_ranges = probe_download(url, session, timeout)
        except requests.RequestException as e:
            log.debug(f"HEAD request failed for {url}, falling back to a plain GET: {e}")
            content_length, accepts_ranges = None, False

        if on_length is not None:
            on_length(content_length)

        if content_length is not None and accepts_ranges and content_length > min_chunk_size:
            _download_ranges(url, dest_path, content_length, max(1, worker_count), min_chunk_size,
                             chunk_size, on_bytes, session_factory, timeout)
        else:
            _download_single(url, dest_path, session, chunk_size, on_bytes, timeout)
