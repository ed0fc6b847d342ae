import errno
import io
import os

import pytest
import requests

from conftest import blake3_hex
from utils.core.errors import NetworkError, OutOfDiskSpaceError, TransferCancelledError
from utils.download.transfer import copy_stream, download_parallel


class ShortWriter(io.BytesIO):
    def write(self, data):
        super().write(data[:-1])
        return len(data) - 1


class FullDisk(io.BytesIO):
    def write(self, data):
        raise OSError(errno.ENOSPC, os.strerror(errno.ENOSPC))


class FakeResponse:
    def __init__(self, chunks):
        self.chunks = chunks

    def iter_content(self, chunk_size=None):
        return iter(self.chunks)


def test_copy_stream_buffers_writes():
    writes = []

    class Recorder(io.BytesIO):
        def write(self, data):
            writes.append(len(data))
            return super().write(data)

    seen = []
    dest = Recorder()
    copied = copy_stream(io.BytesIO(b"x" * 25), dest, 10, seen.append)

    assert copied == 25
    assert dest.getvalue() == b"x" * 25
    assert writes == [10, 10, 5]
    assert b"".join(seen) == b"x" * 25


def test_copy_stream_reads_streaming_responses():
    dest = io.BytesIO()
    copied = copy_stream(FakeResponse([b"ab", b"", b"cd"]), dest, 8192, lambda chunk: None)
    assert copied == 4
    assert dest.getvalue() == b"abcd"


def test_short_write_is_out_of_disk_space():
    with pytest.raises(OutOfDiskSpaceError):
        copy_stream(io.BytesIO(b"data"), ShortWriter(), 8192, lambda chunk: None)


def test_enospc_is_out_of_disk_space():
    with pytest.raises(OutOfDiskSpaceError):
        copy_stream(io.BytesIO(b"data"), FullDisk(), 8192, lambda chunk: None)


def test_copy_stream_stops_when_asked():
    with pytest.raises(TransferCancelledError):
        copy_stream(io.BytesIO(b"data"), io.BytesIO(), 1, lambda chunk: None, should_stop=lambda: True)


def test_parallel_download_matches_sequential(http_server, tmp_path):
    payload = os.urandom(100_000)
    http_server.add("big.bin", payload)

    lengths = []
    received = []
    download_parallel(http_server.url("big.bin"), tmp_path / "parallel.bin", worker_count=4,
                      min_chunk_size=10_000, chunk_size=4096,
                      on_bytes=lambda chunk: received.append(len(chunk)), on_length=lengths.append)

    http_server.accept_ranges = False
    download_parallel(http_server.url("big.bin"), tmp_path / "single.bin", worker_count=4,
                      min_chunk_size=10_000, chunk_size=4096, on_bytes=lambda chunk: None)

    parallel = (tmp_path / "parallel.bin").read_bytes()
    assert blake3_hex(parallel) == blake3_hex((tmp_path / "single.bin").read_bytes()) == blake3_hex(payload)
    assert lengths == [len(payload)]
    assert sum(received) == len(payload)

    ranged = [r for r in http_server.requested("GET") if r[2] is not None]
    assert len(ranged) == 4
    assert ranged[0][2].startswith("bytes=")


def test_small_file_uses_single_request(http_server, tmp_path):
    http_server.add("small.bin", b"hello")

    download_parallel(http_server.url("small.bin"), tmp_path / "small.bin", worker_count=4,
                      min_chunk_size=10_000, chunk_size=4096, on_bytes=lambda chunk: None)

    assert (tmp_path / "small.bin").read_bytes() == b"hello"
    assert all(r[2] is None for r in http_server.requested("GET"))


def test_ignored_range_request_is_an_error(http_server, tmp_path):
    http_server.add("big.bin", b"z" * 50_000)
    http_server.ignore_ranges = True

    with pytest.raises(NetworkError):
        download_parallel(http_server.url("big.bin"), tmp_path / "big.bin", worker_count=2,
                          min_chunk_size=10_000, chunk_size=4096, on_bytes=lambda chunk: None)


def test_missing_file_raises(http_server, tmp_path):
    with pytest.raises(requests.HTTPError):
        download_parallel(http_server.url("nope.bin"), tmp_path / "nope.bin", worker_count=2,
                          min_chunk_size=10_000, chunk_size=4096, on_bytes=lambda chunk: None)


def test_failed_window_stops_other_windows(http_server, tmp_path):
    # 100_003 bytes over 4 workers: windows start at 0, 25_000, 50_000, 75_000 and 100_000
    http_server.add("big.bin", os.urandom(100_003))
    http_server.range_status[0] = 500
    for start in (25_000, 50_000, 75_000):
        http_server.range_delay[start] = 0.5
    received = []

    with pytest.raises(requests.HTTPError):
        download_parallel(http_server.url("big.bin"), tmp_path / "big.bin", worker_count=4,
                          min_chunk_size=10_000, chunk_size=4096,
                          on_bytes=lambda chunk: received.append(len(chunk)))

    ranges = [r[2] for r in http_server.requested("GET") if r[2] is not None]
    assert "bytes=0-24999" in ranges
    assert "bytes=100000-100002" not in ranges
    assert len(ranges) <= 4
    assert sum(received) == 0
