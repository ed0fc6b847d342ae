import errno

import requests

from utils.core.errors import (
    HashMismatchError,
    LocalIOError,
    NetworkError,
    OutOfDiskSpaceError,
    classify_error,
)


def test_request_errors_are_non_fatal():
    error = classify_error(requests.ConnectionError("refused"), "a.json")
    assert isinstance(error, NetworkError)
    assert not error.fatal
    assert "a.json" in str(error)


def test_disk_full_is_fatal():
    error = classify_error(OSError(errno.ENOSPC, "No space left on device"))
    assert isinstance(error, OutOfDiskSpaceError)
    assert error.fatal


def test_other_os_errors_are_local_io():
    error = classify_error(PermissionError(errno.EACCES, "denied"))
    assert isinstance(error, LocalIOError)
    assert not error.fatal
    assert isinstance(error.__cause__, PermissionError)


def test_classified_errors_pass_through():
    original = HashMismatchError("a.json", "aa", "bb")
    assert classify_error(original) is original
    assert original.fatal
