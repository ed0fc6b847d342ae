#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Update error taxonomy

Fatal errors abort a whole run and block the cache commit.
Non-fatal errors are scoped to one file or archive entry and are only counted.
"""

from __future__ import annotations

import errno
from typing import Optional

import requests


class UpdateError(Exception):
    """Base class for every error raised while syncing the translation repository"""

    fatal = False


class IndexFetchError(UpdateError):
    """The repository manifest could not be fetched or parsed"""


class FatalUpdateError(UpdateError):
    fatal = True


class HashMismatchError(FatalUpdateError):
    def __init__(self, path: str, expected: str = "", actual: str = ""):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"File hash mismatch: {path}")


class OutOfDiskSpaceError(FatalUpdateError):
    def __init__(self, message: str = "Out of disk space"):
        super().__init__(message)


class ArchiveOpenError(FatalUpdateError):
    """The downloaded archive could not be opened"""


class ArchiveDownloadError(FatalUpdateError):
    """The archive download itself failed"""


class TransferCancelledError(FatalUpdateError):
    def __init__(self, message: str = "Download cancelled"):
        super().__init__(message)


class NonFatalUpdateError(UpdateError):
    pass


class NetworkError(NonFatalUpdateError):
    """Connection failure or HTTP error status for one item"""


class LocalIOError(NonFatalUpdateError):
    """Local file system error scoped to one item"""


def is_disk_full(exc: BaseException) -> bool:
    return isinstance(exc, OSError) and exc.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC))


def classify_error(exc: BaseException, item: Optional[str] = None) -> UpdateError:
    """
    Map an arbitrary exception raised while transferring one item onto the taxonomy.

    Args:
        exc: The exception caught by a worker
        item: Optional file path / entry name used in the message

    Returns:
        An UpdateError instance (the original one when already classified)
    """
    if isinstance(exc, UpdateError):
        return exc
    prefix = f"{item}: " if item else ""
    if isinstance(exc, requests.RequestException):
        error = NetworkError(f"{prefix}{exc}")
    elif is_disk_full(exc):
        error = OutOfDiskSpaceError()
    elif isinstance(exc, OSError):
        error = LocalIOError(f"{prefix}{exc}")
    else:
        error = LocalIOError(f"{prefix}{type(exc).__name__}: {exc}")
    error.__cause__ = exc
    return error
