#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Download Utilities

This subpackage contains download and network utilities:
- http_client: Session construction, JSON fetching, range probing
- transfer: Buffered stream copy and parallel byte-range downloader
"""

from utils.download.http_client import create_session, get_json, probe_download
from utils.download.transfer import copy_stream, download_parallel

__all__ = [
    'create_session',
    'get_json',
    'probe_download',
    'copy_stream',
    'download_parallel',
]
