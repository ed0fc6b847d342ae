#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Global constants for the translation repository sync
All tuning values are centralized here for easy tracking and modification
"""

# =============================================================================
# APPLICATION METADATA
# =============================================================================

APP_NAME = "TlSync"                      # Folder name under the user data directory
APP_VERSION = "0.4.0"                    # Application version
APP_USER_AGENT = f"TlSync/{APP_VERSION}"  # User-Agent header for HTTP requests


# =============================================================================
# HTTP CONSTANTS
# =============================================================================

HTTP_CONNECT_TIMEOUT_S = 10              # Seconds to establish a connection
HTTP_READ_TIMEOUT_S = 60                 # Seconds between received bytes before giving up
INDEX_REQUEST_TIMEOUT_S = 20             # Timeout for manifest / meta index requests
HTTP_MAX_RETRIES = 2                     # Retries for connection failures and gateway errors
HTTP_RETRY_BACKOFF_S = 0.5               # Backoff factor between retries
HTTP_RETRY_STATUSES = (429, 502, 503, 504)


# =============================================================================
# TRANSFER CONSTANTS
# =============================================================================

CHUNK_SIZE = 8192                        # Buffer size for streamed writes (8 KiB)
MIN_PARALLEL_CHUNK_SIZE = 5 * 1024 * 1024  # Smallest byte-range window for parallel downloads (5 MiB)

# Worker threads lower their own scheduling priority
WORKER_NICE_INCREMENT = 10               # Niceness added on POSIX systems
WORKER_WINDOWS_PRIORITY = -2             # THREAD_PRIORITY_LOWEST


# =============================================================================
# DOWNLOAD STRATEGY CONSTANTS
# =============================================================================

# Hybrid update limits based on hosting platform
INCREMENTAL_UPDATE_LIMIT_RATE_LIMITED = 50   # Conservative for GitHub-hosted repositories
INCREMENTAL_UPDATE_LIMIT_DEFAULT = 200       # Aggressive for CDN/custom servers
INCREMENTAL_SIZE_THRESHOLD = 50 * 1024 * 1024  # Prefer the archive above 50 MiB of changes

# Warn user if the archive download is N times larger than the actual changes
ZIP_SIZE_WARNING_RATIO = 2.0

# Hosts known to throttle many small requests
RATE_LIMITED_HOST_MARKERS = (
    "github.com",
    "githubusercontent.com",
    "github.io",
)


# =============================================================================
# FILE AND DIRECTORY NAMES
# =============================================================================

LOCALIZED_DATA_DIR = "localized_data"    # Relative to the data directory
REPO_CACHE_FILENAME = ".tl_repo_cache"   # Persisted path -> hash manifest
TEMP_ARCHIVE_FILENAME = ".tmp.zip"       # Archive download target inside the localized data dir
CONFIG_FILENAME = "config.ini"           # User settings file
CONFIG_SECTION = "TranslationRepo"       # Section holding the repository settings


# =============================================================================
# LOGGING CONSTANTS
# =============================================================================

LOG_MAX_FILE_SIZE_MB_DEFAULT = 10        # Roll over to a new file above this size
LOG_MAX_AGE_S = 24 * 60 * 60             # Delete logs older than 1 day
LOG_SEPARATOR_WIDTH = 60                 # Width of section separators
LOG_FILE_PATTERN = "tlsync_*.log"
UPDATER_LOG_FILE_PATTERN = "log_updater_*.log"
LOG_TIMESTAMP_FORMAT = "%d-%m-%Y_%H-%M-%S"  # European format, Windows-compatible


# =============================================================================
# DEFAULT ARGUMENTS
# =============================================================================

DEFAULT_LOG_MODE = "customer"
DEFAULT_META_INDEX_URL = ""               # Empty until the user picks a repository list
