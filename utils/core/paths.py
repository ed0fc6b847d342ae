#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Path utilities
Handles user data directories and remote/local path conversion
"""

import os
import re
from pathlib import Path, PurePosixPath, PureWindowsPath

from config import APP_NAME, CONFIG_FILENAME, LOCALIZED_DATA_DIR, REPO_CACHE_FILENAME

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def get_user_data_dir() -> Path:
    """
    Get the user data directory where the application can write files.
    This ensures proper permissions regardless of where the app is installed.
    """
    if os.name == "nt":  # Windows
        # Use %LOCALAPPDATA% for user-specific data (logs, cache, etc.)
        localappdata = os.environ.get("LOCALAPPDATA")
        if localappdata:
            return Path(localappdata) / APP_NAME
        userprofile = os.environ.get("USERPROFILE")
        if userprofile:
            return Path(userprofile) / "AppData" / "Local" / APP_NAME
        # Last resort: current directory
        return Path.cwd() / APP_NAME
    # Linux/macOS
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def get_logs_dir() -> Path:
    """
    Get the logs directory path.
    Creates the directory if it doesn't exist.
    """
    logs_dir = get_user_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def get_config_file_path(data_dir: Path = None) -> Path:
    """Get the user settings file path"""
    return (data_dir or get_user_data_dir()) / CONFIG_FILENAME


def get_localized_data_dir(data_dir: Path = None) -> Path:
    """Get the directory holding the synchronized localized data"""
    return (data_dir or get_user_data_dir()) / LOCALIZED_DATA_DIR


def get_repo_cache_path(data_dir: Path = None) -> Path:
    """Get the path of the persisted repository cache"""
    return (data_dir or get_user_data_dir()) / REPO_CACHE_FILENAME


def concat_unix_path(left: str, right: str) -> str:
    """
    Join two remote path fragments with exactly one forward slash.
    Independent of the host OS, used for URLs and archive entry names.
    """
    if not left:
        return right
    if not right:
        return left
    return left.rstrip("/") + "/" + right.lstrip("/")


def is_safe_repo_path(path: str) -> bool:
    """
    Check that a manifest path stays inside the localized data directory.

    Rejects empty paths, any '..' sequence and rooted paths in either
    POSIX or Windows form (including drive prefixes).
    """
    if not path or ".." in path:
        return False
    if path.startswith(("/", "\\")) or _DRIVE_PREFIX.match(path):
        return False
    return not (PurePosixPath(path).is_absolute() or PureWindowsPath(path).is_absolute())


def repo_path_to_fs(root_dir: Path, repo_path: str) -> Path:
    """Map a forward-slash repository path onto the local file system"""
    return root_dir.joinpath(*[part for part in repo_path.split("/") if part])
