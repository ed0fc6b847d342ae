#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Logging configuration and utilities
"""

# Standard library imports
import logging
import os
import queue
import sys
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

# Local imports
from config import (
    DEFAULT_LOG_MODE,
    LOG_FILE_PATTERN,
    LOG_MAX_AGE_S,
    LOG_MAX_FILE_SIZE_MB_DEFAULT,
    LOG_SEPARATOR_WIDTH,
    LOG_TIMESTAMP_FORMAT,
    UPDATER_LOG_FILE_PATTERN,
)

# Add custom TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


def trace(self, message, *args, **kwargs):
    """Log a trace message (ultra-detailed, below DEBUG)"""
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = trace

# Global log mode (set by setup_logging)
_CURRENT_LOG_MODE = 'customer'
_NAMED_LOGGERS: Dict[str, logging.Logger] = {}
_NAMED_LOGGER_DIRS: Dict[str, Path] = {}

_FORMATS = {
    'customer': "%(_when)s | %(message)s",
    'verbose': "%(_when)s | %(levelname)-7s | %(message)s",
    'debug': "%(_when)s | %(levelname)-7s | %(name)-15s | %(threadName)-22s | %(message)s",
}

_LEVELS = {
    'customer': logging.INFO,
    'verbose': logging.DEBUG,
    'debug': TRACE,
}


def get_log_mode() -> str:
    """Get the current logging mode"""
    return _CURRENT_LOG_MODE


class _TimestampFormatter(logging.Formatter):
    """Formatter that injects a `_when` field using a fixed time pattern"""

    def __init__(self, fmt: str, when_format: str):
        super().__init__(fmt)
        self.when_format = when_format

    def format(self, record):
        record._when = time.strftime(self.when_format, time.localtime(record.created))
        return super().format(record)


class SizeRotatingCompositeHandler(logging.Handler):
    """
    A handler that delegates to an inner file handler and rolls over
    to a new file when the current file size reaches a threshold.

    - Creates files as: base.ext, base.ext.1, base.ext.2, ...
    - Does not delete on rotation (retention handled by cleanup_logs)
    """
    def __init__(self, base_path: Path, max_bytes: int):
        super().__init__()
        self.base_path = Path(base_path)
        self.max_bytes = max_bytes
        self._index = 0
        self.current_path = self._compute_current_path()
        self.current_handler = logging.FileHandler(self.current_path, encoding='utf-8')

    def _compute_current_path(self) -> Path:
        if self._index == 0:
            return self.base_path
        return self.base_path.with_name(f"{self.base_path.name}.{self._index}")

    def _maybe_rotate(self):
        current_size = self.current_path.stat().st_size if self.current_path.exists() else 0
        if current_size < self.max_bytes:
            return
        self.current_handler.close()
        self._index += 1
        self.current_path = self._compute_current_path()
        self.current_handler = logging.FileHandler(self.current_path, encoding='utf-8')
        self.current_handler.setLevel(self.level)
        if self.formatter is not None:
            self.current_handler.setFormatter(self.formatter)

    def emit(self, record):
        try:
            self._maybe_rotate()
            self.current_handler.emit(record)
        except Exception:
            # Never break the app because a log line could not be written
            self.handleError(record)

    def setFormatter(self, fmt):
        super().setFormatter(fmt)
        self.current_handler.setFormatter(fmt)

    def setLevel(self, level):
        super().setLevel(level)
        self.current_handler.setLevel(level)

    def close(self):
        self.current_handler.close()
        super().close()


class QueueHandler(logging.Handler):
    """A queue-based handler that never blocks the calling thread"""

    def __init__(self, target_handler: logging.Handler, maxsize: int = 1000):
        super().__init__()
        self.target_handler = target_handler
        self.queue = queue.Queue(maxsize=maxsize)
        self._stop_event = threading.Event()
        self.worker_thread = threading.Thread(target=self._worker, daemon=True, name="LogQueueWorker")
        self.worker_thread.start()

    def _worker(self):
        while not self._stop_event.is_set():
            try:
                record = self.queue.get(timeout=0.1)
            except queue.Empty:
                continue
            if record is None:  # Sentinel value to stop
                break
            try:
                self.target_handler.emit(record)
            finally:
                self.queue.task_done()

    def emit(self, record):
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            # Drop the message rather than stall a download worker
            pass

    def close(self):
        self._stop_event.set()
        try:
            self.queue.put_nowait(None)
        except queue.Full:
            pass
        if self.worker_thread.is_alive():
            self.worker_thread.join(timeout=1.0)
        self.target_handler.close()
        super().close()


class SafeStreamHandler(logging.StreamHandler):
    """A stream handler that tolerates missing or broken streams (windowed hosts)"""

    def __init__(self, stream=None):
        if stream is None:
            import io
            stream = io.StringIO()
        super().__init__(stream)

    def emit(self, record):
        try:
            msg = self.format(record)
            self.stream.write(msg + self.terminator)
            self.stream.flush()
        except (AttributeError, OSError, ValueError):
            pass


def _console_stream():
    if sys.stdout is not None and getattr(sys.stdout, 'name', None) == os.devnull:
        return sys.stderr if sys.stderr is not None else sys.stdout
    return sys.stdout if sys.stdout is not None else sys.stderr


def setup_logging(log_mode: str = DEFAULT_LOG_MODE, *, write_logs: bool = True,
                  logs_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Setup logging configuration with three modes.

    Args:
        log_mode: 'customer' (clean logs), 'verbose' (developer), or 'debug' (ultra-detailed)
        write_logs: If False, skip creating log files.
        logs_dir: Override for the log directory (defaults to <user data>/logs).

    Returns:
        Path of the session log file, or None when file logging is disabled.
    """
    global _CURRENT_LOG_MODE
    if log_mode not in _FORMATS:
        log_mode = 'customer'
    _CURRENT_LOG_MODE = log_mode

    console = SafeStreamHandler(_console_stream())
    console.setFormatter(_TimestampFormatter(_FORMATS[log_mode], "%H:%M:%S"))
    console_handler = QueueHandler(console)
    console_handler.setLevel(_LEVELS[log_mode])

    file_handler = None
    log_file = None
    if write_logs:
        try:
            if logs_dir is None:
                from .paths import get_logs_dir
                logs_dir = get_logs_dir()
            logs_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
            log_file = logs_dir / f"tlsync_{timestamp}.log"
            max_bytes = int(LOG_MAX_FILE_SIZE_MB_DEFAULT * 1024 * 1024)
            file_handler = SizeRotatingCompositeHandler(log_file, max_bytes)
            file_handler.setFormatter(_TimestampFormatter(_FORMATS[log_mode], "%Y-%m-%d %H:%M:%S"))
            file_handler.setLevel(_LEVELS[log_mode])
        except OSError as e:
            # If file logging fails, continue without it
            file_handler = None
            log_file = None
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console_handler)
    if file_handler:
        root.addHandler(file_handler)

    # Root logger must be at TRACE so every handler sees every record
    root.setLevel(TRACE)

    startup = logging.getLogger("startup")
    if log_mode == 'customer':
        startup.info(f"Translation sync logging started ({log_file.name if log_file else 'logs disabled'})")
    else:
        startup.info("=" * LOG_SEPARATOR_WIDTH)
        startup.info(f"Translation sync - {log_mode} logging (log file: {log_file.name if log_file else 'disabled'})")
        startup.info("=" * LOG_SEPARATOR_WIDTH)

    # Suppress HTTP connection chatter
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return log_file


def get_logger(name: str = "tlsync") -> logging.Logger:
    """Get a logger instance"""
    return logging.getLogger(name)


def get_named_logger(name: str, prefix: str, log_mode: str = None,
                     logs_dir: Optional[Path] = None) -> logging.Logger:
    """
    Create (or return) a dedicated logger that writes to its own rotating file.

    Args:
        name: Logger name (unique key).
        prefix: File prefix (e.g., 'log_updater').
        log_mode: Optional override for formatting levels; defaults to current global mode.
        logs_dir: Override for the log directory.

    Loggers are process-wide and cached by name. The first call for a name
    fixes its log directory; later calls return that logger even when they
    pass another `logs_dir`.
    """
    if name in _NAMED_LOGGERS:
        logger = _NAMED_LOGGERS[name]
        configured_dir = _NAMED_LOGGER_DIRS.get(name)
        if logs_dir is not None and configured_dir is not None and Path(logs_dir) != configured_dir:
            logger.debug(f"Logger '{name}' keeps writing to {configured_dir}, ignoring {logs_dir}")
        return logger

    if log_mode is None:
        log_mode = _CURRENT_LOG_MODE

    logger = logging.getLogger(name)
    try:
        if logs_dir is None:
            from .paths import get_logs_dir
            logs_dir = get_logs_dir()
        logs_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        max_bytes = int(LOG_MAX_FILE_SIZE_MB_DEFAULT * 1024 * 1024)
        file_handler = SizeRotatingCompositeHandler(logs_dir / f"{prefix}_{timestamp}.log", max_bytes)
        file_handler.setFormatter(_TimestampFormatter(_FORMATS.get(log_mode, _FORMATS['customer']),
                                                      "%Y-%m-%d %H:%M:%S"))
        file_handler.setLevel(_LEVELS.get(log_mode, logging.INFO))

        logger.handlers.clear()
        logger.addHandler(file_handler)
        logger.setLevel(TRACE)
        # Still forward to the console/session log
        logger.propagate = True
    except OSError as exc:
        logger.setLevel(TRACE)
        logger.propagate = True
        logger.warning(f"Failed to configure dedicated logger '{name}': {exc}")

    _NAMED_LOGGERS[name] = logger
    return logger


def cleanup_logs(logs_dir: Optional[Path] = None, max_age_s: float = LOG_MAX_AGE_S) -> int:
    """
    Delete session and updater logs older than `max_age_s`.

    Returns:
        Number of files removed
    """
    if logs_dir is None:
        from .paths import get_user_data_dir
        logs_dir = get_user_data_dir() / "logs"
    if not logs_dir.exists():
        return 0

    removed = 0
    now = time.time()
    for pattern in (LOG_FILE_PATTERN, UPDATER_LOG_FILE_PATTERN):
        for log_file in logs_dir.glob(pattern):
            try:
                if now - log_file.stat().st_mtime > max_age_s:
                    log_file.unlink()
                    removed += 1
            except OSError as e:
                print(f"Warning: Failed to remove old log {log_file.name}: {e}", file=sys.stderr)
    return removed


# ==================== Pretty Logging Helpers ====================

def log_section(logger: logging.Logger, title: str, icon: str = "📌", details: dict = None, mode: str = None):
    """
    Log a section with title and optional details

    Args:
        logger: Logger instance
        title: Main title text (will be uppercased in verbose/debug mode)
        icon: Emoji icon to use
        details: Optional dict of key-value pairs to display
        mode: 'customer', 'verbose' or 'debug'. If None, uses current global log mode.

    Example:
        log_section(log, "Translation update", "🌐", {"Files": 12, "Strategy": "zip"})
    """
    if mode is None:
        mode = get_log_mode()

    if mode == 'customer':
        if details:
            detail_str = ", ".join(f"{k}: {v}" for k, v in details.items())
            logger.info(f"{icon} {title} ({detail_str})")
        else:
            logger.info(f"{icon} {title}")
    else:
        logger.info("=" * LOG_SEPARATOR_WIDTH)
        logger.info(f"{icon} {title.upper()}")
        if details:
            for key, value in details.items():
                logger.info(f"   📋 {key}: {value}")
        logger.info("=" * LOG_SEPARATOR_WIDTH)


def log_event(logger: logging.Logger, event: str, icon: str = "✓", details: dict = None):
    """Log a single event with optional details"""
    logger.info(f"{icon} {event}")
    if details:
        for key, value in details.items():
            logger.info(f"   • {key}: {value}")


def log_action(logger: logging.Logger, action: str, icon: str = "⚡"):
    """Log an action being performed"""
    logger.info(f"{icon} {action}")


def log_success(logger: logging.Logger, message: str, icon: str = "✅"):
    """Log a success message"""
    logger.info(f"{icon} {message}")
