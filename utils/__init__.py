#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utils Package - Utility functions and helpers

This package is organized into subpackages:
- core: Core utilities (logging, paths, errors)
- download: HTTP session helpers and streaming transfer primitives
- thread_manager: Low-priority worker pools
"""

# Import paths first (doesn't depend on logging)
from utils.core.paths import (
    get_user_data_dir, get_logs_dir, get_config_file_path,
    get_localized_data_dir, get_repo_cache_path, concat_unix_path,
)


# Lazy imports for modules that may have circular dependencies
# These will be imported on first access via __getattr__
def __getattr__(name):
    """Lazy import for modules that may have circular dependencies"""
    if name in {
        'get_logger', 'get_named_logger', 'setup_logging', 'log_section',
        'log_success', 'get_log_mode', 'log_event', 'log_action'
    }:
        from utils.core.logging import (
            get_logger, get_named_logger, setup_logging, log_section,
            log_success, get_log_mode, log_event, log_action
        )
        return locals()[name]

    raise AttributeError(f"module 'utils' has no attribute '{name}'")


__all__ = [
    # Paths (eagerly imported)
    'get_user_data_dir', 'get_logs_dir', 'get_config_file_path',
    'get_localized_data_dir', 'get_repo_cache_path', 'concat_unix_path',
    # Logging (lazy)
    'get_logger', 'get_named_logger', 'setup_logging', 'log_section',
    'log_success', 'get_log_mode', 'log_event', 'log_action',
]
