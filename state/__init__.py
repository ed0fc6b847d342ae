#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
State Package
Progress shared between background workers and the host application
"""

from .update_progress import ProgressPublisher, UpdateProgress

__all__ = [
    'ProgressPublisher',
    'UpdateProgress',
]
