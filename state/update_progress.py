#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Update progress shared between download workers and the UI
"""

# Standard library imports
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UpdateProgress:
    """Immutable (current, total) snapshot"""
    current: int = 0
    total: int = 0

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(1.0, self.current / self.total)


class ProgressPublisher:
    """
    Publishes UpdateProgress snapshots for external polling.

    Readers call `snapshot()` which is a single attribute load of an
    immutable object. Writers add bytes under a lock and publish a new
    snapshot in the same critical section, so `current` never decreases and
    never exceeds `total` within one run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current = 0
        self._total = 0
        self._snapshot: Optional[UpdateProgress] = None

    def start(self, total: int) -> UpdateProgress:
        """Begin a run: publish (0, total)"""
        with self._lock:
            self._current = 0
            self._total = max(0, total)
            self._snapshot = UpdateProgress(0, self._total)
            return self._snapshot

    def set_total(self, total: int) -> None:
        """Replace the total of the running progress, keeping `current`"""
        with self._lock:
            if self._snapshot is None:
                return
            self._total = max(0, total, self._current)
            self._snapshot = UpdateProgress(min(self._current, self._total), self._total)

    def add(self, amount: int) -> None:
        if amount <= 0:
            return
        with self._lock:
            if self._snapshot is None:
                return
            self._current += amount
            self._snapshot = UpdateProgress(min(self._current, self._total), self._total)

    def clear(self) -> None:
        """Publish 'no progress'"""
        with self._lock:
            self._current = 0
            self._total = 0
            self._snapshot = None

    def snapshot(self) -> Optional[UpdateProgress]:
        return self._snapshot
