#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Thread Manager - worker pool plumbing for the translation updater
Provides low-priority worker threads, cooperative cancellation and
first-error-wins reporting shared by every transfer pool
"""

# Standard library imports
import ctypes
import os
import sys
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

# Local imports
from config import WORKER_NICE_INCREMENT, WORKER_WINDOWS_PRIORITY
from utils.core.logging import get_logger

log = get_logger()

_POOL_SIZE: Optional[int] = None


def default_pool_size() -> int:
    """Half of the available CPUs, at least one. Computed once per process."""
    global _POOL_SIZE
    if _POOL_SIZE is None:
        _POOL_SIZE = max(1, (os.cpu_count() or 1) // 2)
    return _POOL_SIZE


def lower_current_thread_priority() -> bool:
    """
    Lower the OS scheduling priority of the calling thread.

    Returns:
        True if the priority was changed
    """
    try:
        if sys.platform == "win32":
            kernel32 = ctypes.windll.kernel32
            return bool(kernel32.SetThreadPriority(kernel32.GetCurrentThread(), WORKER_WINDOWS_PRIORITY))
        if sys.platform.startswith("linux"):
            # On Linux PRIO_PROCESS with a native thread id targets that thread only
            tid = threading.get_native_id()
            current = os.getpriority(os.PRIO_PROCESS, tid)
            os.setpriority(os.PRIO_PROCESS, tid, min(19, current + WORKER_NICE_INCREMENT))
            return True
    except (AttributeError, OSError) as e:
        log.debug(f"Could not lower thread priority: {e}")
        return False
    return False


class AtomicCounter:
    """Integer counter with locked fetch-add"""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> int:
        """Add `amount` and return the previous value"""
        with self._lock:
            previous = self._value
            self._value += amount
            return previous

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class FirstErrorSlot:
    """Keeps the first error offered to it, ignores the rest"""

    def __init__(self):
        self._error: Optional[BaseException] = None
        self._lock = threading.Lock()

    def offer(self, error: BaseException) -> bool:
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


@dataclass
class WorkerContext:
    """State shared by all workers of one pool"""
    stop_event: threading.Event = field(default_factory=threading.Event)
    fatal: FirstErrorSlot = field(default_factory=FirstErrorSlot)
    soft_errors: AtomicCounter = field(default_factory=AtomicCounter)

    def fail(self, error: BaseException) -> None:
        """Record a fatal error and ask every peer to stop"""
        self.fatal.offer(error)
        self.stop_event.set()

    def record_soft_error(self) -> None:
        self.soft_errors.add(1)

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()


@dataclass
class ManagedThread:
    """Represents a managed thread with metadata"""
    name: str
    thread: threading.Thread


class ThreadManager:
    """
    Manages a group of threads with controlled lifecycle

    Provides:
    - Organized thread registration
    - Pruning of finished threads
    - Joining with or without timeout
    """

    def __init__(self):
        self.threads: List[ManagedThread] = []
        self.lock = threading.Lock()

    def register(self, name: str, thread: threading.Thread) -> None:
        with self.lock:
            self.threads.append(ManagedThread(name=name, thread=thread))
            log.trace(f"Registered thread: {name}")

    def prune(self) -> int:
        """
        Forget threads that have already run to completion.

        Threads registered but not started yet are kept.

        Returns:
            Number of threads removed
        """
        with self.lock:
            finished = [m for m in self.threads if m.thread.ident is not None and not m.thread.is_alive()]
            for managed in finished:
                self.threads.remove(managed)
        if finished:
            log.trace(f"Pruned {len(finished)} finished threads")
        return len(finished)

    def start_all(self) -> None:
        with self.lock:
            for managed in self.threads:
                if not managed.thread.is_alive():
                    managed.thread.start()

    @property
    def alive_threads(self) -> List[str]:
        with self.lock:
            return [m.name for m in self.threads if m.thread.is_alive()]

    def wait_for_all(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for all threads to complete

        Returns:
            True if all threads completed, False if timeout reached
        """
        start = time.time()
        with self.lock:
            threads_copy = list(self.threads)

        for managed in threads_copy:
            if timeout is not None:
                remaining = timeout - (time.time() - start)
                if remaining <= 0:
                    return False
                managed.thread.join(timeout=remaining)
            else:
                managed.thread.join()

        return all(not m.thread.is_alive() for m in threads_copy)


def create_daemon_thread(target: Callable, name: str = None) -> threading.Thread:
    """Factory function to create a daemon thread with consistent settings"""
    return threading.Thread(target=target, daemon=True, name=name)


def create_worker_thread(target: Callable, name: str) -> threading.Thread:
    """Create a daemon thread that lowers its own priority before running `target`"""
    def _run():
        if not lower_current_thread_priority():
            log.debug(f"Running {name} at normal priority")
        target()

    return create_daemon_thread(_run, name=name)


def run_worker_pool(name: str, worker_count: int, target: Callable[[], None]) -> ThreadManager:
    """
    Start `worker_count` low-priority workers running `target` and block until all exit.

    Workers are expected to catch their own errors and report them through
    a shared WorkerContext.
    """
    manager = ThreadManager()
    for index in range(max(1, worker_count)):
        thread_name = f"{name}-{index}"
        manager.register(thread_name, create_worker_thread(target, thread_name))
    manager.start_all()
    manager.wait_for_all()
    return manager
