"""
Translation Updater
Checks the translation repository for changes and applies them in the background
"""

from __future__ import annotations

import shutil
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import requests

from config import CHUNK_SIZE, LOCALIZED_DATA_DIR, MIN_PARALLEL_CHUNK_SIZE, TEMP_ARCHIVE_FILENAME
from state.update_progress import ProgressPublisher, UpdateProgress
from utils.core.errors import ArchiveDownloadError, IndexFetchError, UpdateError
from utils.core.logging import get_logger, get_named_logger, log_action, log_event, log_section, log_success
from utils.core.paths import concat_unix_path, get_localized_data_dir, get_repo_cache_path, get_user_data_dir
from utils.download.http_client import create_session
from utils.download.transfer import download_parallel
from utils.thread_manager import ThreadManager, create_daemon_thread, default_pool_size

from .collaborators import LocalizedDataHost, LoggingNotifier, Notifier, NullLocalizedDataHost, format_size
from .incremental import run_incremental
from .index_client import IndexClient
from .models import RepoCache, Strategy, TransferOutcome, UpdatePlan
from .planner import DEFAULT_TUNING, StrategyTuning, plan_update
from .repo_cache import load_cache, save_cache
from .settings import TranslationSettings
from .zip_extractor import run_archive

log = get_logger()

UPDATE_DIALOG_TITLE = "Translation update"


class UpdaterState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RUNNING = "running"


class Updater:
    """
    Keeps the localized data directory in sync with the translation repository.

    One instance lives for the whole application. `check_for_updates` and
    `run` return immediately and do their work on a background thread;
    `progress` can be polled from any thread while a run is active.
    """

    def __init__(self, settings: TranslationSettings, notifier: Optional[Notifier] = None,
                 localized_data: Optional[LocalizedDataHost] = None, data_dir: Optional[Path] = None,
                 session_factory: Callable[[], requests.Session] = create_session,
                 worker_count: Optional[int] = None, tuning: StrategyTuning = DEFAULT_TUNING):
        self.settings = settings
        self.notifier = notifier or LoggingNotifier()
        self.localized_data = localized_data or NullLocalizedDataHost()
        self.data_dir = Path(data_dir) if data_dir is not None else get_user_data_dir()
        self.session_factory = session_factory
        self.worker_count = worker_count or default_pool_size()
        self.tuning = tuning

        # Process-wide, the first Updater fixes the log directory
        self.updater_log = get_named_logger("updater", prefix="log_updater", logs_dir=self.data_dir / "logs")
        self.threads = ThreadManager()

        self._check_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._state = UpdaterState.IDLE
        self._pending_plan: Optional[UpdatePlan] = None
        self._progress = ProgressPublisher()

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> UpdaterState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: UpdaterState) -> None:
        with self._state_lock:
            self._state = state

    @property
    def pending_plan(self) -> Optional[UpdatePlan]:
        with self._state_lock:
            return self._pending_plan

    @property
    def localized_data_dir(self) -> Path:
        """Configured localized data directory, relative values resolved against the data directory"""
        if self.settings.localized_data_dir:
            configured = Path(self.settings.localized_data_dir)
            return configured if configured.is_absolute() else self.data_dir / configured
        return get_localized_data_dir(self.data_dir)

    @property
    def cache_path(self) -> Path:
        return get_repo_cache_path(self.data_dir)

    def progress(self) -> Optional[UpdateProgress]:
        """Latest progress snapshot, None when no run is active"""
        return self._progress.snapshot()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no background check/run is alive, including runs started by a check"""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.threads.alive_threads:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            self.threads.wait_for_all(remaining)
        return True

    def _spawn(self, name: str, target: Callable[[], None]) -> None:
        self.threads.prune()
        thread = create_daemon_thread(target, name=name)
        self.threads.register(name, thread)
        thread.start()

    # ------------------------------------------------------------------ check

    def check_for_updates(self, pedantic: bool = False) -> None:
        """Check for translation updates on a background thread"""
        self._spawn("tl_update_check", lambda: self.check_for_updates_now(pedantic))

    def check_for_updates_now(self, pedantic: bool = False) -> Optional[UpdatePlan]:
        """
        Fetch the index, diff it against the cache and ask for confirmation.

        A check started while another one is running, while a confirmation is
        pending or while an update is being applied returns immediately.

        Returns:
            The computed plan, or None when no check was performed
        """
        if not self._check_lock.acquire(blocking=False):
            log.debug("Translation update check already in progress")
            return None

        try:
            index_url = self.settings.translation_repo_index
            if not index_url:
                log.debug("No translation repository configured, skipping update check")
                return None

            with self._state_lock:
                if self._state in (UpdaterState.AWAITING_CONFIRMATION, UpdaterState.RUNNING):
                    log.debug(f"Skipping translation update check, updater is {self._state.value}")
                    return None
                self._state = UpdaterState.CHECKING

            self.notifier.show_notification("Checking for translation updates...")

            try:
                with self.session_factory() as session:
                    index = IndexClient(session).fetch_index(index_url)
            except IndexFetchError as e:
                self.updater_log.error(f"Translation update check failed: {e}")
                self._set_state(UpdaterState.IDLE)
                return None

            cache = load_cache(self.cache_path)
            plan = plan_update(index, cache, pedantic, self.localized_data_dir, self.tuning)

            if plan.is_empty:
                self._set_state(UpdaterState.IDLE)
                self.notifier.show_notification("No translation updates available")
                return plan

            log_section(self.updater_log, "Translation update available", "🌐", {
                "Files": len(plan.files),
                "Changed": format_size(plan.update_size),
                "Strategy": plan.strategy.value,
                "New repository": plan.is_new_repo,
            })

            with self._state_lock:
                self._pending_plan = plan
                self._state = UpdaterState.AWAITING_CONFIRMATION

            self.notifier.ask_yes_no(UPDATE_DIALOG_TITLE, self._confirmation_message(plan), self._on_confirmation)
            return plan
        finally:
            self._check_lock.release()

    @staticmethod
    def _confirmation_message(plan: UpdatePlan) -> str:
        if plan.large_overhead:
            return (
                f"Translation files changed: {format_size(plan.update_size)}. "
                f"The update must download the full archive ({format_size(plan.total_size)}). "
                f"Download now?"
            )
        return f"A translation update is available ({format_size(plan.transfer_size)}). Download now?"

    def _on_confirmation(self, accepted: bool) -> None:
        if accepted:
            self.run()
            return
        log.info("Translation update declined")
        with self._state_lock:
            self._pending_plan = None
            self._state = UpdaterState.IDLE

    # ------------------------------------------------------------------ run

    def run(self) -> None:
        """Apply the pending plan on a background thread"""
        self._spawn("tl_update_run", self.run_now)

    def run_now(self) -> bool:
        """
        Apply the pending plan.

        Returns:
            True if the update completed (possibly with non-fatal errors)
        """
        with self._state_lock:
            plan = self._pending_plan
            self._pending_plan = None
            if plan is None:
                log.debug("No pending translation update to run")
                return False
            self._state = UpdaterState.RUNNING

        try:
            soft_errors = self._apply_plan(plan)
        except (UpdateError, OSError) as e:
            self.updater_log.error(f"Translation update failed: {e}")
            self._progress.clear()
            self.notifier.set_progress_visible(False)
            self.notifier.show_notification(f"Translation update failed: {e}")
            return False
        finally:
            self._set_state(UpdaterState.IDLE)

        log_success(self.updater_log, "Translation update completed")
        self.notifier.show_notification("Translation update completed")
        if soft_errors > 0:
            self.notifier.show_notification(f"{soft_errors} errors occurred during the update")
        return True

    def _apply_plan(self, plan: UpdatePlan) -> int:
        localized_dir = self.localized_data_dir

        self._progress.start(plan.transfer_size)
        self.notifier.set_progress_visible(True)
        self.localized_data.clear()

        if plan.is_new_repo and localized_dir.is_dir():
            log_action(self.updater_log, f"Switching repository, clearing {localized_dir}")
            shutil.rmtree(localized_dir)
        localized_dir.mkdir(parents=True, exist_ok=True)

        def on_bytes(chunk: bytes) -> None:
            self._progress.add(len(chunk))

        if plan.strategy is Strategy.ARCHIVE:
            outcome = self._run_archive(plan, localized_dir, on_bytes)
        else:
            outcome = run_incremental(plan.files, plan.base_url, localized_dir, self.worker_count,
                                      on_bytes, self.session_factory)

        if outcome.failed:
            raise outcome.fatal_error

        # A wiped directory keeps nothing from the previous repository
        files = {} if plan.is_new_repo else dict(plan.cached_files)
        files.update(outcome.verified)
        cache = RepoCache(base_url=plan.base_url, files=files)

        if not self.settings.localized_data_dir:
            self.settings.localized_data_dir = LOCALIZED_DATA_DIR
            if not self.settings.save():
                self.updater_log.error(f"Failed to save localized data directory to {self.settings.config_path}")

        self._progress.clear()
        self.notifier.set_progress_visible(False)
        self.localized_data.reload()

        save_cache(cache, self.cache_path)
        log_event(self.updater_log, "Repository cache saved", "💾", {
            "Verified": len(outcome.verified),
            "Errors": outcome.soft_errors,
            "Entries": len(files),
        })
        return outcome.soft_errors

    def _run_archive(self, plan: UpdatePlan, localized_dir: Path,
                     on_bytes: Callable[[bytes], None]) -> TransferOutcome:
        archive_path = localized_dir / TEMP_ARCHIVE_FILENAME

        def on_length(length: Optional[int]) -> None:
            if length is not None:
                self._progress.set_total(length + plan.update_size)

        log_action(self.updater_log, f"Downloading translation archive: {plan.zip_url}")
        try:
            download_parallel(plan.zip_url, archive_path, self.worker_count, MIN_PARALLEL_CHUNK_SIZE,
                              CHUNK_SIZE, on_bytes, self.session_factory, on_length=on_length)
        except (UpdateError, requests.RequestException, OSError) as e:
            try:
                archive_path.unlink()
            except OSError as cleanup_error:
                log.debug(f"Could not remove partial archive '{archive_path}': {cleanup_error}")
            raise ArchiveDownloadError(f"Failed to download archive: {e}") from e

        wanted = {concat_unix_path(plan.zip_dir, repo_file.path): repo_file for repo_file in plan.files}
        return run_archive(archive_path, wanted, localized_dir, self.worker_count, on_bytes)
