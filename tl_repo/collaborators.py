"""
Collaborator interfaces used by the updater
The host application provides the real implementations (dialogs, data reload)
"""

from typing import Callable

from utils.core.logging import get_logger

log = get_logger()


def format_size(value: int) -> str:
    if value <= 0:
        return "0 MB"
    if value < 1024 * 1024:
        return f"{value / 1024:.1f} KB"
    return f"{value / (1024 * 1024):.1f} MB"


class Notifier:
    """User-facing notification and dialog service"""

    def show_notification(self, message: str) -> None:
        raise NotImplementedError

    def ask_yes_no(self, title: str, message: str, callback: Callable[[bool], None]) -> None:
        """Show a confirmation; `callback` receives the answer, possibly from another thread"""
        raise NotImplementedError

    def set_progress_visible(self, visible: bool) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Headless notifier: writes everything to the log and answers confirmations itself"""

    def __init__(self, auto_confirm: bool = False):
        self.auto_confirm = auto_confirm

    def show_notification(self, message: str) -> None:
        log.info(message)

    def ask_yes_no(self, title: str, message: str, callback: Callable[[bool], None]) -> None:
        log.info(f"{title}: {message} -> {'yes' if self.auto_confirm else 'no'}")
        callback(self.auto_confirm)

    def set_progress_visible(self, visible: bool) -> None:
        log.debug(f"Progress {'shown' if visible else 'hidden'}")


class LocalizedDataHost:
    """Owner of the loaded localized data"""

    def clear(self) -> None:
        """Drop everything loaded from the localized data directory"""
        raise NotImplementedError

    def reload(self) -> None:
        """Load the localized data directory again"""
        raise NotImplementedError


class NullLocalizedDataHost(LocalizedDataHost):
    def clear(self) -> None:
        log.trace("Localized data cleared")

    def reload(self) -> None:
        log.trace("Localized data reloaded")
