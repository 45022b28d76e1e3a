"""Desktop notifications (libnotify, falling back to notify-send)."""

import logging

from .config import Config
from .tools import command_exists, run

log = logging.getLogger(__name__)

ELLIPSIS = "..."


def preview(text: str, limit: int = 100) -> str:
    """Shorten text to at most `limit` characters plus an ellipsis."""
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def _notify_libnotify(title: str, body: str, timeout_ms: int) -> bool:
    try:
        import gi
        gi.require_version("Notify", "0.7")
        from gi.repository import Notify
        Notify.init(title)
        notification = Notify.Notification.new(title, body, "edit-paste")
        notification.set_timeout(timeout_ms)
        return bool(notification.show())
    except Exception as e:
        log.debug("libnotify failed: %s", e)
        return False


def _notify_send(title: str, body: str, timeout_ms: int) -> bool:
    if not command_exists("notify-send"):
        return False
    try:
        result = run(["notify-send", "-t", str(timeout_ms), title, body])
    except OSError as e:
        log.debug("notify-send failed: %s", e)
        return False
    return result.returncode == 0


def notify(title: str, body: str, config: Config) -> bool:
    """Show a desktop notification. Never raises.

    Returns:
        True if any notification mechanism succeeded
    """
    timeout_ms = config.notification_timeout_ms
    if _notify_libnotify(title, body, timeout_ms):
        return True
    if _notify_send(title, body, timeout_ms):
        return True
    log.warning("All notification methods failed")
    return False
