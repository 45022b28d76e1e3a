"""Copy text to the system clipboard.

Backends are tried in order until one succeeds:
- wl-copy / wl-paste (Wayland)
- pyperclip
- xclip, xsel (X11 sessions only)

Backends that can read the clipboard back are verified: the write only
counts if the same text (ignoring surrounding whitespace) comes back.
"""

import logging
import subprocess
from typing import Callable, Iterable, Optional, Sequence

import pyperclip

from .session import RunContext
from .tools import command_exists, run

log = logging.getLogger(__name__)


def _pipe(cmd: Sequence[str], text: str) -> bool:
    # Clipboard owners fork and keep running; never wait on their output
    try:
        result = subprocess.run(
            list(cmd),
            input=text,
            text=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        log.debug("Failed to run %s: %s", cmd[0], e)
        return False
    return result.returncode == 0


class ClipboardBackend:
    """One way of putting text on the clipboard."""

    name = "clipboard"
    requires: tuple[str, ...] = ()
    verify = True

    def available(self, exists: Callable[[str], bool]) -> bool:
        return all(exists(binary) for binary in self.requires)

    def write(self, text: str) -> bool:
        raise NotImplementedError

    def read(self) -> Optional[str]:
        """Current clipboard text, or None if it cannot be read."""
        return None


class WlClipboard(ClipboardBackend):
    name = "wl-copy"
    requires = ("wl-copy", "wl-paste")

    def write(self, text: str) -> bool:
        return _pipe(["wl-copy"], text)

    def read(self) -> Optional[str]:
        try:
            result = run(["wl-paste", "--no-newline"])
        except OSError as e:
            log.debug("Failed to run wl-paste: %s", e)
            return None
        if result.returncode != 0:
            return None
        return result.stdout


class PyperclipClipboard(ClipboardBackend):
    name = "pyperclip"

    def write(self, text: str) -> bool:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            log.debug("pyperclip copy failed: %s", e)
            return False
        return True

    def read(self) -> Optional[str]:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            log.debug("pyperclip paste failed: %s", e)
            return None


class XclipClipboard(ClipboardBackend):
    name = "xclip"
    requires = ("xclip",)
    verify = False

    def write(self, text: str) -> bool:
        return _pipe(["xclip", "-selection", "clipboard"], text)


class XselClipboard(ClipboardBackend):
    name = "xsel"
    requires = ("xsel",)
    verify = False

    def write(self, text: str) -> bool:
        return _pipe(["xsel", "--clipboard", "--input"], text)


def clipboard_chain(ctx: RunContext) -> list[ClipboardBackend]:
    chain: list[ClipboardBackend] = [WlClipboard(), PyperclipClipboard()]
    if not ctx.session.is_wayland:
        chain += [XclipClipboard(), XselClipboard()]
    return chain


def _verified(backend: ClipboardBackend, text: str) -> bool:
    readback = backend.read()
    if readback is None:
        log.debug("%s: could not read clipboard back", backend.name)
        return False
    if readback.strip() != text.strip():
        log.debug("%s: clipboard readback does not match", backend.name)
        return False
    return True


def copy_text(
    text: str,
    backends: Iterable[ClipboardBackend],
    exists: Optional[Callable[[str], bool]] = None,
) -> Optional[str]:
    """Put text on the clipboard using the first backend that works.

    Returns:
        Name of the backend that succeeded, or None if all failed
    """
    exists = exists or command_exists
    for backend in backends:
        if not backend.available(exists):
            log.debug("Skipping %s (not installed)", backend.name)
            continue
        if not backend.write(text):
            log.debug("%s: write failed", backend.name)
            continue
        if backend.verify and not _verified(backend, text):
            continue
        log.debug("Copied to clipboard with %s", backend.name)
        return backend.name

    log.error("Failed to copy to clipboard. Make sure wl-clipboard (or xclip) is installed")
    return None
