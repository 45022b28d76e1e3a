"""Session probing and capture backend selection.

Everything here is computed once at startup and never mutated:
- SessionContext: display server type and desktop identifier
- Backend: generic tool-based capture or the desktop portal
- RunContext: the two above plus configuration, handed to every component
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .config import Config

log = logging.getLogger(__name__)


class SessionType(str, Enum):
    WAYLAND = "wayland"
    X11 = "x11"
    UNKNOWN = "unknown"


class Backend(str, Enum):
    AUTO = "auto"
    PORTAL = "portal"


BACKEND_CHOICES = tuple(b.value for b in Backend)


class UnsupportedSessionError(RuntimeError):
    """Raised when not running inside a graphical Wayland or X11 session."""

    def __init__(self, raw_value: Optional[str]):
        self.raw_value = raw_value
        super().__init__(
            f"Unsupported session type: {raw_value or 'unset'} "
            "(scrotto needs a Wayland or X11 desktop session)"
        )


class InvalidBackendError(ValueError):
    """Raised for a backend name outside auto/portal."""


@dataclass(frozen=True)
class SessionContext:
    session_type: SessionType
    desktop_environment: Optional[str] = None
    raw_session_type: Optional[str] = None

    @property
    def is_wayland(self) -> bool:
        return self.session_type is SessionType.WAYLAND

    @property
    def desktops(self) -> tuple[str, ...]:
        """XDG_CURRENT_DESKTOP split into its colon-delimited components."""
        if not self.desktop_environment:
            return ()
        return tuple(
            part.strip() for part in self.desktop_environment.split(":") if part.strip()
        )


@dataclass(frozen=True)
class RunContext:
    session: SessionContext
    backend: Backend
    config: Config


def classify_session_type(value: Optional[str]) -> SessionType:
    if not value:
        return SessionType.UNKNOWN
    try:
        return SessionType(value.strip().lower())
    except ValueError:
        return SessionType.UNKNOWN


def probe_session(environ: Optional[Mapping[str, str]] = None) -> SessionContext:
    """Read XDG_SESSION_TYPE and XDG_CURRENT_DESKTOP from the environment."""
    environ = os.environ if environ is None else environ
    raw = environ.get("XDG_SESSION_TYPE")
    context = SessionContext(
        session_type=classify_session_type(raw),
        desktop_environment=environ.get("XDG_CURRENT_DESKTOP") or None,
        raw_session_type=raw,
    )
    log.debug("Session: %s (desktop=%s)", context.session_type.value, context.desktop_environment)
    return context


def require_supported(session: SessionContext) -> SessionContext:
    if session.session_type is SessionType.UNKNOWN:
        raise UnsupportedSessionError(session.raw_session_type)
    return session


def default_backend(session: SessionContext) -> Backend:
    """Portal on GNOME Wayland, generic tools everywhere else."""
    if session.is_wayland and any(part.lower() == "gnome" for part in session.desktops):
        return Backend.PORTAL
    return Backend.AUTO


def parse_backend(value: str) -> Backend:
    try:
        return Backend(value.strip().lower())
    except ValueError:
        raise InvalidBackendError(
            f"Unknown backend '{value}'. Use one of: {', '.join(BACKEND_CHOICES)}"
        ) from None


def resolve_backend(session: SessionContext, override: Optional[str] = None) -> Backend:
    if override is not None:
        return parse_backend(override)
    return default_backend(session)
