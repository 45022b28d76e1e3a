"""Screen capture strategies.

Every way of getting pixels off the screen is a Strategy: a name, the
binaries it needs, a predicate saying whether it applies to this session,
and a callable that writes the image to a target path. Region and
fullscreen chains are ordered lists of strategies; the first one that
produces an image wins.
"""

import logging
import shutil
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .session import Backend, RunContext
from .tools import command_exists, remove_file, run, was_cancelled

log = logging.getLogger(__name__)


class CaptureError(Exception):
    """Raised when capture fails."""
    pass


class CaptureCancelled(CaptureError):
    """Raised when the user aborts the selection."""
    pass


class PortalError(CaptureError):
    """Raised when the desktop portal cannot deliver a screenshot."""
    pass


@dataclass(frozen=True)
class Geometry:
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def parse(cls, text: str) -> "Geometry":
        """Parse an "x,y,w,h" selection as printed by slurp -f "%x,%y,%w,%h"."""
        parts = [p.strip() for p in text.strip().split(",")]
        if len(parts) != 4:
            raise ValueError(f"Expected x,y,w,h but got {text!r}")
        x, y, width, height = (int(p) for p in parts)
        return cls(x, y, width, height)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_grim(self) -> str:
        return f"{self.x},{self.y} {self.width}x{self.height}"


CaptureFn = Callable[[Path, RunContext], bool]


def _auto_only(ctx: RunContext) -> bool:
    return ctx.backend is Backend.AUTO


def _portal_only(ctx: RunContext) -> bool:
    return ctx.backend is Backend.PORTAL


def _x11_only(ctx: RunContext) -> bool:
    return ctx.backend is Backend.AUTO and not ctx.session.is_wayland


@dataclass(frozen=True)
class Strategy:
    name: str
    run: CaptureFn
    requires: tuple[str, ...] = ()
    applies: Callable[[RunContext], bool] = _auto_only
    hint: Optional[str] = None


def _run_tool(name: str, cmd: Sequence[str]) -> bool:
    try:
        result = run(cmd)
    except OSError as e:
        log.warning("Failed to run %s: %s", name, e)
        return False

    if was_cancelled(result):
        raise CaptureCancelled(f"Selection cancelled ({name})")
    if result.returncode != 0:
        log.warning("%s failed: %s", name, (result.stderr or "").strip() or f"exit {result.returncode}")
        return False
    return True


def _tool(*prefix: str) -> CaptureFn:
    def capture_with_tool(target: Path, ctx: RunContext) -> bool:
        return _run_tool(prefix[0], [*prefix, str(target)])
    return capture_with_tool


def _slurp_grim(target: Path, ctx: RunContext) -> bool:
    log.info("Click and drag to select an area (Escape cancels)")
    try:
        selection = run(["slurp", "-f", "%x,%y,%w,%h"])
    except OSError as e:
        log.warning("Failed to run slurp: %s", e)
        return False

    if was_cancelled(selection):
        raise CaptureCancelled("Selection cancelled (slurp)")
    if selection.returncode != 0:
        log.warning("slurp failed: %s", (selection.stderr or "").strip())
        return False

    area = selection.stdout.strip()
    if not area:
        log.warning("No area selected")
        return False

    try:
        geometry = Geometry.parse(area)
    except ValueError as e:
        log.warning("Could not parse slurp selection: %s", e)
        return False
    if geometry.is_empty:
        log.warning("Selected area is empty: %s", area)
        return False

    log.debug("Capturing selected area: %s", geometry.to_grim())
    return _run_tool("grim", ["grim", "-g", geometry.to_grim(), str(target)])


def portal_available() -> bool:
    """Whether the portal module (and PyGObject behind it) can be imported."""
    try:
        from . import portal  # noqa: F401
    except (ImportError, ValueError) as e:
        log.warning("Desktop portal unavailable (%s), falling back to screenshot tools", e)
        return False
    return True


def _portal(interactive: bool) -> CaptureFn:
    def capture_with_portal(target: Path, ctx: RunContext) -> bool:
        try:
            from . import portal
        except (ImportError, ValueError) as e:
            raise PortalError(f"The portal backend needs PyGObject: {e}")

        if interactive:
            log.info("Select an area in the screenshot dialog (Escape cancels)")
        source = portal.screenshot(interactive, ctx.config.portal_timeout_ms)
        try:
            shutil.move(str(source), str(target))
        except OSError as e:
            raise PortalError(f"Could not move portal screenshot {source}: {e}")
        return True
    return capture_with_portal


def region_strategies() -> list[Strategy]:
    """Area selection strategies, best first."""
    return [
        Strategy("portal", _portal(interactive=True), applies=_portal_only,
                 hint="sudo apt install xdg-desktop-portal-gnome"),
        Strategy("gnome-screenshot", _tool("gnome-screenshot", "-a", "-f"),
                 requires=("gnome-screenshot",),
                 hint="For GNOME: sudo apt install gnome-screenshot"),
        Strategy("slurp+grim", _slurp_grim, requires=("slurp", "grim"),
                 hint="For wlroots compositors: sudo apt install slurp grim"),
        # X11 only, ordered by selection UX
        Strategy("maim", _tool("maim", "-s"), requires=("maim",), applies=_x11_only,
                 hint="For X11: sudo apt install maim"),
        Strategy("scrot", _tool("scrot", "-s", "-o"), requires=("scrot",), applies=_x11_only,
                 hint="For X11: sudo apt install scrot"),
        Strategy("import", _tool("import"), requires=("import",), applies=_x11_only,
                 hint="For X11: sudo apt install imagemagick"),
    ]


def fullscreen_strategies() -> list[Strategy]:
    """Whole screen strategies, best first."""
    return [
        Strategy("portal", _portal(interactive=False), applies=_portal_only,
                 hint="sudo apt install xdg-desktop-portal-gnome"),
        Strategy("gnome-screenshot", _tool("gnome-screenshot", "-f"),
                 requires=("gnome-screenshot",),
                 hint="For GNOME: sudo apt install gnome-screenshot"),
        Strategy("grim", _tool("grim"), requires=("grim",),
                 hint="For other compositors: sudo apt install grim"),
        Strategy("maim", _tool("maim"), requires=("maim",), applies=_x11_only,
                 hint="For X11: sudo apt install maim"),
        Strategy("scrot", _tool("scrot", "-o"), requires=("scrot",), applies=_x11_only,
                 hint="For X11: sudo apt install scrot"),
    ]


def applicable_strategies(chain: Iterable[Strategy], ctx: RunContext) -> list[Strategy]:
    return [s for s in chain if s.applies(ctx)]


def available_strategies(
    chain: Iterable[Strategy],
    ctx: RunContext,
    exists: Optional[Callable[[str], bool]] = None,
) -> list[Strategy]:
    """Strategies that apply to this session and have every binary installed."""
    exists = exists or command_exists
    available = []
    for strategy in applicable_strategies(chain, ctx):
        missing = [name for name in strategy.requires if not exists(name)]
        if missing:
            log.debug("Skipping %s (missing %s)", strategy.name, ", ".join(missing))
            continue
        available.append(strategy)
    return available


def run_chain(strategies: Sequence[Strategy], target: Path, ctx: RunContext) -> Path:
    """Try each strategy until one leaves an image at target.

    Returns:
        target

    Raises:
        CaptureCancelled: If the user cancelled a selection (stops the chain)
        CaptureError: If no strategy produced an image
    """
    for strategy in strategies:
        remove_file(target)
        if target.exists():
            raise CaptureError(f"Cannot remove stale capture file {target} (check temp_file)")
        log.debug("Trying capture strategy: %s", strategy.name)
        try:
            ok = strategy.run(target, ctx)
        except CaptureCancelled:
            raise
        except CaptureError as e:
            log.warning("%s failed: %s", strategy.name, e)
            continue

        if ok and target.exists():
            log.info("Screenshot captured with %s", strategy.name)
            return target
        log.warning("%s did not produce an image", strategy.name)

    raise CaptureError("No capture strategy produced an image")


def capture(ctx: RunContext, fullscreen: bool = False) -> Path:
    """Capture the screen (or a user-selected area) to the configured temp file.

    Raises:
        CaptureCancelled: If the user cancelled
        CaptureError: If capture failed or no tool is installed
    """
    if ctx.backend is Backend.PORTAL and not portal_available():
        ctx = replace(ctx, backend=Backend.AUTO)

    chain = fullscreen_strategies() if fullscreen else region_strategies()
    strategies = available_strategies(chain, ctx)
    if not strategies:
        hints = [s.hint for s in applicable_strategies(chain, ctx) if s.hint]
        raise CaptureError(
            "No compatible screenshot tool found. " + "; ".join(hints)
        )
    return run_chain(strategies, ctx.config.temp_file, ctx)
