"""External tool lookup and invocation helpers."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional, Sequence

log = logging.getLogger(__name__)


def command_exists(name: str) -> bool:
    """Check whether an executable is resolvable on PATH."""
    try:
        return shutil.which(name) is not None
    except OSError as e:
        log.debug("Could not resolve %s: %s", name, e)
        return False


def run(
    cmd: Sequence[str],
    input: Optional[str] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """Run a tool and capture its text output.

    Raises:
        OSError: If the tool cannot be started
        subprocess.TimeoutExpired: If timeout is given and exceeded
    """
    log.debug("Running: %s", " ".join(cmd))
    return subprocess.run(
        list(cmd),
        input=input,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
    )


def remove_file(path: Path) -> None:
    """Delete a file if present; failure is logged, never raised."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        log.debug("Could not remove %s: %s", path, e)


def was_cancelled(result: subprocess.CompletedProcess) -> bool:
    """Selection tools report Escape/right-click on stderr."""
    return result.returncode != 0 and "cancel" in (result.stderr or "").lower()
