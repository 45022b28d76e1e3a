"""Command-line interface for Scrotto.

Entry point flow:
1. Parse arguments (unknown ones are ignored with a warning)
2. Probe the session and refuse to run outside Wayland/X11
3. Pick the capture backend
4. Capture -> OCR -> clipboard + notification, removing the temp file
"""

import argparse
import json
import logging
import sys
import uuid
from enum import IntEnum
from pathlib import Path
from typing import Optional

from . import __version__
from .capture import CaptureCancelled, CaptureError, capture
from .config import (
    config_defaults,
    config_to_dict,
    load_config,
    validate_config_file,
)
from .emit import configure, emit
from .ocr import OcrUnavailableError, extract_text
from .output import deliver
from .session import (
    BACKEND_CHOICES,
    Backend,
    InvalidBackendError,
    RunContext,
    UnsupportedSessionError,
    parse_backend,
    probe_session,
    require_supported,
    resolve_backend,
)
from .tools import remove_file

log = logging.getLogger(__name__)


class ExitCode(IntEnum):
    OK = 0
    UNSUPPORTED_SESSION = 1
    USAGE = 2
    CAPTURE_FAILED = 3
    OCR_UNAVAILABLE = 4


def _backend_arg(value: str) -> Backend:
    try:
        return parse_backend(value)
    except InvalidBackendError as e:
        raise argparse.ArgumentTypeError(str(e))


def create_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scrotto",
        allow_abbrev=False,
        description="Grab text from the screen with OCR and copy it to the clipboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                    # Select an area
  %(prog)s --full             # Whole screen
  %(prog)s --backend portal   # Force the desktop portal

When running on GNOME Wayland the portal backend is chosen automatically.
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"scrotto {__version__}",
    )
    parser.add_argument(
        "-f", "--full",
        action="store_true",
        help="Capture the entire screen instead of selecting an area",
    )
    parser.add_argument(
        "--backend",
        type=_backend_arg,
        metavar="{" + ",".join(BACKEND_CHOICES) + "}",
        help="Capture backend (default: portal on GNOME Wayland, auto elsewhere)",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: platform config dir)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    parser.add_argument(
        "--events",
        action="store_true",
        help="Write structured JSON events to stderr",
    )

    # Introspection
    parser.add_argument(
        "--print-defaults",
        action="store_true",
        help="Print default configuration as JSON and exit",
    )
    parser.add_argument(
        "--print-resolved",
        action="store_true",
        help="Print resolved configuration as JSON and exit",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def _emit_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def _handle_introspection(args: argparse.Namespace) -> Optional[int]:
    config_path = Path(args.config).expanduser() if args.config else None

    if args.print_defaults:
        _emit_json(config_defaults())
        return ExitCode.OK

    if args.print_resolved:
        _emit_json(config_to_dict(load_config(config_path=config_path)))
        return ExitCode.OK

    if args.validate_config:
        errors = validate_config_file(config_path)
        for error in errors:
            print(error, file=sys.stderr)
        return ExitCode.USAGE if errors else ExitCode.OK

    return None


def run_capture(ctx: RunContext, fullscreen: bool = False, json_output: bool = False) -> int:
    """Capture, recognise and deliver text. Returns the exit code."""
    mode = "fullscreen" if fullscreen else "region"
    operation_id = str(uuid.uuid4())
    emit("operation.started", {
        "operation_id": operation_id,
        "mode": mode,
        "backend": ctx.backend.value,
        "session_type": ctx.session.session_type.value,
    })

    def fail(error_type: str, message: str) -> None:
        emit("error.handled", {"error_type": error_type, "message": message, "mode": mode})
        emit("operation.completed", {
            "operation_id": operation_id,
            "success": False,
            "error_message": message,
        })

    temp_path = ctx.config.temp_file
    remove_file(temp_path)
    try:
        try:
            image = capture(ctx, fullscreen=fullscreen)
        except CaptureCancelled as e:
            log.warning("Screenshot cancelled: %s", e)
            fail("CaptureCancelled", str(e))
            return ExitCode.OK
        except CaptureError as e:
            log.error("Screenshot failed: %s", e)
            fail("CaptureError", str(e))
            return ExitCode.CAPTURE_FAILED

        try:
            text = extract_text(image, ctx.config)
        except OcrUnavailableError as e:
            log.error("%s", e)
            fail("OcrUnavailableError", str(e))
            return ExitCode.OCR_UNAVAILABLE
    finally:
        remove_file(temp_path)

    result = deliver(text, ctx, json_output=json_output)
    emit("operation.completed", {
        "operation_id": operation_id,
        "success": True,
        "characters": len(result.text),
        "copied": result.copied,
        "notified": result.notified,
    })
    return ExitCode.OK


def main(args: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_argument_parser()
    parsed_args, unknown = parser.parse_known_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed_args.debug else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    for arg in unknown:
        log.warning("Ignoring unknown argument: %s", arg)

    result = _handle_introspection(parsed_args)
    if result is not None:
        return result

    configure("scrotto", stderr=parsed_args.events)

    config_path = Path(parsed_args.config).expanduser() if parsed_args.config else None
    try:
        config = load_config(config_path=config_path, strict=True)
    except ValueError as e:
        log.error("%s", e)
        emit("error.handled", {"error_type": "ConfigError", "message": str(e)})
        return ExitCode.USAGE
    emit("config.resolved", {
        "config_path": str(config_path or "default"),
        "source": "cli" if config_path else "default",
    })

    try:
        session = require_supported(probe_session())
    except UnsupportedSessionError as e:
        log.error("%s", e)
        log.error("Please run scrotto from a graphical desktop session")
        emit("error.handled", {"error_type": "UnsupportedSessionError", "message": str(e)})
        return ExitCode.UNSUPPORTED_SESSION

    backend = resolve_backend(session, parsed_args.backend)
    ctx = RunContext(session=session, backend=backend, config=config)

    if backend is Backend.PORTAL:
        log.info("Using desktop portal backend")
    if parsed_args.full:
        log.info("Capturing full screen")
    else:
        log.info("Select an area to capture text (use --full for the entire screen)")

    return run_capture(ctx, fullscreen=parsed_args.full, json_output=parsed_args.json)


if __name__ == "__main__":
    sys.exit(main())
