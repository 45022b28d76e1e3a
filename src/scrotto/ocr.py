"""Text recognition with the tesseract CLI."""

import logging
from pathlib import Path

from .config import Config
from .tools import run

log = logging.getLogger(__name__)

INSTALL_HINT = "Make sure tesseract-ocr is installed: sudo apt install tesseract-ocr"


class OcrUnavailableError(RuntimeError):
    """Raised when the OCR engine is missing or cannot be run."""
    pass


def ocr_command(image: Path, config: Config) -> list[str]:
    return [config.ocr_command, str(image), "stdout", "-l", config.ocr_language]


def extract_text(image: Path, config: Config) -> str:
    """Run OCR over an image.

    Returns:
        Recognised text with surrounding whitespace stripped ("" if none)

    Raises:
        OcrUnavailableError: If the engine is not installed or fails to run
    """
    try:
        result = run(ocr_command(image, config))
    except OSError as e:
        raise OcrUnavailableError(f"Failed to run {config.ocr_command}: {e}. {INSTALL_HINT}")

    if result.returncode != 0:
        raise OcrUnavailableError(
            f"{config.ocr_command} exited with {result.returncode}: "
            f"{(result.stderr or '').strip()}. {INSTALL_HINT}"
        )

    text = result.stdout.strip()
    log.debug("OCR produced %d characters", len(text))
    return text
