"""Delivery of recognised text.

Handles:
- Copying to the clipboard
- Desktop notification with a preview
- Console output (human readable or JSON for scripting)

The full text always reaches the console, even when the clipboard fails.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .clipboard import ClipboardBackend, clipboard_chain, copy_text
from .notify import notify, preview
from .session import RunContext

log = logging.getLogger(__name__)

NO_TEXT_BODY = "❌ No text found in selected area\n\nTip: Make sure the area contains clear, readable text"


@dataclass
class DeliveryResult:
    """What happened to the recognised text."""

    text: str
    copied: bool
    notified: bool
    clipboard_backend: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "copied": self.copied,
            "notified": self.notified,
            "clipboard_backend": self.clipboard_backend,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def deliver(
    text: str,
    ctx: RunContext,
    json_output: bool = False,
    backends: Optional[list[ClipboardBackend]] = None,
) -> DeliveryResult:
    """Copy text to the clipboard and tell the user about it.

    Args:
        text: Recognised text (already stripped)
        ctx: Run context
        json_output: Print a JSON object instead of human readable text
        backends: Clipboard chain override (defaults to clipboard_chain(ctx))
    """
    config = ctx.config

    if not text:
        notified = notify(config.app_name, NO_TEXT_BODY, config)
        result = DeliveryResult(text="", copied=False, notified=notified)
        if json_output:
            print(result.to_json(), flush=True)
        else:
            print("❌ No text detected in the selected area.", flush=True)
        return result

    backend_name = copy_text(text, backends if backends is not None else clipboard_chain(ctx))
    copied = backend_name is not None
    short = preview(text, config.preview_chars)

    if copied:
        body = f"✅ Text copied to clipboard:\n\n{short}"
    else:
        body = f"❌ Clipboard failed, but text extracted:\n\n{short}"
    notified = notify(config.app_name, body, config)

    result = DeliveryResult(
        text=text,
        copied=copied,
        notified=notified,
        clipboard_backend=backend_name,
    )

    if json_output:
        print(result.to_json(), flush=True)
    elif copied:
        print(f"✅ Text copied to clipboard:\n{text}", flush=True)
    else:
        print(f"❌ Failed to copy to clipboard, but text extracted:\n{text}", flush=True)
        print("💡 You can manually copy this text from the terminal", flush=True)

    return result
