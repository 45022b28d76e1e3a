"""Structured run events.

With --events every event is written to stderr as one JSON line, so
scripts can follow a run next to the normal log output:

    {"event_type": "operation.completed", "timestamp": "...",
     "source": {"tool": "scrotto"}, "data": {...}}
"""

import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict

_source = "scrotto"
_enabled = False


def configure(source: str, stderr: bool = False) -> None:
    """Name the event source and switch stderr output on or off."""
    global _source, _enabled
    _source = source
    _enabled = stderr


def emit(event_type: str, data: Dict[str, Any]) -> None:
    if not _enabled:
        return
    event = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": {"tool": _source},
        "data": data,
    }
    print(json.dumps(event, default=str), file=sys.stderr, flush=True)
