from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict


Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _render(value: Any) -> Any:
    # Keys, owners and signatures are raw bytes; logs carry them as hex.
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    raise TypeError(f"not JSON serializable: {type(value).__name__}")


def log_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    """Emit a single JSONL log event.

    bytes fields are written as hex. Any other non-JSON value degrades the
    line to `event=... key=repr` instead of failing the caller.
    """
    payload: Json = {"ts_ms": _now_ms(), "event": str(event)}
    payload.update(fields)
    try:
        line = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=_render)
    except (TypeError, ValueError):
        line = " ".join([f"event={event}"] + [f"{k}={fields[k]!r}" for k in sorted(fields)])
    logger.info(line)
