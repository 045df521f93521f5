# src/tokenledger/api/structured_logging.py
from __future__ import annotations

import logging
import os
import time
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from tokenledger.runtime.runtime_logging import log_event


def configure_structured_logging() -> None:
    """Configure stdlib logging for JSONL output on stdout.

    Level from TOKENLEDGER_LOG_LEVEL (default INFO). Safe to call repeatedly.
    """
    level_name = (os.environ.get("TOKENLEDGER_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if getattr(root, "_tokenledger_configured", False):
        root.setLevel(level)
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers = [handler]
    root.setLevel(level)
    setattr(root, "_tokenledger_configured", True)


class RequestLogMiddleware(BaseHTTPMiddleware):
    """One `http_request` event per request; echoes/assigns x-request-id."""

    def __init__(self, app, *, enabled: bool = True) -> None:
        super().__init__(app)
        self._enabled = bool(enabled)
        self._logger = logging.getLogger("tokenledger.http")

    async def dispatch(self, request: Request, call_next):
        if not self._enabled:
            return await call_next(request)

        started = time.monotonic()
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id

        status = 500
        err: Optional[str] = None
        response: Optional[Response] = None
        try:
            response = await call_next(request)
            status = int(response.status_code)
            response.headers.setdefault("x-request-id", request_id)
            return response
        except Exception as e:
            err = str(e)
            raise
        finally:
            log_event(
                self._logger,
                "http_request",
                request_id=request_id,
                method=request.method,
                path=str(request.url.path or ""),
                status=status,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=err,
            )
