from __future__ import annotations

from fastapi import FastAPI

from tokenledger.api.config import load_api_config
from tokenledger.api.errors import install_error_handlers
from tokenledger.api.routes_public import public_router
from tokenledger.api.structured_logging import RequestLogMiddleware
from tokenledger.runtime.executor_boot import build_executor as _build_executor


def build_executor():
    """Build the TokenExecutor for the API runtime.

    Kept as a module-level hook so tests can monkeypatch
    `tokenledger.api.app.build_executor`.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): open the SQLite store and attach app.state.executor
      - False: no executor; tests attach their own
    """
    cfg = load_api_config()

    if cfg.mode == "prod":
        app = FastAPI(title="Token Ledger API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Token Ledger API")

    app.state.cfg = cfg
    app.state.executor = build_executor() if boot_runtime else None

    app.add_middleware(RequestLogMiddleware, enabled=cfg.log_requests)
    install_error_handlers(app)

    app.include_router(public_router)
    return app
