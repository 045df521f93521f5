import os
from dataclasses import dataclass


def _is_truthy(v: str | None) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "prod" | "dev" | "testnet"
    host: str
    port: int
    log_requests: bool


def load_api_config() -> ApiConfig:
    mode = os.getenv("TOKENLEDGER_MODE", "prod").strip().lower()
    host = os.getenv("TOKENLEDGER_API_HOST", "127.0.0.1").strip() or "127.0.0.1"
    try:
        port = int(os.getenv("TOKENLEDGER_API_PORT", "8080"))
    except ValueError:
        port = 8080
    raw = os.getenv("TOKENLEDGER_LOG_REQUESTS")
    log_requests = True if raw is None else _is_truthy(raw)
    return ApiConfig(mode=mode, host=host, port=port, log_requests=log_requests)
