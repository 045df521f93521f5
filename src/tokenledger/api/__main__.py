# src/tokenledger/api/__main__.py
from __future__ import annotations

import uvicorn

from tokenledger.env import load_dotenv_if_present


def main() -> None:
    # .env must be loaded before any TOKENLEDGER_* variable is read.
    load_dotenv_if_present()

    from tokenledger.api.app import create_app
    from tokenledger.api.config import load_api_config
    from tokenledger.api.structured_logging import configure_structured_logging

    configure_structured_logging()
    cfg = load_api_config()
    uvicorn.run(create_app(), host=cfg.host, port=cfg.port, log_level="info")


if __name__ == "__main__":
    main()
