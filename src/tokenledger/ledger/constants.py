# src/tokenledger/ledger/constants.py
from __future__ import annotations

"""Service identity and persisted namespace names.

The namespace strings are part of the on-disk layout. Renaming them orphans
existing data.
"""

SERVICE_ID: int = 1
SERVICE_NAME: str = "cryptocurrency"

# symbol -> {"owner": <hex pubkey>, "symbol": <str>}
TOKENS_NAMESPACE: str = f"{SERVICE_NAME}.tokens"

# tx_id -> receipt (host bookkeeping, not part of the token ledger)
TX_RESULTS_NAMESPACE: str = "core.tx_results"
