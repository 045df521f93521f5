from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Iterator, Optional

from tokenledger.ledger.constants import TX_RESULTS_NAMESPACE
from tokenledger.ledger.schema import TokenSchema
from tokenledger.ledger.types import Token
from tokenledger.runtime.dispatch import apply_tx
from tokenledger.runtime.errors import ExecutionError, TransitionError
from tokenledger.runtime.runtime_logging import log_event
from tokenledger.runtime.tx_admission import AdmittedTx, admit_tx
from tokenledger.runtime.tx_id import compute_tx_id_from_envelope
from tokenledger.storage.kv import Fork, KeyValueStore, Snapshot
from tokenledger.storage.sqlite_db import canon_json

Json = Dict[str, Any]

log = logging.getLogger("tokenledger.executor")


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenExecutor:
    """Applies admitted transactions to the store, one at a time.

    Every transaction gets a fresh Fork. A successful transition's writes
    and its receipt are applied to the store in a single batch; a rejected
    transition's fork is dropped and only the receipt is written. The
    instance lock serializes fork -> apply -> merge, which is what makes the
    check-then-write transitions safe.
    """

    def __init__(self, *, store: KeyValueStore, chain_id: str, node_id: str = "local-node") -> None:
        self.store = store
        self.chain_id = str(chain_id)
        self.node_id = str(node_id)
        self._lock = threading.Lock()

    # ----------------------------
    # Read path
    # ----------------------------

    def snapshot(self) -> Snapshot:
        return Snapshot(self.store)

    def token(self, symbol: str) -> Optional[Token]:
        return TokenSchema(self.snapshot()).token(symbol)

    def tokens(self) -> Iterator[Token]:
        return TokenSchema(self.snapshot()).tokens()

    def tx_result(self, tx_id: str) -> Optional[Json]:
        raw = self.store.get(TX_RESULTS_NAMESPACE, str(tx_id))
        return None if raw is None else json.loads(raw)

    # ----------------------------
    # Write path
    # ----------------------------

    def submit_tx(self, env: Any) -> Json:
        """Admit and execute a signed tx envelope.

        Returns:
          {ok: False, error, reason, details}            admission failed
          {ok: True, tx_id, status: "committed"}
          {ok: True, tx_id, status: "rejected", code, description}
          {ok: True, tx_id, status: "already_known", result}
        """
        verdict, admitted = admit_tx(tx=env)
        if not verdict.ok or admitted is None:
            log_event(log, "tx_not_admitted", code=verdict.code, reason=verdict.reason)
            return {"ok": False, "error": verdict.code, "reason": verdict.reason, "details": verdict.details}
        return self.execute(admitted)

    def execute(self, admitted: AdmittedTx) -> Json:
        env = admitted.env
        tx_id = compute_tx_id_from_envelope(self.chain_id, env)

        with self._lock:
            known = self.tx_result(tx_id)
            if known is not None:
                return {"ok": True, "tx_id": tx_id, "status": "already_known", "result": known}

            fork = Fork(self.store)
            err: Optional[ExecutionError] = None
            try:
                apply_tx(fork, env.tx_type, admitted.payload, admitted.actor)
            except TransitionError as e:
                err = ExecutionError.from_transition_error(e)
                fork = Fork(self.store)

            receipt: Json = {
                "tx_id": tx_id,
                "tx_type": env.tx_type,
                "signer": env.signer,
                "status": "committed" if err is None else "rejected",
                "ts_ms": _now_ms(),
            }
            if err is not None:
                receipt["code"] = err.code
                receipt["description"] = err.description

            fork.put(TX_RESULTS_NAMESPACE, tx_id, canon_json(receipt))
            self.store.apply_batch(fork.into_patch())

        log_event(log, "tx_executed", tx_id=tx_id, tx_type=env.tx_type, status=receipt["status"], code=receipt.get("code"))

        out: Json = {"ok": True, "tx_id": tx_id, "status": receipt["status"]}
        if err is not None:
            out["code"] = err.code
            out["description"] = err.description
        return out
