from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import pytest

from tokenledger import env as env_mod
from tokenledger.api.structured_logging import configure_structured_logging
from tokenledger.runtime.runtime_logging import log_event


def test_dotenv_loads_once_without_overriding(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / ".env"
    p.write_text("TOKENLEDGER_CHAIN_ID=from-file\nTOKENLEDGER_NODE_ID=file-node\n", encoding="utf-8")

    monkeypatch.setattr(env_mod, "_LOADED", False)
    monkeypatch.setenv("TOKENLEDGER_NODE_ID", "preset")
    monkeypatch.delenv("TOKENLEDGER_CHAIN_ID", raising=False)

    assert env_mod.load_dotenv_if_present(str(p)) is True
    assert os.environ["TOKENLEDGER_CHAIN_ID"] == "from-file"
    assert os.environ["TOKENLEDGER_NODE_ID"] == "preset"

    # Second call is a no-op.
    assert env_mod.load_dotenv_if_present(str(p)) is False
    monkeypatch.delenv("TOKENLEDGER_CHAIN_ID", raising=False)


def test_missing_dotenv_is_not_an_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(env_mod, "_LOADED", False)
    assert env_mod.load_dotenv_if_present(str(tmp_path / "nope.env")) is False


def test_log_event_emits_canonical_json(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tokenledger.test")
    caplog.set_level("INFO", logger="tokenledger.test")
    log_event(logger, "hello", b=2, a="x")
    obj = json.loads(caplog.records[-1].getMessage())
    assert obj["event"] == "hello"
    assert obj["a"] == "x" and obj["b"] == 2
    assert isinstance(obj["ts_ms"], int)


def test_log_event_writes_bytes_as_hex(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tokenledger.test")
    caplog.set_level("INFO", logger="tokenledger.test")
    log_event(logger, "raw", data=b"\x00\xff", buf=bytearray(b"\x01"))
    obj = json.loads(caplog.records[-1].getMessage())
    assert obj["data"] == "00ff"
    assert obj["buf"] == "01"


def test_log_event_falls_back_for_non_json_values(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("tokenledger.test")
    caplog.set_level("INFO", logger="tokenledger.test")
    log_event(logger, "raw", n=1, obj={1, 2})
    assert caplog.records[-1].getMessage() == "event=raw n=1 obj={1, 2}"


def test_configure_structured_logging_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    monkeypatch.delattr(root, "_tokenledger_configured", raising=False)
    monkeypatch.setenv("TOKENLEDGER_LOG_LEVEL", "WARNING")
    try:
        configure_structured_logging()
        configure_structured_logging()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        if hasattr(root, "_tokenledger_configured"):
            delattr(root, "_tokenledger_configured")
