# src/tokenledger/storage/kv.py
from __future__ import annotations

"""Key-value storage abstraction and the two ledger views built on it.

Keys and values are strings; values hold canonical JSON produced by the
ledger schema. Entries are grouped by namespace (e.g. "cryptocurrency.tokens").

Views:
  - Snapshot: read-only window (get / iterate) onto committed state.
              It is live, not point-in-time: each read sees whatever the
              store holds at that moment, and never a fork's pending writes.
  - Fork:     mutable window that buffers writes for a single transition.
              Nothing reaches the store until the host applies
              `fork.into_patch()` through `store.apply_batch(...)`.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

Write = Tuple[str, str, str]  # (namespace, key, value)


class KeyValueStore(Protocol):
    def get(self, namespace: str, key: str) -> Optional[str]: ...

    def iterate(self, namespace: str) -> Iterator[Tuple[str, str]]: ...

    def put(self, namespace: str, key: str, value: str) -> None: ...

    def apply_batch(self, writes: Iterable[Write]) -> None: ...


class MemoryKVStore:
    """Dict-backed store. Iterates in key order."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, str]] = {}

    def get(self, namespace: str, key: str) -> Optional[str]:
        return self._data.get(namespace, {}).get(key)

    def iterate(self, namespace: str) -> Iterator[Tuple[str, str]]:
        items = sorted(self._data.get(namespace, {}).items())
        yield from items

    def put(self, namespace: str, key: str, value: str) -> None:
        self._data.setdefault(namespace, {})[key] = value

    def apply_batch(self, writes: Iterable[Write]) -> None:
        staged = list(writes)
        for ns, key, value in staged:
            self.put(ns, key, value)


class Snapshot:
    """Read-only view over the committed contents of a store.

    Reads go straight to the store, so a batch applied after the snapshot
    was taken is visible to later reads through it.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self, namespace: str, key: str) -> Optional[str]:
        return self._store.get(namespace, key)

    def iterate(self, namespace: str) -> Iterator[Tuple[str, str]]:
        return self._store.iterate(namespace)


class Fork(Snapshot):
    """Mutable view: reads see pending writes first, then the store."""

    def __init__(self, store: KeyValueStore) -> None:
        super().__init__(store)
        self._pending: Dict[str, Dict[str, str]] = {}

    def get(self, namespace: str, key: str) -> Optional[str]:
        pending = self._pending.get(namespace, {})
        if key in pending:
            return pending[key]
        return self._store.get(namespace, key)

    def iterate(self, namespace: str) -> Iterator[Tuple[str, str]]:
        pending = dict(self._pending.get(namespace, {}))
        for key, value in self._store.iterate(namespace):
            if key in pending:
                yield key, pending.pop(key)
            else:
                yield key, value
        for key in sorted(pending):
            yield key, pending[key]

    def put(self, namespace: str, key: str, value: str) -> None:
        self._pending.setdefault(namespace, {})[key] = value

    def is_dirty(self) -> bool:
        return any(self._pending.values())

    def into_patch(self) -> List[Write]:
        out: List[Write] = []
        for ns, entries in self._pending.items():
            for key, value in entries.items():
                out.append((ns, key, value))
        return out
