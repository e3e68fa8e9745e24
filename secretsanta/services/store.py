from __future__ import annotations

import threading
from typing import Dict, Iterable, Tuple


class RedemptionStore:
    """One-time token to target table.

    Every access to the table happens under a single lock, so ``take_once``
    is atomic: of two callers racing on the same token exactly one sees it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = {}

    def put(self, token: str, target: str) -> None:
        with self._lock:
            self._entries[token] = target

    def put_many(self, entries: Iterable[Tuple[str, str]]) -> None:
        with self._lock:
            self._entries.update(entries)

    def take_once(self, token: str) -> Tuple[str, bool]:
        with self._lock:
            if token not in self._entries:
                return "", False
            return self._entries.pop(token), True

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
