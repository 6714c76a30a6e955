from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Hashable


@dataclass
class _Slot:
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Threads holding or waiting for the lock.
    users: int = 0


class AccountLockRegistry:
    """Hands out one mutex per account so postings to the same account
    serialize while postings to different accounts run in parallel.

    A slot lives only while some thread holds or waits for it, so the
    registry stays as small as the number of accounts being posted to.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: dict[Hashable, _Slot] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            slot.users += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._guard:
                slot.users -= 1
                if slot.users == 0:
                    del self._slots[key]


account_locks = AccountLockRegistry()
