"""
Per-submitter locks for reputation read-modify-write.

A lock exists only while some thread holds or waits for it; the entry is
dropped when its last user leaves, so the registry stays as small as the
set of submitters currently being updated. Updates for different
submitters never contend; updates for the same submitter serialize across
threads and across overlapping runs sharing the registry.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class SubmitterLockRegistry:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, submitter_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(submitter_id)
            if entry is None:
                entry = self._entries[submitter_id] = _Entry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[submitter_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
