"""Bounded LRU cache of generated documentation, keyed by request fingerprint."""

from __future__ import annotations

import threading
from collections import OrderedDict

from docweaver.generation.models import GeneratedDoc


class DocCache:
    """Thread-safe LRU mapping fingerprint -> GeneratedDoc.

    A ``max_size`` of 0 disables caching.
    """

    def __init__(self, max_size: int = 256) -> None:
        self.max_size = max_size
        self._entries: OrderedDict[str, GeneratedDoc] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, fingerprint: str) -> GeneratedDoc | None:
        with self._lock:
            doc = self._entries.get(fingerprint)
            if doc is not None:
                self._entries.move_to_end(fingerprint)
            return doc

    def put(self, fingerprint: str, doc: GeneratedDoc) -> None:
        if self.max_size <= 0:
            return
        with self._lock:
            self._entries[fingerprint] = doc
            self._entries.move_to_end(fingerprint)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, fingerprint: object) -> bool:
        with self._lock:
            return fingerprint in self._entries
