# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Configuration key/value store.
Values are stored as strings exactly as written; parsing is the service's job.
"""

import threading
from typing import Optional

from membership.repositories.base import ConfigStore


class ConfigRepository(ConfigStore):
    """In-memory configuration storage."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._store: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    # ── Read ──

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.get(key)

    def get_all(self) -> dict[str, str]:
        with self._lock:
            return dict(self._store)

    def exists(self, key: str) -> bool:
        return key in self._store

    # ── Write ──

    def save(self, key: str, value: str) -> None:
        self.save_many({key: value})

    def save_many(self, values: dict[str, str]) -> None:
        with self._lock:
            self._store.update(values)

    def delete(self, key: str) -> Optional[str]:
        with self._lock:
            return self._store.pop(key, None)
