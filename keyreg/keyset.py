# keyreg/keyset.py
"""
In-memory key set hydrated from the key registry file.

Each registry line maps a key to the filename it names, or to NONE for
keys minted on their own. The set only grows; a key that appears on
several lines takes the value of the latest one.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import MalformedRecord
from .store import RecordLog

logger = logging.getLogger(__name__)

NO_FILENAME = "NONE"


class KeySet:
    """
    Mapping of key -> associated filename (or NO_FILENAME).

    Insertion only touches memory. Persisting a new mapping is the
    job of whoever owns the backing RecordLog.
    """

    def __init__(self, entries: Dict[str, str] = None):
        self._entries: Dict[str, str] = dict(entries or {})
        self.malformed: List[MalformedRecord] = []

    @classmethod
    def load(cls, log: RecordLog) -> "KeySet":
        """Hydrate a key set from a registry log (empty if missing)."""
        keyset = cls()
        for _, (key, value) in log.scan():
            keyset._entries[key] = value
        keyset.malformed = list(log.malformed)
        if keyset._entries:
            logger.debug(f"Loaded {len(keyset)} keys from {log.path}")
        return keyset

    def add(self, key: str, value: Optional[str] = None) -> None:
        """Insert or re-point a key."""
        self._entries[key] = value or NO_FILENAME

    def get(self, key: str) -> Optional[str]:
        """Associated filename, None for standalone or unknown keys."""
        value = self._entries.get(key)
        if value == NO_FILENAME:
            return None
        return value

    def keys(self) -> List[str]:
        return list(self._entries)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)
