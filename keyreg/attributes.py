# keyreg/attributes.py
"""
Attribute/value metadata keyed by registry keys.

Attributes never influence key uniqueness or lineage. They live in
their own append-only file, one record per assignment:

    <key>\t<attribute>\t<value>

The latest record for a (key, attribute) pair is the current value.
"""

import logging
from pathlib import Path
from typing import Dict, List

from .errors import MalformedRecord
from .store import RecordLog

logger = logging.getLogger(__name__)


class AttributeStore:
    """
    Key attributes backed by a `*_attr.txt` file.

    Example:
        store = AttributeStore("/data/keys_attr.txt")
        store.set("zR56", "species", "gensp")
        store.get("zR56")  # {"species": "gensp"}
    """

    def __init__(self, path: Path | str):
        self._log = RecordLog(path, fields=3)
        self._attributes: Dict[str, Dict[str, str]] = {}
        self.malformed: List[MalformedRecord] = []
        self._load()

    @property
    def path(self) -> Path:
        return self._log.path

    def _load(self):
        """Load attributes from disk."""
        for _, (key, attribute, value) in self._log.scan():
            self._attributes.setdefault(key, {})[attribute] = value
        self.malformed = list(self._log.malformed)

    def set(self, key: str, attribute: str, value: str) -> None:
        """Record a new value for an attribute."""
        self._log.append(key, attribute, value)
        self._attributes.setdefault(key, {})[attribute] = value
        logger.debug(f"Set {key}.{attribute} = {value!r}")

    def get(self, key: str) -> Dict[str, str]:
        """Current attributes of a key (empty if none)."""
        return dict(self._attributes.get(key, {}))

    def find(self, attribute: str, value: str) -> List[str]:
        """Keys whose current `attribute` equals `value`."""
        return [
            key for key, attrs in self._attributes.items()
            if attrs.get(attribute) == value
        ]

    def __contains__(self, key: str) -> bool:
        return key in self._attributes

    def __len__(self) -> int:
        return len(self._attributes)
