# keyreg/errors.py
"""
Error kinds raised by the key registry.

Every error is local to a single operation. Nothing is retried
automatically except the bounded collision retry in the key generator.
"""

from pathlib import Path
from typing import List, Optional


class RegistryError(Exception):
    """Base class for all registry errors."""

    kind = "RegistryError"
    exit_code = 1


class InvalidConfiguration(RegistryError):
    """Malformed generation parameters or configuration."""

    kind = "InvalidConfiguration"
    exit_code = 2


class RegistrySaturated(RegistryError):
    """Collision retry budget exhausted while minting a batch."""

    kind = "RegistrySaturated"
    exit_code = 3

    def __init__(self, minted: List[str], requested: int, max_tries: int):
        self.minted = list(minted)
        self.requested = requested
        self.max_tries = max_tries
        super().__init__(
            f"gave up after {max_tries} collisions; "
            f"minted {len(self.minted)} of {requested} keys"
        )

    @property
    def count(self) -> int:
        return len(self.minted)


class StorageUnavailable(RegistryError):
    """A registry file could not be opened, read, written or locked."""

    kind = "StorageUnavailable"
    exit_code = 4

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class CorruptLineage(RegistryError):
    """A cycle was found while walking the lineage log."""

    kind = "CorruptLineage"
    exit_code = 5

    def __init__(self, key: str, chain: List[str]):
        self.key = key
        self.chain = list(chain)
        super().__init__(
            f"cycle while resolving {key!r}: {' <- '.join(self.chain)}"
        )


class MalformedRecord(RegistryError):
    """
    A persisted line that does not have the expected shape.

    Loads never raise this; they log it and keep it on the loaded
    object so callers can report what was skipped.
    """

    kind = "MalformedRecord"

    def __init__(self, path: Path | str, line_num: int, line: str,
                 expected: Optional[int] = None):
        self.path = Path(path)
        self.line_num = line_num
        self.line = line
        self.expected = expected
        detail = f" (expected {expected} fields)" if expected else ""
        super().__init__(f"{self.path}:{line_num}: skipped {line!r}{detail}")


class UnknownKey(RegistryError):
    """Attribute operation on a key that was never registered."""

    kind = "UnknownKey"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"key not registered: {key!r}")
