# keyreg - Short-key naming registry with rename lineage
#
# Mints short, collision-free keys used to rename files and collections,
# and records a derivation edge each time a new key supersedes an older
# name. All state lives in append-only flat files.
#
# Core concepts:
# - KeySet: Keys loaded from the key registry file, mapped to filenames
# - KeyGenerator: Mints keys unique against a KeySet, with a retry budget
# - LineageLog: Append-only (new_key, old_key) edges and chain resolution
# - RegistryService: Runs assign/mint/lineage operations under a file lock

from .alphabet import SYMBOLS
from .attributes import AttributeStore
from .config import RegistryConfig
from .errors import (
    CorruptLineage,
    InvalidConfiguration,
    MalformedRecord,
    RegistryError,
    RegistrySaturated,
    StorageUnavailable,
    UnknownKey,
)
from .generator import MAX_KEYS_TO_TRY, KeyGenerator
from .keyset import NO_FILENAME, KeySet
from .lineage import LineageEdge, LineageLog
from .matching import make_matcher
from .service import AssignRequest, AssignResult, LineageReport, RegistryService

__all__ = [
    # Core
    "SYMBOLS",
    "KeySet",
    "NO_FILENAME",
    "KeyGenerator",
    "MAX_KEYS_TO_TRY",
    "LineageEdge",
    "LineageLog",
    "make_matcher",
    "RegistryConfig",
    "RegistryService",
    "AssignRequest",
    "AssignResult",
    "LineageReport",
    "AttributeStore",
    # Errors
    "RegistryError",
    "InvalidConfiguration",
    "RegistrySaturated",
    "StorageUnavailable",
    "CorruptLineage",
    "MalformedRecord",
    "UnknownKey",
]

__version__ = "0.1.0"
