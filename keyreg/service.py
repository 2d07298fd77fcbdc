# keyreg/service.py
"""
Registry service: the composition root.

Ties the key generator, key registry file, lineage log, attribute
store and operation log together. Every operation:

1. takes the registry lock
2. loads a fresh snapshot of the files it needs
3. validates and mints against that snapshot
4. appends its records
5. releases the lock

Nothing survives in memory between operations.
"""

import logging
import random
import re
import shutil
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

from .attributes import AttributeStore
from .config import RegistryConfig
from .errors import CorruptLineage, InvalidConfiguration, StorageUnavailable, UnknownKey
from .generator import KeyGenerator
from .keyset import NO_FILENAME, KeySet
from .lineage import LineageEdge, LineageLog
from .matching import is_wildcard, make_matcher
from .oplog import OperationLog
from .store import RecordLog, exclusive_lock

logger = logging.getLogger(__name__)


def _check_token(name: str, value: str) -> str:
    if not value or any(c.isspace() for c in value):
        raise InvalidConfiguration(f"{name} must be non-empty without whitespace: {value!r}")
    return value


def compose_name(prefix: str, key: str, extension: Optional[str] = None) -> str:
    """Build `prefix.key[.extension]`."""
    name = f"{prefix}.{key}"
    if extension:
        name += f".{extension}"
    return name


def original_identifier(original_name: str, prefix: str) -> str:
    """
    The lineage root for a file being renamed.

    If the file is already named `prefix.<key>[.<ext>]` its key is the
    identifier, otherwise the file's own basename is.
    """
    basename = Path(original_name).name
    match = re.match(rf"^{re.escape(prefix)}\.([^.]+)(?:\..*)?$", basename)
    if match:
        return match.group(1)
    return basename


@dataclass
class AssignRequest:
    """
    A request to key (rename) a file.

    Attributes:
        original_name: Current filename or path
        prefix: Prefix of the new name
        extension: Optional extension of the new name (no leading dot)
        key: Reuse this key instead of minting one
        length: Key length override when minting
        comment: Free text for the operation log
        move: Rename the file on disk as well
    """
    original_name: str
    prefix: str
    extension: Optional[str] = None
    key: Optional[str] = None
    length: Optional[int] = None
    comment: Optional[str] = None
    move: bool = False


@dataclass
class AssignResult:
    """Outcome of an assign operation."""
    key: str
    new_name: str
    original_identifier: str
    minted: bool
    new_path: Optional[Path] = None


@dataclass
class LineageReport:
    """
    Answer to a lineage query.

    Wildcard queries return every edge in `edges`. Pattern queries return
    the edges touching a matching name in `edges` and one ancestor chain
    per matching key in `chains`. Keys whose walk hit a cycle land in
    `errors` instead.
    """
    query: str
    wildcard: bool = False
    edges: Set[LineageEdge] = field(default_factory=set)
    chains: Dict[str, List[str]] = field(default_factory=dict)
    errors: Dict[str, CorruptLineage] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class RegistryService:
    """
    Key registry operations over one set of registry files.

    Args:
        config: Registry configuration
        rng: Randomness source passed to the key generator
    """

    def __init__(self, config: RegistryConfig, rng: Optional[random.Random] = None):
        self.config = config.validate()
        self.generator = KeyGenerator(max_tries=config.max_keys_to_try, rng=rng)
        self.matcher = make_matcher(config.match_policy)
        self.main_log = RecordLog(config.main_path, fields=2)
        self.oplog = OperationLog(config.log_path)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self.config.base_dir.is_dir():
            raise StorageUnavailable(self.config.base_dir, "registry directory does not exist")
        with exclusive_lock(self.config.lock_path):
            yield

    def _load_keyset(self) -> KeySet:
        return KeySet.load(self.main_log)

    def _load_lineage(self) -> LineageLog:
        return LineageLog(self.config.lineage_path)

    def assign_key(self, request: AssignRequest) -> AssignResult:
        """
        Key a file: resolve or mint its key, record the new name and
        append the lineage edge back to what it was called before.

        A caller-supplied key that already exists is accepted; re-keying
        is intentional.
        """
        prefix = _check_token("prefix", request.prefix)
        extension = request.extension.lstrip(".") if request.extension else None
        if extension is not None:
            _check_token("extension", extension)
        if request.key is not None:
            _check_token("key", request.key)
        if not request.original_name:
            raise InvalidConfiguration("original name must not be empty")
        root = original_identifier(request.original_name, prefix)
        if not root:
            raise InvalidConfiguration(f"original name has no file name: {request.original_name!r}")
        if any(c in root for c in "\t\r\n"):
            raise InvalidConfiguration(f"original name contains control characters: {root!r}")
        length = request.length if request.length is not None else self.config.key_length

        source = Path(request.original_name)
        if request.move and not source.is_file():
            raise StorageUnavailable(source, "file to rename does not exist")

        with self._locked():
            keyset = self._load_keyset()
            if request.key is not None:
                key = request.key
                minted = False
            else:
                key = self.generator.generate_keys(1, length, keyset)[0]
                minted = True
            new_name = compose_name(prefix, key, extension)

            target = source.parent / new_name if request.move else None
            if target is not None and target.exists() and not target.samefile(source):
                raise StorageUnavailable(target, "rename target already exists")

            previous = keyset.get(key)
            if previous is not None and previous != new_name:
                logger.warning(f"Re-keying {key}: {previous} -> {new_name}")

            self.main_log.append(key, new_name)
            self._load_lineage().append_edge(key, root)
            self.oplog.record(
                "assign", [key],
                detail=f"{request.original_name} -> {new_name}",
                comment=request.comment,
            )

            if target is not None and target != source:
                try:
                    shutil.move(str(source), str(target))
                except OSError as e:
                    raise StorageUnavailable(target, e.strerror or str(e)) from e
                logger.info(f"Moved {source} -> {target}")

        logger.debug(f"Assigned {key} to {new_name} (root {root})")
        return AssignResult(
            key=key,
            new_name=new_name,
            original_identifier=root,
            minted=minted,
            new_path=target,
        )

    def mint_simple_keys(self, count: int, length: Optional[int] = None,
                         comment: Optional[str] = None) -> List[str]:
        """
        Mint standalone keys with no filename and no lineage edge.

        The batch is persisted only if every key was minted.
        """
        if length is None:
            length = self.config.key_length
        with self._locked():
            keyset = self._load_keyset()
            keys = self.generator.generate_keys(count, length, keyset)
            self.main_log.append_many([(key, NO_FILENAME) for key in keys])
            self.oplog.record("mint", keys, comment=comment)
        logger.debug(f"Minted {len(keys)} key(s)")
        return keys

    def report_lineage(self, query: str) -> LineageReport:
        """
        Lineage for a query.

        The wildcard returns every edge. Anything else is matched
        against every stored key and each match is resolved to its
        ancestor chain.
        """
        if not query:
            raise InvalidConfiguration("lineage query must not be empty")
        with self._locked():
            lineage = self._load_lineage()
            if is_wildcard(query, self.config.wildcard):
                return LineageReport(query=query, wildcard=True, edges=set(lineage.edges()))
            keyset = self._load_keyset()

        report = LineageReport(query=query, edges=lineage.find_edges(query, self.matcher))
        for key in sorted(set(keyset.keys()) | lineage.new_keys()):
            if not self.matcher(query, key):
                continue
            try:
                report.chains[key] = lineage.resolve_chain(key)
            except CorruptLineage as e:
                logger.warning(f"Corrupt lineage for {key}: {e}")
                report.errors[key] = e
        return report

    def set_attribute(self, key: str, attribute: str, value: str,
                      comment: Optional[str] = None) -> None:
        """Attach an attribute to a registered key."""
        _check_token("attribute", attribute)
        with self._locked():
            if key not in self._load_keyset():
                raise UnknownKey(key)
            AttributeStore(self.config.attributes_path).set(key, attribute, value)
            self.oplog.record("attr", [key], detail=f"{attribute}={value}", comment=comment)

    def get_attributes(self, key: str) -> Dict[str, str]:
        """Current attributes of a registered key."""
        with self._locked():
            if key not in self._load_keyset():
                raise UnknownKey(key)
            return AttributeStore(self.config.attributes_path).get(key)

    def find_keys(self, attribute: str, value: str) -> List[str]:
        """Registered keys whose current `attribute` equals `value`."""
        _check_token("attribute", attribute)
        with self._locked():
            keyset = self._load_keyset()
            found = AttributeStore(self.config.attributes_path).find(attribute, value)
        return sorted(key for key in found if key in keyset)
