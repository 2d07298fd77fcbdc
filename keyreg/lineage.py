# keyreg/lineage.py
"""
Rename lineage: an append-only log of (new_key, old_key) edges.

An edge says old_key was superseded by new_key. Chains are rebuilt by
walking edges backward from a key until no edge names it as new_key;
they are never stored.

Self-edges (k, k) record a re-key under the same key. They carry no
ancestry and are skipped while walking.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Set

from .errors import CorruptLineage, MalformedRecord
from .matching import Matcher, match_substring
from .store import RecordLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineageEdge:
    """One immutable derivation record."""
    new_key: str
    old_key: str

    @property
    def is_rekey(self) -> bool:
        return self.new_key == self.old_key

    def as_tuple(self):
        return (self.new_key, self.old_key)


class LineageLog:
    """
    Lineage edges backed by a `*_rev_hist.txt` file.

    Structure:
        <new_key>\t<old_key>
    """

    def __init__(self, path: Path | str):
        self._log = RecordLog(path, fields=2)
        self._edges: List[LineageEdge] = []
        self._parents: Dict[str, str] = {}
        self.malformed: List[MalformedRecord] = []
        self._load()

    @property
    def path(self) -> Path:
        return self._log.path

    def _load(self):
        """Load edges from disk."""
        for _, (new_key, old_key) in self._log.scan():
            self._index(LineageEdge(new_key, old_key))
        self.malformed = list(self._log.malformed)
        if self._edges:
            logger.debug(f"Loaded {len(self._edges)} edges from {self.path}")

    def _index(self, edge: LineageEdge):
        self._edges.append(edge)
        # Later edges win; re-key markers never replace a real parent
        if not edge.is_rekey:
            self._parents[edge.new_key] = edge.old_key

    def append_edge(self, new_key: str, old_key: str) -> LineageEdge:
        """Append one edge to the log and the in-memory index."""
        edge = LineageEdge(new_key, old_key)
        self._log.append(new_key, old_key)
        self._index(edge)
        logger.debug(f"Lineage edge {new_key} <- {old_key}")
        return edge

    def edges(self) -> List[LineageEdge]:
        """All edges in log order."""
        return list(self._edges)

    def new_keys(self) -> Set[str]:
        return {e.new_key for e in self._edges}

    def resolve_chain(self, start_key: str) -> List[str]:
        """
        Ancestors of `start_key`, most recent first.

        A key without a parent resolves to [start_key].

        Raises:
            CorruptLineage: the walk revisits a key
        """
        if start_key not in self._parents:
            return [start_key]

        chain: List[str] = []
        visited = {start_key}
        current = start_key
        while current in self._parents:
            current = self._parents[current]
            if current in visited:
                raise CorruptLineage(start_key, [start_key] + chain + [current])
            visited.add(current)
            chain.append(current)
        return chain

    def find_edges(self, pattern: str, matcher: Matcher = match_substring) -> Set[LineageEdge]:
        """Edges where either endpoint matches `pattern`."""
        return {
            e for e in self._edges
            if matcher(pattern, e.new_key) or matcher(pattern, e.old_key)
        }

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self):
        return iter(self._edges)
