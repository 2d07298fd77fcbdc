# keyreg/oplog.py
"""
Human-readable operation log.

One free-text line per operation. Informational only: nothing in the
registry reads it back.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from .errors import StorageUnavailable

logger = logging.getLogger(__name__)


def _clean(text: str) -> str:
    return " ".join(text.split())


class OperationLog:
    """Append-only `*_log.txt` file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def record(self, operation: str, keys: Iterable[str], detail: str = "",
               comment: Optional[str] = None) -> str:
        """Append one line and return it (without the newline)."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        parts = [timestamp, operation, ",".join(keys) or "-"]
        if detail:
            parts.append(_clean(detail))
        if comment:
            parts.append("# " + _clean(comment))
        line = "\t".join(parts)
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageUnavailable(self.path, e.strerror or str(e)) from e
        logger.debug(f"Logged {operation}: {line}")
        return line

    def lines(self) -> List[str]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [line.rstrip("\n") for line in f if line.strip()]
