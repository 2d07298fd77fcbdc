# keyreg/store.py
"""
Append-only flat-file record logs.

Every registry file is a sequence of immutable, newline-terminated
records. Records are only ever added at the end; nothing rewrites or
truncates an existing line. The two primitives are append() and scan().

Structure of a record:
    <field>\t<field>[\t<field>]\n

Readers are lenient: a line is split on tabs when it has one and on
runs of whitespace otherwise. Lines with the wrong number of fields are
skipped and remembered as MalformedRecord.
"""

import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from .errors import InvalidConfiguration, MalformedRecord, StorageUnavailable

logger = logging.getLogger(__name__)


def _reason(e: OSError) -> str:
    return e.strerror or str(e)


@contextmanager
def exclusive_lock(lock_path: Path | str) -> Iterator[None]:
    """
    Hold an exclusive cross-process lock for the duration of the block.

    Uses flock on a sidecar file, so every process sharing the registry
    files must go through the same lock path.
    """
    lock_path = Path(lock_path)
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR, 0o644)
    except OSError as e:
        raise StorageUnavailable(lock_path, _reason(e)) from e
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        logger.debug(f"Acquired lock {lock_path}")
        yield
    finally:
        fcntl.flock(fd, fcntl.LOCK_UN)
        os.close(fd)


def split_record(line: str, fields: int) -> List[str]:
    """Split one stripped line into at most `fields` parts."""
    if "\t" in line:
        return line.split("\t")
    return line.split(None, fields - 1)


class RecordLog:
    """
    One append-only file of fixed-width records.

    Args:
        path: File backing the log (created on first append)
        fields: Number of fields each record carries
    """

    def __init__(self, path: Path | str, fields: int):
        self.path = Path(path)
        self.fields = fields
        self.malformed: List[MalformedRecord] = []

    def exists(self) -> bool:
        return self.path.exists()

    def _format(self, record: Sequence[str]) -> str:
        if len(record) != self.fields:
            raise InvalidConfiguration(
                f"{self.path.name}: expected {self.fields} fields, got {len(record)}"
            )
        for value in record:
            if not value or "\t" in value or "\n" in value or "\r" in value:
                raise InvalidConfiguration(
                    f"{self.path.name}: invalid field value {value!r}"
                )
        return "\t".join(record) + "\n"

    def append(self, *record: str) -> None:
        """Append a single record."""
        self.append_many([record])

    def append_many(self, records: Iterable[Sequence[str]]) -> None:
        """
        Append a bounded batch of records in one write.

        All records are formatted before the file is opened, so a bad
        record leaves the file untouched.
        """
        lines = [self._format(r) for r in records]
        if not lines:
            return
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write("".join(lines))
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageUnavailable(self.path, _reason(e)) from e
        logger.debug(f"Appended {len(lines)} record(s) to {self.path}")

    def scan(self) -> Iterator[Tuple[int, List[str]]]:
        """
        Yield (line_num, fields) for every well-formed record.

        Resets and refills `malformed` on each pass.
        """
        self.malformed = []
        if not self.path.exists():
            return
        try:
            f = open(self.path, "r", encoding="utf-8")
        except OSError as e:
            raise StorageUnavailable(self.path, _reason(e)) from e
        with f:
            for line_num, raw_line in enumerate(f, start=1):
                line = raw_line.strip()
                if not line:
                    continue
                parts = split_record(line, self.fields)
                if len(parts) != self.fields or not all(parts):
                    bad = MalformedRecord(self.path, line_num, line, self.fields)
                    logger.warning(f"Malformed record: {bad}")
                    self.malformed.append(bad)
                    continue
                yield line_num, parts

    def records(self) -> List[List[str]]:
        """All well-formed records, in file order."""
        return [fields for _, fields in self.scan()]
