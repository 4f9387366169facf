"""
JSON-array datasets with keyed upserts.

A dataset is one file holding a single pretty-printed JSON array of flat
objects. Records are identified by the values at a tuple of key fields;
after any write there is at most one record per key.

Single writer only: there is no file locking.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

log = logging.getLogger(__name__)

Record = Dict[str, Any]

__all__ = ["DatasetStore", "upsert", "upsert_many", "replace_partition"]


def _key(record: Record, key_fields: Sequence[str]) -> tuple:
    return tuple(record.get(k) for k in key_fields)


def upsert(records: List[Record], new_record: Record, key_fields: Sequence[str]) -> List[Record]:
    """
    Replace the record with the same key in place, or append.

    Mutates and returns ``records``.
    """
    wanted = _key(new_record, key_fields)
    for idx, item in enumerate(records):
        if _key(item, key_fields) == wanted:
            records[idx] = new_record
            log.info("[Dataset] Updated existing record for %s", ", ".join(map(str, wanted)))
            return records
    records.append(new_record)
    log.info("[Dataset] Added new record for %s", ", ".join(map(str, wanted)))
    return records


def upsert_many(
    records: List[Record], new_records: Iterable[Record], key_fields: Sequence[str]
) -> List[Record]:
    # each upsert sees the result of the previous one
    for rec in new_records:
        upsert(records, rec, key_fields)
    return records


def replace_partition(
    records: List[Record],
    new_records: Sequence[Record],
    partition_field: str,
    key_fields: Sequence[str],
) -> List[Record]:
    """
    Make ``new_records`` the complete content of their partition.

    Existing records in the same partition (same ``partition_field`` value)
    whose key is not among ``new_records`` are dropped; matching keys are
    replaced in place; new keys are appended. Other partitions are untouched.
    """
    partitions = {rec.get(partition_field) for rec in new_records}
    incoming = {_key(rec, key_fields) for rec in new_records}

    kept = [
        rec
        for rec in records
        if rec.get(partition_field) not in partitions or _key(rec, key_fields) in incoming
    ]
    dropped = len(records) - len(kept)
    if dropped:
        log.info("[Dataset] Dropped %d stale records from partition(s) %s", dropped, sorted(map(str, partitions)))

    records[:] = kept
    return upsert_many(records, new_records, key_fields)


class DatasetStore:
    """
    Load / save one JSON-array dataset file.

    ``save`` writes to a temporary sibling file and renames it over the
    target, so readers never observe a half-written file.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"DatasetStore({str(self.path)!r})"

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def load(self, quarantine: bool = True) -> List[Record]:
        """
        Parameters
        ----------
        quarantine : bool
            Copy an unusable file aside before returning ``[]``. Readers that
            must not write to the data directory pass ``False``.

        Returns
        -------
        List[Record]
            The stored array, or ``[]`` when the file is absent or unusable.
            An unusable file is copied to ``<name>.corrupt.<timestamp>`` first.
        """
        if not self.path.exists():
            log.info("[Dataset] %s does not exist yet – starting empty", self.path)
            return []

        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            log.error("[Dataset] Error reading existing data from %s: %s", self.path, e)
            if quarantine:
                self._quarantine()
            return []

        if not isinstance(data, list):
            log.error(
                "[Dataset] %s holds a JSON %s, expected an array",
                self.path,
                type(data).__name__,
            )
            if quarantine:
                self._quarantine()
            return []

        log.debug("[Dataset] Loaded %d records from %s", len(data), self.path)
        return data

    def save(self, records: Sequence[Record]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(list(records), fh, indent=2, ensure_ascii=False)
                fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        log.info("[Dataset] Data written to %s (%d records)", self.path, len(records))

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _backup_path(self) -> Path:
        # never reuse a name: an older backup may hold the only good history
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
        backup = self.path.with_name(f"{self.path.name}.corrupt.{stamp}")
        n = 1
        while backup.exists():
            backup = self.path.with_name(f"{self.path.name}.corrupt.{stamp}-{n}")
            n += 1
        return backup

    def _quarantine(self) -> None:
        backup = self._backup_path()
        try:
            shutil.copy2(self.path, backup)
        except OSError as e:
            log.error("[Dataset] Could not back up %s: %s", self.path, e)
            return
        log.warning("[Dataset] Unreadable dataset copied to %s", backup)
