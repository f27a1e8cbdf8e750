"""
Durable storage for forwarded works.

Two interchangeable backends share one capability set (put, get_all, clear):

  DatabaseBackend  - large quota, one row per work in SQLite/PostgreSQL
  JsonFileBackend  - small quota, a single JSON file with a size cap and TTL

FailoverStorage puts one in front of the other: when the primary raises
StorageError the same call goes to the fallback. Attachments are always
encoded before anything is written.
"""
import json
import logging
import os
import time
from pathlib import Path

from adp_portal import config
from adp_portal.database import DB_ERRORS, get_db, init_database
from adp_portal.exceptions import StorageError
from adp_portal.models import WorkItem

logger = logging.getLogger(__name__)


class DatabaseBackend:
    """Stores each work as a JSON payload row, in store order."""

    name = "database"

    def __init__(self, initialize: bool = True):
        if initialize:
            try:
                init_database()
            except DB_ERRORS as exc:
                raise StorageError(f"Database unavailable: {exc}")

    def put(self, records: list) -> list:
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute("DELETE FROM work_items")
                cursor.executemany(
                    "INSERT INTO work_items (id, position, status, payload) VALUES (?, ?, ?, ?)",
                    [
                        (r["id"], pos, r.get("status") or "", json.dumps(r))
                        for pos, r in enumerate(records)
                    ],
                )
        except DB_ERRORS as exc:
            raise StorageError(f"Database write failed: {exc}")
        return records

    def get_all(self) -> list:
        try:
            with get_db() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT payload FROM work_items ORDER BY position")
                rows = cursor.fetchall()
        except DB_ERRORS as exc:
            raise StorageError(f"Database read failed: {exc}")
        return [json.loads(row["payload"]) for row in rows]

    def clear(self):
        try:
            with get_db() as conn:
                conn.cursor().execute("DELETE FROM work_items")
        except DB_ERRORS as exc:
            raise StorageError(f"Database clear failed: {exc}")


def _chronological_key(record: dict):
    return (record.get("forwardedDate") or "", str(record.get("id") or ""))


def _size(records: list) -> int:
    return len(json.dumps(records).encode("utf-8"))


def fit_to_size(records: list, max_bytes: int) -> list:
    """Keep the most recent records whose serialized size fits `max_bytes`.

    Records are ordered oldest first by forwardedDate (then id) and kept from
    the newest end. A single record larger than the cap is still kept.
    """
    if _size(records) <= max_bytes:
        return records
    ordered = sorted(records, key=_chronological_key)
    kept = []
    for record in reversed(ordered):
        if _size([record] + kept) <= max_bytes:
            kept.insert(0, record)
            continue
        if not kept:
            logger.warning("Work %s alone exceeds %d bytes; keeping it anyway", record.get("id"), max_bytes)
            kept.insert(0, record)
        break
    logger.warning("Storage cap reached: kept %d of %d works", len(kept), len(records))
    return kept


class JsonFileBackend:
    """Single JSON document on disk: {"savedAt": <epoch ms>, "items": [...]}."""

    name = "json"

    def __init__(self, path: Path = None, max_bytes: int = None, ttl_seconds: int = None):
        self.path = Path(path or config.STORAGE_FILE)
        self.max_bytes = max_bytes if max_bytes is not None else config.STORAGE_MAX_BYTES
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.STORAGE_TTL_SECONDS

    def _write(self, document):
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(document, f)
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StorageError(f"Could not write {self.path}: {exc}")

    def put(self, records: list) -> list:
        kept = fit_to_size(list(records), self.max_bytes)
        self._write({"savedAt": int(time.time() * 1000), "items": kept})
        return kept

    def get_all(self) -> list:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as exc:
            raise StorageError(f"Could not read {self.path}: {exc}")

        # Legacy layout: a bare list without a timestamp
        if isinstance(document, list):
            self._write({"savedAt": int(time.time() * 1000), "items": document})
            return document

        saved_at = document.get("savedAt")
        if saved_at is not None:
            age = time.time() - saved_at / 1000
            if age > self.ttl_seconds:
                logger.warning("Stored works are %.1f hours old; discarding", age / 3600)
                self.clear()
                return []
        return document.get("items") or []

    def clear(self):
        try:
            if self.path.exists():
                self.path.unlink()
        except OSError as exc:
            raise StorageError(f"Could not clear {self.path}: {exc}")


class FailoverStorage:
    """Primary backend with automatic fallback on StorageError."""

    def __init__(self, primary, fallback=None):
        self.primary = primary
        self.fallback = fallback

    def _backends(self):
        return [b for b in (self.primary, self.fallback) if b is not None]

    def put(self, items) -> list:
        """Persist the whole collection. Returns the stored records."""
        records = [item.to_dict(encode=True) if isinstance(item, WorkItem) else item for item in items]
        last_error = None
        for backend in self._backends():
            try:
                return backend.put(records)
            except StorageError as exc:
                logger.warning("Storage backend %s failed on put: %s", backend.name, exc.message)
                last_error = exc
        raise last_error

    def get_all(self) -> list:
        """Load all works as WorkItem records."""
        records = None
        last_error = None
        for backend in self._backends():
            try:
                records = backend.get_all()
                break
            except StorageError as exc:
                logger.warning("Storage backend %s failed on read: %s", backend.name, exc.message)
                last_error = exc
        if records is None:
            raise last_error
        return [WorkItem.from_dict(r) for r in records]

    def migrate(self) -> int:
        """Copy fallback contents into an empty primary. Returns works moved."""
        if self.fallback is None:
            return 0
        try:
            if self.primary.get_all():
                return 0
            records = self.fallback.get_all()
            if records:
                self.primary.put(records)
                logger.info("Migrated %d works from %s to %s", len(records), self.fallback.name, self.primary.name)
            return len(records)
        except StorageError as exc:
            logger.warning("Storage migration skipped: %s", exc.message)
            return 0

    def clear(self):
        for backend in self._backends():
            backend.clear()


def build_storage(backend: str = None) -> FailoverStorage:
    """Storage configured by STORAGE_BACKEND ("database" or "json")."""
    choice = (backend or config.STORAGE_BACKEND or "database").lower()
    json_backend = JsonFileBackend()
    try:
        db_backend = DatabaseBackend()
    except StorageError as exc:
        logger.warning("Database backend disabled: %s", exc.message)
        db_backend = None

    if choice == "json":
        storage = FailoverStorage(json_backend, db_backend)
    elif db_backend is None:
        storage = FailoverStorage(json_backend)
    else:
        storage = FailoverStorage(db_backend, json_backend)
    storage.migrate()
    return storage
