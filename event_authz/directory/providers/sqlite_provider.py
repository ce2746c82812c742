from __future__ import annotations
from typing import Iterable, Optional
import sqlite3, os
from event_authz.constants import DEFAULT_DB_PATH
from event_authz.directory.models import (
    BatchResult, Snapshot, Status, parse_identity, partition_identities,
)
from event_authz.errors import InvalidIdentity, StorageError
from event_authz.logger import get_logger

log = get_logger("event_authz.directory.sqlite")


class LocalDirectory:
    """Account directory in a single SQLite table: pubkey -> status byte."""

    name = "local"

    def __init__(self, path: str = DEFAULT_DB_PATH):
        if path != ":memory:":
            # If no directory, default to current working directory
            dir_path = os.path.dirname(path) or "."
            os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.db = sqlite3.connect(path, check_same_thread=False)
        self._init()
        log.debug(f"opened account table at {path}")

    def _init(self) -> None:
        with self.db:
            self.db.execute("""CREATE TABLE IF NOT EXISTS account(
                pubkey TEXT PRIMARY KEY,
                status INTEGER NOT NULL
            )""")

    def get(self, identity) -> Optional[Status]:
        try:
            pubkey = parse_identity(identity)
        except InvalidIdentity:
            return None
        try:
            cur = self.db.execute("SELECT status FROM account WHERE pubkey=?", (pubkey,))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"read failed: {e}") from e
        if row is None:
            return None
        return Status.from_byte(row[0])

    def admit(self, identities: Iterable) -> BatchResult:
        return self._write(identities, Status.ALLOW)

    def deny(self, identities: Iterable) -> BatchResult:
        return self._write(identities, Status.DENY)

    def _write(self, identities: Iterable, status: Status) -> BatchResult:
        valid, rejected = partition_identities(identities)
        for raw in rejected:
            log.warning(f"skipping malformed identity {raw!r}")
        if not valid:
            return BatchResult(rejected=rejected)
        try:
            # one transaction per batch; rolled back as a whole on error
            with self.db:
                self.db.executemany(
                    "INSERT INTO account(pubkey,status) VALUES(?,?) "
                    "ON CONFLICT(pubkey) DO UPDATE SET status=excluded.status",
                    [(pubkey, int(status)) for pubkey in valid],
                )
        except sqlite3.Error as e:
            raise StorageError(f"write failed: {e}") from e
        log.info(f"set {len(valid)} account(s) to {status.name.lower()}")
        return BatchResult(applied=set(valid), rejected=rejected)

    def snapshot(self) -> Snapshot:
        try:
            rows = self.db.execute("SELECT pubkey, status FROM account").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"read failed: {e}") from e
        allow = frozenset(k for k, s in rows if Status.from_byte(s) == Status.ALLOW)
        deny = frozenset(k for k, s in rows if Status.from_byte(s) == Status.DENY)
        return Snapshot(allow=allow, deny=deny)

    def clear(self) -> None:
        with self.db:
            self.db.execute("DELETE FROM account")

    def readyz(self) -> dict:
        try:
            self.db.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            return {"status": "error", "backend": self.name, "error": str(e)}
        return {"status": "ok", "backend": self.name, "path": self.path}

    def close(self) -> None:
        self.db.close()
