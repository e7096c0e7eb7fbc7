"""Per-group daily marriage registry backed by SQLite."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Callable

DATE_FORMAT = "%Y/%m/%d"
UPDATE_TABLE = "updateinfo"
ALL_GROUPS = "ALL"
NAME_WIDTH_LIMIT = 350
ELLIPSIS = "......"


def today() -> str:
    """Return today's date in the registry's date format."""
    return datetime.now().strftime(DATE_FORMAT)


class MaritalStatus(IntEnum):
    """Where a user stands in a group's registry today."""

    BRIDE = 0  # registered as someone's target
    GROOM = 1  # registered as the one who married
    SINGLE = 3  # not registered at all


@dataclass
class Marriage:
    """One marriage certificate."""

    user: int
    target: int
    username: str
    targetname: str
    updatetime: str


def _quote(name: object) -> str:
    return '"' + str(name).replace('"', '""') + '"'


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


class MarriageRegistry:
    """Stores one table of marriages per group plus the day each was last reset."""

    def __init__(self, path: str | Path) -> None:
        self._conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self._lock = threading.Lock()

    def __enter__(self) -> MarriageRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    # internal helpers; callers hold the lock

    def _create_updates(self) -> None:
        self._conn.execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(UPDATE_TABLE)} "
            "(gid INTEGER PRIMARY KEY NOT NULL, updatetime TEXT)"
        )

    def _create_group(self, gid: object) -> None:
        self._conn.execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(gid)} "
            "(user INTEGER PRIMARY KEY NOT NULL, target INTEGER, "
            "username TEXT, targetname TEXT, updatetime TEXT)"
        )

    def _table_exists(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        ).fetchone()
        return row is not None

    def _tables(self) -> list[str]:
        rows = self._conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return [name for (name,) in rows]

    def _stamp(self, gid: int) -> None:
        self._create_updates()
        self._conn.execute(
            f"INSERT OR REPLACE INTO {_quote(UPDATE_TABLE)} (gid, updatetime) VALUES (?, ?)",
            (gid, today()),
        )

    def _find(self, gid: object, column: str, value: int) -> Marriage | None:
        row = self._conn.execute(
            f"SELECT user, target, username, targetname, updatetime FROM {_quote(gid)} "
            f"WHERE {column} = ? LIMIT 1",
            (value,),
        ).fetchone()
        return Marriage(*row) if row else None

    def _insert(self, gid: object, marriage: Marriage) -> None:
        self._conn.execute(
            f"INSERT OR REPLACE INTO {_quote(gid)} "
            "(user, target, username, targetname, updatetime) VALUES (?, ?, ?, ?, ?)",
            (marriage.user, marriage.target, marriage.username, marriage.targetname,
             marriage.updatetime),
        )

    # public API

    def check_update(self, gid: int) -> str:
        """Return the day the group was last reset, recording today if it never was."""
        with self._lock:
            self._create_updates()
            row = self._conn.execute(
                f"SELECT updatetime FROM {_quote(UPDATE_TABLE)} WHERE gid IS ? LIMIT 1",
                (gid,),
            ).fetchone()
            if row is None:
                stamp = today()
                self._conn.execute(
                    f"INSERT OR REPLACE INTO {_quote(UPDATE_TABLE)} (gid, updatetime) "
                    "VALUES (?, ?)",
                    (gid, stamp),
                )
                return stamp
            return row[0]

    def reset(self, gid: str | int) -> None:
        """Clear one group's marriages, or every group's when gid is "ALL"."""
        gid = str(gid)
        with self._lock:
            if gid != ALL_GROUPS:
                if not self._table_exists(gid):
                    self._create_group(gid)
                    return
                self._conn.execute(f"DROP TABLE {_quote(gid)}")
                self._stamp(_to_int(gid))
                return
            tables = self._tables()
            for name in tables:
                self._conn.execute(f"DROP TABLE {_quote(name)}")
            for name in tables:
                if name != UPDATE_TABLE:
                    self._stamp(_to_int(name))

    def divorce_wife(self, gid: int, wife: int) -> None:
        """Remove the marriage whose target is the given wife."""
        with self._lock:
            self._conn.execute(f"DELETE FROM {_quote(gid)} WHERE target = ?", (wife,))

    def divorce_husband(self, gid: int, husband: int) -> None:
        """Remove the marriage registered by the given husband."""
        with self._lock:
            self._conn.execute(f"DELETE FROM {_quote(gid)} WHERE user = ?", (husband,))

    def remarry(self, gid: int, uid: int, target: int, username: str, targetname: str) -> None:
        """Register uid with target unless both already hold their own certificates."""
        with self._lock:
            if self._find(gid, "user", uid) and self._find(gid, "user", target):
                return
            self._insert(gid, Marriage(uid, target, username, targetname, today()))

    def roster(self, gid: int) -> list[tuple[str, str, str, str]]:
        """List (username, user, targetname, target) for every real couple, by user."""
        with self._lock:
            self._create_group(gid)
            rows = self._conn.execute(
                f"SELECT username, user, targetname, target FROM {_quote(gid)} "
                "WHERE target != 0 ORDER BY user"
            ).fetchall()
        return [(username, str(user), targetname, str(target))
                for username, user, targetname, target in rows]

    def lookup(self, gid: int, uid: int) -> tuple[Marriage | None, MaritalStatus]:
        """Return uid's certificate, if any, and marital status."""
        with self._lock:
            self._create_group(gid)
            found = self._find(gid, "user", uid)
            if found:
                return found, MaritalStatus.GROOM
            found = self._find(gid, "target", uid)
            if found:
                return found, MaritalStatus.BRIDE
            return None, MaritalStatus.SINGLE

    def register(self, gid: int, uid: int, target: int, username: str, targetname: str) -> None:
        """Record that uid married target today."""
        with self._lock:
            self._create_group(gid)
            self._insert(gid, Marriage(uid, target, username, targetname, today()))


def slice_name(name: str, measure: Callable[[str], float]) -> str:
    """Shorten name so its drawn width stays within the column limit."""
    width = 0
    last_fit = 0
    for index, char in enumerate(name):
        width += int(measure(char))
        if width > NAME_WIDTH_LIMIT:
            break
        last_fit = index
    if width > NAME_WIDTH_LIMIT:
        return name[:max(last_fit - 1, 0)] + ELLIPSIS
    return name