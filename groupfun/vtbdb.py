"""Storage and lookup of vtuber voice clips, grouped in three levels of category."""

from __future__ import annotations

import json
import random
import re
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

import requests

VTB_LIST_URL = "https://vtbkeyboard.moe/api/get_vtb_list"
VTB_PAGE_URL = "https://vtbkeyboard.moe/api/get_vtb_page?uid="
TIMEOUT = 30

FIRST_MENU_HEADER = "请选择一个vtb并发送序号:\n"
SECOND_MENU_HEADER = "请选择一个语录类别并发送序号:\n"
THIRD_MENU_HEADER = "请选择一个语录并发送序号:\n"

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36",
    "Mozilla/5.0 (Windows NT 6.1; Win64; x64; rv:87.0) Gecko/20100101 Firefox/87.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.1 Safari/605.1.15",
)

_UNICODE_ESCAPE = re.compile(r"\\u([0-9a-fA-F]{4})")
_LAST_SEGMENT = re.compile(r".*/(.*)")


@dataclass(frozen=True)
class FirstCategory:
    """One vtuber."""

    index: int
    name: str
    uid: str
    description: str = ""
    icon_path: str = ""


@dataclass(frozen=True)
class ThirdCategory:
    """One voice clip."""

    index: int
    second_index: int
    first_uid: str
    name: str
    path: str = ""
    author: str = ""
    description: str = ""


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, ensure_ascii=False)


def _get(item: Any, path: str) -> Any:
    for key in path.split("."):
        if not isinstance(item, dict):
            return None
        item = item.get(key)
    return item


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _unescape(match: re.Match) -> str:
    code = int(match[1], 16)
    char = chr(code)
    if 0xD800 <= code <= 0xDFFF or code < 0x20 or char in '"\\':
        return match[0]
    return char


def _decode(body: bytes) -> Any:
    text = body.decode("utf-8", errors="replace")
    return json.loads(_UNICODE_ESCAPE.sub(_unescape, text), strict=False)


def _fetch(session: Any, url: str) -> Any:
    client = session if session is not None else requests
    response = client.get(
        url, headers={"User-Agent": random.choice(USER_AGENTS)}, timeout=TIMEOUT
    )
    return _decode(response.content)


def escape_record_url(url: str) -> str:
    """Percent-encode the last path segment of a clip URL, spaces as %20."""
    match = _LAST_SEGMENT.match(url)
    if match is None:
        return url
    segment = match[1]
    return url.replace(segment, quote_plus(segment, safe="")).replace("+", "%20")


class VtbDatabase:
    """The three category tables of vtubers, clip categories and clips."""

    def __init__(self, path: str | Path) -> None:
        self._conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self._lock = threading.Lock()
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS first_category ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, first_category_index INTEGER, "
            "first_category_name TEXT, first_category_uid TEXT, "
            "first_category_description TEXT, first_category_icon_path TEXT)"
        )
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS second_category ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, second_category_index INTEGER, "
            "first_category_uid TEXT, second_category_name TEXT, "
            "second_category_author TEXT, second_category_description TEXT)"
        )
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS third_category ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, third_category_index INTEGER, "
            "second_category_index INTEGER, first_category_uid TEXT, "
            "third_category_name TEXT, third_category_path TEXT, "
            "third_category_author TEXT, third_category_description TEXT)"
        )

    def __enter__(self) -> VtbDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def _first_uid(self, first_index: int) -> str:
        row = self._conn.execute(
            "SELECT first_category_uid FROM first_category "
            "WHERE first_category_index = ? ORDER BY id LIMIT 1",
            (first_index,),
        ).fetchone()
        return row[0] if row else ""

    def first_category_menu(self) -> str:
        """List every vtuber as a numbered menu."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT first_category_index, first_category_name FROM first_category ORDER BY id"
            ).fetchall()
        return FIRST_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def second_category_menu(self, first_index: int) -> str:
        """List one vtuber's clip categories; empty when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT second_category_index, second_category_name FROM second_category "
                "WHERE first_category_uid = ? ORDER BY id",
                (uid,),
            ).fetchall()
        if not rows:
            return ""
        return SECOND_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def third_category_menu(self, first_index: int, second_index: int) -> str:
        """List the clips of one category; empty when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT third_category_index, third_category_name FROM third_category "
                "WHERE first_category_uid = ? AND second_category_index = ? ORDER BY id",
                (uid, second_index),
            ).fetchall()
        if not rows:
            return ""
        return THIRD_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    @staticmethod
    def _third(row: tuple | None) -> ThirdCategory | None:
        return ThirdCategory(*row) if row else None

    _THIRD_COLUMNS = (
        "third_category_index, second_category_index, first_category_uid, "
        "third_category_name, third_category_path, third_category_author, "
        "third_category_description"
    )

    def third_category(
        self, first_index: int, second_index: int, third_index: int
    ) -> ThirdCategory | None:
        """Return the clip at the three indices, if there is one."""
        with self._lock:
            uid = self._first_uid(first_index)
            row = self._conn.execute(
                f"SELECT {self._THIRD_COLUMNS} FROM third_category "
                "WHERE first_category_uid = ? AND second_category_index = ? "
                "AND third_category_index = ? LIMIT 1",
                (uid, second_index, third_index),
            ).fetchone()
        return self._third(row)

    def random_vtb(self, rng: random.Random | None = None) -> ThirdCategory | None:
        """Return a random clip, or None when there are none."""
        rng = rng or random.Random()
        with self._lock:
            (count,) = self._conn.execute("SELECT COUNT(*) FROM third_category").fetchone()
            if count == 0:
                return None
            row = self._conn.execute(
                f"SELECT {self._THIRD_COLUMNS} FROM third_category ORDER BY id LIMIT 1 OFFSET ?",
                (rng.randrange(count),),
            ).fetchone()
        return self._third(row)

    def first_category_by_uid(self, uid: str) -> FirstCategory | None:
        """Return the vtuber with the given uid, if known."""
        with self._lock:
            row = self._conn.execute(
                "SELECT first_category_index, first_category_name, first_category_uid, "
                "first_category_description, first_category_icon_path FROM first_category "
                "WHERE first_category_uid = ? LIMIT 1",
                (uid,),
            ).fetchone()
        return FirstCategory(*row) if row else None

    def store_vtb_list(self, data: Any) -> list[str]:
        """Insert or update every vtuber of a parsed list; return their uids in order."""
        uids = []
        with self._lock:
            for index, item in enumerate(_list(data)):
                name = _text(_get(item, "name"))
                description = _text(_get(item, "description"))
                icon_path = _text(_get(item, "icon_path"))
                uid = _text(_get(item, "uid"))
                exists = self._conn.execute(
                    "SELECT 1 FROM first_category WHERE first_category_uid = ? LIMIT 1", (uid,)
                ).fetchone()
                if exists:
                    self._conn.execute(
                        "UPDATE first_category SET first_category_index = ?, "
                        "first_category_name = ?, first_category_description = ?, "
                        "first_category_icon_path = ? WHERE first_category_uid = ?",
                        (index, name, description, icon_path, uid),
                    )
                else:
                    self._conn.execute(
                        "INSERT INTO first_category (first_category_index, first_category_name, "
                        "first_category_uid, first_category_description, "
                        "first_category_icon_path) VALUES (?, ?, ?, ?, ?)",
                        (index, name, uid, description, icon_path),
                    )
                uids.append(uid)
        return uids

    def store_vtb_page(self, uid: str, data: Any) -> None:
        """Insert or update the clip categories and clips of one vtuber's parsed page."""
        with self._lock:
            for second_index, second in enumerate(_list(_get(data, "data.voices"))):
                name = _text(_get(second, "categoryName"))
                author = _text(_get(second, "author"))
                description = _text(_get(second, "categoryDescription.zh-CN"))
                exists = self._conn.execute(
                    "SELECT 1 FROM second_category WHERE first_category_uid = ? "
                    "AND second_category_index = ? LIMIT 1",
                    (uid, second_index),
                ).fetchone()
                if exists:
                    self._conn.execute(
                        "UPDATE second_category SET second_category_name = ?, "
                        "second_category_author = ?, second_category_description = ? "
                        "WHERE first_category_uid = ? AND second_category_index = ?",
                        (name, author, description, uid, second_index),
                    )
                else:
                    self._conn.execute(
                        "INSERT INTO second_category (second_category_index, first_category_uid, "
                        "second_category_name, second_category_author, "
                        "second_category_description) VALUES (?, ?, ?, ?, ?)",
                        (second_index, uid, name, author, description),
                    )
                for third_index, third in enumerate(_list(_get(second, "voiceList"))):
                    self._store_third(uid, second_index, third_index, third)

    def _store_third(self, uid: str, second_index: int, third_index: int, item: Any) -> None:
        name = _text(_get(item, "name"))
        description = _text(_get(item, "description.zh-CN"))
        path = _text(_get(item, "path"))
        author = _text(_get(item, "author"))
        key = (uid, second_index, third_index)
        exists = self._conn.execute(
            "SELECT 1 FROM third_category WHERE first_category_uid = ? "
            "AND second_category_index = ? AND third_category_index = ? LIMIT 1",
            key,
        ).fetchone()
        if exists:
            self._conn.execute(
                "UPDATE third_category SET third_category_name = ?, "
                "third_category_description = ?, third_category_path = ?, "
                "third_category_author = ? WHERE first_category_uid = ? "
                "AND second_category_index = ? AND third_category_index = ?",
                (name, description, path, author, *key),
            )
        else:
            self._conn.execute(
                "INSERT INTO third_category (third_category_index, second_category_index, "
                "first_category_uid, third_category_name, third_category_path, "
                "third_category_author, third_category_description) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (third_index, second_index, uid, name, path, author, description),
            )

    def fetch_vtb_list(self, session: Any = None) -> list[str]:
        """Download the vtuber list and store it; return the uids."""
        return self.store_vtb_list(_fetch(session, VTB_LIST_URL))

    def store_vtb(self, uid: str, session: Any = None) -> None:
        """Download one vtuber's page and store its clips."""
        self.store_vtb_page(uid, _fetch(session, VTB_PAGE_URL + uid))