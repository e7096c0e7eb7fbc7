"""Galgame CG and sticker sets scraped from the ymgal site."""

from __future__ import annotations

import random
import re
import sqlite3
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from urllib.parse import quote_plus

import requests
from lxml import html as lxml_html

WEB_URL = "https://www.ymgal.com"
CG_TYPE = "Gal CG"
EMOTICON_TYPE = "其他"
WEB_PIC_URL = WEB_URL + "/co/picset/"
CG_URL = WEB_URL + "/search?type=picset&sort=default&category=" + quote_plus(CG_TYPE) + "&page="
EMOTICON_URL = (
    WEB_URL + "/search?type=picset&sort=default&category=" + quote_plus(EMOTICON_TYPE) + "&page="
)
PAGE_NUMBER_XPATH = (
    "//*[@id='pager-box']/div/a[@class='icon item pager-next']/preceding-sibling::a[1]/text()"
)
PICSET_LINK_XPATH = "//*[@id='picset-result-list']/ul/div/div[1]/a"
PICTURE_COUNT_XPATH = "//div[@class='meta-info']/div[@class='meta-right']/span[2]/text()"
CG_PICTURE_XPATH = (
    "//*[@id='main-picset-warp']/div/div[2]/div/div[@class='swiper-wrapper']/div[{}]"
)
EMOTICON_PICTURE_XPATH = (
    "//*[@id='main-picset-warp']/div/div[@class='stream-list']/div[{}]/img"
)
REQUEST_INTERVAL = 0.5
TIMEOUT = 30

_NUMBER = re.compile(r"\d+")
_lock = threading.RLock()


@dataclass(frozen=True)
class Ymgal:
    """One picture set."""

    id: int
    title: str
    picture_type: str
    picture_description: str
    picture_list: str

    @property
    def pictures(self) -> list[str]:
        """The picture URLs of the set."""
        return self.picture_list.split(",") if self.picture_list else []


_COLUMNS = "id, title, picture_type, picture_description, picture_list"


class YmgalDatabase:
    """Stores picture sets by id."""

    def __init__(self, path: str | Path) -> None:
        self._conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self._lock = threading.Lock()
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS ymgal (id INTEGER PRIMARY KEY, title TEXT, "
            "picture_type TEXT, picture_description VARCHAR(1024), "
            "picture_list VARCHAR(20000))"
        )

    def __enter__(self) -> YmgalDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def upsert(self, id: int, title: str, picture_type: str,
               picture_description: str, picture_list: str) -> None:
        """Insert the set, or update it when the id is already stored."""
        with self._lock:
            self._conn.execute(
                f"INSERT INTO ymgal ({_COLUMNS}) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET title = excluded.title, "
                "picture_type = excluded.picture_type, "
                "picture_description = excluded.picture_description, "
                "picture_list = excluded.picture_list",
                (id, title, picture_type, picture_description, picture_list),
            )

    def get_by_id(self, id: int | str) -> Ymgal | None:
        """Return the set with the given id, if stored."""
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM ymgal WHERE id = ? LIMIT 1", (id,)
            ).fetchone()
        return Ymgal(*row) if row else None

    def _pick(self, where: str, params: tuple, rng: random.Random | None) -> Ymgal | None:
        rng = rng or random.Random()
        with self._lock:
            (count,) = self._conn.execute(
                f"SELECT COUNT(*) FROM ymgal WHERE {where}", params
            ).fetchone()
            if count == 0:
                return None
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM ymgal WHERE {where} ORDER BY id LIMIT 1 OFFSET ?",
                (*params, rng.randrange(count)),
            ).fetchone()
        return Ymgal(*row) if row else None

    def random(self, picture_type: str, rng: random.Random | None = None) -> Ymgal | None:
        """Return a random set of the given type, or None when there is none."""
        return self._pick("picture_type = ?", (picture_type,), rng)

    def search(self, picture_type: str, key: str,
               rng: random.Random | None = None) -> Ymgal | None:
        """Return a random set of the type whose title or description contains key."""
        pattern = f"%{key}%"
        return self._pick(
            "picture_type = ? AND (picture_description LIKE ? OR title LIKE ?)",
            (picture_type, pattern, pattern),
            rng,
        )


def _parse(document: str):
    return lxml_html.fromstring(document)


def _find_one(tree, xpath: str):
    found = tree.xpath(xpath)
    if not found:
        raise ValueError(f"nothing matches {xpath}")
    return found[0]


def _attr(element, position: int) -> str:
    values = list(element.attrib.values())
    if len(values) <= position:
        raise ValueError(f"<{element.tag}> has no attribute #{position}")
    return values[position]


def parse_page_count(html: str) -> int:
    """Return the number of the last search result page."""
    return int(str(_find_one(_parse(html), PAGE_NUMBER_XPATH)))


def parse_picset_ids(html: str) -> list[str]:
    """Return the picture set ids linked from a search result page."""
    ids = []
    for link in _parse(html).xpath(PICSET_LINK_XPATH):
        values = list(link.attrib.values())
        match = _NUMBER.search(values[0]) if values else None
        ids.append(match[0] if match else "")
    return ids


def _parse_picset(html: str, picture_xpath: str) -> tuple[str, str, str]:
    tree = _parse(html)
    title = _attr(_find_one(tree, "//meta[@name='name']"), 1)
    description = _attr(_find_one(tree, "//meta[@name='description']"), 1)
    count_text = str(_find_one(tree, PICTURE_COUNT_XPATH))
    match = _NUMBER.search(count_text)
    if match is None:
        raise ValueError(f"no picture count in {count_text!r}")
    pictures = [
        _attr(_find_one(tree, picture_xpath.format(i)), 1)
        for i in range(1, int(match[0]) + 1)
    ]
    return title, description, ",".join(pictures)


def parse_cg_picset(html: str) -> tuple[str, str, str]:
    """Return (title, description, comma-joined picture URLs) of a CG set page."""
    return _parse_picset(html, CG_PICTURE_XPATH)


def parse_emoticon_picset(html: str) -> tuple[str, str, str]:
    """Return (title, description, comma-joined picture URLs) of a sticker set page."""
    return _parse_picset(html, EMOTICON_PICTURE_XPATH)


def _get_html(url: str) -> str:
    response = requests.get(url, timeout=TIMEOUT)
    response.raise_for_status()
    return response.text


def _store_new(db: YmgalDatabase, ids: list[str], picture_type: str,
               parser: Callable[[str], tuple[str, str, str]],
               fetch: Callable[[str], str]) -> None:
    for pic_id in reversed(ids):
        with _lock:
            known = db.get_by_id(pic_id)
        if known is not None and known.picture_list:
            break
        number = int(pic_id)
        with _lock:
            title, description, pictures = parser(fetch(WEB_PIC_URL + pic_id))
            db.upsert(number, title, picture_type, description, pictures)
        time.sleep(REQUEST_INTERVAL)


def update_pictures(db: YmgalDatabase, fetch: Callable[[str], str] | None = None) -> None:
    """Scrape the site and store every set newer than the newest one already stored."""
    fetch = fetch or _get_html
    cg_pages = parse_page_count(fetch(CG_URL + "1"))
    emoticon_pages = parse_page_count(fetch(EMOTICON_URL + "1"))
    cg_ids: list[str] = []
    for page in range(1, cg_pages + 1):
        cg_ids.extend(parse_picset_ids(fetch(CG_URL + str(page))))
        time.sleep(REQUEST_INTERVAL)
    emoticon_ids: list[str] = []
    for page in range(1, emoticon_pages + 1):
        emoticon_ids.extend(parse_picset_ids(fetch(EMOTICON_URL + str(page))))
        time.sleep(REQUEST_INTERVAL)
    _store_new(db, cg_ids, CG_TYPE, parse_cg_picset, fetch)
    _store_new(db, emoticon_ids, EMOTICON_TYPE, parse_emoticon_picset, fetch)