"""Daily sign-in and score keeping."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

SIGNIN_MAX = 1
SCOREMAX = 120
SIGN_IN_REWARD = 1
LEVELS = (0, 1, 2, 5, 10, 20, 35, 55, 75, 100, 120)
DAY_FORMAT = "%Y%m%d"
DATE_WORD_FORMAT = "%m/%d"


def _stamp(moment: datetime) -> str:
    return moment.isoformat(sep=" ", timespec="microseconds")


class ScoreDatabase:
    """Keeps each user's score and sign-in count."""

    def __init__(self, path: str | Path) -> None:
        self._conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self._lock = threading.Lock()
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS score "
            "(uid INTEGER PRIMARY KEY NOT NULL, score INTEGER DEFAULT 0)"
        )
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS sign_in "
            "(uid INTEGER PRIMARY KEY NOT NULL, count INTEGER DEFAULT 0, updated_at TEXT)"
        )

    def __enter__(self) -> ScoreDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def get_score(self, uid: int) -> int:
        """Return the user's score, creating a zero score if there is none."""
        with self._lock:
            self._conn.execute("INSERT OR IGNORE INTO score (uid, score) VALUES (?, 0)", (uid,))
            (score,) = self._conn.execute(
                "SELECT score FROM score WHERE uid = ?", (uid,)
            ).fetchone()
        return score

    def set_score(self, uid: int, score: int) -> None:
        """Insert or update the user's score."""
        with self._lock:
            self._conn.execute(
                "INSERT INTO score (uid, score) VALUES (?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET score = excluded.score",
                (uid, score),
            )

    def _sign_in(self, uid: int, now: datetime) -> tuple[int, datetime]:
        with self._lock:
            self._conn.execute(
                "INSERT OR IGNORE INTO sign_in (uid, count, updated_at) VALUES (?, 0, ?)",
                (uid, _stamp(now)),
            )
            count, updated = self._conn.execute(
                "SELECT count, updated_at FROM sign_in WHERE uid = ?", (uid,)
            ).fetchone()
        return count, datetime.fromisoformat(updated)

    def _store_sign_in(self, uid: int, count: int, now: datetime) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET count = excluded.count, "
                "updated_at = excluded.updated_at",
                (uid, count, _stamp(now)),
            )

    def get_sign_in(self, uid: int) -> tuple[int, datetime]:
        """Return (count, last update time), creating an empty record if there is none."""
        return self._sign_in(uid, datetime.now())

    def set_sign_in_count(self, uid: int, count: int) -> None:
        """Insert or update the user's sign-in count."""
        self._store_sign_in(uid, count, datetime.now())

    def top_scores(self, n: int) -> list[tuple[int, int]]:
        """Return up to n (uid, score) pairs, highest score first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT uid, score FROM score ORDER BY score DESC LIMIT ?", (n,)
            ).fetchall()
        return [(uid, score) for uid, score in rows]


def get_level(count: int) -> int:
    """Return the level a score reaches, or -1 when it is off the scale."""
    for level, threshold in enumerate(LEVELS):
        if count == threshold:
            return level
        if count < threshold:
            return level - 1
    return -1


def get_hour_word(hour: int) -> str:
    """Return the greeting for an hour of the day."""
    if 6 <= hour < 12:
        return "早上好"
    if 12 <= hour < 14:
        return "中午好"
    if 14 <= hour < 19:
        return "下午好"
    if 19 <= hour < 24:
        return "晚上好"
    if 0 <= hour < 6:
        return "凌晨好"
    return ""


def next_level_score(level: int) -> int:
    """Return the score needed for the level after this one."""
    if level < len(LEVELS) - 1:
        return LEVELS[level + 1]
    return SCOREMAX


@dataclass(frozen=True)
class SignInResult:
    """What one sign-in attempt produced."""

    already_signed: bool
    score: int = 0
    added: int = 0
    capped: bool = False
    level: int = 0
    next_level: int = 0
    hour_word: str = ""
    date_word: str = ""


def sign_in(db: ScoreDatabase, uid: int, now: datetime | None = None) -> SignInResult:
    """Sign the user in for today and award the daily score."""
    now = now or datetime.now()
    today = now.strftime(DAY_FORMAT)
    count, updated = db._sign_in(uid, now)
    last_day = updated.strftime(DAY_FORMAT)
    if count >= SIGNIN_MAX and last_day == today:
        return SignInResult(already_signed=True)
    if last_day != today:
        db._store_sign_in(uid, 0, now)
    db._store_sign_in(uid, count + 1, now)

    score = db.get_score(uid) + SIGN_IN_REWARD
    capped = score > SCOREMAX
    if capped:
        score = SCOREMAX
    db.set_score(uid, score)
    level = get_level(score)
    return SignInResult(
        already_signed=False,
        score=score,
        added=SIGN_IN_REWARD,
        capped=capped,
        level=level,
        next_level=next_level_score(level),
        hour_word=get_hour_word(now.hour),
        date_word=now.strftime(DATE_WORD_FORMAT),
    )