"""Good-morning and good-night bookkeeping per group."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta
from pathlib import Path

MORNING_SHORT = "早安成功！你是今天第{position}个起床的"
MORNING_LONG = "早安成功！你的睡眠时长为{h}时{m}分{s}秒,你是今天第{position}个起床的"
NIGHT_SHORT = "晚安成功！你是今天第{position}个睡觉的"
NIGHT_LONG = "晚安成功！你的清醒时长为{h}时{m}分{s}秒,你是今天第{position}个睡觉的"


def _stamp(moment: datetime) -> str:
    return moment.isoformat(sep=" ", timespec="microseconds")


def _parse(text: str) -> datetime:
    return datetime.fromisoformat(text)


def _clock_offset(now: datetime, hours: int) -> timedelta:
    return timedelta(hours=hours, minutes=now.minute, seconds=now.second)


class SleepDatabase:
    """Keeps each member's last sleep or wake-up time per group."""

    def __init__(self, path: str | Path) -> None:
        self._conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
        self._lock = threading.Lock()
        self._conn.execute(
            "CREATE TABLE IF NOT EXISTS sleep_manage ("
            "id INTEGER PRIMARY KEY AUTOINCREMENT, group_id INTEGER, "
            "user_id INTEGER, sleep_time TEXT)"
        )

    def __enter__(self) -> SleepDatabase:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying database."""
        self._conn.close()

    def _record(self, gid: int, uid: int, now: datetime, since: datetime) -> tuple[int, timedelta]:
        with self._lock:
            row = self._conn.execute(
                "SELECT sleep_time FROM sleep_manage WHERE group_id = ? AND user_id = ? "
                "ORDER BY id LIMIT 1",
                (gid, uid),
            ).fetchone()
            elapsed = timedelta(0)
            if row is None:
                self._conn.execute(
                    "INSERT INTO sleep_manage (group_id, user_id, sleep_time) VALUES (?, ?, ?)",
                    (gid, uid, _stamp(now)),
                )
            else:
                elapsed = now - _parse(row[0])
                self._conn.execute(
                    "UPDATE sleep_manage SET sleep_time = ? WHERE group_id = ? AND user_id = ?",
                    (_stamp(now), gid, uid),
                )
            (position,) = self._conn.execute(
                "SELECT COUNT(*) FROM sleep_manage WHERE group_id = ? "
                "AND sleep_time <= ? AND sleep_time >= ?",
                (gid, _stamp(now), _stamp(since)),
            ).fetchone()
        return position, elapsed

    def sleep(self, gid: int, uid: int, now: datetime | None = None) -> tuple[int, timedelta]:
        """Record going to sleep; return tonight's position and time awake."""
        now = now or datetime.now()
        if now.hour >= 21:
            since = now - _clock_offset(now, now.hour - 21)
        elif now.hour <= 3:
            since = now - _clock_offset(now, now.hour + 3)
        else:
            since = datetime.min
        return self._record(gid, uid, now, since)

    def get_up(self, gid: int, uid: int, now: datetime | None = None) -> tuple[int, timedelta]:
        """Record getting up; return this morning's position and time asleep."""
        now = now or datetime.now()
        since = now - _clock_offset(now, now.hour - 6)
        return self._record(gid, uid, now, since)


def _truncated_div(a: int, b: int) -> int:
    quotient = abs(a) // b
    return quotient if a >= 0 else -quotient


def time_duration(delta: timedelta) -> tuple[int, int, int]:
    """Split a duration into whole hours, minutes and seconds."""
    micros = delta // timedelta(microseconds=1)
    hour = _truncated_div(micros, 3_600_000_000)
    micros -= hour * 3_600_000_000
    minute = _truncated_div(micros, 60_000_000)
    micros -= minute * 60_000_000
    second = _truncated_div(micros, 1_000_000)
    return hour, minute, second


def is_morning(hour: int) -> bool:
    """Good mornings count from 6 to 12 o'clock."""
    return 6 <= hour <= 12


def is_evening(hour: int) -> bool:
    """Good nights count from 21 o'clock to 3 o'clock."""
    return hour >= 21 or hour <= 3


def _message(short: str, long: str, position: int, delta: timedelta) -> str:
    h, m, s = time_duration(delta)
    if (h, m, s) == (0, 0, 0) or h >= 24:
        return short.format(position=position)
    return long.format(h=h, m=m, s=s, position=position)


def good_morning_text(position: int, delta: timedelta) -> str:
    """Reply to a good morning."""
    return _message(MORNING_SHORT, MORNING_LONG, position, delta)


def good_night_text(position: int, delta: timedelta) -> str:
    """Reply to a good night."""
    return _message(NIGHT_SHORT, NIGHT_LONG, position, delta)