from datetime import datetime, timedelta

import pytest

from groupfun.sleep import (
    SleepDatabase,
    good_morning_text,
    good_night_text,
    is_evening,
    is_morning,
    time_duration,
)


@pytest.fixture
def db(tmp_path):
    with SleepDatabase(tmp_path / "sleep.db") as database:
        yield database


def test_first_sleep_has_no_duration(db):
    position, elapsed = db.sleep(1, 10, datetime(2022, 6, 1, 22, 0, 0))
    assert position == 1
    assert elapsed == timedelta(0)


def test_positions_increase_within_group(db):
    db.sleep(1, 10, datetime(2022, 6, 1, 22, 0, 0))
    position, _ = db.sleep(1, 11, datetime(2022, 6, 1, 22, 5, 0))
    assert position == 2
    other, _ = db.sleep(2, 12, datetime(2022, 6, 1, 22, 6, 0))
    assert other == 1


def test_get_up_reports_sleep_duration(db):
    night = datetime(2022, 6, 1, 23, 0, 0)
    morning = datetime(2022, 6, 2, 7, 30, 0)
    db.sleep(1, 10, night)
    position, elapsed = db.get_up(1, 10, morning)
    assert elapsed == morning - night
    assert position == 1


def test_get_up_excludes_people_still_asleep(db):
    db.sleep(1, 10, datetime(2022, 6, 1, 23, 0, 0))
    db.sleep(1, 11, datetime(2022, 6, 1, 23, 10, 0))
    position, _ = db.get_up(1, 11, datetime(2022, 6, 2, 8, 0, 0))
    assert position == 1


def test_data_persists(tmp_path):
    path = tmp_path / "sleep.db"
    night = datetime(2022, 6, 1, 22, 0, 0)
    with SleepDatabase(path) as database:
        database.sleep(1, 10, night)
    with SleepDatabase(path) as database:
        _, elapsed = database.get_up(1, 10, night + timedelta(hours=8))
    assert elapsed == timedelta(hours=8)


def test_time_duration_splits():
    assert time_duration(timedelta(hours=1, minutes=2, seconds=3)) == (1, 2, 3)
    assert time_duration(timedelta(days=2, seconds=59)) == (48, 0, 59)


def test_hour_windows():
    assert is_morning(6) and is_morning(12)
    assert not is_morning(13) and not is_morning(5)
    assert is_evening(21) and is_evening(0) and is_evening(3)
    assert not is_evening(4) and not is_evening(20)


def test_short_messages():
    assert good_morning_text(3, timedelta(0)) == "早安成功！你是今天第3个起床的"
    assert good_night_text(2, timedelta(hours=30)) == "晚安成功！你是今天第2个睡觉的"


def test_long_messages_contain_duration():
    text = good_morning_text(1, timedelta(hours=7, minutes=5, seconds=9))
    assert text == "早安成功！你的睡眠时长为7时5分9秒,你是今天第1个起床的"
    night = good_night_text(4, timedelta(hours=2))
    assert night.startswith("晚安成功！你的清醒时长为2时0分0秒")