import sqlite3

import pytest

from groupfun.marriage import (
    ELLIPSIS,
    Marriage,
    MaritalStatus,
    MarriageRegistry,
    slice_name,
    today,
)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "registry.db"


@pytest.fixture
def registry(db_path):
    reg = MarriageRegistry(db_path)
    yield reg
    reg.close()


def _set_updatetime(path, gid, stamp):
    conn = sqlite3.connect(str(path))
    conn.execute('UPDATE "updateinfo" SET updatetime = ? WHERE gid = ?', (stamp, gid))
    conn.commit()
    conn.close()


def test_lookup_unknown_user_is_single(registry):
    info, status = registry.lookup(100, 1)
    assert status is MaritalStatus.SINGLE
    assert info is None


def test_register_sets_both_statuses(registry):
    registry.register(100, 1, 2, "alice", "bob")
    info, status = registry.lookup(100, 1)
    assert status is MaritalStatus.GROOM
    assert info == Marriage(1, 2, "alice", "bob", today())
    info, status = registry.lookup(100, 2)
    assert status is MaritalStatus.BRIDE
    assert info.user == 1


def test_groups_are_separate(registry):
    registry.register(100, 1, 2, "alice", "bob")
    assert registry.lookup(200, 1)[1] is MaritalStatus.SINGLE


def test_roster_skips_single_nobles_and_orders_by_user(registry):
    registry.register(100, 5, 6, "e", "f")
    registry.register(100, 3, 0, "", "")
    registry.register(100, 1, 2, "a", "b")
    assert registry.roster(100) == [("a", "1", "b", "2"), ("e", "5", "f", "6")]


def test_roster_empty_group(registry):
    assert registry.roster(300) == []


def test_divorce_wife_removes_marriage(registry):
    registry.register(100, 1, 2, "a", "b")
    registry.divorce_wife(100, 2)
    assert registry.lookup(100, 1)[1] is MaritalStatus.SINGLE
    assert registry.lookup(100, 2)[1] is MaritalStatus.SINGLE


def test_divorce_husband_removes_marriage(registry):
    registry.register(100, 1, 2, "a", "b")
    registry.divorce_husband(100, 1)
    assert registry.roster(100) == []


def test_divorce_in_unknown_group_raises(registry):
    with pytest.raises(sqlite3.OperationalError):
        registry.divorce_wife(999, 2)


def test_remarry_takes_over_groom(registry):
    registry.register(100, 1, 2, "a", "b")
    registry.remarry(100, 1, 3, "a", "c")
    info, status = registry.lookup(100, 3)
    assert status is MaritalStatus.BRIDE
    assert info.user == 1
    assert registry.lookup(100, 1)[0].target == 3


def test_remarry_is_noop_when_both_registered(registry):
    registry.register(100, 1, 2, "a", "b")
    registry.register(100, 3, 4, "c", "d")
    registry.remarry(100, 1, 3, "a", "c")
    assert registry.roster(100) == [("a", "1", "b", "2"), ("c", "3", "d", "4")]


def test_remarry_unknown_group_raises(registry):
    with pytest.raises(sqlite3.OperationalError):
        registry.remarry(999, 1, 2, "a", "b")


def test_check_update_records_today(registry):
    assert registry.check_update(100) == today()
    assert registry.check_update(100) == today()


def test_check_update_returns_stored_day(registry, db_path):
    registry.check_update(100)
    _set_updatetime(db_path, 100, "2000/01/01")
    assert registry.check_update(100) == "2000/01/01"


def test_reset_group_clears_and_restamps(registry, db_path):
    registry.check_update(100)
    _set_updatetime(db_path, 100, "2000/01/01")
    registry.register(100, 1, 2, "a", "b")
    registry.reset("100")
    assert registry.lookup(100, 1)[1] is MaritalStatus.SINGLE
    assert registry.check_update(100) == today()


def test_reset_missing_group_only_creates_table(registry, db_path):
    registry.check_update(100)
    _set_updatetime(db_path, 100, "2000/01/01")
    registry.reset(100)
    assert registry.roster(100) == []
    assert registry.check_update(100) == "2000/01/01"


def test_reset_all_clears_every_group(registry, db_path):
    registry.register(100, 1, 2, "a", "b")
    registry.register(200, 3, 4, "c", "d")
    registry.check_update(100)
    _set_updatetime(db_path, 100, "2000/01/01")
    registry.reset("ALL")
    assert registry.lookup(100, 1)[1] is MaritalStatus.SINGLE
    assert registry.lookup(200, 3)[1] is MaritalStatus.SINGLE
    assert registry.check_update(100) == today()
    assert registry.check_update(200) == today()


def test_slice_name_keeps_short_names():
    assert slice_name("abc", lambda s: 50) == "abc"


def test_slice_name_truncates_long_names():
    result = slice_name("abcdefgh", lambda s: 100)
    assert result.endswith(ELLIPSIS)
    assert "abcdefgh".startswith(result[: -len(ELLIPSIS)])
    assert len(result) - len(ELLIPSIS) < 4