import random
from unittest import mock

import pytest

from groupfun.ymgal import (
    CG_TYPE,
    CG_URL,
    EMOTICON_TYPE,
    EMOTICON_URL,
    WEB_PIC_URL,
    Ymgal,
    YmgalDatabase,
    parse_cg_picset,
    parse_emoticon_picset,
    parse_page_count,
    parse_picset_ids,
    update_pictures,
)

PAGER = (
    "<html><body><div id='pager-box'><div>"
    "<a class='item'>1</a><a class='item'>7</a>"
    "<a class='icon item pager-next'>next</a>"
    "</div></div></body></html>"
)


def result_page(*ids):
    links = "".join(
        f"<div><div><a href='/co/picset/{pic_id}'>set</a></div></div>" for pic_id in ids
    )
    return f"<html><body><div id='picset-result-list'><ul>{links}</ul></div></body></html>"


def meta(title, description, count):
    return (
        f"<head><meta name='name' content='{title}'>"
        f"<meta name='description' content='{description}'></head>"
        "<div class='meta-info'><div class='meta-right'>"
        f"<span>info</span><span>共 {count} 张</span></div></div>"
    )


def cg_page(title, description, urls):
    slides = "".join(f"<div class='slide' data-src='{url}'></div>" for url in urls)
    return (
        f"<html>{meta(title, description, len(urls))}<body>"
        "<div id='main-picset-warp'><div><div>head</div>"
        f"<div><div><div class='swiper-wrapper'>{slides}</div></div></div>"
        "</div></div></body></html>"
    )


def emoticon_page(title, description, urls):
    items = "".join(f"<div><img alt='pic' src='{url}'></div>" for url in urls)
    return (
        f"<html>{meta(title, description, len(urls))}<body>"
        f"<div id='main-picset-warp'><div><div class='stream-list'>{items}</div></div></div>"
        "</body></html>"
    )


@pytest.fixture
def db(tmp_path):
    with YmgalDatabase(tmp_path / "ymgal.db") as database:
        yield database


def test_upsert_and_get(db):
    db.upsert(5, "Title", CG_TYPE, "desc", "a.png,b.png")
    found = db.get_by_id(5)
    assert found == Ymgal(5, "Title", CG_TYPE, "desc", "a.png,b.png")
    assert found.pictures == ["a.png", "b.png"]
    assert db.get_by_id("5") == found
    assert db.get_by_id(6) is None


def test_upsert_updates(db):
    db.upsert(5, "Old", CG_TYPE, "d", "a.png")
    db.upsert(5, "New", EMOTICON_TYPE, "d2", "c.png")
    assert db.get_by_id(5) == Ymgal(5, "New", EMOTICON_TYPE, "d2", "c.png")


def test_random_by_type(db):
    assert db.random(CG_TYPE, random.Random(0)) is None
    db.upsert(1, "a", CG_TYPE, "", "x")
    db.upsert(2, "b", EMOTICON_TYPE, "", "y")
    for seed in range(5):
        assert db.random(CG_TYPE, random.Random(seed)).id == 1


def test_search_title_or_description(db):
    db.upsert(1, "summer days", CG_TYPE, "", "x")
    db.upsert(2, "winter", CG_TYPE, "snowy summer", "y")
    db.upsert(3, "summer", EMOTICON_TYPE, "", "z")
    found = {db.search(CG_TYPE, "summer", random.Random(seed)).id for seed in range(20)}
    assert found <= {1, 2}
    assert db.search(CG_TYPE, "autumn") is None


def test_parse_page_count():
    assert parse_page_count(PAGER) == 7


def test_parse_page_count_missing_raises():
    with pytest.raises(ValueError):
        parse_page_count("<html><body></body></html>")


def test_parse_picset_ids():
    assert parse_picset_ids(result_page("12", "34")) == ["12", "34"]


def test_parse_cg_picset():
    urls = ["https://img.example.com/1.jpg", "https://img.example.com/2.jpg"]
    assert parse_cg_picset(cg_page("Game", "About", urls)) == ("Game", "About", ",".join(urls))


def test_parse_emoticon_picset():
    urls = ["https://img.example.com/e.png"]
    assert parse_emoticon_picset(emoticon_page("Faces", "Fun", urls)) == ("Faces", "Fun", urls[0])


def pages():
    return {
        CG_URL + "1": PAGER.replace(">7<", ">1<") + result_page("1", "2"),
        EMOTICON_URL + "1": PAGER.replace(">7<", ">1<") + result_page("3"),
        WEB_PIC_URL + "1": cg_page("one", "d1", ["https://img.example.com/1.jpg"]),
        WEB_PIC_URL + "2": cg_page("two", "d2", ["https://img.example.com/2.jpg"]),
        WEB_PIC_URL + "3": emoticon_page("three", "d3", ["https://img.example.com/3.png"]),
    }


@mock.patch("time.sleep")
def test_update_pictures_stores_everything(_sleep, db):
    site = pages()
    update_pictures(db, site.__getitem__)
    assert db.get_by_id(1).title == "one"
    assert db.get_by_id(2).picture_type == CG_TYPE
    three = db.get_by_id(3)
    assert three.picture_type == EMOTICON_TYPE
    assert three.pictures == ["https://img.example.com/3.png"]


@mock.patch("time.sleep")
def test_update_pictures_stops_at_known_set(_sleep, db):
    db.upsert(2, "known", CG_TYPE, "", "https://img.example.com/old.jpg")
    site = pages()
    update_pictures(db, site.__getitem__)
    assert db.get_by_id(1) is None
    assert db.get_by_id(2).title == "known"
    assert db.get_by_id(3).title == "three"