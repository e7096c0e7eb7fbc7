import json
import random

import pytest

from groupfun.tarot import (
    BED,
    Card,
    Formation,
    TarotDeck,
    card_image_url,
    parse_draw_count,
)


def _cards_json():
    cards = {
        str(i): {
            "name": f"牌{i}(Card {i})",
            "info": {
                "description": f"正{i}",
                "reverseDescription": f"逆{i}",
                "imgUrl": f"img/{i}.png",
            },
        }
        for i in range(22)
    }
    cards["0"]["name"] = "愚者(The Fool)"
    return json.dumps(cards, ensure_ascii=False)


def _formations_json():
    return json.dumps(
        {
            "圣三角": {
                "cards_num": 3,
                "is_cut": False,
                "represent": [["处境", "行动", "结果"]],
            }
        },
        ensure_ascii=False,
    )


@pytest.fixture
def deck():
    return TarotDeck.from_json(_cards_json(), _formations_json())


def test_card_image_url():
    assert card_image_url(3, False) == BED + "MajorArcana/3.png"
    assert card_image_url(3, True) == BED + "MajorArcanaReverse/3.png"


def test_parse_draw_count_default_and_numbers():
    assert parse_draw_count("", False) == 1
    assert parse_draw_count("1张", False) == 1
    assert parse_draw_count("5张", True) == 5
    assert parse_draw_count("20张", True) == 20


@pytest.mark.parametrize(
    "text, in_group, message",
    [
        ("0张", True, "张数必须为正"),
        ("3张", False, "抽取多张仅支持群聊"),
        ("21张", True, "抽取张数过多"),
    ],
)
def test_parse_draw_count_errors(text, in_group, message):
    with pytest.raises(ValueError, match=message):
        parse_draw_count(text, in_group)


def test_from_json_builds_cards_and_formations(deck):
    assert deck.cards["0"] == Card("愚者(The Fool)", "正0", "逆0", "img/0.png")
    assert deck.formations["圣三角"] == Formation(3, False, (("处境", "行动", "结果"),))


def test_draw_distinct_cards(deck):
    drawn = deck.draw(10, random.Random(7))
    assert len(drawn) == 10
    urls = [url for _, url in drawn]
    indices = {url.rsplit("/", 1)[1] for url in urls}
    assert len(indices) == 10
    for text, url in drawn:
        index = int(url.rsplit("/", 1)[1][:-4])
        reverse = "Reverse" in url
        assert url == card_image_url(index, reverse)
        position = "逆位" if reverse else "正位"
        assert text.endswith(f"{position} 的 {deck.cards[str(index)].name}\n")


def test_draw_single_card(deck):
    drawn = deck.draw(1, random.Random(1))
    assert len(drawn) == 1
    assert drawn[0][1].startswith(BED + "MajorArcana")


def test_draw_invalid_count(deck):
    with pytest.raises(ValueError):
        deck.draw(0)
    with pytest.raises(ValueError):
        deck.draw(23)


def test_interpret(deck):
    image, text = deck.interpret("愚者")
    assert image == BED + "img/0.png"
    assert text == "\n愚者的含义是~\n正位:正0\n逆位:逆0"


def test_interpret_unknown(deck):
    with pytest.raises(KeyError):
        deck.interpret("不存在")


def test_spread(deck):
    text, images = deck.spread("圣三角", random.Random(3))
    lines = text.splitlines()
    assert len(images) == 3
    assert [line.split(":")[0] for line in lines] == ["处境", "行动", "结果"]
    assert len(set(images)) == 3


def test_spread_unknown(deck):
    with pytest.raises(KeyError):
        deck.spread("不存在")