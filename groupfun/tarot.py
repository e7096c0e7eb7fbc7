"""Major Arcana tarot: draws, meanings and spreads."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass
from typing import Mapping

BED = "https://gitcode.net/shudorcl/zbp-tarot/-/raw/master/"
CARD_COUNT = 22
MAX_DRAW = 20
REASONS = ("您抽到的是~\n", "锵锵锵，塔罗牌的预言是~\n", "诶，让我看看您抽到了~\n")
POSITIONS = ("正位", "逆位")


@dataclass(frozen=True)
class Card:
    """One card and both of its meanings."""

    name: str
    description: str = ""
    reverse_description: str = ""
    img_url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping) -> Card:
        info = data.get("info") or {}
        return cls(
            name=data.get("name", ""),
            description=info.get("description", ""),
            reverse_description=info.get("reverseDescription", ""),
            img_url=info.get("imgUrl", ""),
        )


@dataclass(frozen=True)
class Formation:
    """A spread: how many cards it takes and what each position stands for."""

    cards_num: int
    is_cut: bool
    represent: tuple[tuple[str, ...], ...]

    @classmethod
    def from_dict(cls, data: Mapping) -> Formation:
        return cls(
            cards_num=int(data.get("cards_num", 0)),
            is_cut=bool(data.get("is_cut", False)),
            represent=tuple(tuple(row) for row in data.get("represent", ())),
        )


def card_image_url(index: int, reverse: bool) -> str:
    """Return the image URL of a card, upright or reversed."""
    return f"{BED}MajorArcana{'Reverse' if reverse else ''}/{index}.png"


def parse_draw_count(text: str, in_group: bool) -> int:
    """Turn the optional "N张" of a draw request into a card count."""
    if not text:
        return 1
    number = text[:-1] if text.endswith("张") else text
    try:
        n = int(number)
    except ValueError:
        raise ValueError(f"invalid card count: {text!r}") from None
    if n <= 0:
        raise ValueError("张数必须为正")
    if n > 1 and not in_group:
        raise ValueError("抽取多张仅支持群聊")
    if n > MAX_DRAW:
        raise ValueError("抽取张数过多")
    return n


class TarotDeck:
    """The cards, keyed by their index as text, and the known spreads."""

    def __init__(self, cards: Mapping[str, Card], formations: Mapping[str, Formation]) -> None:
        self.cards = dict(cards)
        self.formations = dict(formations)
        self.meanings = {card.name.split("(")[0]: card for card in self.cards.values()}

    @classmethod
    def from_json(cls, cards_json: str | bytes, formations_json: str | bytes) -> TarotDeck:
        """Build a deck from the card and formation JSON documents."""
        cards = {key: Card.from_dict(value) for key, value in json.loads(cards_json).items()}
        formations = {
            key: Formation.from_dict(value)
            for key, value in json.loads(formations_json).items()
        }
        return cls(cards, formations)

    def _name(self, index: int) -> str:
        card = self.cards.get(str(index))
        return card.name if card else ""

    def _indices(self, count: int, rng: random.Random) -> list[int]:
        if not 0 < count <= CARD_COUNT:
            raise ValueError(f"cannot draw {count} distinct cards")
        return rng.sample(range(CARD_COUNT), count)

    def draw(self, n: int, rng: random.Random | None = None) -> list[tuple[str, str]]:
        """Draw n distinct cards; return (text, image URL) for each."""
        rng = rng or random.Random()
        drawn = []
        for index in self._indices(n, rng):
            position = rng.randrange(2)
            reason = rng.choice(REASONS)
            text = f"{reason}{POSITIONS[position]} 的 {self._name(index)}\n"
            drawn.append((text, card_image_url(index, bool(position))))
        return drawn

    def interpret(self, name: str) -> tuple[str, str]:
        """Return (image URL, text) explaining the card called name."""
        try:
            card = self.meanings[name]
        except KeyError:
            raise KeyError(f"没有找到{name}噢~") from None
        text = (
            f"\n{name}的含义是~"
            f"\n正位:{card.description}"
            f"\n逆位:{card.reverse_description}"
        )
        return BED + card.img_url, text

    def spread(
        self, formation_name: str, rng: random.Random | None = None
    ) -> tuple[str, list[str]]:
        """Lay out a named spread; return its description and the card images."""
        try:
            formation = self.formations[formation_name]
        except KeyError:
            raise KeyError(f"没有找到{formation_name}噢~") from None
        rng = rng or random.Random()
        lines = []
        images = []
        for slot, index in enumerate(self._indices(formation.cards_num, rng)):
            position = rng.randrange(2)
            images.append(card_image_url(index, bool(position)))
            lines.append(
                f"{formation.represent[0][slot]}: {POSITIONS[position]} 的 {self._name(index)}\n"
            )
        return "".join(lines), images