"""Weighted random rebirth: a country or region and a gender."""

from __future__ import annotations

import bisect
import json
import random
from itertools import accumulate
from pathlib import Path
from typing import Hashable, Iterable

SUCCESS_TEXT = "投胎成功！\n您出生在 {area}, 是 {gender}。"
FAILURE_TEXT = "投胎失败！\n您没能活到出生，祝您下次好运！"
FAILURE_THRESHOLD = 1 << 27


class WeightedChooser:
    """Picks items with probability proportional to their integer weights."""

    def __init__(self, choices: Iterable[tuple[Hashable, int]]) -> None:
        pairs = list(choices)
        if any(weight < 0 for _, weight in pairs):
            raise ValueError("weights must not be negative")
        self._items = [item for item, _ in pairs]
        self._totals = list(accumulate(int(weight) for _, weight in pairs))
        if not self._totals or self._totals[-1] <= 0:
            raise ValueError("no choices with a positive weight")

    def pick(self, rng: random.Random | None = None):
        """Return one item, drawn with its weight's share of the total."""
        rng = rng or random.Random()
        r = rng.randrange(self._totals[-1]) + 1
        return self._items[bisect.bisect_left(self._totals, r)]


GENDERS = WeightedChooser([("男孩子", 50707), ("女孩子", 48292), ("雌雄同体", 1001)])


def load_areas(path: str | Path) -> list[tuple[str, float]]:
    """Read a JSON list of {"name", "weight"} objects."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    return [(entry["name"], float(entry["weight"])) for entry in data]


def area_chooser(areas: Iterable[tuple[str, float]]) -> WeightedChooser:
    """Build a chooser from fractional area weights."""
    return WeightedChooser((name, int(weight * 1e9)) for name, weight in areas)


def reborn(areas: WeightedChooser, rng: random.Random | None = None) -> str:
    """Return the message for one attempt at rebirth."""
    rng = rng or random.Random()
    if rng.getrandbits(31) > FAILURE_THRESHOLD:
        return SUCCESS_TEXT.format(area=areas.pick(rng), gender=GENDERS.pick(rng))
    return FAILURE_TEXT