"""A word-guessing game drawn as a grid of coloured squares."""

from __future__ import annotations

import io
from enum import Enum
from typing import Iterable

from PIL import Image, ImageDraw, ImageFont

SIDE = 20
SPACE = 10
GAP = 4
WHITE = (255, 255, 255)

CLASSES = {
    "": 5,
    "五阶": 5,
    "六阶": 6,
    "七阶": 7,
}


class Mark(Enum):
    """How one letter of a guess compares with the answer; the value is its colour."""

    MATCH = (125, 166, 108)
    EXIST = (199, 183, 96)
    NOTEXIST = (123, 123, 123)
    UNDONE = (219, 219, 219)


class LengthNotEnough(ValueError):
    """The guess does not have the answer's length."""


class UnknownWord(ValueError):
    """The guess is not in the dictionary."""


class TimesRunOut(Exception):
    """Every attempt has been used up without finding the answer."""


def score_guess(target: str, guess: str) -> list[Mark]:
    """Mark each letter of guess against target."""
    marks = []
    for position, letter in enumerate(guess):
        if position < len(target) and target[position] == letter:
            marks.append(Mark.MATCH)
        elif letter in target:
            marks.append(Mark.EXIST)
        else:
            marks.append(Mark.NOTEXIST)
    return marks


def class_size(name: str) -> int:
    """Return the word length for a difficulty name such as "六阶"."""
    try:
        return CLASSES[name]
    except KeyError:
        raise ValueError(f"unknown word class: {name!r}") from None


class WordleGame:
    """One round: a target word, the allowed dictionary and the guesses so far."""

    def __init__(self, target: str, dictionary: Iterable[str]) -> None:
        self.target = target
        self.size = len(target)
        self.max_attempts = self.size + 1
        self._dictionary = frozenset(dictionary)
        self.guesses: list[str] = []

    @property
    def remaining(self) -> int:
        """Attempts still available."""
        return self.max_attempts - len(self.guesses)

    def guess(self, word: str) -> bool:
        """Record a guess and report whether it is the answer.

        Raises LengthNotEnough or UnknownWord for guesses that are not counted,
        and TimesRunOut once the last attempt is spent without success.
        """
        if self.remaining <= 0:
            raise TimesRunOut("times run out")
        word = word.lower()
        won = word == self.target
        if not won:
            if len(word) != self.size:
                raise LengthNotEnough("length not enough")
            if word not in self._dictionary:
                raise UnknownWord("unknown word")
        self.guesses.append(word)
        if won:
            return True
        if self.remaining <= 0:
            raise TimesRunOut("times run out")
        return False

    def render(self) -> bytes:
        """Draw the board as PNG bytes."""
        step = SIDE + GAP
        width = step * self.size + SPACE * 2 - GAP
        height = step * (self.size + 1) + SPACE * 2 - GAP
        image = Image.new("RGB", (width, height), WHITE)
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default()
        for row in range(self.max_attempts):
            top = SPACE + row * step
            if row < len(self.guesses):
                word = self.guesses[row]
                for column, mark in enumerate(score_guess(self.target, word)):
                    left = SPACE + column * step
                    draw.rectangle(
                        [left, top, left + SIDE - 1, top + SIDE - 1], fill=mark.value
                    )
                    draw.text((left + 7, top + 4), word[column].upper(), fill=WHITE, font=font)
            else:
                for column in range(self.size):
                    left = SPACE + column * step + 1
                    draw.rectangle(
                        [left, top + 1, left + SIDE - 2, top + 1 + SIDE - 2],
                        outline=Mark.UNDONE.value,
                        width=1,
                    )
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()