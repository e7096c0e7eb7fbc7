"""Game rules and data stores for group chat: pairing, wordle, tarot, scores, sleep and more."""

__version__ = "0.1.0"