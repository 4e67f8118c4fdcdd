"""
Type definitions used across layers
"""

from enum import StrEnum
from typing import Self


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class GameResult(StrEnum):
    """Closed set of final results. An unset result is stored as None."""

    WHITE_WINS = "white_wins"
    BLACK_WINS = "black_wins"

    @classmethod
    def won_by(cls, color: Color) -> Self:
        return cls.WHITE_WINS if color == Color.WHITE else cls.BLACK_WINS


class DeliveryStatus(StrEnum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"
