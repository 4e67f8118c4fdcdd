"""
Reading stored positions. The worker needs two things from a FEN string:
whether it is well formed, and which side is to move.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Self

from autoresign.core.exceptions import InvalidFENError
from autoresign.core.shared_types import Color

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

NUM_RANKS = 8
FILE_LETTERS = "abcdefgh"
PIECE_LETTERS = frozenset("pnbrqkPNBRQK")
ACTIVE_COLORS: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}
CASTLING_ORDER = "KQkq"
DIGITS = "0123456789"


def rank_width(rank: str) -> Optional[int]:
    """Number of squares covered by one rank of the placement, None on an unknown character."""
    width = 0
    for char in rank:
        if char in DIGITS:
            width += int(char)
        elif char in PIECE_LETTERS:
            width += 1
        else:
            return None
    return width


def check_placement(placement: str) -> bool:
    ranks = placement.split("/")
    return len(ranks) == NUM_RANKS and all(
        rank_width(rank) == len(FILE_LETTERS) for rank in ranks
    )


def check_active_color(color: str) -> bool:
    return color in ACTIVE_COLORS


def check_castling(castling: str) -> bool:
    if castling == "-":
        return True
    # each right at most once, always in KQkq order
    canonical = "".join(right for right in CASTLING_ORDER if right in castling)
    return bool(castling) and canonical == castling


def check_square(square: str) -> bool:
    return (
        len(square) == 2
        and square[0] in FILE_LETTERS
        and square[1] in DIGITS[1 : NUM_RANKS + 1]
    )


def check_en_passant(en_passant: str) -> bool:
    return en_passant == "-" or check_square(en_passant)


def check_counter(counter: str) -> bool:
    # ASCII digits only, int() rejects "²" although str.isdigit accepts it
    return bool(counter) and all(char in DIGITS for char in counter)


# FEN fields in order, with the check each one must pass.
FIELD_CHECKS: list[tuple[str, Callable[[str], bool]]] = [
    ("piece placement", check_placement),
    ("active color", check_active_color),
    ("castling rights", check_castling),
    ("en passant square", check_en_passant),
    ("half-move clock", check_counter),
    ("full-move number", check_counter),
]


def fen_problem(fen: str) -> Optional[str]:
    """Describe what is wrong with a FEN string, or return None when it is well formed."""
    fields = fen.split(" ")
    if len(fields) != len(FIELD_CHECKS):
        return f"expected {len(FIELD_CHECKS)} space-separated fields, got {len(fields)}"

    for (name, check), value in zip(FIELD_CHECKS, fields):
        if not check(value):
            return f"bad {name} {value!r}"
    return None


@dataclass(frozen=True)
class FENState:
    """
    The six FEN fields of one stored position.
    ----

    <piece placement> <active color> <castling rights> <en passant square> <half-move clock> <full-move number>
    """

    placement: str
    active_color: Color
    castling: str
    en_passant: str
    half_move_clock: int
    full_move_number: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        problem = fen_problem(fen)
        if problem is not None:
            raise InvalidFENError(f"Cannot interpret {fen!r} as FEN: {problem}")

        placement, color, castling, en_passant, half_moves, full_moves = fen.split(" ")
        return cls(
            placement=placement,
            active_color=ACTIVE_COLORS[color],
            castling=castling,
            en_passant=en_passant,
            half_move_clock=int(half_moves),
            full_move_number=int(full_moves),
        )

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
