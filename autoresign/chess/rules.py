"""Rules engine capability: whose turn is it, given a position history."""

from typing import Protocol, Sequence

from autoresign.chess.fen import FENState
from autoresign.core.shared_types import Color


class RulesEngine(Protocol):
    def turn_to_move(self, history: Sequence[str]) -> Color:
        """Side to move after the last position. An empty history means the starting position."""
        ...


class FENRulesEngine:
    """Reads the active color of the latest FEN in the history."""

    def turn_to_move(self, history: Sequence[str]) -> Color:
        if not history:
            return FENState.starting_position().active_color
        return FENState.from_fen(history[-1]).active_color
