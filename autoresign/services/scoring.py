"""Score redistribution applied when a game is forfeited."""

from collections import Counter

from autoresign.core.models import GameModel, PlayerId
from autoresign.core.shared_types import Color

SCORE_FACTOR = 20


def count_moves(game: GameModel, color: Color) -> Counter[PlayerId]:
    """Moves per player of the given side. System moves (no player) never count."""
    roster = set(game.roster(color))
    return Counter(
        move.player_id
        for move in game.history
        if move.player_id is not None and move.player_id in roster
    )


def compute_score_deltas(game: GameModel, winner: Color) -> dict[PlayerId, float]:
    """
    Signed score change per player who moved in the game.
    ----
    Each move is worth SCORE_FACTOR / len(history): the denominator is the full history, system moves included.
    Winners gain, losers lose. Players who never moved (or are on neither roster) get no entry.
    """
    total_moves = len(game.history)
    if total_moves == 0:
        return {}

    deltas: dict[PlayerId, float] = {}
    for player_id, moves in count_moves(game, winner).items():
        deltas[player_id] = SCORE_FACTOR * moves / total_moves
    for player_id, moves in count_moves(game, winner.opponent).items():
        # a player listed on both rosters keeps the winning share
        if player_id not in deltas:
            deltas[player_id] = -SCORE_FACTOR * moves / total_moves
    return deltas


def apply_delta(current_score: float, delta: float) -> float:
    """Scores never drop below zero."""
    return max(0.0, current_score + delta)
