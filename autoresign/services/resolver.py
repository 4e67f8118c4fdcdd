"""
Auto-Resign Resolver: forfeits games whose notification went unanswered and redistributes scores.

Per game the order is fixed: first the terminal result write, then the score updates.
The two are separate store requests, a failure in between leaves the game resolved with (some) scores unchanged.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from autoresign.chess.rules import RulesEngine
from autoresign.core.exceptions import GameError, RepositoryError
from autoresign.core.models import GameModel, PlayerId, ScoreOutcome
from autoresign.core.shared_types import Color, GameResult
from autoresign.db.repository import GameRepository, PlayerRepository
from autoresign.services.scoring import apply_delta, compute_score_deltas

logger = logging.getLogger(__name__)


@dataclass
class ResolutionReport:
    resolved: dict[UUID, GameResult] = field(default_factory=dict)
    skipped: list[UUID] = field(default_factory=list)
    failed: dict[UUID, str] = field(default_factory=dict)
    scores: list[ScoreOutcome] = field(default_factory=list)


class AutoResignResolver:
    def __init__(
        self, games: GameRepository, players: PlayerRepository, rules: RulesEngine
    ) -> None:
        self.games = games
        self.players = players
        self.rules = rules

    def resolve_all(self, candidates: list[GameModel], now: datetime) -> ResolutionReport:
        """Resolve every candidate. A failing game is logged and skipped, the others continue."""
        report = ResolutionReport()
        for game in candidates:
            try:
                self.resolve(game, now, report)
            except GameError as exc:
                report.failed[game.game_id] = str(exc)
                logger.error(
                    "Failed to auto-resign game",
                    extra={"meta": {"gameId": str(game.game_id), "error": str(exc)}},
                )
        return report

    def resolve(self, game: GameModel, now: datetime, report: ResolutionReport) -> None:
        if game.result is not None:
            report.skipped.append(game.game_id)
            return

        forfeiting = self.rules.turn_to_move(game.positions)
        winner = forfeiting.opponent
        result = GameResult.won_by(winner)

        if not self.games.resolve_game(game.game_id, result, now):
            # resolved or reset by someone else since it was selected
            report.skipped.append(game.game_id)
            logger.info(
                "Game no longer pending auto-resign",
                extra={"meta": {"gameId": str(game.game_id)}},
            )
            return

        report.resolved[game.game_id] = result
        logger.info(
            "Auto-resigned game",
            extra={
                "meta": {
                    "gameId": str(game.game_id),
                    "forfeitingSide": forfeiting.value,
                    "result": result.value,
                }
            },
        )
        report.scores.extend(self.redistribute_scores(game, winner))

    def redistribute_scores(self, game: GameModel, winner: Color) -> list[ScoreOutcome]:
        """Read-modify-write per player. One failing player does not stop the others."""
        outcomes = []
        for player_id, delta in compute_score_deltas(game, winner).items():
            try:
                outcomes.append(self._update_score(game.game_id, player_id, delta))
            except GameError as exc:
                logger.error(
                    "Failed to update score",
                    extra={
                        "meta": {
                            "gameId": str(game.game_id),
                            "userId": player_id,
                            "error": str(exc),
                        }
                    },
                )
                outcomes.append(
                    ScoreOutcome(game.game_id, player_id, delta, diagnostic=str(exc))
                )
        return outcomes

    def _update_score(self, game_id: UUID, player_id: PlayerId, delta: float) -> ScoreOutcome:
        player = self.players.get_player(player_id)
        if player is None:
            raise RepositoryError(f"Player with {player_id=} not found.")

        new_score = apply_delta(player.score, delta)
        self.players.update_score(player_id, new_score)
        return ScoreOutcome(game_id, player_id, delta, new_score=new_score)
