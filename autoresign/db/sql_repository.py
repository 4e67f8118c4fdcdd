"""Implementation of the Game/Player repositories using SQLAlchemy"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from autoresign.core.exceptions import GameStateError, RepositoryError
from autoresign.core.models import (
    GameModel,
    GameQuery,
    MoveRecord,
    PlayerId,
    PlayerModel,
)
from autoresign.core.shared_types import Color, GameResult
from autoresign.db.schema import DBGame, DBMove, DBPlayer

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes. Everything is stored in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLGameRepository:
    """Games stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def find_games(self, query: GameQuery) -> list[GameModel]:
        statement = self._build_select(query)
        try:
            games_db = self.db.scalars(statement).all()
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Game query failed: {exc}") from exc

        games = []
        for game_db in games_db:
            try:
                games.append(self._to_model(game_db))
            except GameStateError as exc:
                # one corrupt row must not hide the other games
                logger.error(
                    "Skipping unreadable game",
                    extra={"meta": {"gameId": str(game_db.id), "error": str(exc)}},
                )
        return games

    def mark_notified(self, game_ids: Iterable[UUID], when: datetime) -> int:
        ids = list(game_ids)
        if not ids:
            return 0
        statement = (
            update(DBGame)
            .where(DBGame.id.in_(ids))
            .values(auto_resign_notification_date=when)
            .execution_options(synchronize_session=False)
        )
        return self._execute_update(statement, f"mark {len(ids)} games notified")

    def resolve_game(self, game_id: UUID, result: GameResult, when: datetime) -> bool:
        statement = (
            update(DBGame)
            .where(
                DBGame.id == game_id,
                DBGame.result.is_(None),
                DBGame.auto_resign_notification_date.is_not(None),
            )
            .values(
                result=result.value,
                auto_resign_notification_date=None,
                resolved_date=when,
            )
            .execution_options(synchronize_session=False)
        )
        return self._execute_update(statement, f"resolve game {game_id}") == 1

    def add_game(self, game: GameModel) -> GameModel:
        """Store a new game (with its history)."""
        game_db = DBGame(
            id=game.game_id,
            players={color.value: list(ids) for color, ids in game.players.items()},
            result=game.result.value if game.result else None,
            last_move_date=game.last_move_date,
            auto_resign_notification_date=game.auto_resign_notification_date,
            resolved_date=game.resolved_date,
            history=[
                DBMove(
                    ply=ply,
                    fen=move.fen,
                    played_at=move.played_at,
                    player_id=move.player_id,
                )
                for ply, move in enumerate(game.history)
            ],
        )
        try:
            self.db.add(game_db)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(f"Could not store game {game.game_id}: {exc}") from exc
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self.db.scalar(
            select(DBGame)
            .where(DBGame.id == game_id)
            .execution_options(populate_existing=True)
        )
        if game_db:
            return self._to_model(game_db)
        return None

    def _build_select(self, query: GameQuery) -> Select[tuple[DBGame]]:
        """Translate a GameQuery into a SELECT on the games table. Timestamp bounds are strict, NULL dates never pass them."""
        statement = select(DBGame).execution_options(populate_existing=True)
        if query.result_unset:
            statement = statement.where(DBGame.result.is_(None))
        if query.notification_unset:
            statement = statement.where(DBGame.auto_resign_notification_date.is_(None))
        if query.notified_before is not None:
            statement = statement.where(
                DBGame.auto_resign_notification_date < query.notified_before
            )
        if query.last_move_before is not None:
            statement = statement.where(DBGame.last_move_date < query.last_move_before)
        if query.min_history_length > 0:
            history_length = (
                select(func.count(DBMove.id))
                .where(DBMove.game_id == DBGame.id)
                .correlate(DBGame)
                .scalar_subquery()
            )
            statement = statement.where(history_length >= query.min_history_length)
        return statement

    def _execute_update(self, statement, description: str) -> int:
        try:
            cursor = self.db.execute(statement)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(f"Could not {description}: {exc}") from exc
        return cursor.rowcount

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        try:
            players = {Color(color): list(ids) for color, ids in game_db.players.items()}
            result = GameResult(game_db.result) if game_db.result else None
        except (ValueError, TypeError, AttributeError) as exc:
            raise GameStateError(f"Game {game_db.id} holds invalid data: {exc}") from exc

        return GameModel(
            game_id=game_db.id,
            players=players,
            history=[
                MoveRecord(
                    fen=move.fen,
                    played_at=as_utc(move.played_at),
                    player_id=move.player_id,
                )
                for move in game_db.history
            ],
            result=result,
            last_move_date=as_utc(game_db.last_move_date),
            auto_resign_notification_date=as_utc(
                game_db.auto_resign_notification_date
            ),
            resolved_date=as_utc(game_db.resolved_date),
        )


class SQLPlayerRepository:
    """Players stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_player(self, player_id: PlayerId) -> PlayerModel | None:
        player_db = self._fetch_player(player_id)
        if player_db:
            return self._to_model(player_db)
        return None

    def get_players(self, player_ids: Iterable[PlayerId]) -> list[PlayerModel]:
        ids = list(dict.fromkeys(player_ids))
        if not ids:
            return []
        try:
            found = {
                player_db.id: player_db
                for player_db in self.db.scalars(
                    select(DBPlayer)
                    .where(DBPlayer.id.in_(ids))
                    .execution_options(populate_existing=True)
                )
            }
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Player query failed: {exc}") from exc
        # keep roster order
        return [self._to_model(found[pid]) for pid in ids if pid in found]

    def update_score(self, player_id: PlayerId, score: float) -> PlayerModel | None:
        player_db = self._fetch_player(player_id)
        if not player_db:
            return None
        try:
            player_db.score = score
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(
                f"Could not update score of player {player_id}: {exc}"
            ) from exc
        self.db.refresh(player_db)
        return self._to_model(player_db)

    def add_player(self, player: PlayerModel) -> PlayerModel:
        player_db = DBPlayer(
            id=player.player_id,
            email=player.email,
            name=player.name,
            score=player.score,
            preferred_locale=player.preferred_locale,
            unsubscribe_date=player.unsubscribe_date,
        )
        try:
            self.db.add(player_db)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise RepositoryError(
                f"Could not store player {player.player_id}: {exc}"
            ) from exc
        self.db.refresh(player_db)
        return self._to_model(player_db)

    def _fetch_player(self, player_id: PlayerId) -> DBPlayer | None:
        try:
            return self.db.scalar(
                select(DBPlayer)
                .where(DBPlayer.id == player_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as exc:
            raise RepositoryError(f"Player query failed: {exc}") from exc

    def _to_model(self, player_db: DBPlayer) -> PlayerModel:
        return PlayerModel(
            player_id=player_db.id,
            email=player_db.email,
            name=player_db.name,
            score=player_db.score,
            preferred_locale=player_db.preferred_locale,
            unsubscribe_date=as_utc(player_db.unsubscribe_date),
        )
