"""Protocol repositories: the store capabilities the services rely on (SQLAlchemy implementation, in-memory fakes in tests)."""

from datetime import datetime
from typing import Iterable, Protocol
from uuid import UUID

from autoresign.core.models import GameModel, GameQuery, PlayerId, PlayerModel
from autoresign.core.shared_types import GameResult


class GameRepository(Protocol):
    """Persistence of games"""

    def find_games(self, query: GameQuery) -> list[GameModel]:
        """All games matching the query, in no particular order."""
        ...

    def mark_notified(self, game_ids: Iterable[UUID], when: datetime) -> int:
        """Batch update: stamp the auto-resign notification date. Returns the number of games updated."""
        ...

    def resolve_game(self, game_id: UUID, result: GameResult, when: datetime) -> bool:
        """
        Set the final result, clear the notification date and stamp the resolution date.
        Only applies to a game without result that is still pending notification. Returns whether the write happened.
        """
        ...


class PlayerRepository(Protocol):
    """Persistence of players"""

    def get_player(self, player_id: PlayerId) -> PlayerModel | None:
        """Get player by ID, if record exists."""
        ...

    def get_players(self, player_ids: Iterable[PlayerId]) -> list[PlayerModel]:
        """Players for the known IDs, unknown IDs are left out."""
        ...

    def update_score(self, player_id: PlayerId, score: float) -> PlayerModel | None:
        """Overwrite the cumulative score."""
        ...
