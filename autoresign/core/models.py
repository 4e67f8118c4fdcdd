"""
Boundary layer data model(s).

These objects are passed between the services (scanner, resolver, dispatcher) and the persistence layer.
The db layer converts its SQLAlchemy rows into these dataclasses, so the services can be tested against in-memory fakes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from autoresign.core.shared_types import Color, DeliveryStatus, GameResult

# Type aliases to make the models easier to read
PlayerId = str
FEN = str


@dataclass
class MoveRecord:
    """One entry of a game's history. A move without player_id was applied by the system."""

    fen: FEN
    played_at: datetime
    player_id: Optional[PlayerId] = None


@dataclass
class GameModel:
    """Transport-safe representation of a stored team game."""

    game_id: UUID
    players: dict[Color, list[PlayerId]]
    history: list[MoveRecord] = field(default_factory=list)
    result: Optional[GameResult] = None
    last_move_date: Optional[datetime] = None
    auto_resign_notification_date: Optional[datetime] = None
    resolved_date: Optional[datetime] = None

    @property
    def positions(self) -> list[FEN]:
        return [move.fen for move in self.history]

    def roster(self, color: Color) -> list[PlayerId]:
        return self.players.get(color, [])


@dataclass
class PlayerModel:
    player_id: PlayerId
    email: str
    name: Optional[str] = None
    score: float = 0.0
    preferred_locale: Optional[str] = None
    unsubscribe_date: Optional[datetime] = None

    @property
    def opted_out(self) -> bool:
        return self.unsubscribe_date is not None


@dataclass(frozen=True)
class GameQuery:
    """
    Filter on stored games. Every criterion left at its default does not constrain the result.
    ----
    Built by the scanner, executed by a GameRepository.
    """

    result_unset: bool = False
    notification_unset: bool = False
    notified_before: Optional[datetime] = None
    last_move_before: Optional[datetime] = None
    min_history_length: int = 0


@dataclass(frozen=True)
class NotificationRequest:
    """Ephemeral: its only effect is a send attempt."""

    game_id: UUID
    player: PlayerModel
    delay_hours: float


# --- per-item results collected into batch reports ---
@dataclass(frozen=True)
class SendResult:
    ok: bool
    diagnostic: Optional[str] = None


@dataclass(frozen=True)
class DeliveryOutcome:
    game_id: UUID
    player_id: PlayerId
    status: DeliveryStatus
    diagnostic: Optional[str] = None


@dataclass(frozen=True)
class ScoreOutcome:
    game_id: UUID
    player_id: PlayerId
    delta: float
    new_score: Optional[float] = None
    diagnostic: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.diagnostic is None
