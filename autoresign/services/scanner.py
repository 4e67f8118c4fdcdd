"""Stale-Game Scanner: finds games for both phases of the auto-resign timeout."""

import logging
from datetime import datetime, timedelta

from autoresign.core.models import GameModel, GameQuery
from autoresign.db.repository import GameRepository

logger = logging.getLogger(__name__)


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value!r}")


def notification_query(
    now: datetime, notify_threshold_hours: float, min_history_length: int
) -> GameQuery:
    """Unfinished, not yet notified games whose last move is older than the threshold and that have enough history."""
    _require_non_negative("notify_threshold_hours", notify_threshold_hours)
    _require_non_negative("min_history_length", min_history_length)
    return GameQuery(
        result_unset=True,
        notification_unset=True,
        last_move_before=now - timedelta(hours=notify_threshold_hours),
        min_history_length=min_history_length,
    )


def resolution_query(now: datetime, resolve_delay_hours: float) -> GameQuery:
    """Unfinished games notified longer ago than the resolution delay."""
    _require_non_negative("resolve_delay_hours", resolve_delay_hours)
    return GameQuery(
        result_unset=True,
        notified_before=now - timedelta(hours=resolve_delay_hours),
    )


class StaleGameScanner:
    def __init__(
        self,
        games: GameRepository,
        notify_threshold_hours: float,
        resolve_delay_hours: float,
        min_history_length: int,
    ) -> None:
        _require_non_negative("notify_threshold_hours", notify_threshold_hours)
        _require_non_negative("resolve_delay_hours", resolve_delay_hours)
        _require_non_negative("min_history_length", min_history_length)
        self.games = games
        self.notify_threshold_hours = notify_threshold_hours
        self.resolve_delay_hours = resolve_delay_hours
        self.min_history_length = min_history_length

    def find_notification_candidates(self, now: datetime) -> list[GameModel]:
        query = notification_query(
            now, self.notify_threshold_hours, self.min_history_length
        )
        return self.games.find_games(query)

    def claim_notification_candidates(self, now: datetime) -> list[GameModel]:
        """
        Select the notification candidates and stamp them as notified in one batch, before anything is sent.
        ----
        A claimed game stays claimed even if its reminders fail, so no later query picks it up again.
        """
        candidates = self.find_notification_candidates(now)
        if not candidates:
            return []

        claimed = self.games.mark_notified([game.game_id for game in candidates], now)
        meta = {"candidates": len(candidates), "claimed": claimed}
        if claimed != len(candidates):
            # rows changed or vanished between the query and the stamp
            logger.warning("Not every candidate could be claimed", extra={"meta": meta})
        else:
            logger.info("Claimed games for auto-resign notification", extra={"meta": meta})
        for game in candidates:
            game.auto_resign_notification_date = now
        return candidates

    def find_resolution_candidates(self, now: datetime) -> list[GameModel]:
        return self.games.find_games(resolution_query(now, self.resolve_delay_hours))
