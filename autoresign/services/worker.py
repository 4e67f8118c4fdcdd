"""
Poll Loop: every interval, run the notification phase, then the resolution phase.

The worker owns nothing global: store engine and e-mail channel live in a WorkerContext created at startup
and closed on shutdown.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Optional, Self
from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from autoresign.chess.rules import FENRulesEngine, RulesEngine
from autoresign.core.config import WorkerSettings
from autoresign.core.exceptions import GameError
from autoresign.core.models import DeliveryOutcome
from autoresign.db.database import create_db_engine, create_session_factory
from autoresign.db.repository import GameRepository, PlayerRepository
from autoresign.db.sql_repository import SQLGameRepository, SQLPlayerRepository
from autoresign.notifications.dispatcher import NotificationDispatcher
from autoresign.notifications.email import EmailChannel, MailjetChannel
from autoresign.services.resolver import AutoResignResolver, ResolutionReport
from autoresign.services.scanner import StaleGameScanner

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WorkerContext:
    """Connection handles owned by the worker process."""

    settings: WorkerSettings
    engine: Engine
    session_factory: sessionmaker[Session]
    channel: EmailChannel
    rules: RulesEngine = field(default_factory=FENRulesEngine)

    @classmethod
    def from_settings(cls, settings: WorkerSettings) -> Self:
        engine = create_db_engine(settings.database_url)
        channel = MailjetChannel(
            api_key=settings.mailjet_api_key,
            secret_key=settings.mailjet_secret_key,
            sender_email=settings.sender_email,
            sender_name=settings.sender_name,
        )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_factory(engine),
            channel=channel,
        )

    @contextmanager
    def repositories(self) -> Iterator[tuple[GameRepository, PlayerRepository]]:
        """One session per tick."""
        with self.session_factory() as session:
            yield SQLGameRepository(session), SQLPlayerRepository(session)

    def close(self) -> None:
        self.channel.close()
        self.engine.dispose()


@dataclass
class TickReport:
    started_at: datetime
    claimed: list[UUID] = field(default_factory=list)
    deliveries: list[DeliveryOutcome] = field(default_factory=list)
    notification_failures: dict[UUID, str] = field(default_factory=dict)
    resolution: Optional[ResolutionReport] = None
    aborted_phases: list[str] = field(default_factory=list)


class AutoResignWorker:
    def __init__(self, context: WorkerContext) -> None:
        self.context = context
        self.settings = context.settings
        self._busy = False
        self._stopping = threading.Event()

    # -- loop control --
    def run(self) -> None:
        """Tick every poll interval until stop() is called."""
        logger.info(
            "Auto-resign worker started",
            extra={"meta": {"pollIntervalSecs": self.settings.poll_interval_secs}},
        )
        while not self._stopping.is_set():
            self.tick()
            self._stopping.wait(self.settings.poll_interval_secs)
        logger.info("Auto-resign worker stopped")

    def stop(self) -> None:
        """No new ticks get scheduled. A running tick finishes on its own."""
        self._stopping.set()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    # -- one cycle --
    def tick(self, now: Optional[datetime] = None) -> Optional[TickReport]:
        """Run both phases once. Returns None when the previous tick is still busy."""
        if self._busy:
            logger.warning("Previous tick still running, skipping this one")
            return None

        self._busy = True
        try:
            report = TickReport(started_at=now or utc_now())
            with self.context.repositories() as (games, players):
                scanner = StaleGameScanner(
                    games,
                    notify_threshold_hours=self.settings.notify_threshold_hours,
                    resolve_delay_hours=self.settings.resolve_delay_hours,
                    min_history_length=self.settings.min_history_length,
                )
                self._notification_phase(scanner, players, report)
                self._resolution_phase(scanner, games, players, report)
            self._log_summary(report)
            return report
        finally:
            self._busy = False

    def _notification_phase(
        self,
        scanner: StaleGameScanner,
        players: PlayerRepository,
        report: TickReport,
    ) -> None:
        try:
            claimed = scanner.claim_notification_candidates(report.started_at)
        except GameError as exc:
            self._abort_phase("notification", exc, report)
            return

        dispatcher = NotificationDispatcher(
            channel=self.context.channel,
            players=players,
            rules=self.context.rules,
            base_url=self.settings.app_base_url,
            unsubscribe_base_url=self.settings.unsubscribe_base_url,
        )
        for game in claimed:
            report.claimed.append(game.game_id)
            try:
                report.deliveries.extend(
                    dispatcher.notify_game(game, self.settings.resolve_delay_hours)
                )
            except GameError as exc:
                report.notification_failures[game.game_id] = str(exc)
                logger.error(
                    "Could not notify players of game",
                    extra={"meta": {"gameId": str(game.game_id), "error": str(exc)}},
                )

    def _resolution_phase(
        self,
        scanner: StaleGameScanner,
        games: GameRepository,
        players: PlayerRepository,
        report: TickReport,
    ) -> None:
        try:
            candidates = scanner.find_resolution_candidates(report.started_at)
        except GameError as exc:
            self._abort_phase("resolution", exc, report)
            return

        resolver = AutoResignResolver(games, players, self.context.rules)
        report.resolution = resolver.resolve_all(candidates, report.started_at)

    @staticmethod
    def _abort_phase(phase: str, exc: GameError, report: TickReport) -> None:
        report.aborted_phases.append(phase)
        logger.error(
            "Phase aborted until next tick",
            extra={"meta": {"phase": phase, "error": str(exc)}},
        )

    @staticmethod
    def _log_summary(report: TickReport) -> None:
        resolution = report.resolution
        logger.info(
            "Tick finished",
            extra={
                "meta": {
                    "claimed": len(report.claimed),
                    "deliveries": len(report.deliveries),
                    "resolved": len(resolution.resolved) if resolution else 0,
                    "failedGames": len(resolution.failed) if resolution else 0,
                    "abortedPhases": report.aborted_phases,
                }
            },
        )
