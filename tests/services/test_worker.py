"""Unit tests for autoresign/services/worker.py and the process entry point"""

from datetime import timedelta
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy import Engine, create_engine

from autoresign import main as entrypoint
from autoresign.core.config import WorkerSettings
from autoresign.core.exceptions import GameStateError, RepositoryError
from autoresign.core.models import GameQuery, PlayerModel
from autoresign.core.shared_types import DeliveryStatus, GameResult
from autoresign.db.database import create_session_factory
from autoresign.db.schema import DBGame
from autoresign.db.sql_repository import SQLGameRepository, SQLPlayerRepository
from autoresign.services.scanner import StaleGameScanner
from autoresign.services.worker import AutoResignWorker, WorkerContext
from tests.fakes import NOW, FakeChannel, make_game

SETTINGS = WorkerSettings(
    database_url="sqlite://",
    mailjet_api_key="key",
    mailjet_secret_key="secret",
    poll_interval_secs=0.01,
)
FIVE_MOVES = ["w1", "b1", "w1", "b1", "w1"]


@pytest.fixture
def context(db_engine: Engine, channel: FakeChannel) -> WorkerContext:
    return WorkerContext(
        settings=SETTINGS,
        engine=db_engine,
        session_factory=create_session_factory(db_engine),
        channel=channel,
    )


@pytest.fixture
def repos(context: WorkerContext) -> Generator:
    with context.session_factory() as session:
        players = SQLPlayerRepository(session)
        for player_id in ["w1", "b1"]:
            players.add_player(
                PlayerModel(player_id, f"{player_id}@example.com", name=player_id, score=10.0)
            )
        yield SQLGameRepository(session), players


def test_tick_notifies_then_resolves(
    context: WorkerContext, repos, channel: FakeChannel
) -> None:
    games, players = repos
    stale = games.add_game(make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50)))
    # 4 moves: white to move, white forfeits
    due = games.add_game(
        make_game(
            movers=FIVE_MOVES[:4],
            last_move_date=NOW - timedelta(hours=80),
            notified=NOW - timedelta(hours=25),
        )
    )

    report = AutoResignWorker(context).tick(NOW)

    assert report is not None
    assert report.claimed == [stale.game_id]
    # 5 moves: black to move, so only b1 gets a reminder
    assert [(d.player_id, d.status) for d in report.deliveries] == [("b1", DeliveryStatus.SENT)]
    assert "24 hours" in channel.sent[0].text_body
    assert report.resolution.resolved == {due.game_id: GameResult.BLACK_WINS}
    assert report.aborted_phases == []

    assert games.get_game(stale.game_id).auto_resign_notification_date == NOW
    assert games.get_game(due.game_id).result == GameResult.BLACK_WINS
    assert players.get_player("w1").score == pytest.approx(0.0)
    assert players.get_player("b1").score == pytest.approx(20.0)


def test_claimed_game_not_notified_twice(
    context: WorkerContext, repos, channel: FakeChannel
) -> None:
    games, _ = repos
    games.add_game(make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50)))
    worker = AutoResignWorker(context)

    worker.tick(NOW)
    second = worker.tick(NOW + timedelta(minutes=2))

    assert second.claimed == []
    assert len(channel.attempts) == 1


def test_notified_game_resolved_after_delay(context: WorkerContext, repos) -> None:
    games, _ = repos
    game = games.add_game(make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50)))
    worker = AutoResignWorker(context)

    worker.tick(NOW)
    early = worker.tick(NOW + timedelta(hours=23))
    late = worker.tick(NOW + timedelta(hours=25))

    assert early.resolution.resolved == {}
    assert late.resolution.resolved == {game.game_id: GameResult.WHITE_WINS}

    # terminal: nothing happens anymore
    latest = worker.tick(NOW + timedelta(days=10))
    assert latest.claimed == []
    assert latest.resolution.resolved == {}


def test_failed_delivery_keeps_claim(db_engine: Engine, repos) -> None:
    channel = FakeChannel(failing=["b1@example.com"])
    context = WorkerContext(SETTINGS, db_engine, create_session_factory(db_engine), channel)
    games, _ = repos
    game = games.add_game(make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50)))

    report = AutoResignWorker(context).tick(NOW)

    assert report.deliveries[0].status == DeliveryStatus.FAILED
    assert games.get_game(game.game_id).auto_resign_notification_date == NOW


def test_skip_if_busy(context: WorkerContext) -> None:
    worker = AutoResignWorker(context)
    worker._busy = True
    assert worker.tick(NOW) is None


@pytest.mark.parametrize(
    "error", [RepositoryError("connection reset"), GameStateError("unknown side")]
)
def test_store_failure_aborts_only_that_phase(
    error: Exception, context: WorkerContext, repos, monkeypatch: pytest.MonkeyPatch
) -> None:
    games, _ = repos
    due = games.add_game(make_game(movers=[], notified=NOW - timedelta(hours=25)))

    def broken_claim(self, now):
        raise error

    monkeypatch.setattr(StaleGameScanner, "claim_notification_candidates", broken_claim)
    worker = AutoResignWorker(context)

    report = worker.tick(NOW)

    assert report.aborted_phases == ["notification"]
    assert report.resolution.resolved == {due.game_id: GameResult.BLACK_WINS}
    # the busy flag is released, the next tick runs
    assert worker.tick(NOW) is not None


def test_bad_game_does_not_stop_notifications(
    context: WorkerContext, repos, channel: FakeChannel
) -> None:
    games, _ = repos
    broken = make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50))
    broken.history[-1].fen = "garbage"
    broken = games.add_game(broken)
    fine = games.add_game(make_game(movers=FIVE_MOVES, last_move_date=NOW - timedelta(hours=50)))

    report = AutoResignWorker(context).tick(NOW)

    assert set(report.claimed) == {broken.game_id, fine.game_id}
    assert list(report.notification_failures) == [broken.game_id]
    assert len(channel.sent) == 1


def test_corrupt_row_does_not_stop_the_tick(context: WorkerContext, repos) -> None:
    games, _ = repos
    games.db.add(
        DBGame(
            id=uuid4(),
            players={"red": ["w1"], "black": ["b1"]},
            auto_resign_notification_date=NOW - timedelta(hours=25),
        )
    )
    games.db.commit()
    due = games.add_game(make_game(movers=[], notified=NOW - timedelta(hours=25)))

    report = AutoResignWorker(context).tick(NOW)

    assert report is not None
    assert report.aborted_phases == []
    assert report.resolution.resolved == {due.game_id: GameResult.BLACK_WINS}


def test_run_until_stopped(context: WorkerContext, monkeypatch: pytest.MonkeyPatch) -> None:
    worker = AutoResignWorker(context)
    ticks = []

    def counting_tick(now=None):
        ticks.append(now)
        if len(ticks) == 3:
            worker.stop()

    monkeypatch.setattr(worker, "tick", counting_tick)
    worker.run()

    assert len(ticks) == 3
    assert worker.stopping


def test_context_close_releases_resources(channel: FakeChannel) -> None:
    engine = create_engine("sqlite://")
    context = WorkerContext(SETTINGS, engine, create_session_factory(engine), channel)
    context.close()
    assert channel.closed


def test_context_from_settings(tmp_path) -> None:
    settings = SETTINGS.model_copy(update={"database_url": f"sqlite:///{tmp_path / 'worker.db'}"})
    context = WorkerContext.from_settings(settings)
    try:
        with context.repositories() as (games, players):
            assert games.find_games(GameQuery()) == []
            assert players.get_players([]) == []
    finally:
        context.close()


def test_main_refuses_to_start_without_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    for name in ["DATABASE_URL", "MAILJET_API_KEY", "MAILJET_SECRET_KEY"]:
        monkeypatch.delenv(name, raising=False)

    def must_not_run(self):
        raise AssertionError("poll loop entered")

    monkeypatch.setattr(AutoResignWorker, "run", must_not_run)
    monkeypatch.setattr(entrypoint, "configure_logging", lambda level: None)
    assert entrypoint.main() == 1


def test_main_refuses_to_start_with_unusable_store(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "not a database url")
    monkeypatch.setenv("MAILJET_API_KEY", "key")
    monkeypatch.setenv("MAILJET_SECRET_KEY", "secret")

    def must_not_run(self):
        raise AssertionError("poll loop entered")

    monkeypatch.setattr(AutoResignWorker, "run", must_not_run)
    monkeypatch.setattr(entrypoint, "configure_logging", lambda level: None)

    assert entrypoint.main() == 1
    assert "Refusing to start" in caplog.messages
