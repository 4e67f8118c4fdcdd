"""
Shared fixtures: an in-memory SQLite store for the SQL repositories and the worker,
plus in-memory fakes for the services that only need the repository Protocols.
"""

from typing import Generator

import pytest
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import Session

from autoresign.chess.rules import FENRulesEngine
from autoresign.db.database import create_session_factory
from autoresign.db.schema import Base
from tests.fakes import FakeChannel, FakeGameRepository, FakePlayerRepository


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """One in-memory database per test, shared by every session through a StaticPool."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session_repo(db_engine: Engine) -> Generator[Session, None, None]:
    db = create_session_factory(db_engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def game_repository() -> FakeGameRepository:
    return FakeGameRepository()


@pytest.fixture
def player_repository() -> FakePlayerRepository:
    return FakePlayerRepository()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def rules() -> FENRulesEngine:
    return FENRulesEngine()
