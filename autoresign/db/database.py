"""Generate database engine / sessions"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from autoresign.core.exceptions import RepositoryError
from autoresign.db.schema import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Connect to the store and ensure all tables are created."""
    try:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
        Base.metadata.create_all(bind=engine)
    except (SQLAlchemyError, ImportError) as exc:
        # ImportError: the URL names a driver that is not installed
        raise RepositoryError(f"Cannot open store: {exc}") from exc
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False)
