"""Generate database engine / sessions for the session bookkeeping store"""

from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from lobbychess.db.schema import Base


def is_local_store(database_url: str) -> bool:
    """The relay writes synchronously from the event loop: only a SQLite store keeps that cheap."""
    return database_url.startswith("sqlite")


def build_engine(database_url: str) -> Engine:
    """An in-memory SQLite database must be shared by every connection, hence the StaticPool."""
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autoflush=False, bind=engine)
