"""Implementation of SessionRepository using SQLAlchemy"""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lobbychess.core.exceptions import RepositoryError
from lobbychess.core.models import SessionModel
from lobbychess.db.schema import DBSession, utc_now


def _as_utc(moment: datetime) -> datetime:
    """SQLite hands datetimes back without their timezone. Everything is stored in UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class SQLSessionRepository:
    """
    Data stored using SQL / methods implemented using SQLAlchemy

    The relay shares one db session between all of its game sessions:
    a failed write is rolled back before it is reported, so the next write starts clean.
    """

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_session(self, session_id: str) -> SessionModel | None:
        """Get session by ID, if record exists."""
        session_db = self._fetch_session(session_id)
        if session_db:
            return self._to_model(session_db)
        return None

    def save_session(self, session: SessionModel) -> SessionModel:
        """Create the record, or overwrite the existing one with the same ID."""
        try:
            session_db = self._fetch_session(session.session_id)
            if session_db is None:
                session_db = DBSession(
                    id=session.session_id, created_at=session.created_at or utc_now()
                )
                self.db.add(session_db)
            session_db.status = session.status
            session_db.players = dict(session.players)
            session_db.position = session.position
            session_db.moves_uci = list(session.moves_uci)
            session_db.last_activity = session.last_activity or utc_now()
            self.db.commit()
            self.db.refresh(session_db)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(
                f"Could not save session {session.session_id!r}: {e}"
            ) from e
        return self._to_model(session_db)

    def delete_session(self, session_id: str) -> SessionModel | None:
        """Remove a session's record."""
        try:
            session_db = self._fetch_session(session_id)
            if not session_db:
                return None
            session_model = self._to_model(session_db)
            self.db.delete(session_db)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Could not delete session {session_id!r}: {e}") from e
        return session_model

    def list_idle(self, before: datetime) -> list[str]:
        query = select(DBSession.id).where(DBSession.last_activity < before)
        try:
            return list(self.db.scalars(query))
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError(f"Could not list idle sessions: {e}") from e

    def _fetch_session(self, session_id: str) -> DBSession | None:
        query = select(DBSession).where(DBSession.id == session_id)
        return self.db.scalar(query)

    def _to_model(self, session_db: DBSession) -> SessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return SessionModel(
            session_id=session_db.id,
            status=session_db.status,
            players=dict(session_db.players),
            position=session_db.position,
            moves_uci=list(session_db.moves_uci),
            last_activity=_as_utc(session_db.last_activity),
            created_at=_as_utc(session_db.created_at),
        )
