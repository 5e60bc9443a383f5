"""Protocol repository for the relay's session bookkeeping"""

from datetime import datetime
from typing import Protocol

from lobbychess.core.models import SessionModel


class SessionRepository(Protocol):
    """Persistence layer orchestration. Failing writes raise RepositoryError."""

    def get_session(self, session_id: str) -> SessionModel | None:
        """Get session by ID, if record exists."""
        ...

    def save_session(self, session: SessionModel) -> SessionModel:
        """Create the record, or overwrite the existing one with the same ID."""
        ...

    def delete_session(self, session_id: str) -> SessionModel | None:
        """Remove a session's record."""
        ...

    def list_idle(self, before: datetime) -> list[str]:
        """IDs of the sessions without any activity since `before`."""
        ...
