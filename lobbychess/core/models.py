"""
Boundary layer data model(s).

The relay hands a SessionModel to the bookkeeping store after every transition.
(Decouples the coordinator's live objects from whatever the persistence layer stores)
"""

from dataclasses import dataclass, field
from datetime import datetime

# Type aliases to make SessionModel easier to read
PieceColor = str
PeerId = str


@dataclass
class SessionModel:
    """Transport-safe snapshot of a live session."""

    session_id: str
    status: str
    players: dict[PieceColor, PeerId]
    position: str
    moves_uci: list[str] = field(default_factory=list)
    last_activity: datetime | None = None
    created_at: datetime | None = None
