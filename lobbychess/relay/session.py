"""
One relay-managed pairing of (at most) two peers sharing a single game.

The coordinator owns one Session per session id. Each session carries its own lock:
events for the same session are processed one after the other, different sessions never wait on each other.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

from lobbychess.chess.game import Game
from lobbychess.core.models import SessionModel
from lobbychess.core.shared_types import Color, SessionStatus
from lobbychess.relay.events import Event, PlayerInfo

log = logging.getLogger("lobbychess.relay.session")

MAX_PLAYERS = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PeerConnection(Protocol):
    """Just the parts of a client connection the relay needs"""

    peer_id: str

    @property
    def connected(self) -> bool: ...

    async def send(self, event: Event) -> None: ...


@dataclass
class Player:
    peer: PeerConnection
    color: Color

    @property
    def peer_id(self) -> str:
        return self.peer.peer_id

    def to_info(self) -> PlayerInfo:
        return PlayerInfo(id=self.peer_id, color=self.color)


@dataclass
class Session:
    session_id: str
    game: Game
    players: list[Player] = field(default_factory=list)
    status: SessionStatus = SessionStatus.EMPTY
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    teardown_task: Optional[asyncio.Task] = None
    created_at: datetime = field(default_factory=utc_now)
    last_activity: datetime = field(default_factory=utc_now)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def player(self, peer_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.peer_id == peer_id), None)

    def next_color(self) -> Color:
        """The first player gets white. The second one gets whatever is left."""
        if not self.players:
            return Color.WHITE
        return self.players[0].color.opponent

    def prune_disconnected(self) -> list[Player]:
        """Drop members whose connection has gone away without a leave/disconnect event reaching us."""
        stale = [p for p in self.players if not p.peer.connected]
        for player in stale:
            log.info(
                "Pruning stale player",
                extra={"session_id": self.session_id, "peer_id": player.peer_id},
            )
            self.players.remove(player)
        return stale

    def touch(self) -> None:
        self.last_activity = utc_now()

    async def broadcast(self, event: Event) -> None:
        """Send to every member, the sender of whatever caused the event included."""
        for player in list(self.players):
            await player.peer.send(event)

    def to_model(self) -> SessionModel:
        return SessionModel(
            session_id=self.session_id,
            status=str(self.status),
            players={str(p.color): p.peer_id for p in self.players},
            position=self.game.to_fen(),
            moves_uci=self.game.moves_uci,
            last_activity=self.last_activity,
            created_at=self.created_at,
        )

    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "status": str(self.status),
            "players": [p.to_info().to_wire() for p in self.players],
            "position": self.game.to_fen(),
            "moves": len(self.game.history),
            "game_status": str(self.game.status),
        }
