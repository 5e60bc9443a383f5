"""
Client side of the relay protocol: keeps one local Game in step with the events the relay sends.

Relayed moves are replayed by their coordinates on the local Game, strictly in the order they arrive.
The relayed position is only used to detect (and repair) a local game that drifted away.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from lobbychess.chess.game import Game
from lobbychess.chess.moves import MoveRecord
from lobbychess.core.exceptions import GameError
from lobbychess.core.shared_types import Color, PromotionPolicy, SessionStatus
from lobbychess.relay.events import (
    ErrorNotice,
    LobbyFull,
    MoveRelayed,
    PeerLeft,
    PromotionRequired,
    RelayEvent,
    SessionEnded,
    SessionReset,
    SessionStart,
    WaitingForPeer,
    parse_relay_event,
)

log = logging.getLogger("lobbychess.client")


@dataclass
class GameMirror:
    promotion_policy: PromotionPolicy = PromotionPolicy.AUTO_QUEEN
    game: Game = field(init=False)
    color: Optional[Color] = None
    session_id: Optional[str] = None
    status: SessionStatus = SessionStatus.EMPTY
    outcome: Optional[SessionEnded] = None
    last_error: Optional[str] = None
    resyncs: int = 0

    def __post_init__(self) -> None:
        self.game = Game.new_game(promotion_policy=self.promotion_policy)

    @property
    def is_my_turn(self) -> bool:
        return (
            self.status == SessionStatus.ACTIVE
            and not self.game.status.is_terminal
            and self.color == self.game.turn
        )

    def handle(self, event: RelayEvent | str | bytes | dict[str, Any]) -> Optional[MoveRecord]:
        """Apply one relay event. Returns the MoveRecord when the event was a relayed move."""
        if isinstance(event, (str, bytes, dict)):
            event = parse_relay_event(event)
        handler = self._handlers()[type(event)]
        return handler(event)

    def _handlers(self) -> dict[type, Callable[[Any], Optional[MoveRecord]]]:
        return {
            WaitingForPeer: self._on_waiting,
            SessionStart: self._on_start,
            MoveRelayed: self._on_move,
            PeerLeft: self._on_peer_left,
            SessionEnded: self._on_ended,
            SessionReset: self._on_reset,
            LobbyFull: self._on_lobby_full,
            PromotionRequired: self._on_promotion_required,
            ErrorNotice: self._on_error,
        }

    # -- EVENT HANDLERS ---
    def _on_waiting(self, event: WaitingForPeer) -> None:
        self.session_id = event.session_id
        self.color = event.color
        self.status = SessionStatus.WAITING_FOR_SECOND

    def _on_start(self, event: SessionStart) -> None:
        self.session_id = event.session_id
        self.color = event.color
        self.status = SessionStatus.ACTIVE
        self.outcome = None
        self.game.load_fen(event.position)

    def _on_move(self, event: MoveRelayed) -> Optional[MoveRecord]:
        try:
            record = self.game.apply_move(event.from_, event.to, event.promoted_to)
        except GameError as e:
            log.warning("Relayed move %s%s rejected locally: %s", event.from_, event.to, e)
            self._resync(event.position)
            return None

        if record.position != event.position:
            log.warning(
                "Local position %r differs from relayed %r", record.position, event.position
            )
            self._resync(event.position)
        return record

    def _on_peer_left(self, event: PeerLeft) -> None:
        self.status = SessionStatus.ENDED

    def _on_ended(self, event: SessionEnded) -> None:
        self.status = SessionStatus.ENDED
        self.outcome = event

    def _on_reset(self, event: SessionReset) -> None:
        self.game.reset()
        self.status = SessionStatus.EMPTY
        self.color = None
        self.session_id = None

    def _on_lobby_full(self, event: LobbyFull) -> None:
        self.last_error = "lobby full"

    def _on_promotion_required(self, event: PromotionRequired) -> None:
        self.last_error = f"promotion required for {event.from_}{event.to}"

    def _on_error(self, event: ErrorNotice) -> None:
        self.last_error = event.message

    def _resync(self, position: str) -> None:
        self.resyncs += 1
        self.game.load_fen(position)
