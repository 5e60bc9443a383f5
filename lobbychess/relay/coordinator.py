"""
Orchestration of the relay: pairs peers into sessions, and relays moves between them.

Moves are never taken on trust. The coordinator re-validates every submission with the session's own Game,
and broadcasts the result of that Game (not the flags the sender claimed) to every member, the sender included.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional

from lobbychess.chess.game import Game
from lobbychess.chess.moves import MoveRecord
from lobbychess.core.config import Settings
from lobbychess.core.exceptions import (
    GameError,
    LobbyFullError,
    NotAPlayerError,
    OutOfTurnError,
    PromotionRequiredError,
    RepositoryError,
    SessionError,
    SessionNotActiveError,
)
from lobbychess.core.metrics import RelayMetrics
from lobbychess.core.shared_types import SessionStatus
from lobbychess.db.repository import SessionRepository
from lobbychess.relay.events import (
    ClientEvent,
    ErrorNotice,
    JoinSession,
    LeaveSession,
    LobbyFull,
    MoveRelayed,
    PeerLeft,
    PromotionRequired,
    SessionEnded,
    SessionReset,
    SessionStart,
    SubmitMove,
    WaitingForPeer,
)
from lobbychess.relay.session import PeerConnection, Player, Session, utc_now

log = logging.getLogger("lobbychess.relay")

DEFAULT_SESSION_ID = "default"


class SessionCoordinator:
    """Registry of sessions keyed by session id, plus the rules for moving between session states."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        repository: Optional[SessionRepository] = None,
        metrics: Optional[RelayMetrics] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.repo = repository
        self.metrics = metrics or RelayMetrics()
        self.sessions: dict[str, Session] = {}
        self.peer_sessions: dict[str, str] = {}

    # -- ENTRYPOINT FOR THE TRANSPORT ---
    async def handle(
        self,
        peer: PeerConnection,
        event: ClientEvent,
        session_id: str = DEFAULT_SESSION_ID,
    ) -> None:
        """Dispatch a parsed client event"""
        if isinstance(event, JoinSession):
            await self.join(peer, session_id)
        elif isinstance(event, SubmitMove):
            await self.submit_move(peer, event)
        elif isinstance(event, LeaveSession):
            await self.leave(peer)

    async def join(
        self, peer: PeerConnection, session_id: str = DEFAULT_SESSION_ID
    ) -> None:
        """
        empty --> waiting-for-second (first peer, white)
        waiting-for-second --> active (second peer, black). Both members get a session-start.
        Anybody else is refused.
        """
        current = self.peer_sessions.get(peer.peer_id)
        if current is not None:
            await self._reject(peer, f"Already joined session {current!r}.")
            return

        session = self._get_or_create_session(session_id)
        async with session.lock:
            if self.sessions.get(session_id) is not session:
                # torn down while we were waiting for the lock: start over on a fresh session
                await self.join(peer, session_id)
                return

            stale = session.prune_disconnected()
            for player in stale:
                self.peer_sessions.pop(player.peer_id, None)
            if stale and session.status == SessionStatus.ACTIVE:
                await self._end_by_departure(session, stale[0])

            try:
                player = self._admit(session, peer)
            except LobbyFullError:
                log.info(
                    "Lobby full, refusing peer",
                    extra={"session_id": session_id, "peer_id": peer.peer_id},
                )
                self.metrics.increment("lobby_full")
                await peer.send(LobbyFull())
                return
            except SessionError as e:
                await self._reject(peer, str(e))
                return

            self.peer_sessions[peer.peer_id] = session_id
            session.touch()
            log.info(
                "Player joined as %s. Total players: %d",
                player.color,
                len(session.players),
                extra={"session_id": session_id, "peer_id": peer.peer_id},
            )

            if not session.is_full:
                session.status = SessionStatus.WAITING_FOR_SECOND
                await peer.send(
                    WaitingForPeer(session_id=session_id, color=player.color)
                )
            else:
                await self._start(session)
            self._save(session)

    async def submit_move(self, peer: PeerConnection, event: SubmitMove) -> None:
        """Validate with the relay's own Game, then broadcast. Rejections only reach the sender."""
        session = self._session_of(peer)
        if session is None:
            await self._reject(peer, "Not in a session.")
            return

        async with session.lock:
            try:
                with self.metrics.timer("move_validation"):
                    record = self._apply_submission(session, peer, event)
            except PromotionRequiredError:
                await peer.send(PromotionRequired(from_=event.from_, to=event.to))
                return
            except (SessionError, GameError) as e:
                self.metrics.increment("moves_rejected")
                log.info(
                    "Rejected move %s%s: %s",
                    event.from_,
                    event.to,
                    e,
                    extra={"session_id": session.session_id, "peer_id": peer.peer_id},
                )
                await self._reject(peer, str(e))
                return

            self.metrics.increment("moves_relayed")
            session.touch()
            game = session.game
            await session.broadcast(MoveRelayed.from_record(record, game.status))

            if game.status.is_terminal:
                log.info(
                    "Game over: %s",
                    game.status,
                    extra={"session_id": session.session_id},
                )
                session.status = SessionStatus.ENDED
                self.metrics.increment("sessions_ended")
                await session.broadcast(
                    SessionEnded.from_status(game.status, game.winner)
                )
                self._schedule_teardown(session)
            self._save(session)

    async def leave(self, peer: PeerConnection) -> None:
        """Explicit leave and a dropped connection are handled the same way."""
        session = self._session_of(peer)
        self.peer_sessions.pop(peer.peer_id, None)
        if session is None:
            return

        async with session.lock:
            player = session.player(peer.peer_id)
            if player is None:
                return
            session.players.remove(player)
            log.info(
                "Removing player %s (%s)",
                player.peer_id,
                player.color,
                extra={"session_id": session.session_id},
            )

            if not session.players:
                self._remove_session(session)
                return

            if session.status == SessionStatus.ACTIVE:
                await self._end_by_departure(session, player)
            self._save(session)

    async def disconnect(self, peer: PeerConnection) -> None:
        self.metrics.increment("disconnections")
        await self.leave(peer)

    # -- TEARDOWN / HOUSEKEEPING ---
    async def teardown(self, session_id: str) -> None:
        """ended --> empty: tell whoever is left, forget the members, drop the session."""
        session = self.sessions.get(session_id)
        if session is None:
            self._delete_record(session_id)
            return

        async with session.lock:
            await session.broadcast(SessionReset())
            for player in session.players:
                self.peer_sessions.pop(player.peer_id, None)
            session.players.clear()
            self._remove_session(session)

    async def sweep_idle(self, now: Optional[datetime] = None) -> list[str]:
        """Tear down the sessions nobody has touched for longer than the idle timeout."""
        now = now or utc_now()
        cutoff = now - timedelta(seconds=self.settings.session_idle_timeout_seconds)
        idle: list[str] = []
        if self.repo is not None:
            try:
                idle = self.repo.list_idle(cutoff)
            except RepositoryError as e:
                self._store_failed("*", e)
        else:
            idle = [
                session_id
                for session_id, session in self.sessions.items()
                if session.last_activity < cutoff
            ]

        for session_id in idle:
            log.info("Reaping idle session", extra={"session_id": session_id})
            self.metrics.increment("sessions_reaped")
            await self.teardown(session_id)
        return idle

    async def run_sweeper(self) -> None:
        """Background loop, started by the app"""
        while True:
            await asyncio.sleep(self.settings.sweep_interval_seconds)
            await self.sweep_idle()

    async def shutdown(self) -> None:
        tasks = [s.teardown_task for s in self.sessions.values() if s.teardown_task]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def summaries(self) -> list[dict]:
        return [session.summary() for session in self.sessions.values()]

    # -- PRIVATE HELPERS ---
    def _get_or_create_session(self, session_id: str) -> Session:
        session = self.sessions.get(session_id)
        if session is None:
            game = Game.new_game(promotion_policy=self.settings.promotion_policy)
            session = Session(session_id=session_id, game=game)
            self.sessions[session_id] = session
        return session

    def _session_of(self, peer: PeerConnection) -> Optional[Session]:
        session_id = self.peer_sessions.get(peer.peer_id)
        if session_id is None:
            return None
        return self.sessions.get(session_id)

    async def _start(self, session: Session) -> None:
        """waiting-for-second --> active. Every member learns its own color."""
        session.game.reset()
        session.status = SessionStatus.ACTIVE
        self.metrics.increment("sessions_started")
        players = [player.to_info() for player in session.players]
        position = session.game.to_fen()
        for player in session.players:
            await player.peer.send(
                SessionStart(
                    session_id=session.session_id,
                    players=players,
                    color=player.color,
                    position=position,
                )
            )
        log.info("Game started with 2 players", extra={"session_id": session.session_id})

    def _admit(self, session: Session, peer: PeerConnection) -> Player:
        if session.status == SessionStatus.ENDED:
            raise SessionNotActiveError(
                "Session has ended and is being reset. Try again shortly."
            )
        if session.is_full:
            raise LobbyFullError(f"Session {session.session_id!r} already has two players.")

        player = Player(peer=peer, color=session.next_color())
        session.players.append(player)
        return player

    def _apply_submission(
        self, session: Session, peer: PeerConnection, event: SubmitMove
    ) -> MoveRecord:
        if session.status != SessionStatus.ACTIVE:
            raise SessionNotActiveError(f"Game not started. status: {session.status}")

        player = session.player(peer.peer_id)
        if player is None:
            raise NotAPlayerError("Player not found in this session.")

        if player.color != session.game.turn:
            raise OutOfTurnError(
                f"Not your turn. Waiting for {session.game.turn} to move."
            )

        record = session.game.apply_move(event.from_, event.to, event.promoted_to)
        self._compare_claims(session, event, record)
        return record

    def _compare_claims(
        self, session: Session, event: SubmitMove, record: MoveRecord
    ) -> None:
        """The sender's own flags are not used, but a disagreement means its engine drifted."""
        claimed = {
            "isCheck": event.is_check,
            "isCheckmate": event.is_checkmate,
            "isStalemate": event.is_stalemate,
            "isDraw": event.is_draw,
        }
        actual = record.to_dict()
        mismatched = [key for key, value in claimed.items() if actual[key] != value]
        if event.position is not None and event.position != record.position:
            mismatched.append("position")
        if mismatched:
            self.metrics.increment("claim_mismatches")
            log.warning(
                "Client claims differ from relay result: %s",
                ", ".join(mismatched),
                extra={"session_id": session.session_id},
            )

    async def _end_by_departure(self, session: Session, departed: Player) -> None:
        """active --> ended because a member left. The remaining member is told, then the session resets."""
        session.status = SessionStatus.ENDED
        self.metrics.increment("sessions_ended")
        await session.broadcast(PeerLeft(color=departed.color))
        self._schedule_teardown(session)

    async def _reject(self, peer: PeerConnection, message: str) -> None:
        self.metrics.increment("errors")
        await peer.send(ErrorNotice(message=message))

    def _schedule_teardown(self, session: Session) -> None:
        if session.teardown_task is None:
            session.teardown_task = asyncio.create_task(
                self._teardown_later(session.session_id)
            )

    async def _teardown_later(self, session_id: str) -> None:
        await asyncio.sleep(self.settings.reset_delay_seconds)
        await self.teardown(session_id)

    def _remove_session(self, session: Session) -> None:
        task = session.teardown_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        session.status = SessionStatus.EMPTY
        if self.sessions.get(session.session_id) is session:
            del self.sessions[session.session_id]
        self._delete_record(session.session_id)
        log.info("Session removed", extra={"session_id": session.session_id})

    def _save(self, session: Session) -> None:
        """
        The store only mirrors the live session: a failed write is logged, the relay carries on.
        NOTE: writes are synchronous, so the store is meant to be local (SQLite).
        """
        if self.repo is None or self.sessions.get(session.session_id) is not session:
            return
        try:
            self.repo.save_session(session.to_model())
        except RepositoryError as e:
            self._store_failed(session.session_id, e)

    def _delete_record(self, session_id: str) -> None:
        if self.repo is None:
            return
        try:
            self.repo.delete_session(session_id)
        except RepositoryError as e:
            self._store_failed(session_id, e)

    def _store_failed(self, session_id: str, error: RepositoryError) -> None:
        self.metrics.increment("store_errors")
        log.error("Session store failed: %s", error, extra={"session_id": session_id})
