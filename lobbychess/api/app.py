"""FastAPI application exposing the relay over WebSockets, plus a few read-only HTTP routes."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from uuid import uuid4

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from lobbychess.core.config import Settings
from lobbychess.db.database import build_engine, build_session_factory, is_local_store
from lobbychess.db.sql_repository import SQLSessionRepository
from lobbychess.relay.coordinator import DEFAULT_SESSION_ID, SessionCoordinator
from lobbychess.relay.events import ErrorNotice, Event, parse_client_event

log = logging.getLogger("lobbychess.api")


class WebSocketPeer:
    """PeerConnection backed by a FastAPI WebSocket"""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.peer_id = uuid4().hex
        self._connected = True

    @property
    def connected(self) -> bool:
        return self._connected

    def mark_disconnected(self) -> None:
        self._connected = False

    async def send(self, event: Event) -> None:
        if not self._connected:
            return
        try:
            await self.websocket.send_json(event.to_wire())
        except (WebSocketDisconnect, RuntimeError) as e:
            # the socket closed underneath us; the receive loop will report the disconnect
            log.info("Dropping event for closed peer %s: %s", self.peer_id, e)
            self._connected = False


def build_coordinator(settings: Settings) -> SessionCoordinator:
    if not is_local_store(settings.database_url):
        log.warning(
            "Session store %r is not SQLite: every write blocks the event loop",
            settings.database_url.split("://")[0],
        )
    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)
    repository = SQLSessionRepository(session_factory())
    return SessionCoordinator(settings=settings, repository=repository)


def create_app(
    settings: Optional[Settings] = None,
    coordinator: Optional[SessionCoordinator] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    coordinator = coordinator or build_coordinator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(coordinator.run_sweeper())
        try:
            yield
        finally:
            sweeper.cancel()
            await asyncio.gather(sweeper, return_exceptions=True)
            await coordinator.shutdown()

    app = FastAPI(
        title="Lobby Chess Relay",
        description="Pairs two players per session and relays validated chess moves between them.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator

    @app.get("/", tags=["Health"], summary="Health Check")
    def health_check() -> dict:
        return {"message": "Healthy"}

    @app.get("/metrics", tags=["Relay"], summary="Relay counters and timings")
    def get_metrics() -> dict:
        return coordinator.metrics.snapshot()

    @app.get("/sessions", tags=["Relay"], summary="Live sessions")
    def list_sessions() -> list[dict]:
        return coordinator.summaries()

    async def relay(websocket: WebSocket, session_id: str) -> None:
        await websocket.accept()
        peer = WebSocketPeer(websocket)
        coordinator.metrics.increment("connections")
        log.info("New client connected: %s", peer.peer_id, extra={"session_id": session_id})
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    event = parse_client_event(raw)
                except ValidationError as e:
                    coordinator.metrics.increment("errors")
                    await peer.send(
                        ErrorNotice(message=f"Malformed event: {e.error_count()} error(s)")
                    )
                    continue
                await coordinator.handle(peer, event, session_id)
        except WebSocketDisconnect:
            log.info("Client disconnected: %s", peer.peer_id)
        finally:
            peer.mark_disconnected()
            await coordinator.disconnect(peer)

    @app.websocket("/ws")
    async def default_session(websocket: WebSocket) -> None:
        await relay(websocket, DEFAULT_SESSION_ID)

    @app.websocket("/ws/{session_id}")
    async def named_session(websocket: WebSocket, session_id: str) -> None:
        await relay(websocket, session_id)

    return app
