"""Integration tests for /lobbychess/api/app.py"""

import pytest
from fastapi.testclient import TestClient

from lobbychess.api.app import create_app
from lobbychess.core.config import Settings
from lobbychess.relay.coordinator import SessionCoordinator


@pytest.fixture
def coordinator() -> SessionCoordinator:
    return SessionCoordinator(settings=Settings(reset_delay_seconds=60.0))


@pytest.fixture
def client(coordinator: SessionCoordinator):
    app = create_app(settings=Settings(), coordinator=coordinator)
    with TestClient(app) as client:
        yield client


def test_health_check(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Healthy"}


def test_metrics_and_sessions_start_empty(client: TestClient) -> None:
    assert client.get("/sessions").json() == []
    metrics = client.get("/metrics").json()
    assert metrics["counters"] == {}
    assert "uptime_seconds" in metrics


def test_two_players_over_websockets(client: TestClient) -> None:
    with client.websocket_connect("/ws/table-1") as white:
        white.send_json({"event": "join-session"})
        waiting = white.receive_json()
        assert waiting == {"event": "waiting-for-peer", "sessionId": "table-1", "color": "white"}

        with client.websocket_connect("/ws/table-1") as black:
            black.send_json({"event": "join-session"})
            assert white.receive_json()["event"] == "session-start"
            start = black.receive_json()
            assert start["event"] == "session-start"
            assert start["color"] == "black"

            white.send_json({"event": "submit-move", "from": "e2", "to": "e4"})
            for ws in (white, black):
                relayed = ws.receive_json()
                assert relayed["event"] == "move-relayed"
                assert relayed["san"] == "e4"
                assert relayed["position"].split()[1] == "b"

            # black tries to move a white piece
            black.send_json({"event": "submit-move", "from": "d2", "to": "d4"})
            assert black.receive_json()["event"] == "error"

            [summary] = client.get("/sessions").json()
            assert summary["session_id"] == "table-1"
            assert summary["moves"] == 1

            black.send_json({"event": "leave-session"})
            assert white.receive_json() == {"event": "peer-left", "color": "black"}

    counters = client.get("/metrics").json()["counters"]
    assert counters["connections"] == 2
    assert counters["moves_relayed"] == 1


def test_malformed_frame_gets_error(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        reply = ws.receive_json()
        assert reply["event"] == "error"
        assert "Malformed" in reply["message"]

        ws.send_json({"event": "join-session"})
        assert ws.receive_json()["sessionId"] == "default"


def test_third_player_gets_lobby_full(client: TestClient) -> None:
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        first.send_json({"event": "join-session"})
        first.receive_json()
        second.send_json({"event": "join-session"})
        second.receive_json()
        with client.websocket_connect("/ws") as third:
            third.send_json({"event": "join-session"})
            assert third.receive_json() == {"event": "lobby-full"}
