"""Unit tests for /lobbychess/db/sql_repository.py"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from lobbychess.chess.fen import STARTING_FEN
from lobbychess.core.exceptions import RepositoryError
from lobbychess.core.models import SessionModel
from lobbychess.db.sql_repository import SQLSessionRepository

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(db_session_repo: Session) -> SQLSessionRepository:
    return SQLSessionRepository(db_session_repo)


def make_session(session_id: str = "default", minutes_ago: int = 0) -> SessionModel:
    return SessionModel(
        session_id=session_id,
        status="waiting-for-second",
        players={"white": "peer-0"},
        position=STARTING_FEN,
        last_activity=NOW - timedelta(minutes=minutes_ago),
    )


def test_save_and_get(repo: SQLSessionRepository) -> None:
    saved = repo.save_session(make_session())
    assert saved.session_id == "default"

    fetched = repo.get_session("default")
    assert fetched is not None
    assert fetched.players == {"white": "peer-0"}
    assert fetched.position == STARTING_FEN
    assert fetched.moves_uci == []
    assert fetched.last_activity == NOW


def test_get_missing(repo: SQLSessionRepository) -> None:
    assert repo.get_session("nope") is None


def test_save_overwrites(repo: SQLSessionRepository) -> None:
    repo.save_session(make_session())
    update = make_session()
    update.status = "active"
    update.players = {"white": "peer-0", "black": "peer-1"}
    update.moves_uci = ["e2e4"]
    repo.save_session(update)

    fetched = repo.get_session("default")
    assert fetched.status == "active"
    assert fetched.players == {"white": "peer-0", "black": "peer-1"}
    assert fetched.moves_uci == ["e2e4"]


def test_delete(repo: SQLSessionRepository) -> None:
    repo.save_session(make_session())
    deleted = repo.delete_session("default")
    assert deleted is not None
    assert deleted.session_id == "default"
    assert repo.get_session("default") is None
    assert repo.delete_session("default") is None


def test_list_idle(repo: SQLSessionRepository) -> None:
    repo.save_session(make_session("fresh", minutes_ago=1))
    repo.save_session(make_session("stale", minutes_ago=45))
    repo.save_session(make_session("ancient", minutes_ago=600))

    idle = repo.list_idle(NOW - timedelta(minutes=30))
    assert sorted(idle) == ["ancient", "stale"]


def test_created_at_is_kept(repo: SQLSessionRepository) -> None:
    session = make_session()
    session.created_at = NOW - timedelta(hours=1)
    repo.save_session(session)

    update = make_session()
    update.created_at = NOW
    repo.save_session(update)
    assert repo.get_session("default").created_at == NOW - timedelta(hours=1)


def test_failed_write_rolls_back(repo: SQLSessionRepository, monkeypatch: pytest.MonkeyPatch) -> None:
    repo.save_session(make_session())

    def locked() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    with monkeypatch.context() as patch:
        patch.setattr(repo.db, "commit", locked)
        update = make_session()
        update.status = "active"
        with pytest.raises(RepositoryError):
            repo.save_session(update)
        with pytest.raises(RepositoryError):
            repo.delete_session("default")

    assert repo.get_session("default").status == "waiting-for-second"
    update = make_session()
    update.moves_uci = ["e2e4"]
    repo.save_session(update)
    assert repo.get_session("default").moves_uci == ["e2e4"]
