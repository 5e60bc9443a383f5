"""Unit tests for /lobbychess/chess/notation.py (through the Game, which fills MoveRecord.san)"""

import pytest

from lobbychess.chess.game import Game
from lobbychess.core.shared_types import PromotionPolicy


def play_all(game: Game, moves: list[str]) -> list[str]:
    return [game.play(move).san for move in moves]


def test_opening_moves() -> None:
    game = Game.new_game()
    assert play_all(game, ["e2e4", "e7e5", "g1f3", "b8c6", "f1b5"]) == [
        "e4",
        "e5",
        "Nf3",
        "Nc6",
        "Bb5",
    ]


def test_capture_and_check() -> None:
    game = Game.new_game()
    sans = play_all(game, ["e2e4", "d7d5", "e4d5", "d8d5", "b1c3", "d5e5"])
    assert sans == ["e4", "d5", "exd5", "Qxd5", "Nc3", "Qe5+"]


def test_checkmate_suffix() -> None:
    game = Game.new_game()
    sans = play_all(game, ["f2f3", "e7e5", "g2g4", "d8h4"])
    assert sans[-1] == "Qh4#"


def test_en_passant_is_a_pawn_capture() -> None:
    game = Game.new_game()
    sans = play_all(game, ["e2e4", "a7a5", "e4e5", "d7d5", "e5d6"])
    assert sans[-1] == "exd6"


@pytest.mark.parametrize(
    "fen, move, expected",
    [
        # two knights reach d2: the file tells them apart
        ("4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1", "b1d2", "Nbd2"),
        # two rooks on the a-file: the rank tells them apart
        ("4k3/8/8/R7/8/8/8/R3K3 w - - 0 1", "a1a3", "R1a3"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1g1", "O-O"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1c1", "O-O-O"),
        ("8/4P3/8/8/8/8/8/k3K3 w - - 0 1", "e7e8", "e8=Q"),
    ],
)
def test_notation_from_position(fen: str, move: str, expected: str) -> None:
    game = Game.from_fen(fen)
    assert game.play(move).san == expected


def test_underpromotion() -> None:
    game = Game.from_fen(
        "8/4P3/8/8/8/8/8/k3K3 w - - 0 1", promotion_policy=PromotionPolicy.PROMPT_CHOICE
    )
    assert game.play("e7e8n").san == "e8=N"
