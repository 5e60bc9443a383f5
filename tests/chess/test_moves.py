"""Unit tests for /lobbychess/chess/moves.py"""

import pytest

from lobbychess.chess.moves import Move, MoveRecord
from lobbychess.chess.pieces import Piece
from lobbychess.chess.square import Square
from lobbychess.core.exceptions import InvalidSquareError
from lobbychess.core.shared_types import Color, PieceType


# -- MOVE CREATION, ENCODING/DECODING UCI NOTATION ---
@pytest.mark.parametrize(
    "uci_move, from_uci, to_uci, promote_to",
    [
        ("e2e4", "e2", "e4", None),
        ("a1a5", "a1", "a5", None),
        ("g3a7", "g3", "a7", None),
        ("e7e8q", "e7", "e8", PieceType.QUEEN),
        ("b2a1n", "b2", "a1", PieceType.KNIGHT),
    ],
)
def test_creating_move_from_uci(
    uci_move: str, from_uci: str, to_uci: str, promote_to: PieceType | None
) -> None:
    """<from_square><to_square><optional promotion piece>"""
    move = Move.from_uci(uci_move)
    assert move.from_square == Square.from_algebraic(from_uci)
    assert move.to_square == Square.from_algebraic(to_uci)
    assert move.promote_to == promote_to
    assert move.to_uci() == uci_move


@pytest.mark.parametrize("uci_move", ["e2", "e2e9", "e2e4x", "e2e4qq", "i2i4"])
def test_invalid_uci(uci_move: str) -> None:
    with pytest.raises(InvalidSquareError):
        Move.from_uci(uci_move)


def test_record_wire_form() -> None:
    record = MoveRecord(
        from_square=Square.from_algebraic("g7"),
        to_square=Square.from_algebraic("h8"),
        piece=Piece(PieceType.PAWN, Color.WHITE),
        color=Color.WHITE,
        captured_piece=Piece(PieceType.ROOK, Color.BLACK),
        promoted_to=Piece(PieceType.QUEEN, Color.WHITE),
        is_check=True,
        san="gxh8=Q+",
    )
    assert record.is_capture
    assert record.uci == "g7h8q"

    wire = record.to_dict()
    assert wire["from"] == "g7"
    assert wire["to"] == "h8"
    assert wire["piece"] == "P"
    assert wire["color"] == "white"
    assert wire["capturedPiece"] == "r"
    assert wire["promotedTo"] == "Q"
    assert wire["isCheck"] is True
    assert wire["isCheckmate"] is False
    assert wire["san"] == "gxh8=Q+"
