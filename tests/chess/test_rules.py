"""Unit tests for /lobbychess/chess/rules.py"""

import pytest

from lobbychess.chess.board import Board
from lobbychess.chess.castling import CastlingDirection, all_castling_rights
from lobbychess.chess.moves import LastMove
from lobbychess.chess.rules import (
    apply_to_copy,
    can_castle,
    has_legal_moves,
    is_in_check,
    is_legal_move,
    is_path_clear,
    is_square_attacked,
    is_valid_move,
    leaves_king_in_check,
    legal_destinations,
)
from lobbychess.chess.square import Square
from lobbychess.core.shared_types import Color


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def valid(board: Board, from_name: str, to_name: str, **kwargs) -> bool:
    piece = board.piece(sq(from_name))
    assert piece is not None
    return is_valid_move(piece, sq(from_name), sq(to_name), board, **kwargs)


@pytest.mark.parametrize(
    "from_name, to_name, expected",
    [
        ("e2", "e3", True),
        ("e2", "e4", True),
        ("e2", "e5", False),
        ("e2", "d3", False),  # diagonal without a capture
        ("e2", "e1", False),  # own piece
        ("g1", "f3", True),
        ("g1", "e2", False),
        ("g1", "g3", False),
        ("f1", "c4", False),  # blocked by the e2 pawn
        ("a1", "a3", False),  # blocked by the a2 pawn
        ("d1", "d2", False),
        ("e1", "f2", False),
        ("e7", "e5", True),
        ("b8", "c6", True),
    ],
)
def test_starting_position_geometry(from_name: str, to_name: str, expected: bool) -> None:
    board = Board.starting_position()
    assert valid(board, from_name, to_name) == expected


def test_pawn_double_step_needs_both_squares_empty() -> None:
    board = Board.from_fen("4k3/8/8/8/8/4n3/4P3/4K3")
    assert not valid(board, "e2", "e3")
    assert not valid(board, "e2", "e4")


def test_pawn_captures_diagonally_forward_only() -> None:
    board = Board.from_fen("4k3/8/8/3p1p2/4P3/8/8/4K3")
    assert valid(board, "e4", "d5")
    assert valid(board, "e4", "f5")
    assert valid(board, "d5", "e4")
    assert not valid(board, "e4", "d3")


def test_pawn_cannot_capture_straight_ahead() -> None:
    board = Board.from_fen("4k3/8/8/4p3/4P3/8/8/4K3")
    assert not valid(board, "e4", "e5")


def test_en_passant_only_right_after_double_step() -> None:
    board = Board.from_fen("4k3/8/8/3pP3/8/8/8/4K3")
    double_step = LastMove(sq("d7"), sq("d5"))
    single_step = LastMove(sq("d6"), sq("d5"))
    assert valid(board, "e5", "d6", last_move=double_step)
    assert not valid(board, "e5", "d6", last_move=single_step)
    assert not valid(board, "e5", "d6")


def test_path_clear() -> None:
    board = Board.from_fen("4k3/8/8/8/8/2p5/8/R3K3")
    assert is_path_clear(sq("a1"), sq("d1"), board)
    assert is_path_clear(sq("a1"), sq("a8"), board)
    assert not is_path_clear(sq("a1"), sq("e5"), board)
    assert is_path_clear(sq("a1"), sq("c3"), board)


def test_sliding_pieces_are_blocked() -> None:
    board = Board.from_fen("4k3/8/8/8/8/2p5/8/B3K3")
    assert valid(board, "a1", "b2")
    assert valid(board, "a1", "c3")
    assert not valid(board, "a1", "d4")


def test_pawn_attacks_empty_squares() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/6p1/4K3")
    assert is_square_attacked(sq("f1"), Color.BLACK, board)
    assert is_square_attacked(sq("h1"), Color.BLACK, board)
    assert not is_square_attacked(sq("g1"), Color.BLACK, board)


def test_is_in_check() -> None:
    assert not is_in_check(Board.starting_position(), Color.WHITE)
    board = Board.from_fen("4k3/8/8/8/8/8/8/r3K3")
    assert is_in_check(board, Color.WHITE)
    assert not is_in_check(board, Color.BLACK)


def test_board_without_king_is_never_in_check() -> None:
    board = Board.from_fen("8/8/8/8/8/8/8/r7")
    assert not is_in_check(board, Color.WHITE)


@pytest.mark.parametrize(
    "placement, direction, expected",
    [
        ("r3k2r/8/8/8/8/8/8/R3K2R", CastlingDirection.WHITE_KING_SIDE, True),
        ("r3k2r/8/8/8/8/8/8/R3K2R", CastlingDirection.WHITE_QUEEN_SIDE, True),
        ("r3k2r/8/8/8/8/8/8/R3K2R", CastlingDirection.BLACK_KING_SIDE, True),
        ("r3k2r/8/8/8/8/8/8/R3K2R", CastlingDirection.BLACK_QUEEN_SIDE, True),
        # f1 is covered by the pawn on g2
        ("r3k2r/8/8/8/8/8/6p1/R3K2R", CastlingDirection.WHITE_KING_SIDE, False),
        # b1 is occupied
        ("r3k2r/8/8/8/8/8/8/RN2K2R", CastlingDirection.WHITE_QUEEN_SIDE, False),
        # b1 is attacked, but the king never passes it
        ("1r2k2r/8/8/8/8/8/8/R3K2R", CastlingDirection.WHITE_QUEEN_SIDE, True),
        # rook gone from its home square
        ("r3k2r/8/8/8/8/8/8/4K2R", CastlingDirection.WHITE_QUEEN_SIDE, False),
        # castling out of check
        ("r3k2r/8/8/8/8/8/4r3/R3K2R", CastlingDirection.WHITE_KING_SIDE, False),
        # landing in check
        ("r3k1r1/8/8/8/8/8/8/R3K2R", CastlingDirection.WHITE_KING_SIDE, False),
    ],
)
def test_can_castle(placement: str, direction: CastlingDirection, expected: bool) -> None:
    board = Board.from_fen(placement)
    assert can_castle(direction.color, direction, board, all_castling_rights()) == expected


def test_castling_needs_rights() -> None:
    board = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R")
    rights = all_castling_rights()
    rights[CastlingDirection.WHITE_KING_SIDE] = False
    assert not can_castle(Color.WHITE, CastlingDirection.WHITE_KING_SIDE, board, rights)
    assert not valid(board, "e1", "g1", castling_rights=rights)
    assert valid(board, "e1", "c1", castling_rights=rights)
    # attack scans pass no rights at all
    assert not valid(board, "e1", "g1")


def test_apply_to_copy_castling_moves_the_rook() -> None:
    board = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R")
    after = apply_to_copy(board, sq("e1"), sq("g1"))
    assert after.to_fen() == "r3k2r/8/8/8/8/8/8/R4RK1"
    after = apply_to_copy(board, sq("e8"), sq("c8"))
    assert after.to_fen() == "2kr3r/8/8/8/8/8/8/R3K2R"
    assert board.to_fen() == "r3k2r/8/8/8/8/8/8/R3K2R"


def test_apply_to_copy_en_passant_removes_the_pawn() -> None:
    board = Board.from_fen("4k3/8/8/3pP3/8/8/8/4K3")
    after = apply_to_copy(board, sq("e5"), sq("d6"), LastMove(sq("d7"), sq("d5")))
    assert after.to_fen() == "4k3/8/3P4/8/8/8/8/4K3"


def test_pinned_piece_cannot_leave_the_line() -> None:
    board = Board.from_fen("4k3/4r3/8/8/8/8/4B3/4K3")
    assert valid(board, "e2", "d3")
    assert leaves_king_in_check(sq("e2"), sq("d3"), board)
    assert not is_legal_move(sq("e2"), sq("d3"), board)


def test_king_cannot_step_into_check() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/3r4/7K")
    assert not is_legal_move(sq("h1"), sq("h2"), board)
    assert is_legal_move(sq("h1"), sq("g1"), board)


def test_legal_destinations_from_start() -> None:
    board = Board.starting_position()
    assert set(legal_destinations(sq("e2"), board)) == {sq("e3"), sq("e4")}
    assert set(legal_destinations(sq("g1"), board)) == {sq("f3"), sq("h3")}
    assert legal_destinations(sq("e1"), board) == []


def test_has_legal_moves() -> None:
    assert has_legal_moves(Board.starting_position(), Color.WHITE)
    # black king on h8, smothered by queen f7 and king g6
    stalemate = Board.from_fen("7k/5Q2/6K1/8/8/8/8/8")
    assert not has_legal_moves(stalemate, Color.BLACK)
    assert not is_in_check(stalemate, Color.BLACK)
