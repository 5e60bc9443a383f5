"""Standard algebraic notation (SAN) for moves the Game has applied. Reporting only: nothing here changes state."""

from typing import Optional

from lobbychess.chess.board import Board
from lobbychess.chess.castling import CastlingRights
from lobbychess.chess.moves import LastMove, MoveRecord
from lobbychess.chess.rules import is_legal_move
from lobbychess.chess.square import Square
from lobbychess.core.shared_types import PieceType

KING_SIDE_CASTLE = "O-O"
QUEEN_SIDE_CASTLE = "O-O-O"


def disambiguation(
    record: MoveRecord,
    board_before: Board,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> str:
    """
    Only needed when another piece of the same kind could legally reach the same square.
    Prefer the file, then the rank, and fall back to the full square.
    """
    rivals: list[Square] = [
        square
        for square, piece in board_before.position.items()
        if piece == record.piece
        and square != record.from_square
        and is_legal_move(
            square, record.to_square, board_before, last_move, castling_rights
        )
    ]
    if not rivals:
        return ""

    from_square = record.from_square
    if all(square.col != from_square.col for square in rivals):
        return from_square.file
    if all(square.row != from_square.row for square in rivals):
        return str(from_square.rank)
    return from_square.to_algebraic()


def to_san(
    record: MoveRecord,
    board_before: Board,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> str:
    """
    <piece letter><disambiguation><x if capture><destination><=promotion><+ or #>

    ex) e4, Nbd7, exd6, Qxh4#, e8=Q+, O-O-O
    """
    if record.is_castling:
        san = (
            KING_SIDE_CASTLE
            if record.to_square.col > record.from_square.col
            else QUEEN_SIDE_CASTLE
        )
    else:
        is_pawn = record.piece.type == PieceType.PAWN
        parts: list[str] = []
        if is_pawn:
            # pawns are named after their file, but only when they capture
            if record.is_capture:
                parts.append(record.from_square.file)
        else:
            parts.append(record.piece.to_fen().upper())
            parts.append(
                disambiguation(record, board_before, last_move, castling_rights)
            )

        if record.is_capture:
            parts.append("x")
        parts.append(record.to_square.to_algebraic())

        if record.promoted_to is not None:
            parts.append(f"={record.promoted_to.to_fen().upper()}")
        san = "".join(parts)

    if record.is_checkmate:
        return f"{san}#"
    if record.is_check:
        return f"{san}+"
    return san
