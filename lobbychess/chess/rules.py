"""
Geometry/Base movement and capturing/attacking rules (the legality oracle)

Key idea: Use strategy pattern to define the movement geometry for each piece type.
Every function here is pure: boards are only ever read, or copied before a move is tried on them.

Whose turn it is gets checked later by Game.
"""

from typing import Callable, Optional

from lobbychess.chess.board import Board
from lobbychess.chess.castling import (
    CASTLING_RULES,
    CastlingDirection,
    CastlingRights,
    castling_direction,
)
from lobbychess.chess.moves import LastMove
from lobbychess.chess.pieces import Piece
from lobbychess.chess.square import BOARD_DIMENSIONS, Square, all_squares
from lobbychess.core.shared_types import Color, PieceType

Vector = tuple[int, int]

# White pawns walk up the board, towards row 0.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_START_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: BOARD_DIMENSIONS[0] - 1}


def _delta(from_square: Square, to_square: Square) -> Vector:
    return to_square.row - from_square.row, to_square.col - from_square.col


def is_path_clear(from_square: Square, to_square: Square, board: Board) -> bool:
    """Every square strictly between the two squares (on a line or a diagonal) is empty."""
    d_row, d_col = _delta(from_square, to_square)
    step_row = (d_row > 0) - (d_row < 0)
    step_col = (d_col > 0) - (d_col < 0)
    square = from_square.offset(step_row, step_col)
    while square != to_square:
        if not board.is_empty(square):
            return False
        square = square.offset(step_row, step_col)
    return True


def is_castling_shape(piece: Piece, from_square: Square, to_square: Square) -> bool:
    """The king sidesteps two files along its rank."""
    d_row, d_col = _delta(from_square, to_square)
    return piece.type == PieceType.KING and d_row == 0 and abs(d_col) == 2


def is_en_passant_capture(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """
    A pawn steps diagonally onto an empty square, right behind an enemy pawn that just advanced two squares.
    ---
    The captured pawn stands on the starting row of the capturing pawn, in the destination's file.
    """
    if piece.type != PieceType.PAWN or last_move is None:
        return False

    d_row, d_col = _delta(from_square, to_square)
    if d_row != PAWN_DIRECTION[piece.color] or abs(d_col) != 1:
        return False
    if not board.is_empty(to_square):
        return False

    victim_square = Square(from_square.row, to_square.col)
    if board.piece(victim_square) != Piece(PieceType.PAWN, piece.color.opponent):
        return False

    last_d_row, _ = _delta(last_move.from_square, last_move.to_square)
    return (
        last_move.to_square == victim_square
        and last_move.from_square.col == to_square.col
        and abs(last_d_row) == 2
    )


# --- MOVEMENT RULES ---
# NOTE: These only look at the geometry of the move. Capturing your own piece is excluded by is_valid_move().
def pawn_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """
    A pawn:
    - moves by a single square forward, onto an empty square.
    - It can move by two in their first move (so when on their starting rank), through two empty squares
    - takes diagonally, or en passant
    """
    forward = PAWN_DIRECTION[piece.color]
    d_row, d_col = _delta(from_square, to_square)
    target = board.piece(to_square)

    if d_col == 0:
        if target is not None:
            return False
        if d_row == forward:
            return True
        return (
            from_square.row == PAWN_START_ROW[piece.color]
            and d_row == 2 * forward
            and board.is_empty(from_square.offset(forward, 0))
        )

    if abs(d_col) == 1 and d_row == forward:
        if target is not None:
            return True
        return is_en_passant_capture(piece, from_square, to_square, board, last_move)

    return False


def knight_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """Knights always move such that |delta_row| + |delta_col| = 3 (and jump over everything)"""
    d_row, d_col = _delta(from_square, to_square)
    return {abs(d_row), abs(d_col)} == {1, 2}


def bishop_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    d_row, d_col = _delta(from_square, to_square)
    return abs(d_row) == abs(d_col) and is_path_clear(from_square, to_square, board)


def rook_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """Rooks move either horizontally or vertically"""
    d_row, d_col = _delta(from_square, to_square)
    return (d_row == 0 or d_col == 0) and is_path_clear(from_square, to_square, board)


def queen_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return rook_geometry(
        piece, from_square, to_square, board, last_move
    ) or bishop_geometry(piece, from_square, to_square, board, last_move)


def king_geometry(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove],
) -> bool:
    """
    The king can move by a single square at the time.

    Castling is modelled as a special king move (handled separately).
    """
    d_row, d_col = _delta(from_square, to_square)
    return max(abs(d_row), abs(d_col)) == 1


# -- STRATEGY PATTERN: MOVEMENT RULES ---
GeometryFn = Callable[[Piece, Square, Square, Board, Optional[LastMove]], bool]
MOVEMENT_RULES: dict[PieceType, GeometryFn] = {
    PieceType.PAWN: pawn_geometry,
    PieceType.KNIGHT: knight_geometry,
    PieceType.BISHOP: bishop_geometry,
    PieceType.ROOK: rook_geometry,
    PieceType.QUEEN: queen_geometry,
    PieceType.KING: king_geometry,
}


def is_valid_move(
    piece: Piece,
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> bool:
    """
    Is the move geometrically legal for this piece on this board?
    ---
    Does not consider whose turn it is, nor whether the move leaves the own king in check.
    Without castling rights, a castling move is never valid (that is how attack scans call this).
    """
    if from_square == to_square or not to_square.is_within_bounds():
        return False

    if is_castling_shape(piece, from_square, to_square):
        if castling_rights is None:
            return False
        direction = castling_direction(piece.color, to_square.col > from_square.col)
        rule = CASTLING_RULES[direction]
        if (from_square, to_square) != (rule.king_from, rule.king_to):
            return False
        return can_castle(piece.color, direction, board, castling_rights)

    target = board.piece(to_square)
    if target is not None and target.color == piece.color:
        return False

    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(piece, from_square, to_square, board, last_move)


# --- CAPTURING RULES / ATTACKING RULES ---
def attacks_square(piece: Piece, from_square: Square, target: Square, board: Board) -> bool:
    """
    Could the piece capture on the target square, whatever stands there now?
    ---
    Pawns are the exception to "attacks = moves": they only attack diagonally, and they do so even when the square is empty.
    """
    if from_square == target:
        return False
    if piece.type == PieceType.PAWN:
        d_row, d_col = _delta(from_square, target)
        return d_row == PAWN_DIRECTION[piece.color] and abs(d_col) == 1
    return MOVEMENT_RULES[piece.type](piece, from_square, target, board, None)


def is_square_attacked(square: Square, by_color: Color, board: Board) -> bool:
    """Scan all pieces of `by_color` for one that could capture on `square`"""
    return any(
        attacks_square(piece, from_square, square, board)
        for from_square, piece in board.position.items()
        if piece.color == by_color
    )


def is_in_check(board: Board, color: Color) -> bool:
    """Locate the king, then ask if any opposing piece reaches it. A board without that king is never in check."""
    king_square = board.locate_king(color)
    if king_square is None:
        return False
    return is_square_attacked(king_square, color.opponent, board)


# -- CASTLING ---
def can_castle(
    color: Color,
    direction: CastlingDirection,
    board: Board,
    castling_rights: CastlingRights,
) -> bool:
    """
    **you are allowed to castle if**

    * Castling rights in that direction are not yet revoked.
    * King and rook still stand on their home squares.
    * Every square between the two is empty.
    * You are not currently in check (you cannot castle out of check).
    * The king does not pass through, or land on, a square the opponent attacks.
    """
    if direction.color != color or not castling_rights.get(direction, False):
        return False

    rule = CASTLING_RULES[direction]
    if board.piece(rule.king_from) != Piece(PieceType.KING, color):
        return False
    if board.piece(rule.rook_from) != Piece(PieceType.ROOK, color):
        return False

    if any(not board.is_empty(square) for square in rule.between):
        return False

    opponent = color.opponent
    if is_square_attacked(rule.king_from, opponent, board):
        return False
    return not any(
        is_square_attacked(square, opponent, board) for square in rule.king_path
    )


# -- TRYING MOVES ON A SCRATCH BOARD ---
def apply_to_copy(
    board: Board,
    from_square: Square,
    to_square: Square,
    last_move: Optional[LastMove] = None,
) -> Board:
    """
    Return a new board with the move made. The original board is left alone.
    ---
    Takes care of the side effects of special moves: the pawn taken en passant disappears from its own square,
    and the rook jumps over the king when castling. (Promotion is left to the Game.)
    """
    scratch = board.copy()
    piece = board.piece(from_square)
    if piece is None:
        return scratch

    if is_en_passant_capture(piece, from_square, to_square, board, last_move):
        scratch.remove_piece(Square(from_square.row, to_square.col))

    if is_castling_shape(piece, from_square, to_square):
        direction = castling_direction(piece.color, to_square.col > from_square.col)
        rule = CASTLING_RULES[direction]
        scratch.move_piece(rule.rook_from, rule.rook_to)

    scratch.move_piece(from_square, to_square)
    return scratch


def leaves_king_in_check(
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove] = None,
) -> bool:
    """Return True if the move puts (or leaves) the mover's own king in check"""
    piece = board.piece(from_square)
    if piece is None:
        return False
    scratch = apply_to_copy(board, from_square, to_square, last_move)
    return is_in_check(scratch, piece.color)


def is_legal_move(
    from_square: Square,
    to_square: Square,
    board: Board,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> bool:
    """Geometrically valid and not exposing the own king."""
    piece = board.piece(from_square)
    if piece is None:
        return False
    return is_valid_move(
        piece, from_square, to_square, board, last_move, castling_rights
    ) and not leaves_king_in_check(from_square, to_square, board, last_move)


def legal_destinations(
    from_square: Square,
    board: Board,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> list[Square]:
    return [
        to_square
        for to_square in all_squares()
        if is_legal_move(from_square, to_square, board, last_move, castling_rights)
    ]


def has_legal_moves(
    board: Board,
    color: Color,
    last_move: Optional[LastMove] = None,
    castling_rights: Optional[CastlingRights] = None,
) -> bool:
    """
    Exhaustive scan: every piece of `color` against every square of the board.
    ---
    Expensive, so the Game only calls it once per applied move (to classify the game status).
    """
    for from_square in board.locate_color(color):
        for to_square in all_squares():
            if is_legal_move(from_square, to_square, board, last_move, castling_rights):
                return True
    return False
