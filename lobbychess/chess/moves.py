"""
Move values
---

`Move` is what a player asks for (two squares and, optionally, a piece to promote into).
`MoveRecord` is what the Game reports back once a move has been applied.
"""

from dataclasses import dataclass
from typing import Any, Optional, Self

from lobbychess.chess.pieces import FEN_TO_PIECE, PIECE_TO_FEN, Piece
from lobbychess.chess.square import Square
from lobbychess.core.exceptions import InvalidSquareError
from lobbychess.core.shared_types import Color, PieceType


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square
    promote_to: Optional[PieceType] = None

    @classmethod
    def from_uci(cls, uci: str) -> Self:
        """
        Universal Chess Interface:
        ---
        One of the standard chess notations for moves

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side
        """
        if len(uci) not in (4, 5):
            raise InvalidSquareError(f"Cannot interpret {uci!r} as a UCI move.")
        from_sq = Square.from_algebraic(uci[:2])
        to_sq = Square.from_algebraic(uci[2:4])
        promote_to = None
        if len(uci) == 5:
            if uci[4] not in FEN_TO_PIECE:
                raise InvalidSquareError(f"Unknown promotion piece in {uci!r}.")
            promote_to = FEN_TO_PIECE[uci[4]]
        return cls(from_sq, to_sq, promote_to)

    def to_uci(self) -> str:
        """Convert into UCI notation"""
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"


@dataclass(frozen=True)
class LastMove:
    """Only the coordinates of the previous move are remembered (for en passant)."""

    from_square: Square
    to_square: Square


@dataclass(frozen=True)
class MoveRecord:
    """Snapshot of an applied move and the flags derived from the position it produced."""

    from_square: Square
    to_square: Square
    piece: Piece
    color: Color
    captured_piece: Optional[Piece] = None
    is_en_passant: bool = False
    is_castling: bool = False
    promoted_to: Optional[Piece] = None
    is_check: bool = False
    is_checkmate: bool = False
    is_stalemate: bool = False
    is_draw: bool = False
    san: str = ""
    position: str = ""

    @property
    def uci(self) -> str:
        promote_to = self.promoted_to.type if self.promoted_to else None
        return Move(self.from_square, self.to_square, promote_to).to_uci()

    @property
    def is_capture(self) -> bool:
        return self.captured_piece is not None

    def to_dict(self) -> dict[str, Any]:
        """Wire form: camelCase keys, squares in algebraic notation, pieces as FEN letters."""
        return {
            "from": self.from_square.to_algebraic(),
            "to": self.to_square.to_algebraic(),
            "piece": self.piece.to_fen(),
            "color": str(self.color),
            "capturedPiece": self.captured_piece.to_fen()
            if self.captured_piece
            else None,
            "isEnPassant": self.is_en_passant,
            "isCastling": self.is_castling,
            "promotedTo": self.promoted_to.to_fen() if self.promoted_to else None,
            "isCheck": self.is_check,
            "isCheckmate": self.is_checkmate,
            "isStalemate": self.is_stalemate,
            "isDraw": self.is_draw,
            "san": self.san,
            "position": self.position,
        }
