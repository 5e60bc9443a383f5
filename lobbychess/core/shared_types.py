"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    ACTIVE = "active"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_FIFTY = "draw-fifty"
    DRAW_REPETITION = "draw-repetition"

    @property
    def is_terminal(self) -> bool:
        return self != Status.ACTIVE

    @property
    def is_draw(self) -> bool:
        return self in (Status.DRAW_FIFTY, Status.DRAW_REPETITION)


class SessionStatus(StrEnum):
    EMPTY = "empty"
    WAITING_FOR_SECOND = "waiting-for-second"
    ACTIVE = "active"
    ENDED = "ended"


class PromotionPolicy(StrEnum):
    AUTO_QUEEN = "auto-queen"
    PROMPT_CHOICE = "prompt-choice"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.WHITE else Color.WHITE


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"
