"""
Parsing and writing of the position string (FEN). Validation happens before anything gets constructed.
"""

from dataclasses import dataclass
from typing import Optional, Self

from lobbychess.chess.castling import (
    CastlingRights,
    castling_from_fen,
    castling_to_fen,
)
from lobbychess.chess.pieces import FEN_TO_PIECE
from lobbychess.chess.square import BOARD_DIMENSIONS, Square, is_algebraic
from lobbychess.core.exceptions import InvalidFENError
from lobbychess.core.shared_types import Color

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
VALID_CASTLING_ENCODINGS = [
    "-",
    "K",
    "Q",
    "k",
    "q",
    "KQ",
    "Kk",
    "Kq",
    "Qk",
    "Qq",
    "kq",
    "KQk",
    "KQq",
    "Kkq",
    "Qkq",
    "KQkq",
]
# placement, color and castling are required. Clocks may be left out.
MIN_FEN_FIELDS = 4
MAX_FEN_FIELDS = 6


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation (the two move counters are optional).
    """
    if not isinstance(fen, str):
        return False

    parts = fen.split()
    if not (MIN_FEN_FIELDS <= len(parts) <= MAX_FEN_FIELDS):
        return False

    placement, color, castling, en_passant, *counters = parts
    if not is_valid_placement(placement):
        return False

    if not is_valid_color_code(color):
        return False

    if not is_valid_castling_rights(castling):
        return False

    if not is_valid_en_passant(en_passant):
        return False

    return all(is_valid_move_counter(counter) for counter in counters)


def is_valid_placement(placement: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    num_ranks, num_files = BOARD_DIMENSIONS
    rank_fens = placement.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            # make sure every character is valid
            if character.isdigit():
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                # immediately invalidate if the character is anything else
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. or a '-' if all rights have been revoked."""
    return castling in VALID_CASTLING_ENCODINGS


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square is on the 3rd or 6th rank, or a '-'"""
    if en_passant == "-":
        return True
    return is_algebraic(en_passant) and en_passant[1] in {"3", "6"}


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    FEN, or Forsyth-Edwards Notation, describes a particular board position of a chess game.

    <board position string> <active color> <castling rights> <en passant square> <# half move clock> <number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" or "b"
    * Castling rights are denoted as "k" for king-side or "q" for queen-side. Capital letters for the white pieces, small letters for the black pieces.
        A "-" is used once all rights are revoked.
    * The en passant square is the square a pawn just skipped over with a double step. If not available a "-" is used.
    * The half move clock counts the number of moves made since the last pawn move or capture.
    * The number of turns starts at 1 and increments after every move black makes.

    ex) The standard starting position has a FEN
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    placement: str
    color_to_move: Color
    castling_rights: CastlingRights
    en_passant_square: Optional[Square]
    half_move_clock: int = 0
    num_turns: int = 1

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""

        # raise an exception if invalid FEN:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen!r}")

        placement, active_color, castling_str, en_passant_algebraic, *counters = (
            fen.split()
        )

        color_to_move = Color.WHITE if active_color == "w" else Color.BLACK
        castling_rights = castling_from_fen(castling_str)
        en_passant_square = (
            Square.from_algebraic(en_passant_algebraic)
            if en_passant_algebraic != "-"
            else None
        )

        # missing counters get their starting values
        half_move_clock = int(counters[0]) if len(counters) > 0 else 0
        num_turns = int(counters[1]) if len(counters) > 1 else 1
        return cls(
            placement,
            color_to_move,
            castling_rights,
            en_passant_square,
            half_move_clock,
            num_turns,
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        return f"{self.repetition_key()} {self.half_move_clock} {self.num_turns}"

    def repetition_key(self) -> str:
        """The first four fields: what makes two positions 'the same' for the repetition rule."""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        castling_str = castling_to_fen(self.castling_rights)
        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else "-"
        )
        return f"{self.placement} {active_color} {castling_str} {en_passant_algebraic}"

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
