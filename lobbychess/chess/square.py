"""
A square on the board

(placed in its own module as multiple other modules need to import it)

Squares are (row, col) pairs. Row 0 is the 8th rank (Black's back rank), column 0 is the a-file,
which is also the order the ranks are written in a FEN string.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import ascii_lowercase

from lobbychess.core.exceptions import InvalidSquareError

# Chess board is always 8x8. (rows, cols)
BOARD_DIMENSIONS = (8, 8)
FILE_NAMES = ascii_lowercase[: BOARD_DIMENSIONS[1]]


@dataclass(frozen=True, order=True)
class Square:
    row: int
    col: int

    @classmethod
    def from_algebraic(cls, sq: str) -> Square:
        """Algebraic notation: 'a8' gets converted to (0, 0), 'h1' to (7, 7)"""
        if not is_algebraic(sq):
            raise InvalidSquareError(f"Cannot interpret {sq!r} as a square name.")
        col = FILE_NAMES.index(sq[0])
        row = BOARD_DIMENSIONS[0] - int(sq[1])
        return cls(row, col)

    def to_algebraic(self) -> str:
        return f"{FILE_NAMES[self.col]}{BOARD_DIMENSIONS[0] - self.row}"

    @property
    def file(self) -> str:
        return FILE_NAMES[self.col]

    @property
    def rank(self) -> int:
        return BOARD_DIMENSIONS[0] - self.row

    def offset(self, d_row: int, d_col: int) -> Square:
        return Square(self.row + d_row, self.col + d_col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def __str__(self) -> str:
        return self.to_algebraic()


def is_algebraic(sq: object) -> bool:
    """A file letter a-h followed by a rank digit 1-8, nothing else."""
    if not isinstance(sq, str) or len(sq) != 2:
        return False
    file_char, rank_char = sq[0], sq[1]
    return (
        file_char in FILE_NAMES
        and rank_char.isdigit()
        and 1 <= int(rank_char) <= BOARD_DIMENSIONS[0]
    )


def all_squares() -> list[Square]:
    return [
        Square(row, col)
        for row in range(BOARD_DIMENSIONS[0])
        for col in range(BOARD_DIMENSIONS[1])
    ]
