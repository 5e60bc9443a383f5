"""
The Game class is the entrypoint into the domain layer for the relay and the clients.
It is responsible for orchestrating all the rules required to play a turn, and owns the full game state.

A move is either applied completely or rejected with an exception (a subclass of GameError).
Candidate moves are tried out on scratch copies of the board, so a rejected move never leaves a trace.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Optional, Self

from lobbychess.chess.board import Board
from lobbychess.chess.castling import (
    CASTLING_RULES,
    CastlingRights,
    all_castling_rights,
)
from lobbychess.chess.fen import STARTING_FEN, FENState
from lobbychess.chess.moves import LastMove, Move, MoveRecord
from lobbychess.chess.notation import to_san
from lobbychess.chess.pieces import FEN_TO_PIECE, PROMOTION_OPTIONS, Piece
from lobbychess.chess.rules import (
    PAWN_DIRECTION,
    PROMOTION_ROW,
    apply_to_copy,
    has_legal_moves,
    is_castling_shape,
    is_en_passant_capture,
    is_in_check,
    is_legal_move,
    is_valid_move,
    leaves_king_in_check,
    legal_destinations,
)
from lobbychess.chess.square import Square
from lobbychess.core.exceptions import (
    GameOverError,
    IllegalMoveError,
    NoPieceError,
    NotYourTurnError,
    PromotionRequiredError,
)
from lobbychess.core.shared_types import Color, PieceType, PromotionPolicy, Status

FIFTY_MOVE_RULE_HALF_MOVES = 100
REPETITIONS_FOR_DRAW = 3


def as_square(square: Square | str) -> Square:
    """Accept either a Square or its algebraic name (raises InvalidSquareError for anything else)"""
    if isinstance(square, Square):
        return square
    return Square.from_algebraic(square)


def as_promotion_type(promotion: PieceType | str) -> PieceType:
    """'q', 'Q', 'queen' and PieceType.QUEEN all mean the same thing."""
    if isinstance(promotion, PieceType):
        piece_type = promotion
    elif promotion.lower() in FEN_TO_PIECE:
        piece_type = FEN_TO_PIECE[promotion.lower()]
    elif promotion.lower() in {option.value for option in PieceType}:
        piece_type = PieceType(promotion.lower())
    else:
        raise IllegalMoveError(f"Unknown piece to promote into: {promotion!r}")

    if piece_type not in PROMOTION_OPTIONS:
        raise IllegalMoveError(f"A pawn cannot promote into a {piece_type}.")
    return piece_type


@dataclass
class Game:
    board: Board
    turn: Color
    castling_rights: CastlingRights
    last_move: Optional[LastMove] = None
    half_move_clock: int = 0
    position_counts: Counter[str] = field(default_factory=Counter)
    status: Status = Status.ACTIVE
    history: list[MoveRecord] = field(default_factory=list)
    check: bool = False
    promotion_policy: PromotionPolicy = PromotionPolicy.AUTO_QUEEN
    first_move_number: int = 1

    # -- CREATION LOGIC --
    @classmethod
    def new_game(
        cls, promotion_policy: PromotionPolicy = PromotionPolicy.AUTO_QUEEN
    ) -> Self:
        return cls.from_fen(STARTING_FEN, promotion_policy=promotion_policy)

    @classmethod
    def from_fen(
        cls,
        fen: str,
        promotion_policy: PromotionPolicy = PromotionPolicy.AUTO_QUEEN,
    ) -> Self:
        """Start a game from any position. Raises InvalidFENError for malformed input."""
        game = cls(
            board=Board.starting_position(),
            turn=Color.WHITE,
            castling_rights=all_castling_rights(),
            promotion_policy=promotion_policy,
        )
        game.load_fen(fen)
        return game

    def reset(self) -> None:
        """Back to the initial position. Everything derived from earlier moves is dropped."""
        self.load_fen(STARTING_FEN)

    def load_fen(self, fen: str) -> None:
        """
        Replace the whole state by the given position.
        ---
        Parsing happens before anything is assigned, so an InvalidFENError leaves the current state untouched.
        The loaded position is a fresh start: no history, and the position counts once towards repetition.
        """
        state = FENState.from_fen(fen)

        self.board = Board.from_fen(state.placement)
        self.turn = state.color_to_move
        self.castling_rights = state.castling_rights
        self.last_move = self._last_move_from_en_passant_square(state)
        self.half_move_clock = state.half_move_clock
        self.first_move_number = state.num_turns
        self.history = []
        self.position_counts = Counter()
        self.status = Status.ACTIVE
        self._record_position()
        self._update_game_status()

    # -- SERIALIZATION --
    @property
    def full_move_number(self) -> int:
        """Counts up with every white move. From the initial position: ceil(len(history) / 2) + 1"""
        white_moves = sum(1 for record in self.history if record.color == Color.WHITE)
        return self.first_move_number + white_moves

    def fen_state(self) -> FENState:
        return FENState(
            placement=self.board.to_fen(),
            color_to_move=self.turn,
            castling_rights=dict(self.castling_rights),
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            num_turns=self.full_move_number,
        )

    def to_fen(self) -> str:
        return self.fen_state().to_fen()

    @property
    def en_passant_square(self) -> Optional[Square]:
        """The square a pawn skipped over with its double step on the previous move."""
        if self.last_move is None:
            return None
        from_square, to_square = self.last_move.from_square, self.last_move.to_square
        piece = self.board.piece(to_square)
        if piece is None or piece.type != PieceType.PAWN:
            return None
        if abs(to_square.row - from_square.row) != 2:
            return None
        return Square((from_square.row + to_square.row) // 2, from_square.col)

    # -- QUERIES --
    @property
    def winner(self) -> Optional[Color]:
        """Only a checkmate has a winner: the side that just moved, so not the side to move"""
        if self.status != Status.CHECKMATE:
            return None
        return self.turn.opponent

    @property
    def moves_uci(self) -> list[str]:
        return [record.uci for record in self.history]

    def is_legal(self, from_square: Square | str, to_square: Square | str) -> bool:
        """Could the side to move play this? Never raises for well-formed squares, never mutates."""
        if self.status.is_terminal:
            return False
        from_square, to_square = as_square(from_square), as_square(to_square)
        piece = self.board.piece(from_square)
        if piece is None or piece.color != self.turn:
            return False
        return is_legal_move(
            from_square, to_square, self.board, self.last_move, self.castling_rights
        )

    def legal_destinations(self, square: Square | str) -> list[Square]:
        """Squares the piece on `square` may move to (used by clients to highlight moves)."""
        square = as_square(square)
        piece = self.board.piece(square)
        if self.status.is_terminal or piece is None or piece.color != self.turn:
            return []
        return legal_destinations(
            square, self.board, self.last_move, self.castling_rights
        )

    # -- MAKING MOVES --
    def play(self, move: Move | str) -> MoveRecord:
        """Convenience: apply a move given as a Move or in UCI notation"""
        if isinstance(move, str):
            move = Move.from_uci(move)
        return self.apply_move(move.from_square, move.to_square, move.promote_to)

    def apply_move(
        self,
        from_square: Square | str,
        to_square: Square | str,
        promotion: Optional[PieceType | str] = None,
    ) -> MoveRecord:
        """
        Attempt to make a move
        -----

        1. The game must still be active, and the piece must belong to the side to move
        2. The geometry (incl. castling / en passant) must be valid
        3. The move must not leave the own king in check (tried on a scratch copy)
        4. Commit: the board after the move replaces the current one, the promotion is placed
        5. Update castling rights, last move and half move clock
        6. Pass the turn and recompute check and game status
        7. Append the MoveRecord to the history and return it
        """
        from_square, to_square = as_square(from_square), as_square(to_square)

        if self.status.is_terminal:
            raise GameOverError(f"Game is over. status: {self.status}")

        piece = self.board.piece(from_square)
        if piece is None:
            raise NoPieceError(f"There is no piece on {from_square}.")

        if piece.color != self.turn:
            raise NotYourTurnError(
                f"It is not {piece.color}'s turn. Waiting for {self.turn} to move first."
            )

        if not is_valid_move(
            piece,
            from_square,
            to_square,
            self.board,
            self.last_move,
            self.castling_rights,
        ):
            raise IllegalMoveError(
                f"Move not allowed: {piece.type} from {from_square} to {to_square}"
            )

        if leaves_king_in_check(from_square, to_square, self.board, self.last_move):
            raise IllegalMoveError(
                f"Move not allowed: {from_square}{to_square} leaves the {self.turn} king in check"
            )

        promoted_to = self._promotion_piece(piece, to_square, promotion)

        # Everything below is the commit. Keep a snapshot for the notation.
        board_before = self.board
        last_move_before = self.last_move
        rights_before = dict(self.castling_rights)

        is_en_passant = is_en_passant_capture(
            piece, from_square, to_square, board_before, last_move_before
        )
        captured_square = (
            Square(from_square.row, to_square.col) if is_en_passant else to_square
        )
        captured_piece = board_before.piece(captured_square)

        self.board = apply_to_copy(board_before, from_square, to_square, last_move_before)
        if promoted_to is not None:
            self.board.place_piece(promoted_to, to_square)

        self._revoke_castling_rights(from_square, to_square)
        self.last_move = LastMove(from_square, to_square)
        if piece.type == PieceType.PAWN or captured_piece is not None:
            self.half_move_clock = 0
        else:
            self.half_move_clock += 1

        self.turn = self.turn.opponent
        self._record_position()
        self._update_game_status()

        record = MoveRecord(
            from_square=from_square,
            to_square=to_square,
            piece=piece,
            color=piece.color,
            captured_piece=captured_piece,
            is_en_passant=is_en_passant,
            is_castling=is_castling_shape(piece, from_square, to_square),
            promoted_to=promoted_to,
            is_check=self.check,
            is_checkmate=self.status == Status.CHECKMATE,
            is_stalemate=self.status == Status.STALEMATE,
            is_draw=self.status.is_draw,
        )
        # the move must be in the history before serializing: the full move number depends on it
        self.history.append(record)
        record = replace(
            record,
            san=to_san(record, board_before, last_move_before, rights_before),
            position=self.to_fen(),
        )
        self.history[-1] = record
        return record

    # -- PRIVATE HELPERS ---
    def _promotion_piece(
        self, piece: Piece, to_square: Square, promotion: Optional[PieceType | str]
    ) -> Optional[Piece]:
        """
        A pawn reaching the last rank is promoted.
        With the auto-queen policy it always becomes a queen, whatever was asked for.
        """
        if piece.type != PieceType.PAWN or to_square.row != PROMOTION_ROW[piece.color]:
            return None

        if self.promotion_policy == PromotionPolicy.AUTO_QUEEN:
            return piece.promoted_to(PieceType.QUEEN)

        if promotion is None:
            raise PromotionRequiredError(
                f"Pawn reaches {to_square}: choose a piece to promote into."
            )
        return piece.promoted_to(as_promotion_type(promotion))

    def _revoke_castling_rights(self, from_square: Square, to_square: Square) -> None:
        """
        Rights only ever get revoked:
        * the king leaves its home square --> both directions
        * a rook leaves its home square --> the direction of that rook
        * something captures on a rook's home square --> the direction of that rook
        """
        for direction, squares in CASTLING_RULES.items():
            if from_square in (squares.king_from, squares.rook_from) or (
                to_square == squares.rook_from
            ):
                self.castling_rights[direction] = False

    def _record_position(self) -> None:
        key = self.fen_state().repetition_key()
        self.position_counts[key] += 1

    def _update_game_status(self) -> None:
        """
        Performs checks to see if game has ended and changes status accordingly.

        NOTE: the turn has already passed, so it is the side to move that might be mated.
        Mate and stalemate take precedence; the draws are only looked at while legal moves remain.
        """
        self.check = is_in_check(self.board, self.turn)
        if not has_legal_moves(
            self.board, self.turn, self.last_move, self.castling_rights
        ):
            self.status = Status.CHECKMATE if self.check else Status.STALEMATE
        elif self.half_move_clock >= FIFTY_MOVE_RULE_HALF_MOVES:
            self.status = Status.DRAW_FIFTY
        elif self._is_threefold_repetition():
            self.status = Status.DRAW_REPETITION

    def _is_threefold_repetition(self) -> bool:
        key = self.fen_state().repetition_key()
        return self.position_counts[key] >= REPETITIONS_FOR_DRAW

    def _last_move_from_en_passant_square(
        self, state: FENState
    ) -> Optional[LastMove]:
        """
        Rebuild the double step that produced the en passant square, so the capture stays available after loading.
        """
        ep_square = state.en_passant_square
        if ep_square is None:
            return None
        mover = state.color_to_move.opponent
        forward = PAWN_DIRECTION[mover]
        from_square = ep_square.offset(-forward, 0)
        to_square = ep_square.offset(forward, 0)
        board = Board.from_fen(state.placement)
        if board.piece(to_square) != Piece(PieceType.PAWN, mover):
            return None
        return LastMove(from_square, to_square)
