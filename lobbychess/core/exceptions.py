"""
Exceptions raised by the domain and relay layers.

Everything the engine rejects is raised as a subclass of GameError, everything the relay refuses as a subclass of SessionError.
The relay turns both into notices for the offending peer.
"""


class GameError(Exception):
    """Base class for rejections by the chess engine. State is unchanged when one is raised."""


class InvalidFENError(GameError):
    pass


class InvalidSquareError(GameError):
    pass


class IllegalMoveError(GameError):
    pass


class NoPieceError(IllegalMoveError):
    pass


class NotYourTurnError(IllegalMoveError):
    pass


class GameOverError(GameError):
    """The game reached a terminal status. Only a reset (or loading a position) reopens it."""


class PromotionRequiredError(GameError):
    """A pawn reaches the last rank but no piece to promote into was supplied."""


class SessionError(Exception):
    """Base class for protocol violations detected by the relay."""


class LobbyFullError(SessionError):
    pass


class SessionNotActiveError(SessionError):
    pass


class NotAPlayerError(SessionError):
    pass


class OutOfTurnError(SessionError):
    pass


class RepositoryError(Exception):
    pass
