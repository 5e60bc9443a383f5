"""
Session events exchanged over the relay connection, as pydantic models.

On the wire every event is a JSON object with an `event` discriminator and camelCase field names.
"""

from typing import Annotated, Any, Literal, Optional, Self, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from lobbychess.chess.moves import MoveRecord
from lobbychess.chess.square import is_algebraic
from lobbychess.core.shared_types import Color, Status

EndingType = Literal["checkmate", "stalemate", "draw"]


class Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# --- CLIENT -> RELAY ---
class JoinSession(Event):
    event: Literal["join-session"] = "join-session"


class LeaveSession(Event):
    event: Literal["leave-session"] = "leave-session"


class SubmitMove(Event):
    """
    The move a client validated locally. Only the coordinates (and promotion choice) are acted upon;
    the flags and position are the client's claims and only get compared against the relay's own result.
    """

    event: Literal["submit-move"] = "submit-move"
    from_: str = Field(alias="from")
    to: str
    piece: Optional[str] = None
    promoted_to: Optional[str] = None
    captured_piece: Optional[str] = None
    is_en_passant: bool = False
    is_check: bool = False
    is_checkmate: bool = False
    is_stalemate: bool = False
    is_draw: bool = False
    game_status: Optional[str] = None
    position: Optional[str] = None

    @field_validator("from_", "to")
    @classmethod
    def validate_square(cls, value: str) -> str:
        if not is_algebraic(value):
            raise ValueError(f"Cannot interpret {value!r} as a valid square name.")
        return value


ClientEvent = Annotated[
    Union[JoinSession, SubmitMove, LeaveSession], Field(discriminator="event")
]
CLIENT_EVENTS: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def parse_client_event(raw: str | bytes) -> ClientEvent:
    """Raises pydantic.ValidationError for anything that is not a known client event."""
    return CLIENT_EVENTS.validate_json(raw)


# --- RELAY -> CLIENT ---
class PlayerInfo(Event):
    id: str
    color: Color


class WaitingForPeer(Event):
    event: Literal["waiting-for-peer"] = "waiting-for-peer"
    session_id: str
    color: Color


class SessionStart(Event):
    """Sent to each member separately: `color` is the recipient's own color."""

    event: Literal["session-start"] = "session-start"
    session_id: str
    players: list[PlayerInfo]
    color: Color
    position: str


class MoveRelayed(Event):
    event: Literal["move-relayed"] = "move-relayed"
    from_: str = Field(alias="from")
    to: str
    piece: str
    color: Color
    captured_piece: Optional[str] = None
    is_en_passant: bool = False
    is_castling: bool = False
    promoted_to: Optional[str] = None
    is_check: bool = False
    is_checkmate: bool = False
    is_stalemate: bool = False
    is_draw: bool = False
    game_status: Status = Status.ACTIVE
    san: str = ""
    position: str

    @classmethod
    def from_record(cls, record: MoveRecord, game_status: Status) -> Self:
        return cls.model_validate({**record.to_dict(), "gameStatus": game_status})


class PeerLeft(Event):
    event: Literal["peer-left"] = "peer-left"
    color: Optional[Color] = None


class SessionEnded(Event):
    event: Literal["session-ended"] = "session-ended"
    type: EndingType
    reason: Status
    winner_color: Optional[Color] = None

    @classmethod
    def from_status(cls, status: Status, winner: Optional[Color]) -> Self:
        ending: EndingType = "draw" if status.is_draw else str(status)  # type: ignore[assignment]
        return cls(type=ending, reason=status, winner_color=winner)


class SessionReset(Event):
    event: Literal["session-reset"] = "session-reset"


class LobbyFull(Event):
    event: Literal["lobby-full"] = "lobby-full"


class PromotionRequired(Event):
    event: Literal["promotion-required"] = "promotion-required"
    from_: str = Field(alias="from")
    to: str


class ErrorNotice(Event):
    event: Literal["error"] = "error"
    message: str


RelayEvent = Annotated[
    Union[
        WaitingForPeer,
        SessionStart,
        MoveRelayed,
        PeerLeft,
        SessionEnded,
        SessionReset,
        LobbyFull,
        PromotionRequired,
        ErrorNotice,
    ],
    Field(discriminator="event"),
]
RELAY_EVENTS: TypeAdapter[RelayEvent] = TypeAdapter(RelayEvent)


def parse_relay_event(raw: str | bytes | dict[str, Any]) -> RelayEvent:
    if isinstance(raw, dict):
        return RELAY_EVENTS.validate_python(raw)
    return RELAY_EVENTS.validate_json(raw)
