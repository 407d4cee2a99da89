"""
Inbound WebSocket commands.

Every client message must parse into exactly one of the command models
below, selected by its "type" field. Anything else is rejected at the
boundary and never reaches a handler.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from errors import ErrorKind, GameError

MAX_NAME_LENGTH = 24
MAX_ROOM_ID_LENGTH = 32


class _Command(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class RoomCommand(_Command):
    room_id: str = Field(min_length=1, max_length=MAX_ROOM_ID_LENGTH)


class CreateRoom(_Command):
    type: Literal["create_room"]
    room_id: str = Field("", max_length=MAX_ROOM_ID_LENGTH)
    player_name: str = Field("Player", min_length=1, max_length=MAX_NAME_LENGTH)
    team_mode: bool = False
    player_id: Optional[str] = Field(None, min_length=1, max_length=64)
    team: Optional[int] = Field(None, ge=0, le=1)


class JoinRoom(RoomCommand):
    type: Literal["join_room"]
    player_name: str = Field("Player", min_length=1, max_length=MAX_NAME_LENGTH)
    player_id: Optional[str] = Field(None, min_length=1, max_length=64)
    team: Optional[int] = Field(None, ge=0, le=1)


class Reconnect(RoomCommand):
    type: Literal["reconnect"]
    player_id: str = Field(min_length=1, max_length=64)


class StartGame(RoomCommand):
    type: Literal["start_game"]


class DrawClosed(RoomCommand):
    type: Literal["draw_closed"]


class DrawOpen(RoomCommand):
    type: Literal["draw_open"]
    count: int = Field(1, ge=1)


class Discard(RoomCommand):
    type: Literal["discard"]
    index: int = Field(ge=0)


class OpenRun(RoomCommand):
    type: Literal["open_run"]
    card_ids: list[str] = Field(min_length=1)


class AddToRun(RoomCommand):
    type: Literal["add_to_run"]
    target_player: str = Field(min_length=1)
    run_index: int = Field(ge=0)
    card_ids: list[str] = Field(min_length=1)


class EndTurn(RoomCommand):
    type: Literal["end_turn"]


class GoOut(RoomCommand):
    type: Literal["go_out"]


class ContinueRound(RoomCommand):
    type: Literal["continue_round"]


class NewGame(RoomCommand):
    type: Literal["new_game"]


Command = Annotated[
    Union[
        CreateRoom,
        JoinRoom,
        Reconnect,
        StartGame,
        DrawClosed,
        DrawOpen,
        Discard,
        OpenRun,
        AddToRun,
        EndTurn,
        GoOut,
        ContinueRound,
        NewGame,
    ],
    Field(discriminator="type"),
]

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


def parse_command(data: object) -> Command:
    """
    Parse a raw client message into a command.

    Args:
        data: Decoded JSON payload.

    Returns:
        The matching command model.

    Raises:
        GameError: INVALID_COMMAND if the payload matches no command.
    """
    try:
        return _command_adapter.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ())) or "message"
        raise GameError(ErrorKind.INVALID_COMMAND, f"Invalid {location}: {first.get('msg', 'bad payload')}") from e
