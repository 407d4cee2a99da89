"""WebSocket command handlers for the Pinak card game.

Each handler corresponds to a single command type from the client.
Commands arrive already parsed (see commands.py) and are dispatched via
dispatch(), which turns any GameError into an error message for the
issuing connection followed by a re-sync of its current view.

Handlers receive their collaborators as keyword arguments:
    room_manager: the RoomManager registry
    broadcast_game_state: coroutine sending every member their masked view
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import WebSocket

from commands import (
    AddToRun,
    Command,
    ContinueRound,
    CreateRoom,
    Discard,
    DrawClosed,
    DrawOpen,
    EndTurn,
    GoOut,
    JoinRoom,
    NewGame,
    OpenRun,
    Reconnect,
    StartGame,
)
from errors import ErrorKind, GameError
from game import GamePhase
from logging_config import get_logger
from room import Room, RoomManager

logger = get_logger(__name__)


@dataclass
class ConnectionContext:
    """State tracked per WebSocket connection."""

    websocket: WebSocket
    connection_id: str
    player_id: Optional[str] = None
    current_room: Optional[Room] = None


def log_action(room: Room, player_id: Optional[str], action: str) -> None:
    """Log an accepted player action with room/player context."""
    logger.with_context(room_id=room.code, player_id=player_id).info(action)


def _resolve_room(room_id: str, ctx: ConnectionContext, room_manager: RoomManager) -> Room:
    """
    Look up the command's room and check this connection is seated there.

    A connection that has been superseded by a reconnect is no longer
    allowed to act for the player.
    """
    room = room_manager.require_room(room_id)
    room_player = room.get_player(ctx.player_id) if ctx.player_id else None
    if room_player is None or room_player.connection_id != ctx.connection_id:
        raise GameError(ErrorKind.NOT_IN_ROOM, "You are not seated in this room")
    return room


async def _release_previous_seat(
    ctx: ConnectionContext,
    previous_room: Optional[Room],
    previous_player_id: Optional[str],
    **deps,
) -> None:
    """
    Give up the seat this connection held before it took a new one.

    Runs the normal disconnect path for the old seat, so a lobby seat is
    freed and an in-game seat is detached. Nothing happens when the
    connection is still bound to the same seat.
    """
    if previous_room is None or previous_player_id is None:
        return
    if previous_room is ctx.current_room and previous_player_id == ctx.player_id:
        return
    previous = ConnectionContext(
        websocket=ctx.websocket,
        connection_id=ctx.connection_id,
        player_id=previous_player_id,
        current_room=previous_room,
    )
    await handle_player_disconnect(previous, **deps)


async def reject(ctx: ConnectionContext, error: GameError, room: Optional[Room]) -> None:
    """Notify the issuer of a rejected command and re-sync their view."""
    logger.with_context(
        room_id=room.code if room else None,
        player_id=ctx.player_id,
        error_kind=error.kind.value,
    ).info(f"Rejected: {error.message}")

    await ctx.websocket.send_json(error.to_message())
    room_player = room.get_player(ctx.player_id) if room and ctx.player_id else None
    if room_player and room_player.connection_id == ctx.connection_id:
        await ctx.websocket.send_json({
            "type": "game_state",
            "game_state": room.state_for(ctx.player_id),
        })


async def dispatch(command: Command, ctx: ConnectionContext, *, room_manager: RoomManager, **kw) -> None:
    """Run the handler for a parsed command, converting rejections."""
    handler = HANDLERS[command.type]
    try:
        await handler(command, ctx, room_manager=room_manager, **kw)
    except GameError as e:
        room = None
        room_id = getattr(command, "room_id", "")
        if room_id:
            room = room_manager.get_room(room_id)
        await reject(ctx, e, room or ctx.current_room)


# ---------------------------------------------------------------------------
# Lobby / Room handlers
# ---------------------------------------------------------------------------

async def handle_create_room(cmd: CreateRoom, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    previous_room, previous_player_id = ctx.current_room, ctx.player_id
    player_id = cmd.player_id or uuid.uuid4().hex
    room = room_manager.create_room(cmd.room_id or None, team_mode=cmd.team_mode)

    async with room.game_lock:
        room.add_player(player_id, cmd.player_name, ctx.websocket, ctx.connection_id, team=cmd.team)
        ctx.player_id = player_id
        ctx.current_room = room
        log_action(room, player_id, f"{cmd.player_name} created the room")

        await ctx.websocket.send_json({
            "type": "room_created",
            "room_id": room.code,
            "player_id": player_id,
            "team_mode": room.team_mode,
        })
        await broadcast_game_state(room)

    await _release_previous_seat(
        ctx, previous_room, previous_player_id,
        room_manager=room_manager, broadcast_game_state=broadcast_game_state,
    )


async def handle_join_room(cmd: JoinRoom, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = room_manager.require_room(cmd.room_id)

    # A known identity joining again is a reconnect
    if cmd.player_id and cmd.player_id in room.players:
        await handle_reconnect(
            Reconnect(type="reconnect", room_id=cmd.room_id, player_id=cmd.player_id),
            ctx,
            room_manager=room_manager,
            broadcast_game_state=broadcast_game_state,
        )
        return

    previous_room, previous_player_id = ctx.current_room, ctx.player_id
    player_id = cmd.player_id or uuid.uuid4().hex
    async with room.game_lock:
        room.add_player(player_id, cmd.player_name, ctx.websocket, ctx.connection_id, team=cmd.team)
        ctx.player_id = player_id
        ctx.current_room = room
        log_action(room, player_id, f"{cmd.player_name} joined the room")

        await ctx.websocket.send_json({
            "type": "room_joined",
            "room_id": room.code,
            "player_id": player_id,
            "team_mode": room.team_mode,
        })
        await room.broadcast({
            "type": "player_joined",
            "player_id": player_id,
            "player_name": cmd.player_name,
            "players": room.player_list(),
        }, exclude=player_id)
        await broadcast_game_state(room)

    await _release_previous_seat(
        ctx, previous_room, previous_player_id,
        room_manager=room_manager, broadcast_game_state=broadcast_game_state,
    )


async def handle_reconnect(cmd: Reconnect, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = room_manager.require_room(cmd.room_id)
    previous_room, previous_player_id = ctx.current_room, ctx.player_id

    async with room.game_lock:
        room_player = room.reconnect(cmd.player_id, ctx.websocket, ctx.connection_id)
        ctx.player_id = cmd.player_id
        ctx.current_room = room
        log_action(room, cmd.player_id, f"{room_player.name} reconnected")

        await ctx.websocket.send_json({
            "type": "reconnected",
            "room_id": room.code,
            "player_id": cmd.player_id,
            "team_mode": room.team_mode,
        })
        await broadcast_game_state(room)

    await _release_previous_seat(
        ctx, previous_room, previous_player_id,
        room_manager=room_manager, broadcast_game_state=broadcast_game_state,
    )


# ---------------------------------------------------------------------------
# Game lifecycle handlers
# ---------------------------------------------------------------------------

async def handle_start_game(cmd: StartGame, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)
    if not room.players[ctx.player_id].is_host:
        raise GameError(ErrorKind.NOT_HOST, "Only the host can start the game")

    async with room.game_lock:
        room.game.start_game()
        log_action(room, ctx.player_id, f"started the game with {len(room.players)} players")
        await broadcast_game_state(room)


async def handle_continue_round(cmd: ContinueRound, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        room.game.start_next_round()
        log_action(room, ctx.player_id, f"started round {room.game.current_round}")
        await broadcast_game_state(room)


async def handle_new_game(cmd: NewGame, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        room.game.start_new_game()
        log_action(room, ctx.player_id, "started a new game")
        await broadcast_game_state(room)


# ---------------------------------------------------------------------------
# Turn action handlers
# ---------------------------------------------------------------------------

async def handle_draw_closed(cmd: DrawClosed, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        card = room.game.draw_closed(ctx.player_id)
        log_action(room, ctx.player_id, f"drew {card} from the closed pile")
        await broadcast_game_state(room)


async def handle_draw_open(cmd: DrawOpen, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        cards = room.game.draw_open(ctx.player_id, cmd.count)
        log_action(room, ctx.player_id, f"took {len(cards)} from the open pile: {' '.join(map(str, cards))}")
        await broadcast_game_state(room)


async def handle_discard(cmd: Discard, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        card = room.game.discard(ctx.player_id, cmd.index)
        log_action(room, ctx.player_id, f"discarded {card}")
        await broadcast_game_state(room)
        if room.game.round_over:
            log_action(room, ctx.player_id, "went out by discarding")
            await room.announce_results()


async def handle_end_turn(cmd: EndTurn, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        room.game.end_turn(ctx.player_id)
        log_action(room, ctx.player_id, "ended turn without discarding")
        await broadcast_game_state(room)


async def handle_open_run(cmd: OpenRun, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        run = room.game.open_run(ctx.player_id, cmd.card_ids)
        log_action(room, ctx.player_id, f"opened run {' '.join(map(str, run))}")
        await broadcast_game_state(room)
        if room.game.round_over:
            log_action(room, ctx.player_id, "went out by melding")
            await room.announce_results()


async def handle_add_to_run(cmd: AddToRun, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        run = room.game.add_to_run(ctx.player_id, cmd.target_player, cmd.run_index, cmd.card_ids)
        log_action(
            room, ctx.player_id,
            f"extended run {cmd.run_index} of {cmd.target_player} to {' '.join(map(str, run))}",
        )
        await broadcast_game_state(room)
        if room.game.round_over:
            log_action(room, ctx.player_id, "went out by melding")
            await room.announce_results()


async def handle_go_out(cmd: GoOut, ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    room = _resolve_room(cmd.room_id, ctx, room_manager)

    async with room.game_lock:
        room.game.go_out(ctx.player_id)
        log_action(room, ctx.player_id, "went out")
        await broadcast_game_state(room)
        await room.announce_results()


# ---------------------------------------------------------------------------
# Disconnect
# ---------------------------------------------------------------------------

async def handle_player_disconnect(ctx: ConnectionContext, *, room_manager, broadcast_game_state, **kw) -> None:
    """
    Handle a closed connection.

    In the lobby the player's seat is released. Once the game has started
    the seat is kept and only the connection is detached; the turn waits
    for the player to reconnect.
    """
    room = ctx.current_room
    if room is None or ctx.player_id is None:
        return

    room_player = room.get_player(ctx.player_id)
    if room_player is None or room_player.connection_id != ctx.connection_id:
        # Superseded by a reconnect, nothing to release
        return

    async with room.game_lock:
        if room.game.phase == GamePhase.WAITING:
            room.remove_player(ctx.player_id)
            log_action(room, ctx.player_id, f"{room_player.name} left the lobby")
            event = "player_left"
        else:
            room.detach(ctx.player_id, ctx.connection_id)
            log_action(room, ctx.player_id, f"{room_player.name} disconnected")
            event = "player_disconnected"

        if room.is_empty():
            room_manager.remove_room(room.code)
            return

        await room.broadcast({
            "type": event,
            "player_id": ctx.player_id,
            "player_name": room_player.name,
            "players": room.player_list(),
        })
        await broadcast_game_state(room)


# ---------------------------------------------------------------------------
# Handler dispatch table
# ---------------------------------------------------------------------------

HANDLERS = {
    "create_room": handle_create_room,
    "join_room": handle_join_room,
    "reconnect": handle_reconnect,
    "start_game": handle_start_game,
    "continue_round": handle_continue_round,
    "new_game": handle_new_game,
    "draw_closed": handle_draw_closed,
    "draw_open": handle_draw_open,
    "discard": handle_discard,
    "end_turn": handle_end_turn,
    "open_run": handle_open_run,
    "add_to_run": handle_add_to_run,
    "go_out": handle_go_out,
}
