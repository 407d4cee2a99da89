"""FastAPI WebSocket server for the Pinak card game."""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from commands import parse_command
from config import config
from errors import ErrorKind, GameError
from handlers import ConnectionContext, dispatch, handle_player_disconnect
from logging_config import connection_id_var, room_id_var, setup_logging
from room import Room, RoomManager
from routers.health import router as health_router
from routers.health import set_health_dependencies

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)

room_manager = RoomManager()


async def _periodic_room_sweep():
    """Periodic task removing started rooms nobody has reconnected to."""
    while True:
        try:
            await asyncio.sleep(config.ROOM_SWEEP_INTERVAL)
            removed = room_manager.remove_abandoned(config.ROOM_ABANDON_TIMEOUT)
            if removed:
                logger.info(f"Removed abandoned rooms: {', '.join(removed)}")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Room sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    set_health_dependencies(room_manager=room_manager)
    sweep_task = asyncio.create_task(_periodic_room_sweep())
    logger.info(f"Pinak server started (environment={config.ENVIRONMENT})")

    yield

    logger.info("Shutdown initiated...")
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass
    await _close_all_websockets()
    logger.info("Shutdown complete")


async def _close_all_websockets():
    """Close all active WebSocket connections gracefully."""
    for room in list(room_manager.rooms.values()):
        for player in room.players.values():
            if player.websocket:
                try:
                    await player.websocket.close(code=1001, reason="Server shutting down")
                except RuntimeError as e:
                    logger.debug(f"Close for {player.id} failed: {e}")
    logger.info("All WebSocket connections closed")


app = FastAPI(
    title="Pinak Card Game",
    debug=config.DEBUG,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health_router)


async def broadcast_game_state(room: Room):
    """Send each player in the room their own view of the game."""
    await room.broadcast_state()


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()

    connection_id = str(uuid.uuid4())
    connection_id_var.set(connection_id)
    logger.debug(f"WebSocket connected as {connection_id}")

    ctx = ConnectionContext(websocket=websocket, connection_id=connection_id)

    # Shared dependencies passed to every handler
    handler_deps = dict(
        room_manager=room_manager,
        broadcast_game_state=broadcast_game_state,
    )

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                command = parse_command(json.loads(raw))
            except ValueError:
                await websocket.send_json(
                    GameError(ErrorKind.INVALID_COMMAND, "Messages must be JSON objects").to_message()
                )
                continue
            except GameError as e:
                await websocket.send_json(e.to_message())
                continue

            await dispatch(command, ctx, **handler_deps)
            if ctx.current_room:
                room_id_var.set(ctx.current_room.code)
    except WebSocketDisconnect:
        logger.debug(f"WebSocket {connection_id} disconnected")
        await handle_player_disconnect(ctx, **handler_deps)


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting Pinak server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
