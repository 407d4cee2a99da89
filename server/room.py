"""
Room management for multiplayer Pinak games.

This module handles room creation, player seating, reconnection and
WebSocket fan-out for game sessions.

A Room contains:
    - A room id used for joining (client-chosen or generated)
    - A collection of RoomPlayers keyed by stable player id
    - The Game holding deck, piles, hands and scores

The RoomManager is the room registry. It is created once by the server and
passed into every handler, so handlers never reach for global state.
"""

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Optional

from fastapi import WebSocket

from constants import ROOM_CODE_LENGTH
from errors import ErrorKind, GameError
from game import Game, GamePhase, Player
from scoring import standings

logger = logging.getLogger(__name__)


@dataclass
class RoomPlayer:
    """
    A player in a game room (session-level representation).

    This is separate from game.Player - RoomPlayer tracks the live
    connection and host status, while game.Player tracks hand, runs and
    score. Both share the same stable id.

    Attributes:
        id: Stable player identity (survives reconnects).
        name: Display name.
        websocket: Live WebSocket connection (None while disconnected).
        connection_id: ID of the live connection currently bound.
        is_host: Whether this player may start the game.
    """

    id: str
    name: str
    websocket: Optional[WebSocket] = None
    connection_id: Optional[str] = None
    is_host: bool = False

    @property
    def connected(self) -> bool:
        return self.websocket is not None


@dataclass
class Room:
    """
    A game room that hosts one Pinak game.

    Attributes:
        code: Room id used for joining (e.g., "ABCD").
        team_mode: Whether the game is played in two teams.
        players: Dict mapping stable player IDs to RoomPlayer objects.
        game: Rules engine for this room.
        game_lock: asyncio.Lock serializing game mutations and broadcasts.
        abandoned_at: Monotonic time the last live connection dropped.
    """

    code: str
    team_mode: bool = False
    players: dict[str, RoomPlayer] = field(default_factory=dict)
    game: Game = field(default_factory=Game)
    game_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    abandoned_at: Optional[float] = None

    def __post_init__(self) -> None:
        self.game.room_id = self.code
        self.game.team_mode = self.team_mode

    def add_player(
        self,
        player_id: str,
        name: str,
        websocket: Optional[WebSocket],
        connection_id: Optional[str] = None,
        team: Optional[int] = None,
    ) -> RoomPlayer:
        """
        Seat a player in the room.

        Whoever is seated first holds the host flag.

        Args:
            player_id: Stable player identity.
            name: Display name.
            websocket: Socket the player is connected on, if any.
            connection_id: ID of that connection.
            team: Requested team in team mode (None to auto-assign).

        Returns:
            The new RoomPlayer.

        Raises:
            GameError: GAME_IN_PROGRESS, ROOM_FULL or TEAM_FULL.
        """
        self.game.add_player(Player(id=player_id, name=name), team=team)

        room_player = RoomPlayer(
            id=player_id,
            name=name,
            websocket=websocket,
            connection_id=connection_id,
            is_host=len(self.players) == 0,
        )
        self.players[player_id] = room_player
        return room_player

    def reconnect(self, player_id: str, websocket: WebSocket, connection_id: Optional[str] = None) -> RoomPlayer:
        """
        Bind a new connection to an existing player.

        Turn order, hand and flags are untouched.

        Raises:
            GameError: UNKNOWN_PLAYER if the id is not seated here.
        """
        room_player = self.players.get(player_id)
        if room_player is None:
            raise GameError(ErrorKind.UNKNOWN_PLAYER, "No such player in this room")

        room_player.websocket = websocket
        room_player.connection_id = connection_id
        self.game.record_reconnect(player_id)
        self.abandoned_at = None
        return room_player

    def detach(self, player_id: str, connection_id: Optional[str] = None) -> Optional[RoomPlayer]:
        """
        Drop a player's live connection but keep their seat.

        If `connection_id` is given, only that connection is detached, so a
        stale socket closing after a reconnect does not unbind the new one.
        """
        room_player = self.players.get(player_id)
        if room_player is None:
            return None
        if connection_id is not None and room_player.connection_id != connection_id:
            return None
        room_player.websocket = None
        room_player.connection_id = None
        if self.connected_count() == 0:
            self.abandoned_at = time.monotonic()
        return room_player

    def remove_player(self, player_id: str) -> Optional[RoomPlayer]:
        """
        Remove a player from the lobby.

        Handles host reassignment if the host leaves. Seats are fixed once
        the game has started, so this returns None after that.

        Args:
            player_id: Stable id of the leaving player.

        Returns:
            The removed RoomPlayer, or None if not found or not removable.
        """
        if player_id not in self.players:
            return None
        if self.game.remove_player(player_id) is None:
            return None

        room_player = self.players.pop(player_id)

        # Host passes to the longest-seated remaining player
        if room_player.is_host and self.players:
            next_host = next(iter(self.players.values()))
            next_host.is_host = True

        return room_player

    def get_player(self, player_id: str) -> Optional[RoomPlayer]:
        """Look up a seated player by stable id."""
        return self.players.get(player_id)

    def is_empty(self) -> bool:
        """True once every seat has been vacated."""
        return len(self.players) == 0

    def connected_count(self) -> int:
        return sum(1 for p in self.players.values() if p.connected)

    def player_list(self) -> list[dict]:
        """
        Get list of players for lobby display.

        Returns:
            List of dicts with id, name, team, is_host and connected.
        """
        result = []
        for game_player in self.game.players:
            room_player = self.players.get(game_player.id)
            result.append({
                "id": game_player.id,
                "name": game_player.name,
                "team": game_player.team,
                "is_host": bool(room_player and room_player.is_host),
                "connected": bool(room_player and room_player.connected),
            })
        return result

    def state_for(self, player_id: Optional[str]) -> dict:
        """Game state for one recipient, with room-level player info added."""
        state = self.game.get_state(player_id)
        for player_data in state["players"]:
            room_player = self.players.get(player_data["id"])
            player_data["is_host"] = bool(room_player and room_player.is_host)
            player_data["connected"] = bool(room_player and room_player.connected)
        return state

    async def _deliver(self, room_player: RoomPlayer, message: dict) -> None:
        # Detached players have no socket until they reconnect
        if room_player.websocket is None:
            return
        try:
            await room_player.websocket.send_json(message)
        except Exception as e:
            logger.debug(f"Send to {room_player.id} in room {self.code} failed: {e}")

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """
        Fan a message out to every attached player.

        Args:
            message: Payload passed to send_json.
            exclude: Stable id that should not receive it.
        """
        for room_player in list(self.players.values()):
            if room_player.id != exclude:
                await self._deliver(room_player, message)

    async def send_to(self, player_id: str, message: dict) -> None:
        """Deliver a message to one seated player, if attached."""
        room_player = self.players.get(player_id)
        if room_player is not None:
            await self._deliver(room_player, message)

    async def send_state(self, player_id: str) -> None:
        """Send one player their current masked view."""
        await self.send_to(player_id, {"type": "game_state", "game_state": self.state_for(player_id)})

    async def broadcast_state(self) -> None:
        """Send every connected player their own masked view of the game."""
        for player_id in list(self.players):
            await self.send_state(player_id)

    async def announce_results(self) -> None:
        """
        Announce the result of the round that just ended.

        Sent once by the command that ended the round; later broadcasts
        while the round is over carry only game_state.
        """
        game = self.game
        if game.phase == GamePhase.ROUND_OVER:
            await self.broadcast({
                "type": "round_over",
                "round": game.current_round,
                "winner_id": game.winner_id,
                "deltas": game.last_round_deltas,
                "standings": standings(game.players),
            })
        elif game.phase == GamePhase.GAME_OVER:
            await self.broadcast({
                "type": "game_over",
                "winner_id": game.winner_id,
                "deltas": game.last_round_deltas,
                "final_standings": standings(game.players),
                "team_scores": list(game.team_scores) if game.team_mode else None,
            })


class RoomManager:
    """
    Registry of live rooms keyed by upper-case room id.

    Ids are taken from the client when given, otherwise generated.
    """

    def __init__(self) -> None:
        """Start with no rooms."""
        self.rooms: dict[str, Room] = {}

    @staticmethod
    def normalize_code(code: str) -> str:
        return code.strip().upper()

    def _generate_code(self, max_attempts: int = 100) -> str:
        """Generate a unique room code."""
        for _ in range(max_attempts):
            code = "".join(random.choices(string.ascii_uppercase, k=ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code
        raise RuntimeError("Could not generate unique room code")

    def create_room(self, code: Optional[str] = None, team_mode: bool = False) -> Room:
        """
        Create a new room.

        Args:
            code: Requested room id, or None/empty to generate one.
            team_mode: Whether the room plays in teams.

        Returns:
            The newly created Room.

        Raises:
            GameError: ROOM_EXISTS if the requested id is taken.
        """
        code = self.normalize_code(code) if code else self._generate_code()
        if code in self.rooms:
            raise GameError(ErrorKind.ROOM_EXISTS, f"Room {code} already exists")
        room = Room(code=code, team_mode=team_mode)
        self.rooms[code] = room
        logger.info(f"Room {code} created (team_mode={team_mode})")
        return room

    def get_room(self, code: str) -> Optional[Room]:
        """
        Find a room by id, ignoring case and surrounding whitespace.

        Returns:
            The matching Room, or None.
        """
        return self.rooms.get(self.normalize_code(code))

    def require_room(self, code: str) -> Room:
        """Get a room by its code, raising ROOM_NOT_FOUND if missing."""
        room = self.get_room(code)
        if room is None:
            raise GameError(ErrorKind.ROOM_NOT_FOUND, "Room not found")
        return room

    def remove_room(self, code: str) -> None:
        """
        Forget a room once its last player is gone.

        Args:
            code: Id of the room, in any case.
        """
        code = self.normalize_code(code)
        if code in self.rooms:
            del self.rooms[code]
            logger.info(f"Room {code} removed")

    def remove_abandoned(self, timeout: float, now: Optional[float] = None) -> list[str]:
        """
        Remove rooms nobody has been connected to for at least `timeout` seconds.

        Rooms with a command in flight are left for the next sweep.

        Returns:
            Ids of the removed rooms.
        """
        now = time.monotonic() if now is None else now
        expired = [
            code for code, room in self.rooms.items()
            if room.abandoned_at is not None
            and room.connected_count() == 0
            and not room.game_lock.locked()
            and now - room.abandoned_at >= timeout
        ]
        for code in expired:
            self.remove_room(code)
        return expired

