"""
Game logic for Pinak.

This module implements the turn/meld state machine: player state, dealing,
drawing and discarding, opening and extending runs, going out, round and
game progression, and the per-player state snapshot sent to clients.

Pinak Rules Summary:
    - 2-4 players, optionally in two teams of up to 2
    - Each player is dealt 7 cards; one card starts the open (face-up) pile
    - On your turn: draw one card from the closed pile, or take the top N
      cards of the open pile
    - Then optionally open runs (3+ cards of one suit in sequence, at most
      one wildcard 2) or add to your own runs (or a teammate's)
    - Then discard a card, or end the turn without discarding when the
      draw did not make a discard mandatory
    - Emptying your hand ends the round

Turn flow for the current player:
    awaiting draw --draw--> awaiting discard/meld --discard|end turn--> next player
                                     |
                                     +--hand empty--> round over

Every command validates completely before mutating anything. A rejected
command raises GameError and leaves the game untouched.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any

from cards import Card, Deck, HIDDEN_CARD
from constants import HAND_SIZE, MAX_PLAYERS, MAX_TEAM_SIZE, MIN_PLAYERS, NUM_TEAMS, STATE_LOG_TAIL
from errors import ErrorKind, GameError
from house_rules import must_play_mandatory_melds_now
from models.events import EventType, GameEvent
from runs import count_wildcards, normalize_run, valid_run, MAX_WILDCARDS_PER_RUN, MIN_RUN_LENGTH
from scoring import apply_round_scores, is_game_over, round_deltas, standings, team_labels

logger = logging.getLogger(__name__)


@dataclass
class Player:
    """
    A player in a game of Pinak.

    Attributes:
        id: Stable player identity. Survives reconnects.
        name: Display name.
        team: 0 or 1 in team mode, None otherwise.
        hand: Cards held by this player.
        runs: Runs this player has opened, each in normalized order.
        opened: Whether the player has opened a run this round.
        must_discard: A discard is required before the turn can end.
        can_discard: The player has drawn this turn (no further draws).
        barred_card_id: Card that may not be discarded this turn.
        score: Cumulative score (mirrors the team score in team mode).
        last_delta: Score change from the most recent round.
    """

    id: str
    name: str
    team: Optional[int] = None
    hand: list[Card] = field(default_factory=list)
    runs: list[list[Card]] = field(default_factory=list)
    opened: bool = False
    must_discard: bool = False
    can_discard: bool = False
    barred_card_id: Optional[str] = None
    score: int = 0
    last_delta: int = 0

    def reset_for_round(self) -> None:
        """Clear all per-round state. Scores are kept."""
        self.hand = []
        self.runs = []
        self.opened = False
        self.must_discard = False
        self.can_discard = False
        self.barred_card_id = None

    def end_turn_flags(self) -> None:
        self.must_discard = False
        self.can_discard = False
        self.barred_card_id = None

    def remove_cards(self, cards: list[Card]) -> None:
        """Take the given cards out of the hand."""
        ids = {c.id for c in cards}
        self.hand = [c for c in self.hand if c.id not in ids]

    def hand_to_dict(self, reveal: bool) -> list[dict]:
        """
        Convert the hand for client display.

        Args:
            reveal: True only for the hand's owner. Anyone else receives a
                same-length list of placeholders.
        """
        if reveal:
            return [card.to_dict() for card in self.hand]
        return [dict(HIDDEN_CARD) for _ in self.hand]

    def runs_to_dict(self) -> list[list[dict]]:
        return [[card.to_dict() for card in run] for run in self.runs]


class GamePhase(Enum):
    """
    Phases of a Pinak game.

    Flow: WAITING -> PLAYING -> ROUND_OVER -> PLAYING -> ... -> GAME_OVER
    """

    WAITING = "waiting"          # Lobby, waiting for players to join
    PLAYING = "playing"          # A round is in progress
    ROUND_OVER = "round_over"    # Someone went out, scores applied
    GAME_OVER = "game_over"      # A player or team reached the winning score


@dataclass
class Game:
    """
    Main game state and rules engine for one room.

    Attributes:
        room_id: Room this game belongs to.
        team_mode: Whether players are split into two teams.
        players: Players in seat order (max 4, fixed once started).
        deck: The closed (face-down) pile.
        open_pile: Face-up pile, bottom to top.
        turn: Index of the player whose turn it is.
        phase: Current game phase.
        dealer_idx: Dealer for the current round; rotates every round.
        current_round: Round number (1-indexed, 0 before the first deal).
        team_scores: Authoritative team totals (team mode only).
        winner_id: Stable ID of the player who went out this round.
        last_round_deltas: Score changes of the most recent round.
        events: Append-only log of accepted actions.
    """

    room_id: str = ""
    team_mode: bool = False
    players: list[Player] = field(default_factory=list)
    deck: Optional[Deck] = None
    open_pile: list[Card] = field(default_factory=list)
    turn: int = 0
    phase: GamePhase = GamePhase.WAITING
    dealer_idx: int = 0
    current_round: int = 0
    team_scores: list[int] = field(default_factory=lambda: [0] * NUM_TEAMS)
    winner_id: Optional[str] = None
    last_round_deltas: dict[str, int] = field(default_factory=dict)
    events: list[GameEvent] = field(default_factory=list)
    _sequence_num: int = field(default=0, repr=False, compare=False)

    def _emit(
        self,
        event_type: EventType,
        player_id: Optional[str] = None,
        **data: Any,
    ) -> None:
        """
        Append an event to the game log.

        Args:
            event_type: Event type.
            player_id: ID of player who triggered the event.
            **data: Event-specific data fields.
        """
        self._sequence_num += 1
        self.events.append(GameEvent(
            event_type=event_type,
            room_id=self.room_id,
            sequence_num=self._sequence_num,
            player_id=player_id,
            data=data,
        ))

    # -------------------------------------------------------------------------
    # Player Management
    # -------------------------------------------------------------------------

    def add_player(self, player: Player, team: Optional[int] = None) -> Player:
        """
        Seat a player in the lobby.

        In team mode the player joins the requested team, or the smaller
        team when no choice is given.

        Args:
            player: The player to add.
            team: Requested team (0 or 1), team mode only.

        Returns:
            The seated player.

        Raises:
            GameError: GAME_IN_PROGRESS, ROOM_FULL or TEAM_FULL.
        """
        if self.phase != GamePhase.WAITING:
            raise GameError(ErrorKind.GAME_IN_PROGRESS, "Game already in progress")
        if len(self.players) >= MAX_PLAYERS:
            raise GameError(ErrorKind.ROOM_FULL, "Room is full")

        if self.team_mode:
            player.team = self._choose_team(team)
        else:
            player.team = None

        self.players.append(player)
        self._emit(EventType.PLAYER_JOINED, player_id=player.id, player_name=player.name, team=player.team)
        return player

    def _choose_team(self, requested: Optional[int]) -> int:
        sizes = [self.team_size(t) for t in range(NUM_TEAMS)]
        if requested is None:
            requested = sizes.index(min(sizes))
        if requested not in range(NUM_TEAMS):
            raise GameError(ErrorKind.INVALID_COMMAND, f"Team must be between 0 and {NUM_TEAMS - 1}")
        if sizes[requested] >= MAX_TEAM_SIZE:
            raise GameError(ErrorKind.TEAM_FULL, f"Team {requested + 1} is full")
        return requested

    def team_size(self, team: int) -> int:
        return sum(1 for p in self.players if p.team == team)

    def remove_player(self, player_id: str) -> Optional[Player]:
        """
        Remove a player from the lobby.

        Seats are fixed once the game starts, so this only succeeds while
        the game is WAITING.

        Args:
            player_id: The stable ID of the player to remove.

        Returns:
            The removed Player, or None if not found or not removable.
        """
        if self.phase != GamePhase.WAITING:
            return None
        for i, player in enumerate(self.players):
            if player.id == player_id:
                removed = self.players.pop(i)
                self._emit(EventType.PLAYER_LEFT, player_id=player_id, player_name=removed.name)
                return removed
        return None

    def record_reconnect(self, player_id: str) -> None:
        """Log a player rebinding to their seat. No game state changes."""
        player = self.get_player(player_id)
        if player:
            self._emit(EventType.PLAYER_RECONNECTED, player_id=player_id, player_name=player.name)

    def get_player(self, player_id: str) -> Optional[Player]:
        """
        Find a player by their stable ID.

        Returns:
            The Player if found, None otherwise.
        """
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.players and 0 <= self.turn < len(self.players):
            return self.players[self.turn]
        return None

    def is_teammate(self, player: Player, other: Player) -> bool:
        return self.team_mode and player.team is not None and player.team == other.team

    # -------------------------------------------------------------------------
    # Game Lifecycle
    # -------------------------------------------------------------------------

    def start_game(self, seed: Optional[int] = None) -> None:
        """
        Start the first round from the lobby.

        In team mode the seats are interleaved so turns alternate between
        teams, keeping join order within each team.

        Args:
            seed: Optional deck seed for a deterministic deal.

        Raises:
            GameError: GAME_IN_PROGRESS or NOT_ENOUGH_PLAYERS.
        """
        if self.phase != GamePhase.WAITING:
            raise GameError(ErrorKind.GAME_IN_PROGRESS, "Game already started")
        if len(self.players) < MIN_PLAYERS:
            raise GameError(ErrorKind.NOT_ENOUGH_PLAYERS, f"Need at least {MIN_PLAYERS} players")
        if self.team_mode and any(self.team_size(t) == 0 for t in range(NUM_TEAMS)):
            raise GameError(ErrorKind.NOT_ENOUGH_PLAYERS, "Each team needs at least one player")

        if self.team_mode:
            self.players = self._interleave_teams()

        self.dealer_idx = 0
        self.current_round = 1
        self._emit(
            EventType.GAME_STARTED,
            player_order=[p.id for p in self.players],
            team_mode=self.team_mode,
        )
        self.start_round(seed)

    def _interleave_teams(self) -> list[Player]:
        teams = [[p for p in self.players if p.team == t] for t in range(NUM_TEAMS)]
        seats = []
        for i in range(max(len(members) for members in teams)):
            for members in teams:
                if i < len(members):
                    seats.append(members[i])
        return seats

    def start_round(self, seed: Optional[int] = None) -> None:
        """
        Deal a new round.

        Builds a fresh deck, deals HAND_SIZE cards to each player, seeds the
        open pile with one card, and gives the first turn to the player after
        the dealer.
        """
        self.deck = Deck(seed)
        self.open_pile = []
        self.winner_id = None
        self.last_round_deltas = {}

        for player in self.players:
            player.reset_for_round()
            player.hand = self.deck.deal(HAND_SIZE)

        first_open = self.deck.draw()
        if first_open:
            self.open_pile.append(first_open)

        self.turn = (self.dealer_idx + 1) % len(self.players)
        self.phase = GamePhase.PLAYING

        logger.debug(f"Room {self.room_id} round {self.current_round} dealt with seed {self.deck.seed}")
        self._emit(
            EventType.ROUND_STARTED,
            round_num=self.current_round,
            dealer_id=self.players[self.dealer_idx].id,
            first_player_id=self.players[self.turn].id,
            open_card=first_open.to_dict() if first_open else None,
        )

    def start_next_round(self, seed: Optional[int] = None) -> None:
        """
        Continue the game with a new round.

        Raises:
            GameError: ROUND_OR_GAME_OVER if the game is over,
                ROUND_NOT_OVER while a round is still live.
        """
        if self.phase == GamePhase.GAME_OVER:
            raise GameError(ErrorKind.ROUND_OR_GAME_OVER, "The game is over; start a new game")
        if self.phase != GamePhase.ROUND_OVER:
            raise GameError(ErrorKind.ROUND_NOT_OVER, "The round is still in progress")

        self.dealer_idx = (self.dealer_idx + 1) % len(self.players)
        self.current_round += 1
        self.start_round(seed)

    def start_new_game(self, seed: Optional[int] = None) -> None:
        """
        Start over after a finished game, resetting all scores.

        Raises:
            GameError: GAME_NOT_OVER unless the current game has ended.
        """
        if self.phase != GamePhase.GAME_OVER:
            raise GameError(ErrorKind.GAME_NOT_OVER, "The current game is not over")

        for player in self.players:
            player.score = 0
            player.last_delta = 0
        self.team_scores = [0] * NUM_TEAMS

        self.dealer_idx = (self.dealer_idx + 1) % len(self.players)
        self.current_round = 1
        self._emit(
            EventType.GAME_STARTED,
            player_order=[p.id for p in self.players],
            team_mode=self.team_mode,
        )
        self.start_round(seed)

    # -------------------------------------------------------------------------
    # Validation helpers
    # -------------------------------------------------------------------------

    def _require_turn(self, player_id: str) -> Player:
        """Return the current player if it is `player_id` and a round is live."""
        if self.phase != GamePhase.PLAYING:
            raise GameError(ErrorKind.ROUND_OR_GAME_OVER, "No round in progress")
        player = self.current_player()
        if not player or player.id != player_id:
            raise GameError(ErrorKind.NOT_YOUR_TURN, "It's not your turn")
        return player

    @staticmethod
    def _require_drawn(player: Player) -> None:
        if not player.can_discard:
            raise GameError(ErrorKind.MUST_DRAW_FIRST, "Draw a card first")

    @staticmethod
    def _select_cards(player: Player, card_ids: list[str]) -> list[Card]:
        """Resolve card IDs against the player's hand."""
        if not card_ids or len(set(card_ids)) != len(card_ids):
            raise GameError(ErrorKind.INVALID_CARD_SELECTION, "Select distinct cards from your hand")
        by_id = {card.id: card for card in player.hand}
        if any(cid not in by_id for cid in card_ids):
            raise GameError(ErrorKind.INVALID_CARD_SELECTION, "Selected cards are not in your hand")
        return [by_id[cid] for cid in card_ids]

    @staticmethod
    def _require_discardable_leftover(player: Player, cards: list[Card]) -> None:
        """Reject a meld that would leave only the barred card to discard."""
        if not player.must_discard or player.barred_card_id is None:
            return
        melded = {card.id for card in cards}
        leftover = [card for card in player.hand if card.id not in melded]
        if len(leftover) == 1 and leftover[0].id == player.barred_card_id:
            raise GameError(
                ErrorKind.INVALID_CARD_SELECTION,
                "Keep a card you can discard: the card you took can't be thrown back",
            )

    def must_meld(self, player: Player) -> bool:
        """Whether the mandatory meld rule currently blocks this player."""
        return must_play_mandatory_melds_now(self, player)

    def _require_no_mandatory_meld(self, player: Player) -> None:
        if self.must_meld(player):
            raise GameError(
                ErrorKind.MANDATORY_MELD_PENDING,
                "The closed pile is empty: play your available runs first",
            )

    # -------------------------------------------------------------------------
    # Turn Actions
    # -------------------------------------------------------------------------

    def draw_closed(self, player_id: str) -> Card:
        """
        Draw the top card of the closed pile.

        A closed draw always makes a discard mandatory this turn.

        Returns:
            The drawn Card.
        """
        player = self._require_turn(player_id)
        if player.can_discard:
            raise GameError(ErrorKind.ALREADY_DRAWN_THIS_TURN, "You already drew this turn")
        if self.deck is None or self.deck.is_empty():
            raise GameError(ErrorKind.PILE_EMPTY, "The closed pile is empty")

        card = self.deck.draw()
        player.hand.append(card)
        player.must_discard = True
        player.can_discard = True
        player.barred_card_id = None

        self._emit(EventType.CARD_DRAWN, player_id=player_id, source="closed", count=1)
        return card

    def draw_open(self, player_id: str, count: int) -> list[Card]:
        """
        Take the top `count` cards of the open pile.

        The discard becomes mandatory only when this empties the open pile.
        Taking the single card of a one-card pile bars that card from being
        discarded again this turn.

        Returns:
            The drawn cards, in pile order.
        """
        player = self._require_turn(player_id)
        if player.can_discard:
            raise GameError(ErrorKind.ALREADY_DRAWN_THIS_TURN, "You already drew this turn")
        if not self.open_pile:
            raise GameError(ErrorKind.PILE_EMPTY, "The open pile is empty")
        if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= len(self.open_pile):
            raise GameError(
                ErrorKind.INVALID_CARD_SELECTION,
                f"You can take between 1 and {len(self.open_pile)} cards",
            )

        single = len(self.open_pile) == 1 and count == 1
        drawn = self.open_pile[-count:]
        del self.open_pile[-count:]

        player.hand.extend(drawn)
        player.can_discard = True
        player.must_discard = not self.open_pile
        player.barred_card_id = drawn[0].id if single else None

        self._emit(
            EventType.CARD_DRAWN,
            player_id=player_id,
            source="open",
            count=count,
            cards=[c.to_dict() for c in drawn],
        )
        return drawn

    def discard(self, player_id: str, index: int) -> Card:
        """
        Discard a card from hand onto the open pile.

        An empty hand afterwards means the player went out: the round ends
        and the turn does not advance. Otherwise play passes on.

        Args:
            player_id: ID of the player discarding.
            index: Position of the card in the player's hand.

        Returns:
            The discarded Card.
        """
        player = self._require_turn(player_id)
        self._require_drawn(player)
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(player.hand):
            raise GameError(ErrorKind.INVALID_CARD_SELECTION, "Invalid card selection")
        self._require_no_mandatory_meld(player)
        if player.hand[index].id == player.barred_card_id:
            raise GameError(
                ErrorKind.DISCARD_FORBIDDEN_RESTRICTED_CARD,
                "You can't discard the card you just took from the open pile",
            )

        card = player.hand.pop(index)
        self.open_pile.append(card)
        player.must_discard = False
        player.barred_card_id = None

        self._emit(EventType.CARD_DISCARDED, player_id=player_id, card=card.to_dict())

        if not player.hand:
            self._end_round(player)
        else:
            player.can_discard = False
            self._advance_turn()
        return card

    def end_turn(self, player_id: str) -> None:
        """End the turn without discarding, when the discard is optional."""
        player = self._require_turn(player_id)
        self._require_drawn(player)
        if player.must_discard:
            raise GameError(ErrorKind.MUST_DISCARD_FIRST, "You must discard before ending your turn")
        self._require_no_mandatory_meld(player)

        player.end_turn_flags()
        self._emit(EventType.TURN_ENDED, player_id=player_id)
        self._advance_turn()

    def open_run(self, player_id: str, card_ids: list[str]) -> list[Card]:
        """
        Lay down a new run from the player's hand.

        Returns:
            The stored (normalized) run.
        """
        player = self._require_turn(player_id)
        self._require_drawn(player)
        cards = self._select_cards(player, card_ids)
        if len(cards) < MIN_RUN_LENGTH:
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, f"A run needs at least {MIN_RUN_LENGTH} cards")
        if count_wildcards(cards) > MAX_WILDCARDS_PER_RUN:
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, "A run can hold only one wildcard")
        if not valid_run(cards):
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, "Those cards don't form a run")
        self._require_discardable_leftover(player, cards)

        player.remove_cards(cards)
        run = normalize_run(cards)
        player.runs.append(run)
        player.opened = True

        self._emit(EventType.RUN_OPENED, player_id=player_id, run=[c.to_dict() for c in run])

        if not player.hand:
            self._end_round(player)
        return run

    def add_to_run(
        self,
        player_id: str,
        target_player_id: str,
        run_index: int,
        card_ids: list[str],
    ) -> list[Card]:
        """
        Add cards from the acting player's hand to an existing run.

        The player must have opened a run of their own this round. The
        target run must be their own, or a teammate's in team mode.

        Returns:
            The extended (normalized) run.
        """
        player = self._require_turn(player_id)
        self._require_drawn(player)
        if not player.opened:
            raise GameError(ErrorKind.INVALID_ADD_TARGET, "Open a run of your own first")

        owner = self.get_player(target_player_id)
        if owner is None:
            raise GameError(ErrorKind.INVALID_ADD_TARGET, "Unknown run owner")
        if owner.id != player.id and not self.is_teammate(player, owner):
            raise GameError(ErrorKind.INVALID_ADD_TARGET, "You can only add to your own or your team's runs")
        if isinstance(run_index, bool) or not isinstance(run_index, int) or not 0 <= run_index < len(owner.runs):
            raise GameError(ErrorKind.INVALID_ADD_TARGET, "That run doesn't exist")

        cards = self._select_cards(player, card_ids)
        run = owner.runs[run_index]
        incoming_wild = count_wildcards(cards)
        if count_wildcards(run) + incoming_wild > MAX_WILDCARDS_PER_RUN:
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, "A run can hold only one wildcard")
        if incoming_wild and incoming_wild == len(cards):
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, "A wildcard must be added with a real card")
        combined = [*run, *cards]
        if not valid_run(combined):
            raise GameError(ErrorKind.INVALID_RUN_SHAPE, "Those cards don't fit that run")
        self._require_discardable_leftover(player, cards)

        player.remove_cards(cards)
        owner.runs[run_index] = normalize_run(combined)

        self._emit(
            EventType.RUN_EXTENDED,
            player_id=player_id,
            owner_id=owner.id,
            run_index=run_index,
            cards=[c.to_dict() for c in cards],
        )

        if not player.hand:
            self._end_round(player)
        return owner.runs[run_index]

    def go_out(self, player_id: str) -> None:
        """Declare the round over with an empty hand."""
        player = self._require_turn(player_id)
        self._require_drawn(player)
        if player.hand:
            raise GameError(ErrorKind.HAND_NOT_EMPTY, "You still have cards in your hand")
        self._end_round(player)

    # -------------------------------------------------------------------------
    # Turn & Round Flow (Internal)
    # -------------------------------------------------------------------------

    def _advance_turn(self) -> None:
        self.turn = (self.turn + 1) % len(self.players)

    def _end_round(self, winner: Player) -> None:
        """
        End the current round with `winner` having gone out.

        Applies round scoring and moves to GAME_OVER when a player or team
        reaches the winning score.
        """
        self.phase = GamePhase.ROUND_OVER
        self.winner_id = winner.id

        deltas = round_deltas(self.players, winner.id)
        apply_round_scores(self.players, deltas, self.team_mode, self.team_scores)
        self.last_round_deltas = deltas

        self._emit(
            EventType.ROUND_ENDED,
            player_id=winner.id,
            round_num=self.current_round,
            deltas=deltas,
            team_scores=list(self.team_scores) if self.team_mode else None,
        )

        if is_game_over(self.players, self.team_mode, self.team_scores):
            self.phase = GamePhase.GAME_OVER
            self._emit(EventType.GAME_ENDED, standings=standings(self.players))

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    @property
    def round_over(self) -> bool:
        return self.phase in (GamePhase.ROUND_OVER, GamePhase.GAME_OVER)

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_state(self, for_player_id: Optional[str]) -> dict:
        """
        Get the full game state as seen by one player.

        Returns a dictionary suitable for JSON serialization. The
        recipient's own hand is included; every other hand is replaced by
        placeholders of the same length. Computed fresh on every call.

        Args:
            for_player_id: The player who will receive this state.

        Returns:
            Dict with room info, players, piles, turn and round status.
        """
        current = self.current_player() if self.phase == GamePhase.PLAYING else None
        recipient = self.get_player(for_player_id) if for_player_id else None

        players_data = []
        for player in self.players:
            players_data.append({
                "id": player.id,
                "name": player.name,
                "team": player.team,
                "hand": player.hand_to_dict(reveal=player.id == for_player_id),
                "hand_count": len(player.hand),
                "runs": player.runs_to_dict(),
                "opened": player.opened,
                "must_discard": player.must_discard,
                "can_discard": player.can_discard,
                "score": player.score,
                "last_delta": player.last_delta,
            })

        state = {
            "room_id": self.room_id,
            "team_mode": self.team_mode,
            "phase": self.phase.value,
            "players": players_data,
            "closed_count": self.deck.cards_remaining() if self.deck else 0,
            "open_pile": [card.to_dict() for card in self.open_pile],
            "turn": self.turn,
            "current_player_id": current.id if current else None,
            "dealer_idx": self.dealer_idx,
            "current_round": self.current_round,
            "round_over": self.round_over,
            "game_over": self.game_over,
            "winner_id": self.winner_id,
            "last_round_deltas": self.last_round_deltas,
            "barred_card_id": recipient.barred_card_id if recipient else None,
            "must_meld": bool(
                recipient and current and recipient.id == current.id and self.must_meld(recipient)
            ),
            "log": [event.to_dict() for event in self.events[-STATE_LOG_TAIL:]],
        }
        if self.team_mode:
            state["teams"] = team_labels(self.players, self.team_scores)
        return state
