"""
Test suite for the mandatory meld house rule.

Covers:
- can_open_run() detection of pure and wildcard runs in a hand
- can_add_to_run() including the wildcard-with-a-real-card rule
- addable_runs() ownership and team sharing
- The gate conditions (closed empty, open non-empty, already drawn)

Run with: pytest test_house_rules.py -v
"""

from cards import Card, Rank, Suit
from game import Game, Player
from house_rules import (
    addable_runs,
    can_add_to_run,
    can_open_run,
    mandatory_gate_engaged,
    must_play_mandatory_melds_now,
)


def c(rank: Rank, suit: Suit = Suit.SPADES) -> Card:
    return Card(suit, rank)


def make_game(team_mode: bool = False) -> Game:
    game = Game(room_id="RULES", team_mode=team_mode)
    for i in range(4 if team_mode else 2):
        game.add_player(Player(id=f"p{i}", name=f"Player {i}"))
    game.start_game(seed=1)
    return game


def engage_gate(game: Game, player: Player) -> None:
    game.deck.cards = []
    game.open_pile = [c(Rank.KING, Suit.DIAMONDS)]
    player.can_discard = True


class TestCanOpenRun:

    def test_pure_run(self):
        hand = [c(Rank.NINE, Suit.CLUBS), c(Rank.SEVEN), c(Rank.EIGHT), c(Rank.NINE)]
        assert can_open_run(hand)

    def test_wildcard_run(self):
        hand = [c(Rank.SEVEN), c(Rank.NINE), c(Rank.TWO, Suit.HEARTS)]
        assert can_open_run(hand)

    def test_adjacent_pair_with_wildcard(self):
        hand = [c(Rank.QUEEN, Suit.HEARTS), c(Rank.KING, Suit.HEARTS), c(Rank.TWO, Suit.CLUBS)]
        assert can_open_run(hand)

    def test_scattered_hand(self):
        hand = [
            c(Rank.THREE), c(Rank.FIVE, Suit.HEARTS), c(Rank.SEVEN),
            c(Rank.NINE, Suit.CLUBS), c(Rank.JACK), c(Rank.KING, Suit.DIAMONDS),
        ]
        assert not can_open_run(hand)

    def test_wildcard_cannot_bridge_two_gaps(self):
        hand = [c(Rank.THREE), c(Rank.SIX), c(Rank.TWO, Suit.HEARTS)]
        assert not can_open_run(hand)

    def test_wildcards_alone(self):
        hand = [c(Rank.TWO, Suit.HEARTS), c(Rank.TWO, Suit.CLUBS), c(Rank.THREE)]
        assert not can_open_run(hand)


class TestCanAddToRun:

    def setup_method(self):
        self.run = [c(Rank.FIVE, Suit.HEARTS), c(Rank.SIX, Suit.HEARTS), c(Rank.SEVEN, Suit.HEARTS)]

    def test_next_card_fits(self):
        assert can_add_to_run([c(Rank.EIGHT, Suit.HEARTS)], self.run)
        assert can_add_to_run([c(Rank.FOUR, Suit.HEARTS)], self.run)

    def test_wrong_suit(self):
        assert not can_add_to_run([c(Rank.EIGHT, Suit.CLUBS)], self.run)

    def test_card_with_wildcard(self):
        hand = [c(Rank.NINE, Suit.HEARTS), c(Rank.TWO, Suit.SPADES)]
        assert can_add_to_run(hand, self.run)

    def test_wildcard_alone_never_fits(self):
        assert not can_add_to_run([c(Rank.TWO, Suit.SPADES)], self.run)

    def test_no_second_wildcard(self):
        run = [*self.run, c(Rank.TWO, Suit.CLUBS)]
        hand = [c(Rank.TEN, Suit.HEARTS), c(Rank.TWO, Suit.SPADES)]
        assert not can_add_to_run(hand, run)


class TestAddableRuns:

    def test_unopened_player_has_none(self):
        game = make_game()
        player = game.get_player("p1")
        player.runs = [[c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE)]]
        assert addable_runs(game, player) == []

    def test_own_runs_only_in_individual_mode(self):
        game = make_game()
        player, other = game.get_player("p1"), game.get_player("p0")
        player.opened = True
        player.runs = [[c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE)]]
        other.opened = True
        other.runs = [[c(Rank.NINE, Suit.CLUBS), c(Rank.TEN, Suit.CLUBS), c(Rank.JACK, Suit.CLUBS)]]
        assert addable_runs(game, player) == player.runs

    def test_teammate_runs_in_team_mode(self):
        game = make_game(team_mode=True)
        player, teammate, opponent = game.get_player("p1"), game.get_player("p3"), game.get_player("p0")
        player.opened = True
        teammate.runs = [[c(Rank.NINE, Suit.CLUBS), c(Rank.TEN, Suit.CLUBS), c(Rank.JACK, Suit.CLUBS)]]
        opponent.runs = [[c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE)]]
        assert addable_runs(game, player) == teammate.runs


class TestGate:

    def test_engaged(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        assert mandatory_gate_engaged(game, player)

    def test_not_engaged_with_closed_cards(self):
        game = make_game()
        player = game.get_player("p1")
        player.can_discard = True
        assert not mandatory_gate_engaged(game, player)

    def test_not_engaged_with_empty_open_pile(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        game.open_pile = []
        assert not mandatory_gate_engaged(game, player)

    def test_not_engaged_before_drawing(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        player.can_discard = False
        assert not mandatory_gate_engaged(game, player)

    def test_blocks_when_run_available(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        player.hand = [c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE), c(Rank.KING, Suit.CLUBS)]
        assert must_play_mandatory_melds_now(game, player)

    def test_blocks_when_addition_available(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        player.opened = True
        player.runs = [[c(Rank.THREE), c(Rank.FOUR), c(Rank.FIVE)]]
        player.hand = [c(Rank.SIX), c(Rank.KING, Suit.CLUBS)]
        assert must_play_mandatory_melds_now(game, player)

    def test_free_when_nothing_to_play(self):
        game = make_game()
        player = game.get_player("p1")
        engage_gate(game, player)
        player.hand = [c(Rank.THREE), c(Rank.NINE, Suit.HEARTS), c(Rank.KING, Suit.CLUBS)]
        assert not must_play_mandatory_melds_now(game, player)
