"""
Tests for the player arena and player effects.

Every change to a player goes through apply_effect(); these tests check that
each effect produces a new state and that invalid effects are refused.
"""

import pytest

from pm_board.data_models import Card, CardType, PlayerState, VisitType
from pm_board.game_state.player_arena import (
    AddCards,
    AdjustMoney,
    AdjustTime,
    MoveTo,
    PlayerArena,
    RecordDecision,
    RecordVisit,
    RemoveCards,
    RestoreSnapshot,
    SetSkipNextTurn,
    TakeSnapshot,
    UnknownPlayerError,
    apply_effect,
)

W1 = Card("W001", CardType.WORK)
W2 = Card("W002", CardType.WORK)
B1 = Card("B001", CardType.BANK)


@pytest.fixture
def player():
    return PlayerState(player_id=1, name="Ann", position="X", money=1000, time_spent=4)


class TestApplyEffect:
    """Pure effect application."""

    def test_adjust_money(self, player):
        updated = apply_effect(player, AdjustMoney(-1500))
        assert updated.money == -500
        assert player.money == 1000

    def test_adjust_time(self, player):
        assert apply_effect(player, AdjustTime(3)).time_spent == 7

    def test_time_never_decreases(self, player):
        with pytest.raises(ValueError, match="Time cannot decrease"):
            apply_effect(player, AdjustTime(-1))

    def test_add_and_remove_cards(self, player):
        with_cards = apply_effect(player, AddCards((W1, W2, B1)))
        assert with_cards.cards_of(CardType.WORK) == (W1, W2)
        removed = apply_effect(with_cards, RemoveCards(("W001",)))
        assert removed.cards_of(CardType.WORK) == (W2,)
        assert removed.cards_of(CardType.BANK) == (B1,)

    def test_remove_unheld_card(self, player):
        with pytest.raises(ValueError, match="does not hold"):
            apply_effect(player, RemoveCards(("W999",)))

    def test_move_to(self, player):
        moved = apply_effect(player, MoveTo("Y", VisitType.SUBSEQUENT))
        assert moved.position == "Y"
        assert moved.visit_type == VisitType.SUBSEQUENT

    def test_record_visit(self, player):
        assert apply_effect(player, RecordVisit("X")).visited_spaces == frozenset({"X"})

    def test_snapshot_round_trip(self, player):
        snapshotted = apply_effect(player, TakeSnapshot())
        spent = apply_effect(
            apply_effect(apply_effect(snapshotted, AdjustMoney(-700)), AdjustTime(5)),
            AddCards((W1,)),
        )
        restored = apply_effect(spent, RestoreSnapshot(time_penalty=2))
        assert restored.money == 1000
        assert restored.time_spent == 4 + 5 + 2
        assert restored.card_count() == 0

    def test_restore_without_snapshot(self, player):
        with pytest.raises(ValueError, match="no snapshot"):
            apply_effect(player, RestoreSnapshot(1))

    def test_record_decision(self, player):
        decided = apply_effect(player, RecordDecision("Z", "yes"))
        assert decided.last_decision.space_name == "Z"
        assert decided.last_decision.choice == "yes"

    def test_skip_flag(self, player):
        flagged = apply_effect(player, SetSkipNextTurn(True))
        assert flagged.skip_next_turn
        assert not apply_effect(flagged, SetSkipNextTurn(False)).skip_next_turn

    def test_unknown_effect(self, player):
        with pytest.raises(TypeError):
            apply_effect(player, "give me money")


class TestPlayerArena:
    """Seating and addressing players by id."""

    def test_add_and_get(self, player):
        arena = PlayerArena()
        arena.add(player)
        assert arena.get(1) is player
        assert arena.find(2) is None
        assert len(arena) == 1

    def test_unknown_player(self):
        with pytest.raises(UnknownPlayerError):
            PlayerArena().get(9)

    def test_duplicate_seat(self, player):
        arena = PlayerArena()
        arena.add(player)
        with pytest.raises(ValueError):
            arena.add(player)

    def test_apply_stores_result_in_order(self, player):
        arena = PlayerArena()
        arena.add(player)
        result = arena.apply(1, AdjustMoney(500), TakeSnapshot(), AdjustMoney(-200))
        assert result.money == 1300
        assert result.space_entry_snapshot.money == 1500
        assert arena.get(1) is result

    def test_failed_apply_leaves_state_unchanged(self, player):
        arena = PlayerArena()
        arena.add(player)
        with pytest.raises(ValueError):
            arena.apply(1, AdjustMoney(500), AdjustTime(-1))
        assert arena.get(1).money == 1000

    def test_seat_order(self):
        arena = PlayerArena()
        for player_id in (3, 1, 2):
            arena.add(PlayerState(player_id=player_id, name=f"P{player_id}", position="START"))
        assert arena.seat_order == [3, 1, 2]
        assert arena.seat_index(1) == 1
        assert [p.player_id for p in arena.players()] == [3, 1, 2]
        arena.clear()
        assert len(arena) == 0
