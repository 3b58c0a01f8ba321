"""
Tests for draw and discard piles.
"""

from pm_board.cards.deck_manager import DeckManager
from pm_board.data_models import CardType, DiceRoller


class TestDeckManager:
    """Drawing, discarding and reshuffling."""

    def test_initialize_fills_draw_piles(self, decks):
        assert decks.available_count(CardType.WORK) == 4
        assert decks.available_count(CardType.EXPEDITOR) == 1
        assert decks.discarded_count(CardType.WORK) == 0

    def test_draw_removes_from_pile(self, decks):
        drawn = decks.draw(CardType.WORK, 2)
        assert len(drawn) == 2
        assert all(card.card_type == CardType.WORK for card in drawn)
        assert decks.available_count(CardType.WORK) == 2

    def test_drawn_cards_are_unique(self, decks):
        drawn = decks.draw(CardType.WORK, 4)
        assert len({card.card_id for card in drawn}) == 4

    def test_exhausted_type_returns_fewer(self, decks):
        drawn = decks.draw(CardType.EXPEDITOR, 3)
        assert [card.card_id for card in drawn] == ["E001"]
        assert decks.draw(CardType.EXPEDITOR, 1) == []

    def test_discard_pile_is_reshuffled(self, decks):
        drawn = decks.draw(CardType.WORK, 4)
        decks.discard_many(drawn[:2])
        assert decks.discarded_count(CardType.WORK) == 2

        redrawn = decks.draw(CardType.WORK, 3)
        assert len(redrawn) == 2
        assert {c.card_id for c in redrawn} == {c.card_id for c in drawn[:2]}
        assert decks.discarded_count(CardType.WORK) == 0

    def test_reclaim(self, decks):
        card = decks.draw(CardType.BANK, 1)[0]
        decks.discard(card)
        assert decks.reclaim(card)
        assert decks.discarded_count(CardType.BANK) == 0
        assert not decks.reclaim(card)

    def test_same_seed_same_order(self, rule_store):
        first = DeckManager(rule_store, DiceRoller(seed=21))
        second = DeckManager(rule_store, DiceRoller(seed=21))
        first.initialize()
        second.initialize()
        assert first.draw(CardType.WORK, 4) == second.draw(CardType.WORK, 4)

    def test_status(self, decks):
        decks.discard(decks.draw(CardType.LIFE, 1)[0])
        status = decks.get_status()
        assert status["draw"]["L"] == 1
        assert status["discard"]["L"] == 1
