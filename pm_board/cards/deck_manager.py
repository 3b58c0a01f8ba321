"""
Deck management for the five card types.

Each card type has a shuffled draw pile and a discard pile. When a draw
pile runs out its discard pile is shuffled back in; if both are empty the
draw returns fewer cards than asked for.
"""

import logging
from typing import Any, Optional

from pm_board.data_models import Card, CardType, DiceRoller
from pm_board.rules.rule_store import RuleStore

logger = logging.getLogger(__name__)


class DeckManager:
    """
    Draw and discard piles per card type.

    Usage:
        decks = DeckManager(rule_store, dice)
        decks.initialize()
        cards = decks.draw(CardType.WORK, 2)
        decks.discard(cards[0])
    """

    def __init__(self, rule_store: RuleStore, dice: Optional[DiceRoller] = None):
        self.rule_store = rule_store
        self.dice = dice or DiceRoller()
        self._draw_piles: dict[CardType, list[Card]] = {t: [] for t in CardType}
        self._discard_piles: dict[CardType, list[Card]] = {t: [] for t in CardType}

    def initialize(self) -> None:
        """Build and shuffle every draw pile from the card catalogue."""
        for card_type in CardType:
            cards = self.rule_store.cards_of_type(card_type)
            self._draw_piles[card_type] = self.dice.shuffle(cards, reason=f"shuffle {card_type.value} deck")
            self._discard_piles[card_type] = []
        logger.info(f"Decks initialized: {self.get_status()['draw']}")

    def draw(self, card_type: CardType, count: int) -> list[Card]:
        """
        Draw up to count cards, reshuffling the discard pile when needed.

        Returns:
            The drawn cards; shorter than count only when the type is exhausted
        """
        drawn: list[Card] = []
        pile = self._draw_piles[card_type]
        for _ in range(count):
            if not pile:
                self._reshuffle(card_type)
                pile = self._draw_piles[card_type]
                if not pile:
                    logger.warning(
                        f"{card_type.value} deck exhausted: drew {len(drawn)} of {count}"
                    )
                    break
            drawn.append(pile.pop())
        return drawn

    def _reshuffle(self, card_type: CardType) -> None:
        discards = self._discard_piles[card_type]
        if not discards:
            return
        logger.info(f"Reshuffling {len(discards)} discarded {card_type.value} cards")
        self._draw_piles[card_type] = self.dice.shuffle(discards, reason=f"reshuffle {card_type.value} deck")
        self._discard_piles[card_type] = []

    def discard(self, card: Card) -> None:
        self._discard_piles[card.card_type].append(card)

    def discard_many(self, cards: list[Card]) -> None:
        for card in cards:
            self.discard(card)

    def reclaim(self, card: Card) -> bool:
        """Take a card back out of its discard pile, e.g. when a hand is rolled back."""
        pile = self._discard_piles[card.card_type]
        if card in pile:
            pile.remove(card)
            return True
        return False

    def available_count(self, card_type: CardType) -> int:
        return len(self._draw_piles[card_type])

    def discarded_count(self, card_type: CardType) -> int:
        return len(self._discard_piles[card_type])

    def get_status(self) -> dict[str, Any]:
        return {
            "draw": {t.value: len(self._draw_piles[t]) for t in CardType},
            "discard": {t.value: len(self._discard_piles[t]) for t in CardType},
        }
