"""Card deck module."""

from pm_board.cards.deck_manager import DeckManager

__all__ = ["DeckManager"]
