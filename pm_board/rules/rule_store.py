"""
Rule Store for the project-management board game.

Provides read-only lookup of the loaded board tables: spaces by
(name, visit type), dice effect and outcome rows, card actions per space,
starting and ending spaces and the card catalogue.

Every query raises NotLoadedError until load() has completed, so callers
can never observe a half-built board.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pm_board.content_loader.csv_loader import BoardTables, load_board
from pm_board.data_models import (
    Card,
    CardType,
    DiceDependentEffect,
    DiceEffectRow,
    DiceOutcomeRow,
    EffectChannel,
    FixedEffect,
    Space,
    VisitType,
)

logger = logging.getLogger(__name__)


DRAW_PATTERN = re.compile(r"draw\s+(\d+)", re.IGNORECASE)


class NotLoadedError(Exception):
    """A rule query was made before the board finished loading."""
    pass


class SpaceNotFoundError(Exception):
    """No space row exists for the requested name and visit type."""

    def __init__(self, space_name: str, visit_type: Optional[VisitType] = None):
        self.space_name = space_name
        self.visit_type = visit_type
        label = f"{space_name} ({visit_type.value})" if visit_type else space_name
        super().__init__(f"Space not found: {label}")


@dataclass(frozen=True)
class CardTypeAction:
    """A card instruction a space offers for one card type."""
    card_type: CardType
    action_text: str
    dice_based: bool = False


class RuleStore:
    """
    In-memory store of board rules.

    Usage:
        store = RuleStore()
        store.load(Path("data/board"))

        # Or use the convenience method
        store = RuleStore.create_default()

        space = store.find_space("ARCH-INITIATION", VisitType.FIRST)
        start = store.starting_space()
    """

    def __init__(self):
        self._tables: Optional[BoardTables] = None

    @classmethod
    def create_default(cls, data_dir: Optional[Path] = None) -> "RuleStore":
        """
        Create a RuleStore and load from the default board directory.

        Args:
            data_dir: Override default board directory path

        Returns:
            Loaded RuleStore
        """
        store = cls()

        if data_dir is None:
            current = Path(__file__).resolve()
            for parent in current.parents:
                candidate = parent / "data" / "board"
                if candidate.exists():
                    data_dir = candidate
                    break

            if data_dir is None:
                data_dir = Path("data/board")

        store.load(data_dir)
        return store

    def load(self, directory: Path) -> None:
        """Load board CSVs from a directory, replacing any previous board."""
        self.load_tables(load_board(Path(directory)))

    def load_tables(self, tables: BoardTables) -> None:
        """Install already-parsed tables."""
        self._tables = tables
        logger.info(f"Rule store ready: {len(tables.space_order)} spaces")

    @property
    def is_loaded(self) -> bool:
        return self._tables is not None

    def _require_loaded(self) -> BoardTables:
        if self._tables is None:
            raise NotLoadedError("Board data has not been loaded")
        return self._tables

    # =========================================================================
    # SPACE QUERIES
    # =========================================================================

    def find_space(self, space_name: str, visit_type: VisitType) -> Space:
        """
        Look up a space row.

        Raises:
            SpaceNotFoundError: No row for this name and visit type
        """
        tables = self._require_loaded()
        space = tables.spaces.get((space_name, visit_type))
        if space is None:
            raise SpaceNotFoundError(space_name, visit_type)
        return space

    def has_space(self, space_name: str, visit_type: Optional[VisitType] = None) -> bool:
        tables = self._require_loaded()
        if visit_type is None:
            return space_name in tables.space_order
        return (space_name, visit_type) in tables.spaces

    def space_names(self) -> list[str]:
        """All space names in file order."""
        return list(self._require_loaded().space_order)

    def starting_space(self) -> str:
        """
        The configured starting space.

        Falls back to the first space in SPACES.csv when no config row marks one.
        """
        tables = self._require_loaded()
        for row in tables.game_config:
            if row.is_starting_space:
                return row.space_name
        if not tables.space_order:
            raise SpaceNotFoundError("<starting space>")
        logger.warning(f"No starting space configured, using {tables.space_order[0]}")
        return tables.space_order[0]

    def is_ending_space(self, space_name: str) -> bool:
        tables = self._require_loaded()
        return any(
            row.space_name == space_name and row.is_ending_space
            for row in tables.game_config
        )

    def ending_spaces(self) -> list[str]:
        tables = self._require_loaded()
        return [row.space_name for row in tables.game_config if row.is_ending_space]

    # =========================================================================
    # DICE QUERIES
    # =========================================================================

    def query_dice_effects(self, space_name: str, visit_type: VisitType) -> list[DiceEffectRow]:
        """All dice effect rows for a space, in file order. Empty when none."""
        tables = self._require_loaded()
        return list(tables.dice_effects.get((space_name, visit_type), []))

    def query_movement_outcome(
        self,
        space_name: str,
        visit_type: VisitType,
    ) -> Optional[DiceOutcomeRow]:
        """The dice outcome row for a space, or None when movement is static."""
        tables = self._require_loaded()
        return tables.dice_outcomes.get((space_name, visit_type))

    def requires_dice_roll(self, space_name: str, visit_type: VisitType) -> bool:
        """
        True when the space flag is set, a dice outcome row exists, or any of
        its time or card cells defers to the dice tables.
        """
        space = self.find_space(space_name, visit_type)
        if space.requires_dice_roll:
            return True
        if self.query_movement_outcome(space_name, visit_type) is not None:
            return True
        if isinstance(space.time, DiceDependentEffect):
            return True
        return any(isinstance(v, DiceDependentEffect) for v in space.card_effects.values())

    def has_dice_time(self, space_name: str, visit_type: VisitType) -> bool:
        """True when the time cost of a space is decided by the dice."""
        space = self.find_space(space_name, visit_type)
        if isinstance(space.time, DiceDependentEffect):
            return True
        return any(
            row.channel == EffectChannel.TIME
            for row in self.query_dice_effects(space_name, visit_type)
        )

    # =========================================================================
    # CARD QUERIES
    # =========================================================================

    def query_card_types_affected(
        self,
        space_name: str,
        visit_type: VisitType,
    ) -> list[CardTypeAction]:
        """
        Card actions offered on a space, one per card type with an effect.

        Dice-based slots get a summary such as 'Draw 1-3' from the dice table,
        or 'Draw dice' when the amounts cannot be read.
        """
        space = self.find_space(space_name, visit_type)
        actions = []
        for card_type in CardType:
            value = space.card_effect(card_type)
            if isinstance(value, FixedEffect):
                actions.append(CardTypeAction(card_type, value.text))
            elif isinstance(value, DiceDependentEffect):
                actions.append(CardTypeAction(
                    card_type,
                    self._dice_action_text(space_name, visit_type, card_type),
                    dice_based=True,
                ))
        return actions

    def _dice_action_text(self, space_name: str, visit_type: VisitType, card_type: CardType) -> str:
        amounts = []
        for row in self.query_dice_effects(space_name, visit_type):
            if row.channel != EffectChannel.CARDS or row.card_type != card_type:
                continue
            for outcome in row.outcomes:
                if isinstance(outcome, FixedEffect):
                    match = DRAW_PATTERN.search(outcome.text)
                    if match:
                        amounts.append(int(match.group(1)))
        if not amounts:
            return "Draw dice"
        low, high = min(amounts), max(amounts)
        return f"Draw {low}" if low == high else f"Draw {low}-{high}"

    def cards_of_type(self, card_type: CardType) -> list[Card]:
        tables = self._require_loaded()
        return [card for card in tables.cards if card.card_type == card_type]

    def find_card(self, card_id: str) -> Optional[Card]:
        tables = self._require_loaded()
        for card in tables.cards:
            if card.card_id == card_id:
                return card
        return None

    def get_status(self) -> dict[str, Any]:
        """Load status for diagnostics."""
        if self._tables is None:
            return {"loaded": False}
        return {
            "loaded": True,
            "directory": str(self._tables.directory) if self._tables.directory else None,
            **self._tables.summary(),
            "warnings": list(self._tables.warnings),
        }
