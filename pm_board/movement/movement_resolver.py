"""
Movement resolution for the board.

Works out where a player may go from their current space: the static
destination list, or the dice outcome row once the die has been rolled.
"""

import logging
from typing import Optional

from pm_board.data_models import PlayerState, Space, SpaceCategory
from pm_board.movement.visit_tracker import VisitTracker
from pm_board.rules.rule_store import RuleStore

logger = logging.getLogger(__name__)


LOGIC_NAME_MARKERS = ("DECISION-CHECK", "LOGIC")
SIDE_QUEST_NAME_MARKERS = ("BANK-", "INVESTOR-")
LOGIC_EVENT_MARKERS = ("yes/no", "choose")


class MovementResolver:
    """
    Computes legal destinations for a player.

    Usage:
        resolver = MovementResolver(rule_store, VisitTracker())
        moves = resolver.get_available_moves(player)            # before rolling
        moves = resolver.get_available_moves(player, dice_roll=4)
    """

    def __init__(self, rule_store: RuleStore, visit_tracker: Optional[VisitTracker] = None):
        self.rule_store = rule_store
        self.visit_tracker = visit_tracker or VisitTracker()

    def current_space(self, player: PlayerState) -> Space:
        """The rule row governing the player's current position."""
        visit_type = self.visit_tracker.get_visit_type(player, player.position)
        return self.rule_store.find_space(player.position, visit_type)

    def get_available_moves(self, player: PlayerState, dice_roll: Optional[int] = None) -> list[str]:
        """
        Legal destinations from the player's current space.

        Args:
            player: The moving player
            dice_roll: Die face already rolled this turn, if any

        Returns:
            Destination names in declared order. Empty while a required
            roll is outstanding, or when the space has no exits.
        """
        space = self.current_space(player)
        static_moves = [name for name in space.next_spaces if name]

        if not self.rule_store.requires_dice_roll(space.space_name, space.visit_type):
            return static_moves
        if dice_roll is None:
            return []

        outcome_row = self.rule_store.query_movement_outcome(space.space_name, space.visit_type)
        if outcome_row is not None:
            destinations = outcome_row.destinations_for(dice_roll)
            if destinations:
                return destinations
        return static_moves

    def needs_choice(self, player: PlayerState, dice_roll: Optional[int] = None) -> bool:
        """True when the player must pick between several destinations."""
        return len(self.get_available_moves(player, dice_roll)) > 1

    def get_space_type(self, space: Space) -> SpaceCategory:
        """
        Display category of a space.

        The explicit space_type column wins. Otherwise the path column, then
        name markers, then event wording decide, later rules overriding
        earlier ones.
        """
        explicit = space.space_type.strip().lower()
        for category in SpaceCategory:
            if explicit == category.value.lower():
                return category

        category = SpaceCategory.MAIN
        path = space.path.lower()
        if "side quest" in path:
            category = SpaceCategory.SIDE_QUEST
        elif "special" in path:
            category = SpaceCategory.SPECIAL
        elif "logic" in path:
            category = SpaceCategory.LOGIC

        if any(marker in space.space_name for marker in LOGIC_NAME_MARKERS):
            category = SpaceCategory.LOGIC
        elif any(marker in space.space_name for marker in SIDE_QUEST_NAME_MARKERS):
            category = SpaceCategory.SIDE_QUEST

        event = space.event.lower()
        if any(marker in event for marker in LOGIC_EVENT_MARKERS):
            category = SpaceCategory.LOGIC

        return category
