"""
Visit tracking for board spaces.

A player's first arrival at a space uses the space's 'First' rule row;
every later arrival uses 'Subsequent'. The set of visited names lives on
the immutable PlayerState, so recording a visit returns a new state.
"""

from dataclasses import replace

from pm_board.data_models import PlayerState, VisitType


class VisitTracker:
    """Resolves First/Subsequent visit types from a player's visit history."""

    def get_visit_type(self, player: PlayerState, space_name: str) -> VisitType:
        if space_name in player.visited_spaces:
            return VisitType.SUBSEQUENT
        return VisitType.FIRST

    def record_visit(self, player: PlayerState, space_name: str) -> PlayerState:
        """
        Return a state with space_name added to visited_spaces.

        Recording the same space twice is a no-op. The turn coordinator calls
        this for the space being left, once per committed move.
        """
        if space_name in player.visited_spaces:
            return player
        return replace(player, visited_spaces=player.visited_spaces | {space_name})

    def has_visited(self, player: PlayerState, space_name: str) -> bool:
        return space_name in player.visited_spaces
