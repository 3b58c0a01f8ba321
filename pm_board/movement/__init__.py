"""Movement and visit tracking module."""

from pm_board.movement.movement_resolver import MovementResolver
from pm_board.movement.visit_tracker import VisitTracker

__all__ = [
    "MovementResolver",
    "VisitTracker",
]
