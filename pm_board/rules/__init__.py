"""Board rules lookup module."""

from pm_board.rules.rule_store import (
    CardTypeAction,
    NotLoadedError,
    RuleStore,
    SpaceNotFoundError,
)

__all__ = [
    "CardTypeAction",
    "NotLoadedError",
    "RuleStore",
    "SpaceNotFoundError",
]
