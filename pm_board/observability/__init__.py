"""
Observability for the board game engine.

Provides an ordered log of rolls, turn phase transitions, moves and
applied effects.
"""

from pm_board.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TransitionEvent,
    MoveEvent,
    EffectEvent,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TransitionEvent",
    "MoveEvent",
    "EffectEvent",
]
