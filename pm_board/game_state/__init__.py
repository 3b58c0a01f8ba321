"""Turn flow, player state and game events."""

from pm_board.game_state.events import EventBus, MessageType
from pm_board.game_state.player_arena import PlayerArena, UnknownPlayerError, apply_effect
from pm_board.game_state.state_machine import (
    InvalidTransitionError,
    TurnPhase,
    TurnStateMachine,
)
from pm_board.game_state.turn_coordinator import (
    InvalidTurnActionError,
    NegotiationStatus,
    TurnCoordinator,
    TurnState,
)

__all__ = [
    "EventBus",
    "InvalidTransitionError",
    "InvalidTurnActionError",
    "MessageType",
    "NegotiationStatus",
    "PlayerArena",
    "TurnCoordinator",
    "TurnPhase",
    "TurnState",
    "TurnStateMachine",
    "UnknownPlayerError",
    "apply_effect",
]
