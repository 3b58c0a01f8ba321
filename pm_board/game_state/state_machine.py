"""
Turn phase state machine.

A turn moves MOVING -> ACTING -> READY_TO_END -> ENDED, and ENDED opens the
next player's MOVING phase straight away. Negotiation ends a turn early from
any open phase. Only one phase is active at a time.

All transitions are validated against VALID_TRANSITIONS and logged.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from pm_board.data_models import TransitionLog


class TurnPhase(str, Enum):
    """Phases of a single player's turn."""

    MOVING = "moving"  # Turn opened, requirements not yet computed
    ACTING = "acting"  # Required actions outstanding
    READY_TO_END = "ready_to_end"  # All required actions done
    ENDED = "ended"  # Move committed or negotiated; next turn opens from here


@dataclass
class TurnTransition:
    """Defines a valid turn phase transition."""

    from_phase: TurnPhase
    to_phase: TurnPhase
    trigger: str
    description: str = ""

    def __hash__(self) -> int:
        return hash((self.from_phase, self.to_phase, self.trigger))


VALID_TRANSITIONS: list[TurnTransition] = [
    TurnTransition(
        TurnPhase.MOVING,
        TurnPhase.ACTING,
        "begin_actions",
        "Space requires at least one action",
    ),
    TurnTransition(
        TurnPhase.MOVING,
        TurnPhase.READY_TO_END,
        "actions_satisfied",
        "Space requires no actions",
    ),
    TurnTransition(
        TurnPhase.ACTING,
        TurnPhase.ACTING,
        "action_recorded",
        "Action taken, more remain",
    ),
    TurnTransition(
        TurnPhase.ACTING,
        TurnPhase.READY_TO_END,
        "actions_satisfied",
        "Last required action taken",
    ),
    TurnTransition(
        TurnPhase.READY_TO_END,
        TurnPhase.READY_TO_END,
        "action_recorded",
        "Optional action taken after requirements were met",
    ),
    TurnTransition(
        TurnPhase.READY_TO_END,
        TurnPhase.ENDED,
        "end_turn",
        "Move committed and turn closed",
    ),
    TurnTransition(
        TurnPhase.ACTING,
        TurnPhase.ENDED,
        "negotiate",
        "Player negotiated: resources rolled back with a time penalty",
    ),
    TurnTransition(
        TurnPhase.READY_TO_END,
        TurnPhase.ENDED,
        "negotiate",
        "Player negotiated: resources rolled back with a time penalty",
    ),
    TurnTransition(
        TurnPhase.ENDED,
        TurnPhase.MOVING,
        "next_turn",
        "Next player's turn opens",
    ),
]


class InvalidTransitionError(Exception):
    """Raised when an invalid turn phase transition is attempted."""

    pass


class TurnStateMachine:
    """
    Tracks the phase of the current turn with validation and history.

    Attributes:
        current_phase: The active turn phase
        previous_phase: The phase before the last transition
        history: Every transition since construction
    """

    def __init__(self, initial_phase: TurnPhase = TurnPhase.MOVING, run_log: Any = None):
        """
        Initialize the state machine.

        Args:
            initial_phase: The starting phase (default: MOVING)
            run_log: Optional RunLog that receives every transition
        """
        self._current_phase: TurnPhase = initial_phase
        self._previous_phase: Optional[TurnPhase] = None
        self._history: list[TransitionLog] = []
        self._post_transition_hooks: list[Callable] = []
        self._run_log = run_log

        self._valid_transitions: dict[tuple[TurnPhase, str], TurnPhase] = {}
        for transition in VALID_TRANSITIONS:
            key = (transition.from_phase, transition.trigger)
            self._valid_transitions[key] = transition.to_phase

        self._log_transition(
            from_phase="INIT", to_phase=initial_phase.value, trigger="initialization"
        )

    @property
    def current_phase(self) -> TurnPhase:
        return self._current_phase

    @property
    def previous_phase(self) -> Optional[TurnPhase]:
        return self._previous_phase

    @property
    def history(self) -> list[TransitionLog]:
        return self._history.copy()

    def can_transition(self, trigger: str) -> bool:
        return (self._current_phase, trigger) in self._valid_transitions

    def get_valid_triggers(self) -> list[str]:
        """Trigger names usable from the current phase."""
        return [
            trigger
            for (phase, trigger) in self._valid_transitions
            if phase == self._current_phase
        ]

    def transition(self, trigger: str, context: Optional[dict[str, Any]] = None) -> TurnPhase:
        """
        Move to the phase the trigger leads to.

        Args:
            trigger: The trigger event causing the transition
            context: Optional context data for the transition

        Returns:
            The new phase

        Raises:
            InvalidTransitionError: If the trigger is not valid from the current phase
        """
        context = context or {}

        key = (self._current_phase, trigger)
        if key not in self._valid_transitions:
            raise InvalidTransitionError(
                f"Invalid transition: Cannot trigger '{trigger}' from phase "
                f"'{self._current_phase.value}'. Valid triggers: {self.get_valid_triggers()}"
            )

        new_phase = self._valid_transitions[key]
        old_phase = self._current_phase

        self._previous_phase = old_phase
        self._current_phase = new_phase

        self._log_transition(
            from_phase=old_phase.value, to_phase=new_phase.value, trigger=trigger, context=context
        )

        for hook in self._post_transition_hooks:
            hook(old_phase, new_phase, trigger, context)

        return new_phase

    def register_post_hook(self, hook: Callable) -> None:
        """
        Register a hook to run after any transition.

        The hook will be called with (old_phase, new_phase, trigger, context).
        """
        self._post_transition_hooks.append(hook)

    def _log_transition(
        self, from_phase: str, to_phase: str, trigger: str, context: Optional[dict[str, Any]] = None
    ) -> None:
        self._history.append(TransitionLog(
            timestamp=datetime.now(),
            from_state=from_phase,
            to_state=to_phase,
            trigger=trigger,
            context=context or {},
        ))
        if self._run_log is not None:
            self._run_log.log_transition(
                from_state=from_phase,
                to_state=to_phase,
                trigger=trigger,
                context=context,
            )

    def get_state_info(self) -> dict[str, Any]:
        """Current phase details for display and debugging."""
        return {
            "current_phase": self._current_phase.value,
            "previous_phase": self._previous_phase.value if self._previous_phase else None,
            "valid_triggers": self.get_valid_triggers(),
            "transition_count": len(self._history),
            "last_transition": self._history[-1] if self._history else None,
        }

    def __repr__(self) -> str:
        return f"TurnStateMachine(current={self._current_phase.value}, previous={self._previous_phase})"
