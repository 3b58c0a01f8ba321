"""
Unit tests for the turn phase state machine.

Tests phase transitions, validation, hooks and run log integration from
pm_board/game_state/state_machine.py.
"""

from unittest.mock import MagicMock

import pytest

from pm_board.game_state.state_machine import (
    InvalidTransitionError,
    TurnPhase,
    TurnStateMachine,
    VALID_TRANSITIONS,
)
from pm_board.observability.run_log import RunLog


@pytest.fixture
def machine():
    return TurnStateMachine()


class TestInitialization:
    """Tests for state machine initialization."""

    def test_default_initial_phase(self, machine):
        assert machine.current_phase == TurnPhase.MOVING

    def test_custom_initial_phase(self):
        assert TurnStateMachine(TurnPhase.ENDED).current_phase == TurnPhase.ENDED

    def test_previous_phase_initially_none(self, machine):
        assert machine.previous_phase is None

    def test_initial_history_entry(self, machine):
        history = machine.history
        assert len(history) == 1
        assert history[0].from_state == "INIT"
        assert history[0].to_state == "moving"
        assert history[0].trigger == "initialization"


class TestTransitions:
    """Tests for valid and invalid transitions."""

    def test_turn_with_actions(self, machine):
        assert machine.transition("begin_actions") == TurnPhase.ACTING
        assert machine.transition("action_recorded") == TurnPhase.ACTING
        assert machine.transition("actions_satisfied") == TurnPhase.READY_TO_END
        assert machine.transition("action_recorded") == TurnPhase.READY_TO_END
        assert machine.transition("end_turn") == TurnPhase.ENDED
        assert machine.previous_phase == TurnPhase.READY_TO_END

    def test_turn_without_actions(self, machine):
        machine.transition("actions_satisfied")
        assert machine.current_phase == TurnPhase.READY_TO_END

    def test_negotiate_from_acting(self, machine):
        machine.transition("begin_actions")
        assert machine.transition("negotiate") == TurnPhase.ENDED

    def test_negotiate_from_ready(self, machine):
        machine.transition("actions_satisfied")
        assert machine.transition("negotiate") == TurnPhase.ENDED

    def test_next_turn_reopens(self, machine):
        machine.transition("actions_satisfied")
        machine.transition("end_turn")
        assert machine.transition("next_turn") == TurnPhase.MOVING

    def test_cannot_end_while_acting(self, machine):
        machine.transition("begin_actions")
        with pytest.raises(InvalidTransitionError, match="end_turn"):
            machine.transition("end_turn")
        assert machine.current_phase == TurnPhase.ACTING

    def test_cannot_negotiate_before_actions_known(self, machine):
        assert not machine.can_transition("negotiate")
        with pytest.raises(InvalidTransitionError):
            machine.transition("negotiate")

    def test_unknown_trigger(self, machine):
        with pytest.raises(InvalidTransitionError, match="Valid triggers"):
            machine.transition("teleport")

    def test_valid_triggers(self, machine):
        assert set(machine.get_valid_triggers()) == {"begin_actions", "actions_satisfied"}

    def test_every_phase_has_an_exit(self):
        sources = {t.from_phase for t in VALID_TRANSITIONS}
        assert sources == set(TurnPhase)


class TestHooksAndLogging:
    """Post-transition hooks, history and run log."""

    def test_post_hook_receives_transition(self, machine):
        hook = MagicMock()
        machine.register_post_hook(hook)
        machine.transition("begin_actions", {"player_id": 1})
        hook.assert_called_once_with(TurnPhase.MOVING, TurnPhase.ACTING, "begin_actions", {"player_id": 1})

    def test_history_records_context(self, machine):
        machine.transition("actions_satisfied", {"space": "X"})
        assert machine.history[-1].context == {"space": "X"}
        assert len(machine.history) == 2

    def test_transitions_reach_run_log(self):
        run_log = RunLog()
        machine = TurnStateMachine(run_log=run_log)
        machine.transition("begin_actions")
        transitions = run_log.get_transitions()
        assert [t.trigger for t in transitions] == ["initialization", "begin_actions"]
        assert transitions[-1].to_state == "acting"

    def test_state_info(self, machine):
        machine.transition("begin_actions")
        info = machine.get_state_info()
        assert info["current_phase"] == "acting"
        assert info["previous_phase"] == "moving"
        assert info["transition_count"] == 2
        assert "acting" in repr(machine)
