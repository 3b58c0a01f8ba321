"""
Pytest fixtures for the project board test suite.

Provides the standard test board on disk (see tests/helpers.py) and the
wired engine components built on it.
"""

from pathlib import Path
from typing import Optional

import pytest

from pm_board.cards.deck_manager import DeckManager
from pm_board.data_models import DiceRoller, PlayerState
from pm_board.game_state.events import DOMAIN_EVENT_TYPES, EventBus
from pm_board.game_state.player_arena import PlayerArena
from pm_board.game_state.turn_coordinator import TurnCoordinator
from pm_board.main import GameConfig, GameEngine
from pm_board.observability.run_log import RunLog
from pm_board.rules.rule_store import RuleStore
from tests.helpers import write_board


# =============================================================================
# BOARD FIXTURES
# =============================================================================


@pytest.fixture
def board_dir(tmp_path):
    """The standard test board on disk."""
    return write_board(tmp_path / "board")


@pytest.fixture
def make_board(tmp_path):
    """Factory writing variant boards into fresh directories."""
    counter = {"n": 0}

    def _make(**tables) -> Path:
        counter["n"] += 1
        return write_board(tmp_path / f"variant_{counter['n']}", **tables)

    return _make


@pytest.fixture
def rule_store(board_dir):
    """RuleStore loaded with the standard test board."""
    store = RuleStore()
    store.load(board_dir)
    return store


# =============================================================================
# ENGINE COMPONENT FIXTURES
# =============================================================================


@pytest.fixture
def dice():
    """Seeded dice for reproducible shuffles and rolls."""
    return DiceRoller(seed=42)


@pytest.fixture
def run_log():
    return RunLog()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def published(event_bus):
    """Every outbound event published on the bus, in order."""
    events = []
    for event_type in DOMAIN_EVENT_TYPES:
        event_bus.subscribe(event_type, events.append)
    return events


@pytest.fixture
def arena():
    return PlayerArena()


@pytest.fixture
def decks(rule_store, dice):
    manager = DeckManager(rule_store, dice)
    manager.initialize()
    return manager


@pytest.fixture
def coordinator(rule_store, arena, event_bus, decks, dice, run_log):
    dice.attach_run_log(run_log)
    return TurnCoordinator(
        rule_store=rule_store,
        arena=arena,
        event_bus=event_bus,
        decks=decks,
        dice=dice,
        run_log=run_log,
    )


@pytest.fixture
def seat(arena):
    """Seat a player directly on any space of the test board."""

    def _seat(position: str = "START", player_id: int = 1, name: Optional[str] = None, **fields) -> PlayerState:
        state = PlayerState(
            player_id=player_id,
            name=name or f"Player {player_id}",
            position=position,
            **fields,
        )
        arena.add(state)
        return state

    return _seat


@pytest.fixture
def engine(rule_store):
    """GameEngine on the test board with no dice delay."""
    config = GameConfig(seed=7, dice_roll_delay=0.0, player_names=["Ann", "Bob"])
    return GameEngine(rule_store, config)
