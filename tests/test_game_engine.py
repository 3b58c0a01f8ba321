"""
Integration tests for the game engine and command-line host.

Tests game setup, request routing over the event bus, seat rotation, the
win condition and a full seeded auto-play of the shipped board.
"""

import json
from pathlib import Path

import pytest

from pm_board.data_models import CardType
from pm_board.game_state.events import (
    CardActionRequest,
    DecisionRequest,
    EndTurnRequest,
    GameCompleted,
    NegotiateRequest,
    ShowMessage,
    TurnStarted,
)
from pm_board.game_state.player_arena import SetSkipNextTurn
from pm_board.main import (
    GameConfig,
    GameEngine,
    auto_play,
    create_config_from_args,
    main,
    parse_arguments,
)
from pm_board.rules.rule_store import NotLoadedError, RuleStore
from tests.helpers import SHIPPED_BOARD, board_cards, space_row, write_board


def finish_start_turn(engine, player_id):
    """Take the card action on the test board's START space and end the turn."""
    assert engine.take_card_action(player_id, CardType.WORK, "Draw 2")
    assert engine.end_turn(player_id)


class TestGameSetup:
    """Seating players and opening the first turn."""

    def test_start_game(self, engine):
        players = engine.start_game()
        assert [p.name for p in players] == ["Ann", "Bob"]
        assert [p.player_id for p in players] == [1, 2]
        assert all(p.position == "START" for p in players)
        assert engine.coordinator.active_player_id == 1
        assert engine.coordinator.turn_number == 1
        assert engine.decks.available_count(CardType.WORK) == 4
        assert len(engine.event_bus.history(TurnStarted)) == 1

    def test_starting_money(self, rule_store):
        engine = GameEngine(rule_store, GameConfig(starting_money=2500))
        players = engine.start_game(["Cy"])
        assert players[0].money == 2500

    def test_board_must_be_loaded(self):
        with pytest.raises(NotLoadedError):
            GameEngine(RuleStore()).start_game()

    def test_players_required(self, rule_store):
        with pytest.raises(ValueError):
            GameEngine(rule_store, GameConfig(player_names=[])).start_game()

    def test_full_state(self, engine):
        engine.start_game()
        state = engine.get_full_state()
        assert state["turn"]["player_id"] == 1
        assert state["phase"] == "acting"
        assert len(state["players"]) == 2
        assert state["decks"]["draw"]["W"] == 4
        assert not state["game_over"]
        assert "Ann: START" in engine.status()


class TestRequests:
    """Player requests arriving on the event bus."""

    def test_requests_reach_coordinator(self, engine):
        engine.start_game()
        bus = engine.event_bus
        bus.publish(CardActionRequest(1, CardType.WORK, "Draw 2"))
        assert engine.get_player(1).card_count(CardType.WORK) == 2

        bus.publish(EndTurnRequest(1))
        assert engine.get_player(1).position == "X"
        assert engine.coordinator.active_player_id == 2

    def test_rejected_request_shows_message(self, engine):
        engine.start_game()
        engine.event_bus.publish(EndTurnRequest(2))
        warning = engine.event_bus.history(ShowMessage)[-1]
        assert warning.message == "Not your turn"
        assert engine.coordinator.active_player_id == 1

    def test_unknown_card_type_request(self, engine):
        engine.start_game()
        engine.event_bus.publish(CardActionRequest(1, "Q", "Draw 2"))
        assert engine.event_bus.history(ShowMessage)[-1].message == "Card action not available"
        assert engine.get_player(1).card_count() == 0

    def test_negotiate_request(self, engine):
        engine.start_game()
        engine.event_bus.publish(NegotiateRequest(1))
        assert engine.get_player(1).time_spent == 1
        assert engine.coordinator.active_player_id == 2

    def test_decision_request(self, engine):
        engine.start_game(["Ann"])
        finish_start_turn(engine, 1)
        assert engine.end_turn(1)
        assert engine.roll_dice(1, die_value=4) is not None
        assert engine.end_turn(1)
        assert engine.current_space(1).space_name == "Z"

        engine.event_bus.publish(DecisionRequest(1, "yes", destination="FORK_B"))
        assert engine.end_turn(1)
        assert engine.get_player(1).position == "FORK_B"


class TestRotation:
    """Turn order across players."""

    def test_round_robin(self, engine):
        engine.start_game()
        finish_start_turn(engine, 1)
        assert engine.coordinator.active_player_id == 2
        assert engine.coordinator.turn_number == 1

        finish_start_turn(engine, 2)
        assert engine.coordinator.active_player_id == 1
        assert engine.coordinator.turn_number == 2

    def test_skip_next_turn(self, engine):
        engine.start_game()
        engine.arena.apply(2, SetSkipNextTurn(True))

        finish_start_turn(engine, 1)

        assert engine.coordinator.active_player_id == 1
        assert engine.coordinator.turn_number == 2
        assert not engine.get_player(2).skip_next_turn

        assert engine.end_turn(1)
        assert engine.coordinator.active_player_id == 2

    def test_time_limit_warns_once(self, rule_store):
        engine = GameEngine(rule_store, GameConfig(max_time_limit=1, player_names=["Ann"]))
        engine.start_game()
        finish_start_turn(engine, 1)
        assert engine.end_turn(1)
        assert engine.get_player(1).time_spent > 1
        warnings = [m for m in engine.event_bus.history(ShowMessage) if m.message == "Time limit exceeded"]
        assert len(warnings) == 1


class TestWinCondition:
    """Reaching an ending space finishes the game."""

    @pytest.fixture
    def short_engine(self, tmp_path):
        directory = write_board(
            tmp_path / "short",
            spaces=[space_row("START", dests=("END",)), space_row("END", time="2")],
            dice_effects=[],
            dice_outcomes=[],
            cards=board_cards(),
        )
        store = RuleStore()
        store.load(directory)
        return GameEngine(store, GameConfig(starting_money=1000, player_names=["Ann", "Bob"]))

    def test_game_completed(self, short_engine):
        completed = []
        short_engine.event_bus.subscribe(GameCompleted, completed.append)
        short_engine.start_game()

        assert short_engine.end_turn(1)

        assert short_engine.is_game_over
        assert short_engine.winner_id == 1
        assert completed[0].winner_id == 1
        assert completed[0].scores == ((2, "Bob", 1000), (1, "Ann", 800))
        assert short_engine.final_scores[0] == (2, "Bob", 1000)

    def test_no_actions_after_game_over(self, short_engine):
        short_engine.start_game()
        short_engine.end_turn(1)
        assert not short_engine.end_turn(2)
        assert short_engine.event_bus.history(ShowMessage)[-1].message == "Game over"

    def test_completion_logged(self, short_engine):
        short_engine.start_game()
        short_engine.end_turn(1)
        custom = [e for e in short_engine.run_log.get_events() if e.context.get("event_name") == "game_completed"]
        assert custom[0].context["winner_id"] == 1

    def test_scores_floor_at_zero(self, short_engine):
        short_engine.config.starting_money = 0
        short_engine.start_game()
        short_engine.end_turn(1)
        assert dict((pid, score) for pid, _, score in short_engine.final_scores) == {1: 0, 2: 0}


class TestAutoPlay:
    """Seeded games on the shipped board."""

    def test_auto_play_finishes(self):
        engine = GameEngine(
            RuleStore.create_default(SHIPPED_BOARD),
            GameConfig(seed=7, dice_roll_delay=0.0),
        )
        engine.start_game()

        turns = auto_play(engine, max_turns=60)

        assert turns > 0
        assert engine.is_game_over
        assert engine.get_player(engine.winner_id).position == "FINISH"

    def test_same_seed_same_game(self):
        def play(seed):
            engine = GameEngine(
                RuleStore.create_default(SHIPPED_BOARD),
                GameConfig(seed=seed, dice_roll_delay=0.0),
            )
            engine.start_game()
            auto_play(engine, max_turns=60)
            return engine.run_log.get_roll_stream(), engine.final_scores

        assert play(11) == play(11)


class TestCommandLine:
    """Argument parsing and the main entry point."""

    def test_defaults(self):
        args = parse_arguments([])
        assert args.data_dir == Path("data/board")
        assert args.players == ["Player 1", "Player 2"]
        assert args.dice_delay == 1.2
        assert args.seed is None

    def test_config_from_args(self):
        args = parse_arguments(["--players", "Ann", "Bob", "Cy", "--seed", "3", "--dice-delay", "0"])
        config = create_config_from_args(args)
        assert config.player_names == ["Ann", "Bob", "Cy"]
        assert config.seed == 3
        assert config.dice_roll_delay == 0.0

    def test_main_plays_and_exports(self, tmp_path, capsys):
        export = tmp_path / "run.json"
        exit_code = main([
            "--data-dir", str(SHIPPED_BOARD),
            "--players", "Ann", "Bob",
            "--seed", "7",
            "--dice-delay", "0",
            "--export-log", str(export),
        ])
        assert exit_code == 0
        assert "PROJECT BOARD STATUS" in capsys.readouterr().out
        data = json.loads(export.read_text(encoding="utf-8"))
        assert data["seed"] == 7
        assert data["events"]

    def test_main_rejects_broken_board(self, tmp_path):
        assert main(["--data-dir", str(tmp_path), "--dice-delay", "0"]) == 1
