"""
Project-Management Board Game - Main Entry Point

A CSV-driven rules engine for a turn-based board game about running a
construction project.

This module provides the GameEngine class that wires all subsystems
together, and a command-line host that auto-plays a seeded game.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pm_board.cards.deck_manager import DeckManager
from pm_board.content_loader.csv_loader import DataIntegrityError
from pm_board.data_models import CardType, DiceRoller, PlayerState, Space, VisitType
from pm_board.effects.effect_resolver import EffectResolution, EffectResolver
from pm_board.game_state.events import (
    CardActionRequest,
    DecisionRequest,
    DiceRollRequest,
    EndTurnRequest,
    EventBus,
    GameCompleted,
    MessageType,
    MovePlayerRequest,
    NegotiateRequest,
    PlayCardRequest,
    ShowMessage,
)
from pm_board.game_state.player_arena import PlayerArena
from pm_board.game_state.turn_coordinator import NegotiationStatus, TurnCoordinator
from pm_board.movement.movement_resolver import MovementResolver
from pm_board.movement.visit_tracker import VisitTracker
from pm_board.observability.run_log import RunLog
from pm_board.rules.rule_store import NotLoadedError, RuleStore


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# Each day spent costs this much when computing final scores
SCORE_COST_PER_DAY = 100


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class GameConfig:
    """Configuration for a game session."""

    data_dir: Path = field(default_factory=lambda: Path("data/board"))
    player_names: list[str] = field(default_factory=lambda: ["Player 1", "Player 2"])
    starting_money: int = 0
    seed: Optional[int] = None

    # Runtime options
    dice_roll_delay: float = 0.0
    max_time_limit: int = 365  # days
    max_turns: int = 100
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)


# =============================================================================
# GAME ENGINE
# =============================================================================


class GameEngine:
    """
    Hosts a game: owns every subsystem and routes player requests.

    All collaborators are constructed here or passed in; nothing is looked
    up globally. Requests arrive either as method calls or as request events
    on the event bus, and both go through the turn coordinator.
    """

    def __init__(
        self,
        rule_store: RuleStore,
        config: Optional[GameConfig] = None,
        event_bus: Optional[EventBus] = None,
        run_log: Optional[RunLog] = None,
        dice: Optional[DiceRoller] = None,
    ):
        """
        Initialize the engine.

        Args:
            rule_store: Loaded board rules
            config: Session configuration
            event_bus: Bus shared with the UI (default: a new bus)
            run_log: Observability log (default: a new log)
            dice: Dice roller (default: seeded from config.seed)
        """
        self.config = config or GameConfig()
        self.rule_store = rule_store
        self.run_log = run_log or RunLog()
        self.run_log.set_seed(self.config.seed)
        self.dice = dice or DiceRoller(seed=self.config.seed, run_log=self.run_log)
        self.event_bus = event_bus or EventBus()

        self.visit_tracker = VisitTracker()
        self.movement = MovementResolver(rule_store, self.visit_tracker)
        self.effects = EffectResolver(rule_store, self.visit_tracker)
        self.decks = DeckManager(rule_store, self.dice)
        self.arena = PlayerArena()
        self.coordinator = TurnCoordinator(
            rule_store=rule_store,
            arena=self.arena,
            event_bus=self.event_bus,
            decks=self.decks,
            movement=self.movement,
            effects=self.effects,
            visit_tracker=self.visit_tracker,
            dice=self.dice,
            run_log=self.run_log,
            dice_roll_delay=self.config.dice_roll_delay,
        )

        self.winner_id: Optional[int] = None
        self.final_scores: Optional[list[tuple[int, str, int]]] = None
        self._time_warned: set[int] = set()

        self.run_log.set_turn_label_provider(self._turn_label)
        self._subscribe_requests()
        logger.info("Game engine initialized")

    def _turn_label(self) -> str:
        player_id = self.coordinator.active_player_id
        return f"Turn {self.coordinator.turn_number}, player {player_id}"

    def _subscribe_requests(self) -> None:
        bus = self.event_bus
        bus.subscribe(MovePlayerRequest, lambda r: self.select_move(r.player_id, r.space_name))
        bus.subscribe(DiceRollRequest, lambda r: self.roll_dice(r.player_id))
        bus.subscribe(
            CardActionRequest,
            lambda r: self.take_card_action(r.player_id, r.card_type, r.action),
        )
        bus.subscribe(PlayCardRequest, lambda r: self.play_card(r.player_id, r.card_id))
        bus.subscribe(
            DecisionRequest,
            lambda r: self.record_decision(r.player_id, r.choice, r.destination),
        )
        bus.subscribe(NegotiateRequest, lambda r: self.negotiate(r.player_id))
        bus.subscribe(EndTurnRequest, lambda r: self.end_turn(r.player_id))

    # =========================================================================
    # GAME SETUP
    # =========================================================================

    def start_game(self, player_names: Optional[list[str]] = None) -> list[PlayerState]:
        """
        Seat players on the starting space and open the first turn.

        Raises:
            NotLoadedError: The rule store has no board
            ValueError: No players given
        """
        if not self.rule_store.is_loaded:
            raise NotLoadedError("Cannot start a game before the board is loaded")
        names = player_names or self.config.player_names
        if not names:
            raise ValueError("At least one player is required")

        start = self.rule_store.starting_space()
        self.arena.clear()
        for index, name in enumerate(names, start=1):
            self.arena.add(PlayerState(
                player_id=index,
                name=name,
                position=start,
                visit_type=VisitType.FIRST,
                money=self.config.starting_money,
            ))
        self.decks.initialize()
        self.winner_id = None
        self.final_scores = None

        logger.info(f"Game started with {len(names)} player(s) on {start}")
        self.coordinator.start_turn(self.arena.seat_order[0], turn_number=1)
        return self.arena.players()

    # =========================================================================
    # PLAYER REQUESTS
    # =========================================================================

    def roll_dice(self, player_id: int, die_value: Optional[int] = None) -> Optional[EffectResolution]:
        resolution = self.coordinator.roll_dice(player_id, die_value)
        if resolution is not None:
            self._check_time_limit(player_id)
        return resolution

    def select_move(self, player_id: int, space_name: str) -> bool:
        return self.coordinator.select_move(player_id, space_name)

    def take_card_action(self, player_id: int, card_type: CardType, action: str) -> bool:
        return self.coordinator.take_card_action(player_id, card_type, action)

    def play_card(self, player_id: int, card_id: str) -> bool:
        played = self.coordinator.play_card(player_id, card_id)
        if played:
            self._check_time_limit(player_id)
        return played

    def record_decision(self, player_id: int, choice: str, destination: Optional[str] = None) -> bool:
        return self.coordinator.record_decision(player_id, choice, destination)

    def can_negotiate(self, player_id: int) -> NegotiationStatus:
        return self.coordinator.can_negotiate(player_id)

    def negotiate(self, player_id: int) -> bool:
        negotiated = self.coordinator.negotiate(player_id)
        if negotiated:
            self._after_turn_ended(player_id)
        return negotiated

    def end_turn(self, player_id: int) -> bool:
        ended = self.coordinator.end_turn(player_id)
        if ended:
            self._after_turn_ended(player_id)
        return ended

    # =========================================================================
    # ROTATION AND WIN CONDITION
    # =========================================================================

    def _after_turn_ended(self, player_id: int) -> None:
        self._check_time_limit(player_id)
        player = self.arena.get(player_id)
        if self.rule_store.is_ending_space(player.position):
            self._complete_game(player_id)
            return
        self.coordinator.start_next_turn(player_id)

    def _check_time_limit(self, player_id: int) -> None:
        player = self.arena.get(player_id)
        if player.time_spent > self.config.max_time_limit and player_id not in self._time_warned:
            self._time_warned.add(player_id)
            logger.warning(
                f"Player {player_id} exceeded the time limit: "
                f"{player.time_spent} > {self.config.max_time_limit} days"
            )
            self.event_bus.publish(ShowMessage(
                MessageType.WARNING,
                "Time limit exceeded",
                f"{player.name} has spent {player.time_spent} days "
                f"(limit {self.config.max_time_limit}).",
            ))

    def calculate_scores(self) -> list[tuple[int, str, int]]:
        """(player_id, name, score) best first; score = money - days * 100, floored at 0."""
        scores = [
            (p.player_id, p.name, max(0, p.money - p.time_spent * SCORE_COST_PER_DAY))
            for p in self.arena.players()
        ]
        return sorted(scores, key=lambda s: s[2], reverse=True)

    def _complete_game(self, winner_id: int) -> None:
        winner = self.arena.get(winner_id)
        self.winner_id = winner_id
        self.final_scores = self.calculate_scores()
        self.coordinator.close_game()

        logger.info(f"Game completed: {winner.name} reached {winner.position}")
        self.run_log.log_custom("game_completed", {
            "winner_id": winner_id,
            "scores": self.final_scores,
        })
        self.event_bus.publish(GameCompleted(
            winner_id=winner_id,
            scores=tuple(self.final_scores),
            turn_number=self.coordinator.turn_number,
        ))
        self.event_bus.publish(ShowMessage(
            MessageType.SUCCESS,
            f"{winner.name} completed the project!",
            f"Finished on turn {self.coordinator.turn_number} after {winner.time_spent} days.",
        ))

    # =========================================================================
    # QUERIES
    # =========================================================================

    @property
    def is_game_over(self) -> bool:
        return self.coordinator.game_over

    def get_player(self, player_id: int) -> PlayerState:
        return self.arena.get(player_id)

    def players(self) -> list[PlayerState]:
        return self.arena.players()

    def available_moves(self, player_id: int) -> list[str]:
        return self.coordinator.available_moves(player_id)

    def current_space(self, player_id: int) -> Space:
        return self.movement.current_space(self.arena.get(player_id))

    def get_full_state(self) -> dict[str, Any]:
        turn = self.coordinator.current_turn
        return {
            "turn_number": self.coordinator.turn_number,
            "phase": self.coordinator.phase.value,
            "turn": turn.to_dict() if turn else None,
            "players": [p.to_dict() for p in self.arena.players()],
            "decks": self.decks.get_status(),
            "game_over": self.is_game_over,
            "winner_id": self.winner_id,
        }

    def status(self) -> str:
        """
        Get a formatted status string for display.

        Returns:
            Multi-line status string
        """
        state = self.get_full_state()
        lines = [
            "=" * 60,
            "PROJECT BOARD STATUS",
            "=" * 60,
            f"Turn: {state['turn_number']} ({state['phase']})",
        ]
        if state["turn"]:
            turn = state["turn"]
            lines.append(
                f"Active: player {turn['player_id']} on {turn['space_name']} "
                f"({turn['completed_actions']}/{turn['required_actions']} actions)"
            )
        lines.append("")
        lines.append("Players:")
        for player in self.arena.players():
            lines.append(
                f"  {player.name}: {player.position} ({player.visit_type.value}), "
                f"${player.money:,}, {player.time_spent} days, {player.card_count()} cards"
            )
        if self.final_scores:
            lines.append("")
            lines.append("Final Scores:")
            for rank, (player_id, name, score) in enumerate(self.final_scores, start=1):
                lines.append(f"  {rank}. {name} (player {player_id}): {score:,}")
        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# AUTO-PLAY
# =============================================================================


def auto_play(engine: GameEngine, max_turns: int) -> int:
    """
    Play the game without input: roll when required, take every card action,
    decide 'yes' on logic spaces, take the first destination, end the turn.

    Returns:
        Number of turns played
    """
    turns_played = 0
    while not engine.is_game_over:
        turn = engine.coordinator.current_turn
        if turn is None or turn.turn_number > max_turns:
            break
        player_id = turn.player_id

        if turn.dice_required and not turn.has_rolled:
            engine.roll_dice(player_id)
        for action in list(turn.available_card_actions):
            engine.take_card_action(player_id, action.card_type, action.action_text)

        moves = engine.available_moves(player_id)
        space = engine.current_space(player_id)
        if space.is_logic and turn.decision_space != space.space_name:
            engine.record_decision(player_id, "yes", moves[0] if moves else None)
        elif len(moves) > 1 and turn.selected_move is None:
            engine.select_move(player_id, moves[0])

        if not engine.end_turn(player_id) and not engine.negotiate(player_id):
            logger.error(f"Auto-play stuck on {space.space_name} for player {player_id}")
            break
        turns_played += 1

    return turns_played


# =============================================================================
# COMMAND LINE
# =============================================================================


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Project-management board game - auto-play a seeded game",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m pm_board.main --players Ann Bob --seed 7
  python -m pm_board.main --data-dir data/board --max-turns 40 --dice-delay 0
  python -m pm_board.main --seed 3 --export-log run.json
        """
    )

    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("data/board"),
        help="Directory holding the board CSV files (default: data/board)",
    )
    parser.add_argument(
        "--players",
        nargs="+",
        default=["Player 1", "Player 2"],
        help="Player names in seat order",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible game",
    )
    parser.add_argument(
        "--starting-money",
        type=int,
        default=0,
        help="Money each player starts with (default: 0)",
    )
    parser.add_argument(
        "--max-turns",
        type=int,
        default=100,
        help="Stop auto-play after this many rounds (default: 100)",
    )
    parser.add_argument(
        "--max-time-limit",
        type=int,
        default=365,
        help="Days after which a time warning is shown (default: 365)",
    )
    parser.add_argument(
        "--dice-delay",
        type=float,
        default=1.2,
        help="Seconds to pause before each dice result (default: 1.2)",
    )
    parser.add_argument(
        "--export-log",
        type=Path,
        default=None,
        help="Write the run log as JSON to this path",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> GameConfig:
    """Create GameConfig from parsed arguments."""
    return GameConfig(
        data_dir=args.data_dir,
        player_names=list(args.players),
        starting_money=args.starting_money,
        seed=args.seed,
        dice_roll_delay=args.dice_delay,
        max_time_limit=args.max_time_limit,
        max_turns=args.max_turns,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    config = create_config_from_args(args)

    print("=" * 60)
    print("PROJECT BOARD GAME")
    print("=" * 60)

    try:
        rule_store = RuleStore.create_default(config.data_dir)
    except DataIntegrityError as e:
        logger.error(f"Board data is invalid: {e}")
        return 1

    engine = GameEngine(rule_store, config)
    engine.event_bus.subscribe(
        ShowMessage,
        lambda m: print(f"[{m.type.value}] {m.message}" + (f" - {m.description}" if m.description else "")),
    )
    engine.start_game(config.player_names)
    turns = auto_play(engine, config.max_turns)

    print(f"\nPlayed {turns} turn(s)")
    print(engine.status())
    print(engine.run_log.format_log(max_events=20))

    if args.export_log:
        engine.run_log.save(str(args.export_log))

    return 0


if __name__ == "__main__":
    sys.exit(main())
