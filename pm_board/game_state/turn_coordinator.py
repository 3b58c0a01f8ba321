"""
Turn Coordinator for the project-management board game.

Owns the active turn: works out which actions a space requires, validates
every player request against the turn state, applies the resulting effects
to the player arena and publishes domain events. It is the only component
that writes player state.

Player-facing rejections (wrong player, outstanding actions, missing
decision, invalid selection, duplicate roll, game over) never raise across
the public methods: they are published as ShowMessage and the method
returns False or None.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pm_board.cards.deck_manager import DeckManager
from pm_board.data_models import (
    Card,
    CardOp,
    CardOpKind,
    CardType,
    DIE_FACES,
    DiceRoller,
    FixedEffect,
    PlayerState,
    Space,
    VisitType,
)
from pm_board.effects.effect_parser import (
    MalformedEffectError,
    parse_card_instruction,
    parse_time,
)
from pm_board.effects.effect_resolver import EffectResolution, EffectResolver
from pm_board.game_state.events import (
    CardPlayed,
    CardsDrawn,
    DiceRollCompleted,
    EventBus,
    MessageType,
    PlayerMoved,
    PlayerStateRestored,
    ShowMessage,
    SpaceActionCompleted,
    TurnEnded,
    TurnStarted,
)
from pm_board.game_state.player_arena import (
    AddCards,
    AdjustMoney,
    AdjustTime,
    MoveTo,
    PlayerArena,
    RecordDecision,
    RecordVisit,
    RemoveCards,
    RestoreSnapshot,
    SetSkipNextTurn,
    TakeSnapshot,
)
from pm_board.game_state.state_machine import (
    InvalidTransitionError,
    TurnPhase,
    TurnStateMachine,
)
from pm_board.movement.movement_resolver import MovementResolver
from pm_board.movement.visit_tracker import VisitTracker
from pm_board.rules.rule_store import CardTypeAction, RuleStore

logger = logging.getLogger(__name__)


DEFAULT_NEGOTIATION_PENALTY = 1


class InvalidTurnActionError(Exception):
    """A player asked for something the current turn does not allow."""

    def __init__(self, message: str, description: str = ""):
        self.message = message
        self.description = description
        super().__init__(f"{message}: {description}" if description else message)


@dataclass
class TurnState:
    """Bookkeeping for the active player's turn."""
    player_id: int
    turn_number: int
    space_name: str
    visit_type: VisitType
    phase: TurnPhase = TurnPhase.MOVING
    required_actions: int = 0
    completed_actions: int = 0
    dice_required: bool = False
    card_actions_required: bool = False
    move_choice_required: bool = False
    has_rolled: bool = False
    last_dice_roll: Optional[int] = None
    dice_time_delta: int = 0
    dice_counted: bool = False
    card_action_counted: bool = False
    move_counted: bool = False
    available_card_actions: list[CardTypeAction] = field(default_factory=list)
    selected_move: Optional[str] = None
    decision_space: Optional[str] = None

    @property
    def outstanding_actions(self) -> int:
        return max(0, self.required_actions - self.completed_actions)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "turn_number": self.turn_number,
            "space_name": self.space_name,
            "visit_type": self.visit_type.value,
            "phase": self.phase.value,
            "required_actions": self.required_actions,
            "completed_actions": self.completed_actions,
            "has_rolled": self.has_rolled,
            "last_dice_roll": self.last_dice_roll,
            "available_card_actions": [
                f"{a.card_type.value}: {a.action_text}" for a in self.available_card_actions
            ],
            "selected_move": self.selected_move,
        }


@dataclass(frozen=True)
class NegotiationStatus:
    enabled: bool
    reason: str


class TurnCoordinator:
    """
    Runs one turn at a time.

    Usage:
        coordinator = TurnCoordinator(rule_store, arena, event_bus, decks)
        coordinator.start_turn(player_id=1, turn_number=1)
        coordinator.roll_dice(1)
        coordinator.select_move(1, "ARCH-INITIATION")
        coordinator.end_turn(1)
    """

    def __init__(
        self,
        rule_store: RuleStore,
        arena: PlayerArena,
        event_bus: EventBus,
        decks: DeckManager,
        movement: Optional[MovementResolver] = None,
        effects: Optional[EffectResolver] = None,
        visit_tracker: Optional[VisitTracker] = None,
        dice: Optional[DiceRoller] = None,
        run_log: Any = None,
        dice_roll_delay: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
        percentage_fee_base: Optional[Callable[[PlayerState], int]] = None,
    ):
        """
        Args:
            rule_store: Loaded board rules
            arena: Player states, written only through this coordinator
            event_bus: Destination for domain events
            decks: Card draw and discard piles
            dice_roll_delay: Seconds to pause before resolving a roll
            sleep: Pause function, replaceable in tests
            percentage_fee_base: Returns the amount a percentage fee applies
                to; without it percentage fees stay unresolved
        """
        self.rule_store = rule_store
        self.arena = arena
        self.event_bus = event_bus
        self.decks = decks
        self.visit_tracker = visit_tracker or VisitTracker()
        self.movement = movement or MovementResolver(rule_store, self.visit_tracker)
        self.effects = effects or EffectResolver(rule_store, self.visit_tracker)
        self.dice = dice or DiceRoller(run_log=run_log)
        self.run_log = run_log
        self.dice_roll_delay = dice_roll_delay
        self._sleep = sleep
        self.percentage_fee_base = percentage_fee_base
        self.machine = TurnStateMachine(run_log=run_log)

        self._turn: Optional[TurnState] = None
        self._turn_number = 0
        self._game_over = False

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def current_turn(self) -> Optional[TurnState]:
        return self._turn

    @property
    def turn_number(self) -> int:
        return self._turn_number

    @property
    def active_player_id(self) -> Optional[int]:
        return self._turn.player_id if self._turn else None

    @property
    def phase(self) -> TurnPhase:
        return self.machine.current_phase

    @property
    def game_over(self) -> bool:
        return self._game_over

    def close_game(self) -> None:
        """Stop accepting player actions."""
        self._game_over = True
        logger.info("Turn coordinator closed: game over")

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _active_turn(self, player_id: int) -> TurnState:
        if self._game_over:
            raise InvalidTurnActionError("Game over", "The game has already finished.")
        if self._turn is None:
            raise InvalidTurnActionError("No turn in progress")
        if player_id != self._turn.player_id:
            raise InvalidTurnActionError(
                "Not your turn",
                f"It is player {self._turn.player_id}'s turn.",
            )
        return self._turn

    def _reject(self, error: InvalidTurnActionError) -> None:
        logger.info(f"Rejected turn action: {error}")
        self.event_bus.publish(ShowMessage(MessageType.WARNING, error.message, error.description))

    def _transition(self, turn: TurnState, trigger: str, **context: Any) -> None:
        context.setdefault("player_id", turn.player_id)
        turn.phase = self.machine.transition(trigger, context)

    def _record_action(self, turn: TurnState, kind: str, counts: bool) -> None:
        """Advance completed actions for a counted action and move the phase on."""
        if counts and turn.completed_actions < turn.required_actions:
            turn.completed_actions += 1
        if turn.phase == TurnPhase.ACTING and turn.completed_actions >= turn.required_actions:
            self._transition(turn, "actions_satisfied", action=kind)
        else:
            self._transition(turn, "action_recorded", action=kind)

    def _current_space(self, turn: TurnState) -> Space:
        return self.rule_store.find_space(turn.space_name, turn.visit_type)

    def _log_effect(self, player_id: int, source: str, resolution: EffectResolution) -> None:
        if self.run_log is not None and not resolution.is_empty():
            self.run_log.log_effect(
                player_id=player_id,
                source=source,
                money_delta=resolution.money_delta,
                time_delta=resolution.time_delta,
                card_ops=[str(op) for op in resolution.card_ops],
            )

    def _apply_resolution(self, player_id: int, resolution: EffectResolution, source: str) -> None:
        """Apply money, time, skip and card effects of a resolution."""
        effects = []
        if resolution.money_delta:
            effects.append(AdjustMoney(resolution.money_delta))
        if resolution.time_delta:
            effects.append(AdjustTime(resolution.time_delta))
        if resolution.skip_next_turn:
            effects.append(SetSkipNextTurn(True))
        if effects:
            self.arena.apply(player_id, *effects)
        for op in resolution.card_ops:
            self._apply_card_op(player_id, op, source)
        self._log_effect(player_id, source, resolution)

    def _apply_card_op(self, player_id: int, op: CardOp, source: str) -> None:
        """Carry out a draw, remove or replace against the decks and the hand."""
        draw_count = op.count
        if op.op in (CardOpKind.REMOVE, CardOpKind.REPLACE):
            hand = self.arena.get(player_id).cards_of(op.card_type)
            removed = hand[-op.count:] if hand else ()
            if removed:
                self.arena.apply(player_id, RemoveCards(tuple(c.card_id for c in removed)))
                self.decks.discard_many(list(removed))
            if len(removed) < op.count:
                logger.info(
                    f"Player {player_id} held {len(removed)} {op.card_type.value} cards, "
                    f"{op.count} requested for {op.op.value}"
                )
            draw_count = len(removed)

        if op.op in (CardOpKind.DRAW, CardOpKind.REPLACE) and draw_count > 0:
            drawn = self.decks.draw(op.card_type, draw_count)
            if drawn:
                self.arena.apply(player_id, AddCards(tuple(drawn)))
                self.event_bus.publish(CardsDrawn(player_id, tuple(drawn), source))
            if len(drawn) < draw_count:
                self.event_bus.publish(ShowMessage(
                    MessageType.WARNING,
                    f"{op.card_type.value} deck exhausted",
                    f"Only {len(drawn)} of {draw_count} cards could be drawn.",
                ))

    # =========================================================================
    # TURN LIFECYCLE
    # =========================================================================

    def start_turn(self, player_id: int, turn_number: Optional[int] = None) -> TurnState:
        """
        Open a turn for a player and compute its required actions.

        Required actions: one for a required dice roll, one for any number of
        non-dice card actions, one for choosing between several static
        destinations when no dice outcome decides movement.

        Raises:
            InvalidTransitionError: A turn is already open
        """
        if self.machine.current_phase == TurnPhase.ENDED:
            self.machine.transition("next_turn", {"player_id": player_id})
        elif self._turn is not None:
            raise InvalidTransitionError(
                f"Cannot start a turn for player {player_id}: "
                f"player {self._turn.player_id}'s turn is still open"
            )

        if turn_number is not None:
            self._turn_number = turn_number
        elif self._turn_number == 0:
            self._turn_number = 1

        player = self.arena.get(player_id)
        space = self.movement.current_space(player)
        dice_required = self.rule_store.requires_dice_roll(space.space_name, space.visit_type)
        card_actions = [
            action
            for action in self.rule_store.query_card_types_affected(space.space_name, space.visit_type)
            if not action.dice_based
        ]
        outcome_row = self.rule_store.query_movement_outcome(space.space_name, space.visit_type)
        move_choice = len(space.next_spaces) > 1 and outcome_row is None

        turn = TurnState(
            player_id=player_id,
            turn_number=self._turn_number,
            space_name=space.space_name,
            visit_type=space.visit_type,
            phase=self.machine.current_phase,
            required_actions=int(dice_required) + int(bool(card_actions)) + int(move_choice),
            dice_required=dice_required,
            card_actions_required=bool(card_actions),
            move_choice_required=move_choice,
            available_card_actions=card_actions,
        )
        self._turn = turn

        trigger = "begin_actions" if turn.required_actions else "actions_satisfied"
        self._transition(turn, trigger, space=space.space_name, required=turn.required_actions)

        logger.info(
            f"Turn {self._turn_number}: player {player_id} on {space.space_name} "
            f"({space.visit_type.value}), {turn.required_actions} required action(s)"
        )
        self.event_bus.publish(TurnStarted(self.arena.get(player_id), self._turn_number))
        return turn

    def start_next_turn(self, after_player_id: int) -> Optional[TurnState]:
        """
        Rotate to the next seat and open its turn.

        A player flagged skip_next_turn loses exactly one turn and the flag is
        cleared. The turn number increments whenever play wraps past the
        first seat.
        """
        if self._game_over:
            return None

        seats = self.arena.seat_order
        index = seats.index(after_player_id)
        next_turn_number = self._turn_number
        for _ in range(2 * len(seats)):
            index = (index + 1) % len(seats)
            if index == 0:
                next_turn_number += 1
            candidate = self.arena.get(seats[index])
            if not candidate.skip_next_turn:
                break
            self.arena.apply(candidate.player_id, SetSkipNextTurn(False))
            logger.info(f"Player {candidate.player_id} skips turn {next_turn_number}")
            self.event_bus.publish(ShowMessage(
                MessageType.INFO,
                "Turn skipped",
                f"{candidate.name} skips this turn.",
            ))
        return self.start_turn(seats[index], next_turn_number)

    def record_dice_rolled(self) -> bool:
        """
        Mark the dice as rolled for the active turn.

        Idempotent: the dice requirement is counted at most once per turn.
        """
        turn = self._turn
        if turn is None:
            return False
        turn.has_rolled = True
        if turn.dice_required and not turn.dice_counted:
            turn.dice_counted = True
            self._record_action(turn, "dice", counts=True)
        return True

    def roll_dice(self, player_id: int, die_value: Optional[int] = None) -> Optional[EffectResolution]:
        """
        Roll for the active player and apply the results.

        Args:
            player_id: Rolling player
            die_value: Fixed face to use instead of the dice roller

        Returns:
            The resolution applied, or None when the roll was rejected
        """
        try:
            turn = self._active_turn(player_id)
            if turn.has_rolled:
                raise InvalidTurnActionError("Dice already rolled", "You can only roll once per turn.")
            if not turn.dice_required:
                raise InvalidTurnActionError(
                    "No dice roll needed",
                    f"{turn.space_name} does not use the dice.",
                )
        except InvalidTurnActionError as e:
            self._reject(e)
            return None

        if die_value is not None and not 1 <= die_value <= DIE_FACES:
            raise ValueError(f"Die value must be between 1 and {DIE_FACES}, got {die_value}")

        if self.dice_roll_delay > 0:
            self._sleep(self.dice_roll_delay)

        reason = f"player {player_id} on {turn.space_name}"
        if die_value is None:
            die_value = self.dice.roll_d6(reason).total
        elif self.run_log is not None:
            self.run_log.log_roll("1d6", [die_value], 0, die_value, reason=f"{reason} (fixed)")

        resolution = self.effects.resolve_dice_roll(self.arena.get(player_id), die_value)
        self._apply_resolution(player_id, resolution, source="dice_roll")
        turn.last_dice_roll = die_value
        turn.dice_time_delta = resolution.time_delta
        self.record_dice_rolled()

        logger.info(f"Player {player_id} rolled {die_value}: {resolution.describe()}")
        self.event_bus.publish(DiceRollCompleted(player_id, die_value, resolution))
        return resolution

    def take_card_action(self, player_id: int, card_type: CardType, action: str) -> bool:
        """
        Take one of the card actions offered by the current space.

        The first card action of a turn completes the card requirement; any
        further ones are optional.
        """
        try:
            turn = self._active_turn(player_id)
            try:
                card_type = CardType(card_type)
            except ValueError:
                raise InvalidTurnActionError(
                    "Card action not available",
                    f"Unknown card type {card_type!r}.",
                )
            match = next(
                (
                    a for a in turn.available_card_actions
                    if a.card_type == card_type and a.action_text == action
                ),
                None,
            )
            if match is None:
                raise InvalidTurnActionError(
                    "Card action not available",
                    f"{card_type.value}: {action} is not offered on {turn.space_name}.",
                )
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        turn.available_card_actions.remove(match)
        try:
            op = parse_card_instruction(card_type, action)
        except MalformedEffectError as e:
            logger.warning(f"Skipping malformed card action on {turn.space_name}: {e}")
        else:
            self._apply_card_op(player_id, op, source="card_action")
            if self.run_log is not None:
                self.run_log.log_effect(player_id, "card_action", card_ops=[str(op)])

        counts = not turn.card_action_counted
        turn.card_action_counted = True
        self._record_action(turn, "card_action", counts=counts)
        return True

    def available_moves(self, player_id: int) -> list[str]:
        """Destinations currently open to a player."""
        player = self.arena.get(player_id)
        dice_roll = None
        if self._turn is not None and self._turn.player_id == player_id:
            dice_roll = self._turn.last_dice_roll
        return self.movement.get_available_moves(player, dice_roll)

    def select_move(self, player_id: int, space_name: str) -> bool:
        """
        Choose the destination the turn will commit to.

        Counts as an action only when the turn opened with a choice between
        several static destinations, and only once per turn. Picking between
        dice outcome alternatives is part of the roll.
        """
        try:
            turn = self._active_turn(player_id)
            moves = self.available_moves(player_id)
            if space_name not in moves:
                raise InvalidTurnActionError(
                    "Invalid move",
                    f"{space_name} is not reachable from {turn.space_name} right now.",
                )
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        turn.selected_move = space_name
        counts = turn.move_choice_required and not turn.move_counted
        if counts:
            turn.move_counted = True
        self._record_action(turn, "move", counts=counts)
        return True

    def record_decision(self, player_id: int, choice: str, destination: Optional[str] = None) -> bool:
        """
        Record a yes/no or branch decision for the current space.

        With a destination the move is selected as well.
        """
        try:
            turn = self._active_turn(player_id)
            if destination is not None and destination not in self.available_moves(player_id):
                raise InvalidTurnActionError(
                    "Invalid move",
                    f"{destination} is not reachable from {turn.space_name} right now.",
                )
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        self.arena.apply(player_id, RecordDecision(turn.space_name, choice))
        turn.decision_space = turn.space_name
        logger.info(f"Player {player_id} decided '{choice}' on {turn.space_name}")
        if destination is not None:
            return self.select_move(player_id, destination)
        return True

    def can_end_turn(self) -> bool:
        turn = self._turn
        if turn is None or self._game_over:
            return False
        return turn.completed_actions >= turn.required_actions

    # =========================================================================
    # NEGOTIATION
    # =========================================================================

    def can_negotiate(self, player_id: int) -> NegotiationStatus:
        """
        Whether the player may negotiate now.

        Needs a negotiable space and a known time cost: either fixed, or
        dice-based and already rolled.
        """
        turn = self._turn
        if self._game_over or turn is None or turn.player_id != player_id:
            return NegotiationStatus(False, "Not your turn")
        space = self._current_space(turn)
        if not space.can_negotiate:
            return NegotiationStatus(False, "This space does not allow negotiation")
        if isinstance(space.time, FixedEffect):
            return NegotiationStatus(True, "Negotiation available")
        if self.rule_store.has_dice_time(space.space_name, space.visit_type):
            if turn.has_rolled:
                return NegotiationStatus(True, "Negotiation available")
            return NegotiationStatus(False, "Roll the dice to find the time cost first")
        return NegotiationStatus(False, "No time cost to negotiate against")

    def _negotiation_penalty(self, space: Space, turn: TurnState) -> int:
        if isinstance(space.time, FixedEffect):
            try:
                return parse_time(space.time.text) or DEFAULT_NEGOTIATION_PENALTY
            except MalformedEffectError as e:
                logger.warning(f"Using default negotiation penalty on {space.space_name}: {e}")
                return DEFAULT_NEGOTIATION_PENALTY
        return turn.dice_time_delta or DEFAULT_NEGOTIATION_PENALTY

    def negotiate(self, player_id: int) -> bool:
        """
        Stay on the current space and end the turn.

        With an entry snapshot, money and cards roll back to it. Time is
        never rolled back: the penalty is added to the current time, so every
        negotiation costs days.
        """
        try:
            turn = self._active_turn(player_id)
            status = self.can_negotiate(player_id)
            if not status.enabled:
                raise InvalidTurnActionError("Cannot negotiate", status.reason)
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        space = self._current_space(turn)
        penalty = self._negotiation_penalty(space, turn)
        player = self.arena.get(player_id)
        snapshot = player.space_entry_snapshot
        time_before = player.time_spent

        if snapshot is not None:
            self._return_cards_to_snapshot(player, snapshot.cards)
            player = self.arena.apply(player_id, RestoreSnapshot(penalty))
        else:
            player = self.arena.apply(player_id, AdjustTime(penalty))

        if self.run_log is not None:
            self.run_log.log_effect(
                player_id=player_id,
                source="negotiate",
                time_delta=player.time_spent - time_before,
                context={"restored_from_snapshot": snapshot is not None, "penalty": penalty},
            )
        logger.info(
            f"Player {player_id} negotiated on {space.space_name}: "
            f"{penalty} day penalty, snapshot {'restored' if snapshot else 'absent'}"
        )
        self.event_bus.publish(PlayerStateRestored(player, penalty, snapshot is not None))
        self.event_bus.publish(ShowMessage(
            MessageType.INFO,
            "Negotiation Used",
            f"{player.name} stays on {space.space_name} at a cost of {penalty} day(s).",
        ))

        self._transition(turn, "negotiate", space=space.space_name, penalty=penalty)
        self._turn = None
        self.event_bus.publish(TurnEnded(player_id))
        return True

    def _return_cards_to_snapshot(self, player: PlayerState, snapshot_cards: dict[CardType, tuple[Card, ...]]) -> None:
        """Keep the decks consistent with a hand about to be rolled back."""
        snapshot_ids = {c.card_id for hand in snapshot_cards.values() for c in hand}
        current_ids = {c.card_id for hand in player.cards.values() for c in hand}
        for hand in player.cards.values():
            for card in hand:
                if card.card_id not in snapshot_ids:
                    self.decks.discard(card)
        for hand in snapshot_cards.values():
            for card in hand:
                if card.card_id not in current_ids:
                    self.decks.reclaim(card)

    # =========================================================================
    # ENDING THE TURN
    # =========================================================================

    def end_turn(self, player_id: int) -> bool:
        """
        Commit the move and close the turn.

        Rejected while actions are outstanding, while a Logic space has no
        decision recorded this turn, or while several destinations are open
        and none has been chosen.
        """
        try:
            turn = self._active_turn(player_id)
            if not self.can_end_turn():
                raise InvalidTurnActionError(
                    "Actions outstanding",
                    f"Complete {turn.outstanding_actions} more action(s) before ending your turn.",
                )
            space = self._current_space(turn)
            if space.is_logic and turn.decision_space != space.space_name:
                raise InvalidTurnActionError(
                    f"Decision Required for {space.space_name}",
                    "You must make a decision before ending your turn.",
                )
            moves = self.available_moves(player_id)
            destination = turn.selected_move
            if destination is None and len(moves) == 1:
                destination = moves[0]
            if destination is None and len(moves) > 1:
                raise InvalidTurnActionError(
                    "Choose a destination",
                    f"Pick one of: {', '.join(moves)}.",
                )
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        if destination is not None:
            self._commit_move(player_id, destination)
        else:
            logger.info(f"Player {player_id} has no exits from {turn.space_name}; staying put")

        self._transition(turn, "end_turn", destination=destination)
        self._turn = None
        self.event_bus.publish(TurnEnded(player_id))
        return True

    def _commit_move(self, player_id: int, destination: str) -> None:
        """
        Move the player, record the departed space and apply arrival costs.

        The departed space is recorded as visited at this point, so the
        arrival visit type already accounts for a move onto the same space.
        """
        player = self.arena.get(player_id)
        from_space = player.position
        after_visit = self.visit_tracker.record_visit(player, from_space)
        visit_type = self.visit_tracker.get_visit_type(after_visit, destination)
        space = self.rule_store.find_space(destination, visit_type)

        self.arena.apply(
            player_id,
            MoveTo(destination, visit_type),
            RecordVisit(from_space),
            TakeSnapshot(),
        )

        resolution = self.effects.resolve_space_entry(self.arena.get(player_id), space)
        # Fixed card slots are taken as card actions during the next turn.
        resolution.card_ops.clear()
        entry_effects = []
        if resolution.money_delta:
            entry_effects.append(AdjustMoney(resolution.money_delta))
        if resolution.time_delta:
            entry_effects.append(AdjustTime(resolution.time_delta))
        if resolution.pending_percentage_fee is not None:
            if self.percentage_fee_base is not None:
                base = self.percentage_fee_base(self.arena.get(player_id))
                fee = self.effects.resolve_percentage_fee(resolution.pending_percentage_fee, base)
                entry_effects.append(AdjustMoney(fee))
                resolution.money_delta += fee
            else:
                logger.info(
                    f"{destination} charges {resolution.pending_percentage_fee:g}% "
                    f"with no base amount; fee left unresolved"
                )
        if entry_effects:
            self.arena.apply(player_id, *entry_effects)

        if self.run_log is not None:
            self.run_log.log_move(player_id, from_space, destination, visit_type.value)
            if resolution.money_delta or resolution.time_delta:
                self.run_log.log_effect(
                    player_id=player_id,
                    source="space_entry",
                    money_delta=resolution.money_delta,
                    time_delta=resolution.time_delta,
                )

        moved = self.arena.get(player_id)
        logger.info(
            f"Player {player_id} moved {from_space} -> {destination} "
            f"({visit_type.value}): {resolution.describe()}"
        )
        self.event_bus.publish(PlayerMoved(moved, from_space, destination))
        self.event_bus.publish(SpaceActionCompleted(player_id, destination, visit_type))

    # =========================================================================
    # PLAYING CARDS
    # =========================================================================

    def play_card(self, player_id: int, card_id: str) -> bool:
        """Play a card from hand; it goes to its discard pile."""
        try:
            self._active_turn(player_id)
            card = self.arena.get(player_id).find_card(card_id)
            if card is None:
                raise InvalidTurnActionError("Card not in hand", f"You do not hold card {card_id}.")
        except InvalidTurnActionError as e:
            self._reject(e)
            return False

        resolution = self.effects.resolve_card(card)
        self.arena.apply(player_id, RemoveCards((card.card_id,)))
        self.decks.discard(card)
        self._apply_resolution(player_id, resolution, source=f"card {card.card_id}")
        logger.info(f"Player {player_id} played {card}: {resolution.describe()}")
        self.event_bus.publish(CardPlayed(player_id, card, resolution))
        return True
