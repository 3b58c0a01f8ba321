"""
Effect resolution for spaces, dice rolls and played cards.

Translates rule rows into an EffectResolution: money and time deltas, card
operations and, for dice rolls, destinations. Resolution is pure; the turn
coordinator decides when and to whom the result is applied.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from pm_board.data_models import (
    Card,
    CardOp,
    CardType,
    DIE_FACES,
    EffectChannel,
    FixedEffect,
    NoEffect,
    PlayerState,
    Space,
    parse_effect_value,
)
from pm_board.effects.effect_parser import (
    MalformedEffectError,
    parse_card_instruction,
    parse_fee,
    parse_money,
    parse_time,
)
from pm_board.movement.visit_tracker import VisitTracker
from pm_board.rules.rule_store import RuleStore

logger = logging.getLogger(__name__)


@dataclass
class EffectResolution:
    """Everything a single roll, arrival or card play does to a player."""
    money_delta: int = 0
    time_delta: int = 0
    card_ops: list[CardOp] = field(default_factory=list)
    destinations: list[str] = field(default_factory=list)
    pending_percentage_fee: Optional[float] = None
    skip_next_turn: bool = False
    skipped: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.money_delta == 0
            and self.time_delta == 0
            and not self.card_ops
            and not self.destinations
            and self.pending_percentage_fee is None
            and not self.skip_next_turn
        )

    def describe(self) -> str:
        """Short human-readable summary for messages and logs."""
        parts = []
        if self.money_delta:
            parts.append(f"money {self.money_delta:+,}")
        if self.time_delta:
            parts.append(f"time +{self.time_delta} days")
        for op in self.card_ops:
            parts.append(str(op))
        if self.pending_percentage_fee is not None:
            parts.append(f"fee {self.pending_percentage_fee:g}%")
        if self.destinations:
            parts.append("move to " + " or ".join(self.destinations))
        if self.skip_next_turn:
            parts.append("skip next turn")
        return ", ".join(parts) if parts else "no effect"

    def to_dict(self) -> dict[str, Any]:
        return {
            "money_delta": self.money_delta,
            "time_delta": self.time_delta,
            "card_ops": [str(op) for op in self.card_ops],
            "destinations": list(self.destinations),
            "pending_percentage_fee": self.pending_percentage_fee,
            "skip_next_turn": self.skip_next_turn,
            "skipped": list(self.skipped),
        }


class EffectResolver:
    """
    Resolves board and card effects into EffectResolution values.

    A malformed cell never aborts resolution: it is logged, listed in
    EffectResolution.skipped, and the remaining effects still apply.
    """

    def __init__(self, rule_store: RuleStore, visit_tracker: Optional[VisitTracker] = None):
        self.rule_store = rule_store
        self.visit_tracker = visit_tracker or VisitTracker()

    def _skip(self, resolution: EffectResolution, source: str, error: MalformedEffectError) -> None:
        logger.warning(f"Skipping malformed effect in {source}: {error}")
        resolution.skipped.append(f"{source}: {error.text}")

    # =========================================================================
    # DICE
    # =========================================================================

    def resolve_dice_roll(self, player: PlayerState, die_value: int) -> EffectResolution:
        """
        Resolve a die face on the player's current space.

        All dice rows for the space are accumulated; rows whose face is
        'No change' contribute nothing.

        Args:
            player: The rolling player
            die_value: Face rolled, 1-6

        Returns:
            Combined money, time, card and destination effects

        Raises:
            ValueError: die_value outside 1-6
        """
        if not 1 <= die_value <= DIE_FACES:
            raise ValueError(f"Die value must be between 1 and {DIE_FACES}, got {die_value}")

        visit_type = self.visit_tracker.get_visit_type(player, player.position)
        resolution = EffectResolution()

        for row in self.rule_store.query_dice_effects(player.position, visit_type):
            outcome = row.outcome_for(die_value)
            if not isinstance(outcome, FixedEffect):
                continue
            source = f"{row.space_name}/{row.channel.value} roll {die_value}"
            try:
                if row.channel == EffectChannel.CARDS:
                    resolution.card_ops.append(parse_card_instruction(row.card_type, outcome.text))
                elif row.channel == EffectChannel.MONEY:
                    resolution.money_delta += parse_money(outcome.text)
                elif row.channel == EffectChannel.TIME:
                    resolution.time_delta += parse_time(outcome.text)
            except MalformedEffectError as e:
                self._skip(resolution, source, e)

        outcome_row = self.rule_store.query_movement_outcome(player.position, visit_type)
        if outcome_row is not None:
            resolution.destinations = outcome_row.destinations_for(die_value)

        logger.debug(f"Roll {die_value} on {player.position}: {resolution.describe()}")
        return resolution

    # =========================================================================
    # SPACE ENTRY
    # =========================================================================

    def resolve_space_entry(self, player: PlayerState, space: Space) -> EffectResolution:
        """
        Resolve the fixed costs of arriving on a space.

        Fixed time and fee are deltas; fixed card slots become card
        operations. Dice-dependent cells are left for resolve_dice_roll.
        """
        resolution = EffectResolution()
        label = f"{space.space_name} ({space.visit_type.value})"

        if isinstance(space.time, FixedEffect):
            try:
                resolution.time_delta += parse_time(space.time.text)
            except MalformedEffectError as e:
                self._skip(resolution, f"{label} time", e)

        if space.fee:
            try:
                fee = parse_fee(space.fee)
            except MalformedEffectError as e:
                self._skip(resolution, f"{label} fee", e)
            else:
                if fee.is_percentage:
                    resolution.pending_percentage_fee = fee.percent
                else:
                    resolution.money_delta -= fee.amount

        for card_type in CardType:
            value = space.card_effect(card_type)
            if not isinstance(value, FixedEffect):
                continue
            try:
                resolution.card_ops.append(parse_card_instruction(card_type, value.text))
            except MalformedEffectError as e:
                self._skip(resolution, f"{label} {card_type.value} card", e)

        return resolution

    def resolve_percentage_fee(self, percent: float, base: int) -> int:
        """Money delta (negative) for a percentage fee of a base amount."""
        return -int(round(abs(base) * percent / 100))

    # =========================================================================
    # CARDS
    # =========================================================================

    def resolve_card(self, card: Card) -> EffectResolution:
        """Resolve playing a card from hand."""
        resolution = EffectResolution()
        if card.money_effect and not isinstance(parse_effect_value(card.money_effect), NoEffect):
            try:
                resolution.money_delta += parse_money(card.money_effect)
            except MalformedEffectError as e:
                self._skip(resolution, f"card {card.card_id} money", e)
        if card.time_effect and not isinstance(parse_effect_value(card.time_effect), NoEffect):
            try:
                resolution.time_delta += parse_time(card.time_effect)
            except MalformedEffectError as e:
                self._skip(resolution, f"card {card.card_id} time", e)
        resolution.skip_next_turn = card.skips_next_turn
        return resolution
