"""
Player arena: the single owner of every PlayerState.

Players are addressed by id. Every change is expressed as an Effect value
and applied by apply_effect(), a pure function returning a new state. Only
the turn coordinator calls PlayerArena.apply(); everything else reads.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Union

from pm_board.data_models import (
    Card,
    CardType,
    Decision,
    PlayerState,
    VisitType,
)
from pm_board.movement.visit_tracker import VisitTracker

logger = logging.getLogger(__name__)


class UnknownPlayerError(KeyError):
    """No player is seated with the given id."""
    pass


# =============================================================================
# EFFECTS
# =============================================================================


@dataclass(frozen=True)
class AdjustMoney:
    amount: int


@dataclass(frozen=True)
class AdjustTime:
    """Add days to time spent. Time never goes backwards."""
    days: int


@dataclass(frozen=True)
class AddCards:
    cards: tuple[Card, ...]


@dataclass(frozen=True)
class RemoveCards:
    card_ids: tuple[str, ...]


@dataclass(frozen=True)
class MoveTo:
    space_name: str
    visit_type: VisitType


@dataclass(frozen=True)
class RecordVisit:
    space_name: str


@dataclass(frozen=True)
class TakeSnapshot:
    pass


@dataclass(frozen=True)
class RestoreSnapshot:
    """Roll money and cards back to the entry snapshot and add a time penalty."""
    time_penalty: int


@dataclass(frozen=True)
class RecordDecision:
    space_name: str
    choice: str


@dataclass(frozen=True)
class SetSkipNextTurn:
    skip: bool


Effect = Union[
    AdjustMoney,
    AdjustTime,
    AddCards,
    RemoveCards,
    MoveTo,
    RecordVisit,
    TakeSnapshot,
    RestoreSnapshot,
    RecordDecision,
    SetSkipNextTurn,
]

_visit_tracker = VisitTracker()


def apply_effect(state: PlayerState, effect: Effect) -> PlayerState:
    """
    Apply one effect to a player state.

    Raises:
        ValueError: Negative time, unknown card id, or a restore with no snapshot
        TypeError: Not an Effect
    """
    if isinstance(effect, AdjustMoney):
        return replace(state, money=state.money + effect.amount)

    elif isinstance(effect, AdjustTime):
        if effect.days < 0:
            raise ValueError(f"Time cannot decrease (got {effect.days} days)")
        return replace(state, time_spent=state.time_spent + effect.days)

    elif isinstance(effect, AddCards):
        cards = dict(state.cards)
        for card in effect.cards:
            cards[card.card_type] = cards.get(card.card_type, ()) + (card,)
        return replace(state, cards=cards)

    elif isinstance(effect, RemoveCards):
        remaining = set(effect.card_ids)
        cards: dict[CardType, tuple[Card, ...]] = {}
        for card_type, hand in state.cards.items():
            kept = []
            for card in hand:
                if card.card_id in remaining:
                    remaining.discard(card.card_id)
                else:
                    kept.append(card)
            cards[card_type] = tuple(kept)
        if remaining:
            raise ValueError(f"Player {state.player_id} does not hold cards {sorted(remaining)}")
        return replace(state, cards=cards)

    elif isinstance(effect, MoveTo):
        return replace(state, position=effect.space_name, visit_type=effect.visit_type)

    elif isinstance(effect, RecordVisit):
        return _visit_tracker.record_visit(state, effect.space_name)

    elif isinstance(effect, TakeSnapshot):
        return replace(state, space_entry_snapshot=state.snapshot())

    elif isinstance(effect, RestoreSnapshot):
        snapshot = state.space_entry_snapshot
        if snapshot is None:
            raise ValueError(f"Player {state.player_id} has no snapshot to restore")
        return replace(
            state,
            money=snapshot.money,
            cards=dict(snapshot.cards),
            time_spent=state.time_spent + effect.time_penalty,
        )

    elif isinstance(effect, RecordDecision):
        return replace(state, last_decision=Decision(effect.space_name, effect.choice))

    elif isinstance(effect, SetSkipNextTurn):
        return replace(state, skip_next_turn=effect.skip)

    raise TypeError(f"Unknown player effect: {effect!r}")


# =============================================================================
# ARENA
# =============================================================================


class PlayerArena:
    """Seats players in turn order and holds their current states."""

    def __init__(self):
        self._players: dict[int, PlayerState] = {}
        self._seat_order: list[int] = []

    def add(self, state: PlayerState) -> None:
        if state.player_id in self._players:
            raise ValueError(f"Player {state.player_id} is already seated")
        self._players[state.player_id] = state
        self._seat_order.append(state.player_id)
        logger.info(f"Seated player {state.player_id} ({state.name}) at {state.position}")

    def get(self, player_id: int) -> PlayerState:
        try:
            return self._players[player_id]
        except KeyError:
            raise UnknownPlayerError(player_id) from None

    def find(self, player_id: int) -> Optional[PlayerState]:
        return self._players.get(player_id)

    def apply(self, player_id: int, *effects: Effect) -> PlayerState:
        """Apply effects in order and store the resulting state."""
        state = self.get(player_id)
        for effect in effects:
            state = apply_effect(state, effect)
        self._players[player_id] = state
        return state

    def players(self) -> list[PlayerState]:
        """All players in seat order."""
        return [self._players[pid] for pid in self._seat_order]

    @property
    def seat_order(self) -> list[int]:
        return list(self._seat_order)

    def seat_index(self, player_id: int) -> int:
        if player_id not in self._players:
            raise UnknownPlayerError(player_id)
        return self._seat_order.index(player_id)

    def __len__(self) -> int:
        return len(self._seat_order)

    def clear(self) -> None:
        self._players.clear()
        self._seat_order.clear()
