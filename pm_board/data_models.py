"""
Shared data structures for the project-management board game engine.

Rule rows are loaded once from CSV and never mutated afterwards. Player
states are immutable values; only the turn coordinator replaces them,
through the player arena.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union
import random


# =============================================================================
# ENUMS
# =============================================================================


class VisitType(str, Enum):
    """Whether a player is on a space for the first time or returning."""
    FIRST = "First"
    SUBSEQUENT = "Subsequent"


class CardType(str, Enum):
    """The five card decks."""
    WORK = "W"
    BANK = "B"
    INVESTOR = "I"
    LIFE = "L"
    EXPEDITOR = "E"


class EffectChannel(str, Enum):
    """What a dice effect row modifies."""
    CARDS = "cards"
    MONEY = "money"
    TIME = "time"


class SpaceCategory(str, Enum):
    """Display category of a space, derived from its name, path and event."""
    MAIN = "Main"
    SIDE_QUEST = "Side quest"
    SPECIAL = "Special"
    LOGIC = "Logic"


class CardOpKind(str, Enum):
    """Operations a card instruction can perform on a hand."""
    DRAW = "draw"
    REMOVE = "remove"
    REPLACE = "replace"


# Sentinel cell values used throughout the board CSVs
DICE_SENTINEL = "dice"
NO_CHANGE_SENTINEL = "No change"
SKIP_TURN_TEXT = "skip next turn"

DIE_FACES = 6


# =============================================================================
# EFFECT VALUES
# =============================================================================


@dataclass(frozen=True)
class FixedEffect:
    """A literal effect instruction such as 'Draw 2', '+500' or '3'."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class DiceDependentEffect:
    """The real value lives in the dice effect table for this space."""

    def __str__(self) -> str:
        return DICE_SENTINEL


@dataclass(frozen=True)
class NoEffect:
    """Empty cell or 'No change'."""

    def __str__(self) -> str:
        return ""


EffectValue = Union[FixedEffect, DiceDependentEffect, NoEffect]

NO_EFFECT = NoEffect()
DICE_DEPENDENT = DiceDependentEffect()


def parse_effect_value(raw: Optional[str]) -> EffectValue:
    """
    Convert a raw CSV cell into an EffectValue.

    Sentinels are recognised case-insensitively; anything else is kept as
    literal instruction text for the effect parser.
    """
    text = (raw or "").strip()
    if not text or text.lower() == NO_CHANGE_SENTINEL.lower():
        return NO_EFFECT
    if text.lower() == DICE_SENTINEL:
        return DICE_DEPENDENT
    return FixedEffect(text)


def _check_die_value(die_value: int) -> None:
    if not 1 <= die_value <= DIE_FACES:
        raise ValueError(f"Die value must be between 1 and {DIE_FACES}, got {die_value}")


# =============================================================================
# RULE ROWS
# =============================================================================


@dataclass(frozen=True)
class Space:
    """
    One row of SPACES.csv: a board location as seen on a given visit type.

    The same space name normally appears twice, once per VisitType, because
    returning to a space usually costs less than the first visit.
    """
    space_name: str
    visit_type: VisitType
    phase: str = ""
    path: str = ""
    space_type: str = ""
    event: str = ""
    action: str = ""
    time: EffectValue = NO_EFFECT
    fee: str = ""
    can_negotiate: bool = False
    requires_dice_roll: bool = False
    next_spaces: tuple[str, ...] = ()
    card_effects: dict[CardType, EffectValue] = field(default_factory=dict)

    @property
    def is_logic(self) -> bool:
        """Logic spaces need a recorded decision before the turn can end."""
        return self.space_type.strip().lower() == "logic"

    def card_effect(self, card_type: CardType) -> EffectValue:
        return self.card_effects.get(card_type, NO_EFFECT)


@dataclass(frozen=True)
class DiceEffectRow:
    """One row of DICE_EFFECTS.csv: the effect of each die face on one channel."""
    space_name: str
    visit_type: VisitType
    channel: EffectChannel
    card_type: Optional[CardType]
    outcomes: tuple[EffectValue, ...]

    def outcome_for(self, die_value: int) -> EffectValue:
        _check_die_value(die_value)
        return self.outcomes[die_value - 1]


@dataclass(frozen=True)
class DiceOutcomeRow:
    """One row of DICE_OUTCOMES.csv: where each die face sends the player."""
    space_name: str
    visit_type: VisitType
    outcomes: tuple[EffectValue, ...]

    def destinations_for(self, die_value: int) -> list[str]:
        """
        Destinations for a die face.

        A cell may list alternatives as 'A or B'; 'No change' and empty cells
        yield an empty list.
        """
        _check_die_value(die_value)
        outcome = self.outcomes[die_value - 1]
        if not isinstance(outcome, FixedEffect):
            return []
        return [part.strip() for part in outcome.text.split(" or ") if part.strip()]


@dataclass(frozen=True)
class GameConfigRow:
    """One row of GAME_CONFIG.csv."""
    space_name: str
    is_starting_space: bool = False
    is_ending_space: bool = False


@dataclass(frozen=True)
class Card:
    """One row of CARDS.csv."""
    card_id: str
    card_type: CardType
    name: str = ""
    description: str = ""
    money_effect: str = ""
    time_effect: str = ""
    turn_effect: str = ""

    @property
    def skips_next_turn(self) -> bool:
        return self.turn_effect.strip().lower() == SKIP_TURN_TEXT

    def __str__(self) -> str:
        return f"{self.card_id} ({self.card_type.value}) {self.name}".strip()


@dataclass(frozen=True)
class CardOp:
    """A parsed card instruction: draw, remove or replace N cards of a type."""
    card_type: CardType
    op: CardOpKind
    count: int

    def __str__(self) -> str:
        return f"{self.op.value} {self.count} {self.card_type.value}"


# =============================================================================
# PLAYER STATE
# =============================================================================


def empty_hand() -> dict[CardType, tuple[Card, ...]]:
    return {card_type: () for card_type in CardType}


@dataclass(frozen=True)
class PlayerSnapshot:
    """Player resources captured on arrival at a space, used by negotiation."""
    money: int
    time_spent: int
    cards: dict[CardType, tuple[Card, ...]]


@dataclass(frozen=True)
class Decision:
    """A yes/no or branch choice made on a Logic space."""
    space_name: str
    choice: str


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable per-player record.

    Never mutate in place: the player arena produces replacements with
    dataclasses.replace() so earlier values stay valid for comparisons.
    """
    player_id: int
    name: str
    position: str
    visit_type: VisitType = VisitType.FIRST
    money: int = 0
    time_spent: int = 0
    cards: dict[CardType, tuple[Card, ...]] = field(default_factory=empty_hand)
    visited_spaces: frozenset[str] = frozenset()
    space_entry_snapshot: Optional[PlayerSnapshot] = None
    last_decision: Optional[Decision] = None
    skip_next_turn: bool = False

    def cards_of(self, card_type: CardType) -> tuple[Card, ...]:
        return self.cards.get(card_type, ())

    def card_count(self, card_type: Optional[CardType] = None) -> int:
        if card_type is not None:
            return len(self.cards_of(card_type))
        return sum(len(hand) for hand in self.cards.values())

    def find_card(self, card_id: str) -> Optional[Card]:
        for hand in self.cards.values():
            for card in hand:
                if card.card_id == card_id:
                    return card
        return None

    def snapshot(self) -> PlayerSnapshot:
        return PlayerSnapshot(
            money=self.money,
            time_spent=self.time_spent,
            cards=dict(self.cards),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "position": self.position,
            "visit_type": self.visit_type.value,
            "money": self.money,
            "time_spent": self.time_spent,
            "cards": {
                card_type.value: [card.card_id for card in hand]
                for card_type, hand in self.cards.items()
            },
            "visited_spaces": sorted(self.visited_spaces),
            "skip_next_turn": self.skip_next_turn,
        }


# =============================================================================
# DICE SYSTEM
# =============================================================================


class DiceRoller:
    """
    Centralized randomization interface.

    All dice rolls and deck shuffles go through one roller so a seed makes a
    whole game reproducible. Each roller owns its own random.Random.
    """

    def __init__(self, seed: Optional[int] = None, run_log: Any = None):
        self._seed = seed
        self._rng = random.Random(seed)
        self._roll_log: list[DiceResult] = []
        self._run_log = run_log

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: int) -> None:
        """Set random seed for reproducibility."""
        self._seed = seed
        self._rng.seed(seed)

    def attach_run_log(self, run_log: Any) -> None:
        """Record every roll in the given RunLog as well as the local roll log."""
        self._run_log = run_log

    def roll(self, dice: str, reason: str = "") -> "DiceResult":
        """
        Roll dice using standard notation (e.g., '1d6', '2d6+1', '3d6-2').

        Args:
            dice: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            DiceResult with individual rolls and total
        """
        modifier = 0
        if '+' in dice:
            dice_part, mod_part = dice.split('+')
            modifier = int(mod_part)
        elif '-' in dice:
            dice_part, mod_part = dice.split('-')
            modifier = -int(mod_part)
        else:
            dice_part = dice

        num_dice, die_size = dice_part.lower().split('d')
        num_dice = int(num_dice) if num_dice else 1
        die_size = int(die_size)

        rolls = [self._rng.randint(1, die_size) for _ in range(num_dice)]
        total = sum(rolls) + modifier

        result = DiceResult(
            notation=dice,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason
        )

        self._roll_log.append(result)
        if self._run_log is not None:
            self._run_log.log_roll(
                notation=dice,
                rolls=rolls,
                modifier=modifier,
                total=total,
                reason=reason,
            )
        return result

    def roll_d6(self, reason: str = "") -> "DiceResult":
        """Convenience method for the single d6 used on every space."""
        return self.roll("1d6", reason)

    def shuffle(self, items: list, reason: str = "") -> list:
        """Return a shuffled copy of items using this roller's generator."""
        shuffled = list(items)
        self._rng.shuffle(shuffled)
        return shuffled

    def get_roll_log(self) -> list["DiceResult"]:
        """Get the complete roll log for the session."""
        return self._roll_log.copy()

    def clear_roll_log(self) -> None:
        """Clear the roll log."""
        self._roll_log = []


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"


# =============================================================================
# STATE MACHINE SUPPORT
# =============================================================================


@dataclass
class TransitionLog:
    """Log entry for a turn phase transition."""
    timestamp: datetime
    from_state: str
    to_state: str
    trigger: str
    context: dict[str, Any] = field(default_factory=dict)
