"""
Typed game events and the event bus that carries them.

Outbound events describe what the engine did; the UI subscribes to them.
Inbound request events describe what a player asked for; the game engine
subscribes to them and forwards them to the turn coordinator.

The event set is closed: publishing anything else is a TypeError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar, Union, get_args

from pm_board.data_models import Card, CardType, PlayerState, VisitType

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# =============================================================================
# OUTBOUND EVENTS
# =============================================================================


@dataclass(frozen=True)
class TurnStarted:
    player: PlayerState
    turn_number: int


@dataclass(frozen=True)
class DiceRollCompleted:
    player_id: int
    dice_value: int
    outcome: Any  # EffectResolution


@dataclass(frozen=True)
class PlayerMoved:
    player: PlayerState
    from_space: str
    to_space: str


@dataclass(frozen=True)
class CardsDrawn:
    player_id: int
    cards: tuple[Card, ...]
    source: str


@dataclass(frozen=True)
class CardPlayed:
    player_id: int
    card: Card
    outcome: Any  # EffectResolution


@dataclass(frozen=True)
class SpaceActionCompleted:
    player_id: int
    space_name: str
    visit_type: VisitType


@dataclass(frozen=True)
class TurnEnded:
    player_id: int


@dataclass(frozen=True)
class ShowMessage:
    type: MessageType
    message: str
    description: str = ""


@dataclass(frozen=True)
class PlayerStateRestored:
    player: PlayerState
    time_penalty: int
    restored_from_snapshot: bool


@dataclass(frozen=True)
class GameCompleted:
    winner_id: int
    scores: tuple[tuple[int, str, int], ...]  # (player_id, name, score), best first
    turn_number: int


# =============================================================================
# INBOUND REQUESTS
# =============================================================================


@dataclass(frozen=True)
class MovePlayerRequest:
    player_id: int
    space_name: str
    visit_type: Optional[VisitType] = None


@dataclass(frozen=True)
class DiceRollRequest:
    player_id: int


@dataclass(frozen=True)
class CardActionRequest:
    player_id: int
    card_type: CardType
    action: str


@dataclass(frozen=True)
class PlayCardRequest:
    player_id: int
    card_id: str


@dataclass(frozen=True)
class DecisionRequest:
    player_id: int
    choice: str
    destination: Optional[str] = None


@dataclass(frozen=True)
class NegotiateRequest:
    player_id: int


@dataclass(frozen=True)
class EndTurnRequest:
    player_id: int


DomainEvent = Union[
    TurnStarted,
    DiceRollCompleted,
    PlayerMoved,
    CardsDrawn,
    CardPlayed,
    SpaceActionCompleted,
    TurnEnded,
    ShowMessage,
    PlayerStateRestored,
    GameCompleted,
]

RequestEvent = Union[
    MovePlayerRequest,
    DiceRollRequest,
    CardActionRequest,
    PlayCardRequest,
    DecisionRequest,
    NegotiateRequest,
    EndTurnRequest,
]

GameEvent = Union[DomainEvent, RequestEvent]

DOMAIN_EVENT_TYPES: tuple[type, ...] = get_args(DomainEvent)
REQUEST_EVENT_TYPES: tuple[type, ...] = get_args(RequestEvent)

E = TypeVar("E")


@dataclass(eq=False)
class _Subscription:
    event_type: type
    handler: Callable[[Any], None]


class EventBus:
    """
    Synchronous publish/subscribe for game events.

    Handlers run in subscription order on the publishing thread. A failing
    handler of an outbound event is logged and the remaining handlers still
    run; a failing request handler propagates to the publisher.
    """

    def __init__(self, history_limit: int = 500):
        self._subscriptions: list[_Subscription] = []
        self._history: list[GameEvent] = []
        self._history_limit = history_limit

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """
        Register a handler for one event type.

        Returns:
            A function that removes the subscription
        """
        if event_type not in DOMAIN_EVENT_TYPES + REQUEST_EVENT_TYPES:
            raise TypeError(f"Not a game event type: {event_type!r}")
        subscription = _Subscription(event_type, handler)
        self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, event: GameEvent) -> None:
        if not isinstance(event, DOMAIN_EVENT_TYPES + REQUEST_EVENT_TYPES):
            raise TypeError(f"Not a game event: {event!r}")

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        handlers = [s.handler for s in self._subscriptions if s.event_type is type(event)]
        if isinstance(event, REQUEST_EVENT_TYPES):
            for handler in handlers:
                handler(event)
            return

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Subscriber error for {type(event).__name__}: {e}")

    def history(self, event_type: Optional[type] = None) -> list[GameEvent]:
        """Recent events in publish order, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if isinstance(e, event_type)]

    def clear_history(self) -> None:
        self._history = []

    def subscriber_count(self, event_type: Optional[type] = None) -> int:
        if event_type is None:
            return len(self._subscriptions)
        return sum(1 for s in self._subscriptions if s.event_type is event_type)
