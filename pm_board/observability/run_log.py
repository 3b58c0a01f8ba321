"""
Run Log for board game event tracking.

Captures dice rolls, turn phase transitions, moves and applied effects in
sequence order, so a seeded game can be inspected or exported after the
fact.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Callable
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    ROLL = "roll"  # Dice roll
    TRANSITION = "transition"  # Turn phase transition
    MOVE = "move"  # Committed move between spaces
    EFFECT = "effect"  # Money/time/card effects applied to a player
    CUSTOM = "custom"  # Custom event


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Subclasses set the correct event_type in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    turn_label: Optional[str] = None  # e.g. "Turn 3, player 2"
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "turn_label": self.turn_label,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            turn_label=data.get("turn_label"),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {str(name).upper()} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A dice roll event."""

    notation: str = ""  # e.g. "1d6"
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "notation": self.notation,
                "rolls": self.rolls,
                "modifier": self.modifier,
                "total": self.total,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            turn_label=data.get("turn_label"),
            context=data.get("context", {}),
            notation=data.get("notation", ""),
            rolls=data.get("rolls", []),
            modifier=data.get("modifier", 0),
            total=data.get("total", 0),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] ROLL {self.notation}: {self.rolls} = {self.total} ({self.reason})"


@dataclass
class TransitionEvent(LogEvent):
    """A turn phase transition event."""

    from_state: str = ""
    to_state: str = ""
    trigger: str = ""

    def __post_init__(self):
        self.event_type = EventType.TRANSITION

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "from_state": self.from_state,
                "to_state": self.to_state,
                "trigger": self.trigger,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TransitionEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            turn_label=data.get("turn_label"),
            context=data.get("context", {}),
            from_state=data.get("from_state", ""),
            to_state=data.get("to_state", ""),
            trigger=data.get("trigger", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] TRANSITION {self.from_state} -> {self.to_state} (trigger: {self.trigger})"


@dataclass
class MoveEvent(LogEvent):
    """A committed move between spaces."""

    player_id: int = 0
    from_space: str = ""
    to_space: str = ""
    visit_type: str = ""

    def __post_init__(self):
        self.event_type = EventType.MOVE

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "player_id": self.player_id,
                "from_space": self.from_space,
                "to_space": self.to_space,
                "visit_type": self.visit_type,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MoveEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            turn_label=data.get("turn_label"),
            context=data.get("context", {}),
            player_id=data.get("player_id", 0),
            from_space=data.get("from_space", ""),
            to_space=data.get("to_space", ""),
            visit_type=data.get("visit_type", ""),
        )

    def __str__(self) -> str:
        return f"[{self.sequence_number}] MOVE P{self.player_id} {self.from_space} -> {self.to_space} ({self.visit_type})"


@dataclass
class EffectEvent(LogEvent):
    """Effects applied to one player from a single source."""

    player_id: int = 0
    source: str = ""  # e.g. "dice_roll", "space_entry", "negotiate"
    money_delta: int = 0
    time_delta: int = 0
    card_ops: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.event_type = EventType.EFFECT

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "player_id": self.player_id,
                "source": self.source,
                "money_delta": self.money_delta,
                "time_delta": self.time_delta,
                "card_ops": self.card_ops,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EffectEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            turn_label=data.get("turn_label"),
            context=data.get("context", {}),
            player_id=data.get("player_id", 0),
            source=data.get("source", ""),
            money_delta=data.get("money_delta", 0),
            time_delta=data.get("time_delta", 0),
            card_ops=data.get("card_ops", []),
        )

    def __str__(self) -> str:
        ops = f" cards: {', '.join(self.card_ops)}" if self.card_ops else ""
        return (
            f"[{self.sequence_number}] EFFECT P{self.player_id} {self.source}: "
            f"money {self.money_delta:+d}, time +{self.time_delta}{ops}"
        )


EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.ROLL: RollEvent,
    EventType.TRANSITION: TransitionEvent,
    EventType.MOVE: MoveEvent,
    EventType.EFFECT: EffectEvent,
}


class RunLog:
    """
    Ordered log of all game events for one session.

    One RunLog is created per game and passed to the components that write
    to it.
    """

    def __init__(self):
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._turn_label_provider: Optional[Callable[[], str]] = None
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.info("RunLog reset")

    def set_seed(self, seed: Optional[int]) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def set_turn_label_provider(self, provider: Callable[[], str]) -> None:
        """
        Set a callback describing the current turn.

        The provider should return a string like "Turn 3, player 2".
        """
        self._turn_label_provider = provider

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _get_turn_label(self) -> Optional[str]:
        if self._turn_label_provider:
            try:
                return self._turn_label_provider()
            except Exception as e:
                logger.debug(f"Turn label provider failed: {e}")
                return None
        return None

    def _log_event(self, event: LogEvent) -> None:
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        event.turn_label = self._get_turn_label()
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        modifier: int,
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a dice roll."""
        event = RollEvent(
            notation=notation,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_transition(
        self,
        from_state: str,
        to_state: str,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> TransitionEvent:
        """Log a turn phase transition."""
        event = TransitionEvent(
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_move(
        self,
        player_id: int,
        from_space: str,
        to_space: str,
        visit_type: str,
        context: Optional[dict[str, Any]] = None,
    ) -> MoveEvent:
        """Log a committed move."""
        event = MoveEvent(
            player_id=player_id,
            from_space=from_space,
            to_space=to_space,
            visit_type=visit_type,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_effect(
        self,
        player_id: int,
        source: str,
        money_delta: int = 0,
        time_delta: int = 0,
        card_ops: Optional[list[str]] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> EffectEvent:
        """Log effects applied to a player."""
        event = EffectEvent(
            player_id=player_id,
            source=source,
            money_delta=money_delta,
            time_delta=time_delta,
            card_ops=card_ops or [],
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_custom(
        self,
        event_name: str,
        details: dict[str, Any],
    ) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_transitions(self) -> list[TransitionEvent]:
        return [e for e in self._events if isinstance(e, TransitionEvent)]

    def get_moves(self) -> list[MoveEvent]:
        return [e for e in self._events if isinstance(e, MoveEvent)]

    def get_effects(self) -> list[EffectEvent]:
        return [e for e in self._events if isinstance(e, EffectEvent)]

    def get_roll_stream(self) -> list[int]:
        """Die totals in roll order, enough to replay a seeded game."""
        return [e.total for e in self.get_rolls()]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "transitions": len(self.get_transitions()),
            "moves": len(self.get_moves()),
            "effects": len(self.get_effects()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize the log to JSON."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file into a new RunLog."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = cls()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_cls = EVENT_CLASSES.get(EventType(event_data["event_type"]), LogEvent)
            log._events.append(event_cls.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Format the log as a human-readable string.

        Args:
            event_types: Filter by event types (None = all)
            max_events: Maximum number of events to include

        Returns:
            Formatted log string
        """
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)
