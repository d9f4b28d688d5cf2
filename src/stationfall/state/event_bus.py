"""
Event bus for Stationfall match notifications.

Every outward notification the authority produces goes through here:
phase changes, tension updates, role assignments, slot occupancy changes.
Rendering, audio, UI and transport collaborators subscribe and react.

Usage:
    bus = EventBus()
    bus.on(EventType.PHASE_CHANGED, my_handler)

    # Emit (inside the authority when state changes)
    bus.emit(EventType.PHASE_CHANGED, phase="chaos", previous="playing")

    # Handler receives event
    def my_handler(event: MatchEvent):
        print(f"Phase is now {event.data['phase']}")

The bus is owned by a MatchSession rather than a module singleton, so two
sessions in one process never see each other's events.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Match events that can be published."""

    # Phase events
    PHASE_CHANGED = "phase.changed"
    MATCH_ENDED = "match.ended"

    # Tension events
    TENSION_CHANGED = "tension.changed"
    TENSION_MAXED = "tension.maxed"

    # Population events
    ROLE_ASSIGNED = "role.assigned"
    SLOT_OCCUPANCY_CHANGED = "slot.occupancy_changed"
    PLAYER_SPAWNED = "player.spawned"
    ENTITY_ELIMINATED = "entity.eliminated"

    # World events
    ABILITY_USED = "ability.used"
    INTERACTABLES_PLACED = "world.interactables_placed"
    HIGH_VALUE_SITES_SELECTED = "world.high_value_sites"


@dataclass
class MatchEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        match_id: ID of the match this event belongs to
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    match_id: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "match_id": self.match_id,
            "data": self.data,
        }


# Type alias for event handlers
EventHandler = Callable[[MatchEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), inside the authority's tick.
    One failing listener is logged and never stops the others.
    """

    def __init__(self, match_id: str = "", history_limit: int = 200):
        self.match_id = match_id
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[MatchEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type. Subscribing twice is a no-op."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def on_all(self, handler: EventHandler) -> None:
        """Subscribe to every event type."""
        for event_type in EventType:
            self.on(event_type, handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, **data) -> MatchEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            **data: Event-specific data

        Returns:
            The emitted MatchEvent (for chaining/testing)
        """
        event = MatchEvent(type=event_type, data=data, match_id=self.match_id)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        # Iterate a copy: handlers may subscribe or unsubscribe while running
        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in handler for {event_type.value}: {e}")

        return event

    def clear(self) -> None:
        """
        Clear all listeners. Useful for testing.

        Session wiring does not go through listeners (tension overflow reaches
        the phase controller directly), so clearing never disables chaos.
        """
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[MatchEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def clear_history(self) -> None:
        self._history.clear()

    def listener_count(self, event_type: EventType) -> int:
        """Get number of listeners for an event type."""
        return len(self._listeners.get(event_type, []))
