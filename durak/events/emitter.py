"""
Event system for the Durak engine.

Match sessions and the registry publish lifecycle and move events here; a
transport can subscribe to them to push fresh state to connected players.
"""

from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Union
import logging
import threading

# Create a logger for the event system
logger = logging.getLogger("durak.events")


class EventPriority(Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 1
    HIGH = 2
    CRITICAL = 3


class MatchEventType(Enum):
    """
    Event types published by the Durak engine.

    Every payload carries ``match_id`` and ``timestamp``.
    """

    # Match lifecycle
    MATCH_CREATED = "match_created"
    MATCH_STARTED = "match_started"
    MATCH_FINISHED = "match_finished"
    MATCH_RECLAIMED = "match_reclaimed"

    # Player events
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"

    # Moves
    ATTACK_PLAYED = "attack_played"
    DEFENSE_PLAYED = "defense_played"
    CARD_THROWN_IN = "card_thrown_in"
    ROUND_PASSED = "round_passed"
    CARDS_TAKEN = "cards_taken"

    # Emitted after every committed change to a match
    STATE_CHANGED = "state_changed"


class EventEmitter:
    """
    Event emitter with priority-ordered subscriptions.

    Features:
    - Supports event subscription with priorities
    - Allows once-only subscriptions
    - Supports subscribing to all events with event type filtering in handler
    - Thread-safe subscription management
    """

    def __init__(self):
        """Initialize the event emitter."""
        self._listeners = defaultdict(list)
        self._global_listeners = []
        self._listener_lock = threading.RLock()

    def on(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs, signature: fn(event_data)
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        if isinstance(event_type, Enum):
            event_type = event_type.name

        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            # Insert handler in order of priority (higher numbers first)
            handlers = self._listeners[event_type]
            for i, existing in enumerate(handlers):
                if existing["priority"] < priority.value:
                    handlers.insert(i, handler)
                    break
            else:
                handlers.append(handler)

        def unsubscribe():
            with self._listener_lock:
                handlers = self._listeners[event_type]
                for i, existing in enumerate(handlers):
                    if existing is handler:
                        handlers.pop(i)
                        break

        return unsubscribe

    def once(
        self,
        event_type: Union[str, Enum],
        callback: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> Callable:
        """
        Subscribe to an event type for a single occurrence.

        Args:
            event_type: The event type to subscribe to (string or enum)
            callback: Function to call when event occurs
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        unsubscribe_ref = []

        def one_time_handler(event_data):
            try:
                callback(event_data)
            finally:
                if unsubscribe_ref:
                    unsubscribe_ref[0]()

        unsubscribe_ref.append(self.on(event_type, one_time_handler, priority))
        return unsubscribe_ref[0]

    def on_any(
        self, callback: Callable, priority: EventPriority = EventPriority.NORMAL
    ) -> Callable:
        """
        Subscribe to all events.

        Args:
            callback: Function to call for any event, signature: fn((event_type, event_data))
            priority: Priority level for this handler

        Returns:
            Unsubscribe function that can be called to remove this subscription
        """
        handler = {"callback": callback, "priority": priority.value}

        with self._listener_lock:
            for i, existing in enumerate(self._global_listeners):
                if existing["priority"] < priority.value:
                    self._global_listeners.insert(i, handler)
                    break
            else:
                self._global_listeners.append(handler)

        def unsubscribe():
            with self._listener_lock:
                for i, existing in enumerate(self._global_listeners):
                    if existing is handler:
                        self._global_listeners.pop(i)
                        break

        return unsubscribe

    def emit(self, event_type: Union[str, Enum], data: Dict[str, Any]) -> None:
        """
        Emit an event to all registered listeners.

        A failing handler is logged and does not stop the remaining handlers.

        Args:
            event_type: The type of event to emit
            data: The data to include with the event
        """
        if isinstance(event_type, Enum):
            event_type = event_type.name

        handlers_to_call = []

        with self._listener_lock:
            for handler in self._listeners.get(event_type, []):
                handlers_to_call.append((handler["callback"], data))

            for handler in self._global_listeners:
                handlers_to_call.append((handler["callback"], (event_type, data)))

        # Call handlers outside of the lock to avoid deadlocks
        for callback, args in handlers_to_call:
            try:
                callback(args)
            except Exception as e:
                logger.error(
                    f"Error in event handler for {event_type}: {e}", exc_info=True
                )

    def remove_all_listeners(self, event_type: Union[str, Enum, None] = None) -> None:
        """
        Remove all listeners for a specific event type or all events.

        Args:
            event_type: Optional event type. If None, removes all listeners for all events.
        """
        with self._listener_lock:
            if event_type is None:
                self._listeners.clear()
                self._global_listeners.clear()
            else:
                if isinstance(event_type, Enum):
                    event_type = event_type.name
                self._listeners[event_type].clear()


class EventBus:
    """
    Process-wide default event emitter.

    Sessions and registries use this instance unless an emitter is injected.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        """
        Get the singleton instance of the EventBus.

        Returns:
            EventEmitter instance
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance
