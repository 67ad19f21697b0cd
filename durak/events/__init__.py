"""
Event system for the Durak engine.
"""

from durak.events.emitter import (
    EventBus,
    EventEmitter,
    EventPriority,
    MatchEventType,
)

__all__ = ["EventEmitter", "EventBus", "EventPriority", "MatchEventType"]
