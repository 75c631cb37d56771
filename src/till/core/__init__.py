"""Core infrastructure for TILL."""

from till.core.events import Event, EventBus, EventType, print_request_event

__all__ = [
    "Event",
    "EventBus",
    "EventType",
    "print_request_event",
]
