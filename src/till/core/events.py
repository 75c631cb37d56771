"""
Print event bus for TILL.

The desktop shell publishes PRINT_REQUEST events with a receipt payload and
listens for the outcome events the print manager publishes back.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Awaitable
from collections import deque
from enum import Enum, auto
import asyncio
import inspect
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Print lifecycle events."""
    # Shell -> core
    PRINT_REQUEST = auto()

    # Core -> shell
    PRINT_START = auto()
    PRINT_COMPLETE = auto()  # data: PrintOutcome.to_dict()
    PRINT_ERROR = auto()     # data: PrintOutcome.to_dict()
    PRINTERS_LISTED = auto()
    PRINTER_CHECKED = auto()  # data: printer, ready, status


@dataclass
class Event:
    """
    A published event.

    Attributes:
        type: EventType, or a string for shell-defined events
        data: JSON-serializable payload
        source: Who published it ("shell", "print_manager", ...)
        timestamp: Wall-clock time of creation
    """
    type: EventType | str
    data: dict[str, Any] = field(default_factory=dict)
    source: str = "system"
    timestamp: float = field(default_factory=time.time)


SyncHandler = Callable[[Event], None]
AsyncHandler = Callable[[Event], Awaitable[None]]
Handler = SyncHandler | AsyncHandler


class EventBus:
    """
    Pub/sub between the print core and the shell.

    emit() runs plain handlers inline and skips coroutine handlers;
    emit_async() runs both and waits for the coroutines.
    """

    def __init__(self, history_limit: int = 100) -> None:
        self._handlers: dict[EventType | str, list[Handler]] = {}
        self._global_handlers: list[Handler] = []
        self._history: deque[Event] = deque(maxlen=history_limit)

    def subscribe(self, event_type: EventType | str, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one event type.

        Returns:
            A function that removes the handler again
        """
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type}")

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def subscribe_all(self, handler: Handler) -> Callable[[], None]:
        """Register a handler for every event. Returns an unsubscribe function."""
        self._global_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._global_handlers:
                self._global_handlers.remove(handler)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Publish an event to synchronous handlers."""
        self._history.append(event)
        for handler in self._targets(event):
            if not inspect.iscoroutinefunction(handler):
                self._call(handler, event)

    async def emit_async(self, event: Event) -> None:
        """Publish an event and await coroutine handlers."""
        self._history.append(event)

        pending = []
        for handler in self._targets(event):
            if inspect.iscoroutinefunction(handler):
                pending.append(asyncio.create_task(handler(event)))
            else:
                self._call(handler, event)

        for result in await asyncio.gather(*pending, return_exceptions=True):
            if isinstance(result, Exception):
                logger.error(f"Error in async handler for {event.type}: {result}")

    def _targets(self, event: Event) -> list[Handler]:
        return self._handlers.get(event.type, []) + self._global_handlers

    def _call(self, handler: SyncHandler, event: Event) -> None:
        try:
            handler(event)
        except Exception as e:
            logger.error(f"Error in handler for {event.type}: {e}")

    def get_history(self, event_type: EventType | str | None = None, limit: int = 10) -> list[Event]:
        """Most recent events, oldest first."""
        events = [e for e in self._history if event_type is None or e.type == event_type]
        return events[-limit:]


def print_request_event(payload: dict[str, Any], source: str = "shell") -> Event:
    """Create a print request event carrying a receipt payload."""
    return Event(EventType.PRINT_REQUEST, data=payload, source=source)
