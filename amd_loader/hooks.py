"""
Event registry for loader lifecycle notifications.
Handlers run synchronously in priority order; a failing handler never
interrupts module resolution.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

EventHandlerFn = Callable[[str, dict[str, Any]], None]


@dataclass
class EventHandler:
    """Registered event handler with priority."""

    handler: EventHandlerFn
    priority: int = 0
    name: str | None = None

    def __lt__(self, other: "EventHandler") -> bool:
        """Sort by priority (lower number = higher priority)."""
        return self.priority < other.priority


class EventRegistry:
    """Dispatches loader events to registered handlers."""

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def register(
        self,
        event: str,
        handler: EventHandlerFn,
        priority: int = 0,
        name: str | None = None,
    ) -> Callable[[], None]:
        """
        Register a handler for an event.

        Args:
            event: Event name (see events.py)
            handler: Function called with (event, data)
            priority: Execution priority (lower = earlier)
            name: Optional handler name for debugging

        Returns:
            Unregister function
        """
        event_handler = EventHandler(
            handler=handler,
            priority=priority,
            name=name or getattr(handler, "__name__", repr(handler)),
        )
        self._handlers[event].append(event_handler)
        self._handlers[event].sort()

        logger.debug(
            f"Registered handler '{event_handler.name}' for event '{event}' with priority {priority}"
        )

        def unregister():
            if event_handler in self._handlers[event]:
                self._handlers[event].remove(event_handler)
                logger.debug(
                    f"Unregistered handler '{event_handler.name}' from event '{event}'"
                )

        return unregister

    on = register

    def emit(self, event: str, data: dict[str, Any]) -> None:
        """Call every handler registered for ``event``."""
        handlers = self._handlers.get(event, [])
        if not handlers:
            return

        for event_handler in list(handlers):
            try:
                event_handler.handler(event, data)
            except Exception as e:
                logger.error(
                    f"Error in event handler '{event_handler.name}' for event '{event}': {e}"
                )

    def list_handlers(self, event: str | None = None) -> dict[str, list[str]]:
        """
        List registered handlers.

        Args:
            event: Optional event to filter by

        Returns:
            Dict of event names to handler names
        """
        if event:
            handlers = self._handlers.get(event, [])
            return {event: [h.name for h in handlers if h.name is not None]}
        return {
            evt: [h.name for h in handlers if h.name is not None]
            for evt, handlers in self._handlers.items()
        }
