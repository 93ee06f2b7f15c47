"""
Testing utilities for the loader.
Provides helpers for exercising modules without touching the filesystem.
"""

from typing import Any

from .events import ALL_EVENTS
from .hooks import EventRegistry
from .loader import Loader
from .models import LoaderConfig
from .sources import InMemorySourceFetcher


class EventRecorder:
    """Records every loader event it is attached to."""

    def __init__(self, registry: EventRegistry | None = None):
        self.events: list[tuple[str, dict[str, Any]]] = []
        self._unregister = []
        if registry is not None:
            self.attach(registry)

    def attach(self, registry: EventRegistry) -> None:
        for event in ALL_EVENTS:
            self._unregister.append(
                registry.register(event, self.record, name="event-recorder")
            )

    def detach(self) -> None:
        for unregister in self._unregister:
            unregister()
        self._unregister.clear()

    def record(self, event: str, data: dict[str, Any]) -> None:
        self.events.append((event, dict(data)))

    def clear(self):
        """Clear recorded events."""
        self.events.clear()

    def get_events(self, event_type: str | None = None) -> list[tuple]:
        """Get recorded events, optionally filtered by type."""
        if event_type:
            return [e for e in self.events if e[0] == event_type]
        return self.events.copy()

    def module_ids(self, event_type: str) -> list[str]:
        """Module ids carried by events of one type, in emission order."""
        return [data["module_id"] for _, data in self.get_events(event_type)]


def create_test_loader(
    sources: dict[str, str] | None = None, **config: Any
) -> tuple[Loader, InMemorySourceFetcher, EventRecorder]:
    """Create a loader backed by in-memory sources with an attached recorder."""
    fetcher = InMemorySourceFetcher(sources)
    loader = Loader(config=LoaderConfig(**config), fetcher=fetcher)
    recorder = EventRecorder(loader.events)
    return loader, fetcher, recorder
