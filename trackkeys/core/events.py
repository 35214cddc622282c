"""
Event bus for trackkeys.

The migration itself never talks to a UI. When a run finishes, the host-facing
service publishes a `PathKeyMigrationEvent`; whoever presents warnings (a toast,
a log panel, a status page) subscribes to it.

Event types:
- pathkeys.migration: a migration run finished (status "completed",
  "skipped" or "failed")

Usage:
    from trackkeys.core.events import event_bus

    async def on_migration(event: PathKeyMigrationEvent) -> None:
        if event.status == "failed":
            show_warning(event.failed_files)

    await event_bus.subscribe("pathkeys.migration", on_migration)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

EventHandler = Callable[["Event"], Coroutine[Any, Any, None]]


@dataclass
class Event:
    """Base class for all events."""

    event_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.event_type}


@dataclass
class PathKeyMigrationEvent(Event):
    """Fired once per process after the path-key migration ran (or was skipped)."""

    event_type: str = field(default="pathkeys.migration", init=False)
    status: str = ""  # completed, skipped, failed
    changed_files: int = 0
    changed_entries: int = 0
    failed_files: tuple[str, ...] = ()

    @property
    def warning_text(self) -> str:
        """User-facing warning for a failed run, empty otherwise."""
        if not self.failed_files:
            return ""
        return "Path key migration incomplete, will retry on next launch: " + ", ".join(
            self.failed_files
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.event_type,
            "status": self.status,
            "changed_files": self.changed_files,
            "changed_entries": self.changed_entries,
        }
        if self.failed_files:
            result["failed_files"] = list(self.failed_files)
            result["warning"] = self.warning_text
        return result


class EventBus:
    """
    Minimal async pub/sub.

    Handlers subscribe to an exact event type, a "prefix.*" wildcard, or "*".
    A failing handler is logged and does not affect the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._lock = asyncio.Lock()

    async def subscribe(self, event_type: str, handler: EventHandler) -> None:
        async with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
            logger.debug("Subscribed to %s: %s", event_type, handler)

    async def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """Returns True if the handler was registered."""
        async with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
                return True
            return False

    def _matching(self, event_type: str) -> list[EventHandler]:
        matching: list[EventHandler] = list(self._handlers.get(event_type, []))
        for pattern, handlers in self._handlers.items():
            if pattern == "*":
                matching.extend(handlers)
            elif pattern.endswith(".*") and event_type.startswith(pattern[:-1]):
                matching.extend(handlers)
        return matching

    async def publish(self, event: Event) -> int:
        """Deliver `event` to every matching handler. Returns how many succeeded."""
        async with self._lock:
            handlers = self._matching(event.event_type)

        delivered = 0
        for handler in handlers:
            try:
                await handler(event)
                delivered += 1
            except Exception as e:
                logger.exception("Error in event handler for %s: %s", event.event_type, e)
        return delivered

    async def clear(self) -> None:
        async with self._lock:
            self._handlers.clear()


# Global event bus instance
event_bus = EventBus()
