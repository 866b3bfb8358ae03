"""
Simple listener list for tracker entities.
"""

from __future__ import annotations
from typing import Any, Callable
import logging

logger = logging.getLogger(__name__)

EntityListener = Callable[..., None]


class EventEmitter:
    """Calls every registered listener with the fired arguments."""

    def __init__(self) -> None:
        self._listeners: list[EntityListener] = []

    def add_listener(self, listener: EntityListener) -> None:
        """Register a listener. Adding it twice calls it twice."""
        self._listeners.append(listener)

    def remove_listener(self, listener: EntityListener) -> bool:
        """Remove the first registration of listener."""
        for i, existing in enumerate(self._listeners):
            if existing == listener:
                del self._listeners[i]
                return True
        return False

    def fire(self, *args: Any) -> None:
        """Call every listener; a failing listener does not stop the rest."""
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener failed for %s", self)
