"""Ordered registry of synchronous callbacks."""
from __future__ import annotations
import logging
from threading import RLock
from typing import Any, Callable, List

logger = logging.getLogger(__name__)


class ObserverRegistry:
    """Callbacks invoked synchronously, in registration order.

    Subscribing a callback that is already registered and unsubscribing
    one that is not are both no-ops. A callback that raises is logged and
    the remaining callbacks still run.
    """

    def __init__(self, name: str = "observers") -> None:
        self._name = name
        self._lock = RLock()
        self._observers: List[Callable[..., Any]] = []

    def subscribe(self, observer: Callable[..., Any]) -> Callable[[], None]:
        """Register `observer` and return a callable that unregisters it."""
        with self._lock:
            if observer not in self._observers:
                self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: Callable[..., Any]) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def notify(self, *args: Any) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(*args)
            except Exception:
                logger.exception("Error in %s callback %r", self._name, observer)

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, observer: object) -> bool:
        return observer in self._observers
