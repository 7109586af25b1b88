"""
Minimal observer mechanism shared by the stores.
"""
import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

Observer = Callable[[Any], None]


class Observable:
    """Notifies registered observers with the owning object after each state change."""

    def __init__(self) -> None:
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; the returned callable unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                # One broken view must not stop the others from re-rendering
                logger.exception("Observer %r failed", observer)

    def _clear_observers(self) -> None:
        self._observers.clear()
