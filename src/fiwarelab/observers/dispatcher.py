# src/fiwarelab/observers/dispatcher.py
from __future__ import annotations
import logging
from typing import Iterable, List, Optional
from .events import BaseEvent
from .interface import Observer

log = logging.getLogger("fiwarelab")


class EventBus:
    """
    Fans session and transport events out to observers.

    A failing observer is logged at DEBUG and skipped; it never reaches the
    request that emitted the event.
    """

    def __init__(self, observers: Optional[Iterable[Observer]] = None):
        self._observers: List[Observer] = []
        for ob in observers or []:
            self.subscribe(ob)

    def subscribe(self, observer: Observer) -> Observer:
        if not isinstance(observer, Observer):
            raise TypeError(f"{type(observer).__name__} has no notify(event) method")
        self._observers.append(observer)
        return observer

    def emit(self, event: BaseEvent) -> None:
        for ob in self._observers:
            try:
                ob.notify(event)
            except Exception as exc:
                log.debug("Observer %s failed on %s: %s",
                          type(ob).__name__, type(event).__name__, exc)
