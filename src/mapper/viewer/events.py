"""Viewer event dispatcher.

Core components publish plain-data events here; whatever renders the list
(the web layer's event log, a test) subscribes. No UI framework involved.
"""

from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from loguru import logger

# Event types
ROW_ADDED = "row_added"
ROW_REMOVED = "row_removed"
ROW_CHANGED = "row_changed"
ROWS_REORDERED = "rows_reordered"
ROWS_CLEARED = "rows_cleared"
SELECTION_CHANGED = "selection_changed"
HIGHLIGHT_SHOWN = "highlight_shown"
HIGHLIGHT_HIDDEN = "highlight_hidden"
MAP_FITTED = "map_fitted"
NOTIFICATION = "notification"
LOAD_FINISHED = "load_finished"
LOAD_FAILED = "load_failed"
PROJECT_SWITCHED = "project_switched"


@dataclass
class ViewerEvent:
    seq: int
    type: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"seq": self.seq, "type": self.type, "data": self.data}


Handler = Callable[[ViewerEvent], None]


class EventDispatcher:
    """Synchronous publish/subscribe with a bounded history for polling."""

    def __init__(self, history: int = 500) -> None:
        self._handlers: list[Handler] = []
        self._history: deque[ViewerEvent] = deque(maxlen=history)
        self._seq = itertools.count(1)

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler; returns a function that unsubscribes it."""
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def emit(self, event_type: str, **data) -> ViewerEvent:
        event = ViewerEvent(seq=next(self._seq), type=event_type, data=data)
        self._history.append(event)
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                # subscriber errors are logged, never raised to the emitter
                logger.warning(f"Event handler failed for {event_type}: {e}")
        return event

    def since(self, seq: int = 0) -> list[ViewerEvent]:
        """Events with a sequence number greater than ``seq``."""
        return [e for e in self._history if e.seq > seq]
