"""
Event Emitter - ordered, inline async event dispatch for sessions.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """
    Minimal async event emitter.

    ``emit`` awaits each handler in subscription order before returning, so
    an emitter that is driven sequentially delivers events one at a time.
    Emitting from inside a handler dispatches inline.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable[[Any], Any]]] = {}

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Callable[[Any], Any]) -> None:
        handlers = self._handlers.get(event)
        if not handlers or handler not in handlers:
            return
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event]

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def remove_all_listeners(self) -> None:
        self._handlers.clear()

    async def emit(self, event: str, payload: Any) -> None:
        # Snapshot: handlers may unsubscribe while being dispatched
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Error in %s handler %r", event, handler)
