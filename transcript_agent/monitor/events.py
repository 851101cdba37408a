"""Event emitter used by the monitor."""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set

logger = logging.getLogger("transcript_agent.monitor.events")

Listener = Callable[..., Any]


class EventEmitter:
    """Maps event names to listeners, called in registration order.

    Plain listeners run synchronously inside ``emit``. A coroutine listener
    is scheduled as a task on the running loop; ``pending_listeners`` holds
    the tasks that have not finished yet. A failing listener is logged and
    does not stop the remaining listeners or the code that emitted the event.
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}
        self._listener_tasks: Set[asyncio.Future] = set()

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        def _once(*args):
            self.off(event, _once)
            return listener(*args)

        _once.__wrapped__ = listener
        return self.on(event, _once)

    def off(self, event: str, listener: Listener) -> None:
        # Equality, not identity: each obj.method access is a new bound method
        listeners = self._listeners.get(event, [])
        for registered in listeners:
            if registered == listener or getattr(registered, "__wrapped__", None) == listener:
                listeners.remove(registered)
                break
        if not listeners:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def remove_all_listeners(self, event: Optional[str] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    @property
    def pending_listeners(self) -> List[asyncio.Future]:
        return [task for task in self._listener_tasks if not task.done()]

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener for ``event``; returns False when there were none."""
        listeners = list(self._listeners.get(event, []))
        for listener in listeners:
            try:
                result = listener(*args)
                if inspect.isawaitable(result):
                    self._track(event, asyncio.ensure_future(result))
            except Exception:
                logger.exception("Listener for %r failed", event)
        return bool(listeners)

    def _track(self, event: str, task: asyncio.Future) -> None:
        self._listener_tasks.add(task)

        def _done(finished: asyncio.Future) -> None:
            self._listener_tasks.discard(finished)
            if finished.cancelled():
                return
            error = finished.exception()
            if error is not None:
                logger.error("Listener for %r failed", event, exc_info=error)

        task.add_done_callback(_done)
