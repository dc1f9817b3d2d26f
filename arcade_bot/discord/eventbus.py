from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


@dataclass(frozen=True)
class SubscriptionHandle:
    event_name: str
    token: int
    once: bool


class EventBus:
    """
    One subscription per event name.

    emit() runs the handler as a task on the running loop. once-subscriptions
    are removed before their handler starts, so they fire at most one time.
    Handler errors are logged, never raised into the dispatcher.
    """

    def __init__(self) -> None:
        self._subs: Dict[str, Tuple[SubscriptionHandle, Handler]] = {}
        self._tokens = itertools.count(1)
        self._tasks: Set["asyncio.Task[None]"] = set()

    def subscribe(self, event_name: str, handler: Handler, *, once: bool = False) -> SubscriptionHandle:
        if event_name in self._subs:
            raise ValueError(f"event {event_name!r} already has an active subscription")
        handle = SubscriptionHandle(event_name=event_name, token=next(self._tokens), once=once)
        self._subs[event_name] = (handle, handler)
        logger.debug("subscribed %s (once=%s)", event_name, once)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        entry = self._subs.get(handle.event_name)
        if entry is None or entry[0] != handle:
            return False
        del self._subs[handle.event_name]
        return True

    def unsubscribe_all(self) -> int:
        n = len(self._subs)
        self._subs.clear()
        return n

    def is_subscribed(self, event_name: str) -> bool:
        return event_name in self._subs

    def emit(self, event_name: str, *args: Any, **kwargs: Any) -> Optional["asyncio.Task[None]"]:
        entry = self._subs.get(event_name)
        if entry is None:
            return None

        handle, handler = entry
        if handle.once:
            del self._subs[event_name]

        task = asyncio.get_running_loop().create_task(
            self._run(handle, handler, args, kwargs),
            name=f"arcade-event:{event_name}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, handle: SubscriptionHandle, handler: Handler, args: tuple, kwargs: dict) -> None:
        try:
            result = handler(*args, **kwargs)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("event handler for %s failed", handle.event_name)


__all__ = ["EventBus", "Handler", "SubscriptionHandle"]
