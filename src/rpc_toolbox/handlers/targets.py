from __future__ import annotations
import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Tuple

from ..dispatch.context import InvocationContext

logger = logging.getLogger("dispatch")


class SingletonTargetResolver:
    """One instance per service, created on first use and shared by every caller."""

    def __init__(self):
        self._instance: Optional[Any] = None
        self._lock = threading.Lock()

    def resolve(self, context: InvocationContext) -> Optional[Any]:
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = context.service_type()
        return self._instance


class SessionTargetResolver:
    """
    One instance per client session.

    Sessions unused for `idle_timeout` seconds are dropped, and beyond
    `max_sessions` the least recently used one is dropped first. Declines
    requests that carry no session id so another resolver in the chain can
    handle them.
    """

    def __init__(
        self,
        max_sessions: int = 1024,
        idle_timeout: float | None = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self._clock = clock
        # session id -> (instance, last use), least recently used first
        self._instances: OrderedDict[str, Tuple[Any, float]] = OrderedDict()
        self._lock = threading.Lock()

    def resolve(self, context: InvocationContext) -> Optional[Any]:
        session_id = context.request.session_id
        if not session_id:
            return None
        with self._lock:
            now = self._clock()
            self._expire(now)
            entry = self._instances.pop(session_id, None)
            instance = entry[0] if entry is not None else context.service_type()
            self._instances[session_id] = (instance, now)
            while len(self._instances) > self.max_sessions:
                evicted, _ = self._instances.popitem(last=False)
                logger.debug("Evicted session %s of %s", evicted, context.service_name)
        return instance

    def _expire(self, now: float) -> None:
        if self.idle_timeout is None:
            return
        while self._instances:
            session_id, (_, last_use) = next(iter(self._instances.items()))
            if now - last_use < self.idle_timeout:
                break
            del self._instances[session_id]
            logger.debug("Expired idle session %s", session_id)

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._instances.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._instances)


class PerCallTargetResolver:
    """A fresh instance for every invocation."""

    def resolve(self, context: InvocationContext) -> Optional[Any]:
        return context.service_type()
