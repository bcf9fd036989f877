import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger("progress_events")


@dataclass
class Event:
    event: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)


class ProgressBus:
    """Fan-out of progress events to any number of async subscribers.

    Publishers never block: with no listeners an event is dropped, and a full
    subscriber queue loses its oldest entry so recent progress stays visible.
    """

    def __init__(self, maxsize: int = 100):
        self.maxsize = maxsize
        self._subscribers: List[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def open(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self.maxsize)
        self._subscribers.append(q)
        logger.debug("subscriber added; total=%d", len(self._subscribers))
        return q

    def close(self, q: asyncio.Queue) -> None:
        if q in self._subscribers:
            self._subscribers.remove(q)
            logger.debug("subscriber removed; total=%d", len(self._subscribers))

    async def subscribe(self) -> AsyncIterator[Event]:
        """Yield events as they arrive until the consumer stops iterating."""
        q = self.open()
        try:
            while True:
                ev = await q.get()
                if isinstance(ev, Event):
                    yield ev
        finally:
            self.close(q)

    def emit(self, event: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        if not self._subscribers:
            return
        ev = Event(event=event, message=message, context=dict(context or {}))
        for q in list(self._subscribers):
            if q.full():
                # Drop oldest to keep recent progress visible
                q.get_nowait()
            q.put_nowait(ev)
