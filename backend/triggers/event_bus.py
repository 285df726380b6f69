"""In-process event bus.

Business code publishes `(event_name, tenant_id, payload)` and returns
immediately. A single background consumer drains the queue and hands
each event to the EventRouter.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from triggers.router import EventRouter

logger = structlog.get_logger(__name__)


@dataclass
class DomainEvent:
    event_name: str
    tenant_id: str
    payload: Any


class EventBus:
    """Bounded queue with one supervised consumer task."""

    def __init__(self, router: EventRouter, max_size: int = 1000):
        self.router = router
        self._queue: asyncio.Queue[DomainEvent] = asyncio.Queue(maxsize=max_size)
        self._consumer: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def publish(self, event_name: str, tenant_id: str, payload: Any) -> bool:
        """Enqueue an event without waiting. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(DomainEvent(event_name, tenant_id, payload))
        except asyncio.QueueFull:
            logger.warning("Event bus full, dropping event", event_name=event_name, tenant_id=tenant_id)
            return False
        return True

    async def start(self) -> None:
        if self.is_running:
            return
        self._consumer = asyncio.create_task(self._consume(), name="workflow-event-bus")
        logger.info("Event bus started")

    async def stop(self) -> None:
        if self._consumer is None:
            return
        self._consumer.cancel()
        try:
            await self._consumer
        except asyncio.CancelledError:
            pass
        self._consumer = None
        logger.info("Event bus stopped")

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.router.trigger_by_event(event.event_name, event.tenant_id, event.payload)
            except Exception as e:
                logger.error("Event handling failed", event_name=event.event_name, error=str(e), exc_info=True)
            finally:
                self._queue.task_done()


# Singleton
_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get or create the process-wide event bus."""
    global _bus
    if _bus is None:
        from app.config import get_settings
        from triggers.router import get_event_router

        _bus = EventBus(get_event_router(), max_size=get_settings().EVENT_QUEUE_SIZE)
    return _bus
