"""
Notification Dispatcher

Asynchronous, best-effort delivery of notification events. Services enqueue
after their transaction commits; a background task drains the queue and
retries each event with exponential backoff. A failed delivery is logged and
never reaches the customer-facing flow.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from storefront.connectors.notification_connector import Notifier
from storefront.domain.notification import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Queue + worker owned by the running event loop

    enqueue() may be called from the loop itself or from worker threads
    (sync endpoints run in the threadpool).
    """

    def __init__(
        self,
        notifier: Notifier,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.notifier = notifier
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._sleep = sleep

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None

        self.delivered = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._worker = asyncio.create_task(self._run())
        logger.info("Notification dispatcher started")

    async def stop(self, timeout: float = 5.0) -> None:
        """Give queued events a chance to go out, then stop the worker"""
        if not self.running:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Notification dispatcher stopped with {self._queue.qsize()} event(s) undelivered")

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Notification dispatcher stopped")

    async def drain(self) -> None:
        """Wait until every queued event has been processed"""
        if self._queue is not None:
            await self._queue.join()

    def enqueue(self, event: NotificationEvent) -> bool:
        """
        Schedule an event for delivery without blocking the caller

        Returns:
            False when the dispatcher is not running (event dropped and logged)
        """
        if not self.running or self._loop is None or self._loop.is_closed():
            logger.warning(f"Notification dropped, dispatcher not running: {event.describe()}")
            return False

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is self._loop:
            self._queue.put_nowait(event)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        return True

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self.deliver(event)
            finally:
                self._queue.task_done()

    async def deliver(self, event: NotificationEvent) -> bool:
        """Send one event, retrying with backoff; True if it went out"""
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.notifier.send(event)
            except Exception as e:
                if attempt == self.max_attempts:
                    self.failed += 1
                    logger.error(
                        f"Notification delivery failed after {attempt} attempt(s): "
                        f"type={event.type.value} order_id={event.order_id} "
                        f"booking_id={event.booking_id} contact_id={event.contact_id} old_status={event.old_status} "
                        f"new_status={event.new_status} timestamp={event.occurred_at.isoformat()} "
                        f"error={e}"
                    )
                    return False
                delay = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    f"Notification attempt {attempt}/{self.max_attempts} failed for "
                    f"{event.describe()}: {e} - retrying in {delay:.1f}s"
                )
                await self._sleep(delay)
            else:
                self.delivered += 1
                logger.info(f"Notification delivered: {event.describe()}")
                return True
        return False
