"""Fire-and-forget notification dispatch and the owner-facing notification inbox."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from tastemap.core.logging_safety import safe_log_identifier
from tastemap.errors import not_found
from tastemap.repositories.memory import InMemoryStore, NotificationRecord
from tastemap.schemas.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

_DEFAULT_MAX_PENDING = 256


@dataclass(frozen=True, slots=True)
class NotificationMessage:
    user_id: int
    title: str
    message: str
    type: NotificationType = NotificationType.VERIFICATION


class NotificationDispatcher:
    """Bounded queue of notifications delivered off the response path.

    ``enqueue`` never blocks and never raises: a full queue drops the message.
    Delivery failures are logged and dropped, never retried.
    """

    def __init__(
        self,
        deliver: Callable[[NotificationMessage], object],
        *,
        max_pending: int = _DEFAULT_MAX_PENDING,
    ) -> None:
        self._deliver = deliver
        self._max_pending = max_pending
        self._queue: asyncio.Queue[NotificationMessage] = asyncio.Queue(maxsize=max_pending)
        self._worker: asyncio.Task[None] | None = None
        self.delivered_count = 0
        self.failed_count = 0
        self.dropped_count = 0

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(self, message: NotificationMessage) -> bool:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.warning(
                "notification.dropped user_id=%s reason=queue_full",
                safe_log_identifier(message.user_id, prefix="uid"),
            )
            return False
        return True

    async def process_pending(self) -> int:
        """Deliver everything queued right now; returns how many were attempted."""
        attempted = 0
        while True:
            try:
                message = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return attempted
            self._deliver_one(message)
            self._queue.task_done()
            attempted += 1

    async def run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                self._deliver_one(message)
            finally:
                self._queue.task_done()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker on the running loop.

        A queue is bound to the first loop that waits on it, so every start moves the
        pending messages into a fresh queue owned by the current loop.
        """
        if self.running:
            return
        if self._worker is not None:
            self._log_worker_failure(self._worker)

        queue: asyncio.Queue[NotificationMessage] = asyncio.Queue(maxsize=self._max_pending)
        while True:
            try:
                queue.put_nowait(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        self._queue = queue
        self._worker = asyncio.get_running_loop().create_task(self.run(), name="notification-dispatcher")

    async def stop(self) -> None:
        worker, self._worker = self._worker, None
        if worker is not None:
            if worker.done():
                self._log_worker_failure(worker)
            else:
                worker.cancel()
                try:
                    await worker
                except asyncio.CancelledError:
                    pass
                except Exception as exc:
                    logger.error("notification.worker_failed reason=%s", type(exc).__name__)
        await self.process_pending()

    @staticmethod
    def _log_worker_failure(worker: asyncio.Task[None]) -> None:
        if worker.cancelled():
            return
        exc = worker.exception()
        if exc is not None:
            logger.error("notification.worker_failed reason=%s", type(exc).__name__)

    def _deliver_one(self, message: NotificationMessage) -> None:
        safe_user_id = safe_log_identifier(message.user_id, prefix="uid")
        try:
            self._deliver(message)
        except Exception as exc:
            self.failed_count += 1
            logger.warning(
                "notification.delivery_failed user_id=%s reason=%s",
                safe_user_id,
                type(exc).__name__,
            )
            return
        self.delivered_count += 1
        logger.info("notification.delivered user_id=%s type=%s", safe_user_id, message.type.value)


def store_delivery(store: InMemoryStore) -> Callable[[NotificationMessage], NotificationRecord]:
    """Delivery target that persists notifications into the user's inbox."""

    def deliver(message: NotificationMessage) -> NotificationRecord:
        return store.create_notification(
            user_id=message.user_id,
            title=message.title,
            message=message.message,
            notification_type=message.type,
        )

    return deliver


class NotificationService:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def list_for_user(self, *, user_id: int) -> list[Notification]:
        return [self._to_notification(record) for record in self._store.list_notifications_for_user(user_id)]

    def mark_read(self, *, user_id: int, notification_id: int) -> Notification:
        record = self._store.get_notification_for_user(user_id=user_id, notification_id=notification_id)
        if record is None:
            raise not_found("Notification not found")

        self._store.mark_notification_read(record)
        return self._to_notification(record)

    @staticmethod
    def _to_notification(record: NotificationRecord) -> Notification:
        return Notification(
            id=record.id,
            title=record.title,
            message=record.message,
            type=record.type,
            read=record.read,
            sent_at=record.sent_at,
        )
