"""Live notification stream for one client connection.

A ``LiveStreamPublisher`` polls the notification store for one recipient and
yields framed Server-Sent Events until it is cancelled, exhausts its
iteration budget, or the store keeps failing.

Event sequence:
    connected -> (notification | heartbeat)* -> disconnected

Example:
    publisher = LiveStreamPublisher(user_id, RepositoryFeed())
    async for event in publisher.events():
        yield event.to_sse()
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from taskboard_service.core.database import ensure_utc, utc_now
from taskboard_service.features.notifications.exceptions import StreamCancelled
from taskboard_service.features.notifications.metrics import (
    notification_stream_connections,
    notification_stream_events_total,
    notification_stream_poll_failures_total,
)
from taskboard_service.features.notifications.repository import (
    NotificationRepository,
    get_notification_repository,
)
from taskboard_service.infra.database import get_async_session
from taskboard_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Collection, Sequence
    from contextlib import AbstractAsyncContextManager
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession

    from taskboard_service.core.settings import NotificationSettings
    from taskboard_service.features.notifications.models import Notification

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

REASON_TIMEOUT = "timeout"
REASON_STORE_UNAVAILABLE = "store_unavailable"


class StreamState(StrEnum):
    """Publisher lifecycle; ``closed`` is terminal."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"


@dataclass(slots=True, frozen=True)
class StreamEvent:
    """A named stream event.

    Attributes:
        event: connected, notification, heartbeat or disconnected
        data: JSON payload (snake_case keys)
    """

    event: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_sse(self) -> str:
        """Frame as ``event: <name>\\ndata: <json>\\n\\n``."""
        return f"event: {self.event}\ndata: {json.dumps(self.data, default=str)}\n\n"


class NotificationFeed(Protocol):
    """Source of new notifications for one recipient."""

    async def query_since(
        self,
        recipient_id: str,
        since: datetime,
        limit: int,
        exclude_ids: Collection[UUID],
    ) -> Sequence[Notification]: ...


class RepositoryFeed:
    """Feed that opens a short-lived session for every poll."""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] | None = None,
        repository: NotificationRepository | None = None,
    ) -> None:
        self._session_factory = session_factory or get_async_session
        self._repository = repository or get_notification_repository()

    async def query_since(
        self,
        recipient_id: str,
        since: datetime,
        limit: int,
        exclude_ids: Collection[UUID],
    ) -> Sequence[Notification]:
        async with self._session_factory() as session:
            return await self._repository.query_since(
                session,
                recipient_id,
                since,
                limit,
                exclude_ids=exclude_ids,
            )


class LiveStreamPublisher:
    """Stream new unread notifications of one recipient to one connection.

    Each cycle polls for unread rows created at or after
    ``checkpoint - checkpoint_overlap`` that were not yet emitted on this
    connection, emits them oldest first, then advances the checkpoint. The
    overlap picks up rows whose transaction committed after a poll began;
    ids already emitted are excluded so nothing repeats on one connection.

    The look-back never reaches before the connection opened nor before the
    newest ``created_at`` already emitted, so rows that existed at connect
    time are not pushed and ``created_at`` never decreases on one connection.

    ``cancel()`` ends the current wait immediately; the publisher then emits
    ``disconnected`` without touching the store again.
    """

    def __init__(
        self,
        recipient_id: str,
        feed: NotificationFeed,
        *,
        max_iterations: int = 300,
        poll_interval: float = 10.0,
        heartbeat_every: int = 3,
        batch_size: int = 10,
        max_consecutive_failures: int = 3,
        checkpoint_overlap: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if max_iterations < 1 or heartbeat_every < 1 or batch_size < 1 or max_consecutive_failures < 1:
            msg = "Stream limits must be positive"
            raise ValueError(msg)
        self.recipient_id = recipient_id
        self.max_iterations = max_iterations
        self.poll_interval = poll_interval
        self.heartbeat_every = heartbeat_every
        self.batch_size = batch_size
        self.max_consecutive_failures = max_consecutive_failures
        self.overlap = timedelta(seconds=checkpoint_overlap)

        self._feed = feed
        self._clock = clock or utc_now
        self._cancelled = asyncio.Event()

        self.state = StreamState.CONNECTING
        self.disconnect_reason: str | None = None

    @classmethod
    def from_settings(
        cls,
        recipient_id: str,
        feed: NotificationFeed,
        settings: NotificationSettings,
    ) -> LiveStreamPublisher:
        return cls(
            recipient_id,
            feed,
            max_iterations=settings.stream_max_iterations,
            poll_interval=settings.stream_poll_interval,
            heartbeat_every=settings.stream_heartbeat_every,
            batch_size=settings.stream_batch_size,
            max_consecutive_failures=settings.stream_max_consecutive_failures,
            checkpoint_overlap=settings.stream_checkpoint_overlap,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Signal that the client went away."""
        self._cancelled.set()

    async def _wait(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds; True if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout)
        except TimeoutError:
            return False
        return True

    def _event(self, name: str, data: dict[str, Any]) -> StreamEvent:
        notification_stream_events_total.labels(event=name).inc()
        return StreamEvent(name, data)

    async def events(self) -> AsyncGenerator[StreamEvent]:
        """Yield the connection's events from ``connected`` to ``disconnected``."""
        notification_stream_connections.inc()
        logger.info("Notification stream opened", extra={"recipient_id": self.recipient_id})
        try:
            yield self._event(
                "connected",
                {"status": "connected", "recipient_id": self.recipient_id},
            )
            self.state = StreamState.STREAMING

            reason = REASON_TIMEOUT
            opened_at = ensure_utc(self._clock())
            checkpoint = opened_at
            high_water = opened_at
            emitted: dict[UUID, datetime] = {}
            failures = 0

            try:
                for cycle in range(1, self.max_iterations + 1):
                    if self.cancelled:
                        raise StreamCancelled

                    poll_started = ensure_utc(self._clock())
                    since = max(checkpoint - self.overlap, high_water)
                    try:
                        batch = await self._feed.query_since(
                            self.recipient_id,
                            since,
                            self.batch_size,
                            frozenset(emitted),
                        )
                    except Exception:
                        failures += 1
                        notification_stream_poll_failures_total.inc()
                        logger.warning(
                            "Notification stream poll failed",
                            extra={
                                "recipient_id": self.recipient_id,
                                "consecutive_failures": failures,
                            },
                            exc_info=True,
                        )
                        if failures >= self.max_consecutive_failures:
                            reason = REASON_STORE_UNAVAILABLE
                            break
                    else:
                        failures = 0
                        for notification in batch:
                            created = ensure_utc(notification.created_at)
                            emitted[notification.id] = created
                            high_water = max(high_water, created)
                            yield self._event("notification", self._payload(notification))

                        if len(batch) >= self.batch_size:
                            checkpoint = ensure_utc(batch[-1].created_at)
                        else:
                            checkpoint = poll_started
                        floor = max(checkpoint - self.overlap, high_water)
                        emitted = {nid: created for nid, created in emitted.items() if created >= floor}

                        lazy_logger.debug(
                            lambda: f"stream.poll({self.recipient_id}) cycle {cycle} -> {len(batch)} notifications"
                        )

                    if cycle % self.heartbeat_every == 0:
                        yield self._event("heartbeat", {"time": ensure_utc(self._clock()).isoformat()})

                    if cycle == self.max_iterations:
                        break
                    if await self._wait(self.poll_interval):
                        raise StreamCancelled
            except StreamCancelled as exc:
                reason = exc.reason
            self.state = StreamState.DRAINING
            self.disconnect_reason = reason
            yield self._event("disconnected", {"status": "disconnected", "reason": reason})
        finally:
            self.state = StreamState.CLOSED
            notification_stream_connections.dec()
            logger.info(
                "Notification stream closed",
                extra={"recipient_id": self.recipient_id, "reason": self.disconnect_reason},
            )

    @staticmethod
    def _payload(notification: Notification) -> dict[str, Any]:
        return {
            "id": str(notification.id),
            "title": notification.title,
            "message": notification.message,
            "type": notification.type,
            "created_at": ensure_utc(notification.created_at).isoformat(),
        }
