"""Fan-out of order book and swap events to SSE subscribers."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

if TYPE_CHECKING:
    from seatswap.matching.models import MatchedCycle

logger = logging.getLogger(__name__)

# Events buffered per stream before the oldest are dropped
DEFAULT_QUEUE_SIZE = 1000


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class EventType(str, Enum):
    """Event names as they appear on the ``event:`` line."""

    ORDER_SUBMITTED = "order_submitted"
    ORDER_CANCELLED = "order_cancelled"
    ALL_ORDERS_CANCELLED = "all_orders_cancelled"
    TWO_WAY_SWAP_COMPLETED = "two_way_swap_completed"
    THREE_WAY_SWAP_COMPLETED = "three_way_swap_completed"
    NO_THREE_WAY_SWAP_FOUND = "no_three_way_swap_found"
    HEARTBEAT = "heartbeat"


@dataclass
class Event:
    """One notification; ``participants`` are the identities it concerns."""

    event_type: EventType
    data: dict[str, Any]
    participants: frozenset[str] = frozenset()

    def to_sse(self) -> str:
        return f"event: {self.event_type.value}\ndata: {json.dumps(self.data)}\n\n"


@dataclass
class Subscriber:
    """An open stream, optionally narrowed to one participant."""

    id: str
    queue: asyncio.Queue[Event]
    participant: str | None = None
    loop: asyncio.AbstractEventLoop | None = None
    dropped: int = 0

    @classmethod
    def create(
        cls, participant: str | None = None, maxsize: int = DEFAULT_QUEUE_SIZE
    ) -> Subscriber:
        """New subscriber bound to the running event loop, if there is one."""
        return cls(
            id=str(uuid4()),
            queue=asyncio.Queue(maxsize=maxsize),
            participant=participant,
            loop=_running_loop(),
        )

    def deliver(self, event: Event) -> None:
        """Queue an event; safe to call from threadpool workers."""
        if self.loop is not None and self.loop.is_running() and _running_loop() is not self.loop:
            self.loop.call_soon_threadsafe(self.offer, event)
        else:
            self.offer(event)

    def offer(self, event: Event) -> None:
        """Queue an event on the loop thread, dropping the oldest one when the stream is full."""
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
            logger.warning("Subscriber %s is not keeping up, dropped oldest event", self.id)
        self.queue.put_nowait(event)

    def wants(self, event: Event) -> bool:
        if self.participant is None or event.event_type == EventType.HEARTBEAT:
            return True
        # Pass-level summaries with no participants go to everyone
        return not event.participants or self.participant in event.participants


def _involved(cycles: list[MatchedCycle]) -> frozenset[str]:
    return frozenset().union(*(c.participants for c in cycles))


@dataclass
class EventManager:
    """Keeps the open subscribers and routes each event to those that want it.

    The swap engine publishes from synchronous code (FastAPI runs sync routes on
    a threadpool), so the ``emit_*`` helpers go through ``emit_sync`` and
    ``Subscriber.deliver``.
    """

    _subscribers: dict[str, Subscriber] = field(default_factory=dict)
    heartbeat_interval: float = 30.0
    queue_size: int = DEFAULT_QUEUE_SIZE

    def subscribe(self, participant: str | None = None) -> Subscriber:
        """Open a subscription; ``participant=None`` receives every event."""
        subscriber = Subscriber.create(participant, maxsize=self.queue_size)
        self._subscribers[subscriber.id] = subscriber
        return subscriber

    def unsubscribe(self, subscriber_id: str) -> None:
        self._subscribers.pop(subscriber_id, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _recipients(self, event: Event) -> Iterator[Subscriber]:
        return (s for s in list(self._subscribers.values()) if s.wants(event))

    async def emit(self, event: Event) -> None:
        """Deliver an event from inside the event loop."""
        for subscriber in self._recipients(event):
            subscriber.offer(event)

    def emit_sync(self, event: Event) -> None:
        """Deliver an event from any thread."""
        for subscriber in self._recipients(event):
            subscriber.deliver(event)

    def _publish(
        self,
        event_type: EventType,
        data: dict[str, Any],
        participants: Iterable[str] = (),
    ) -> None:
        event = Event(event_type=event_type, data=data, participants=frozenset(participants))
        self.emit_sync(event)

    def emit_order_submitted(
        self, order_id: int, seat_id: int, requested_course: str, submitter: str
    ) -> None:
        self._publish(
            EventType.ORDER_SUBMITTED,
            {
                "order_id": order_id,
                "seat_id": seat_id,
                "requested_course": requested_course,
                "submitter": submitter,
            },
            [submitter],
        )

    def emit_order_cancelled(
        self, order_id: int, seat_id: int, submitter: str, cancelled_by: str
    ) -> None:
        self._publish(
            EventType.ORDER_CANCELLED,
            {
                "order_id": order_id,
                "seat_id": seat_id,
                "submitter": submitter,
                "cancelled_by": cancelled_by,
            },
            [submitter],
        )

    def emit_all_orders_cancelled(
        self, order_ids: list[int], submitters: Iterable[str], cancelled_by: str
    ) -> None:
        self._publish(
            EventType.ALL_ORDERS_CANCELLED,
            {"order_ids": order_ids, "count": len(order_ids), "cancelled_by": cancelled_by},
            submitters,
        )

    def emit_two_way_swap_completed(self, cycles: list[MatchedCycle]) -> None:
        """Fires after every two-way pass, with an empty ``pairs`` list when nothing matched."""
        self._publish(
            EventType.TWO_WAY_SWAP_COMPLETED,
            {"pairs": [c.to_dict() for c in cycles], "count": len(cycles)},
            _involved(cycles),
        )

    def emit_three_way_swap_completed(self, cycles: list[MatchedCycle], algorithm: str) -> None:
        self._publish(
            EventType.THREE_WAY_SWAP_COMPLETED,
            {
                "cycles": [c.to_dict() for c in cycles],
                "count": len(cycles),
                "algorithm": algorithm,
            },
            _involved(cycles),
        )

    def emit_no_three_way_swap_found(self, algorithm: str, examined: int) -> None:
        self._publish(
            EventType.NO_THREE_WAY_SWAP_FOUND, {"algorithm": algorithm, "examined": examined}
        )

    def create_heartbeat_event(self) -> Event:
        now = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return Event(event_type=EventType.HEARTBEAT, data={"timestamp": now})
