"""Live order and swap notifications over Server-Sent Events."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from seatswap.api.dependencies import EventManagerDep

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from seatswap.api.events import EventManager, Subscriber

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # nginx
}

router = APIRouter(prefix="/events", tags=["events"])


async def _frames(event_manager: EventManager, subscriber: Subscriber) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber, a heartbeat whenever the queue stays idle."""
    try:
        while True:
            try:
                event = await asyncio.wait_for(
                    subscriber.queue.get(), timeout=event_manager.heartbeat_interval
                )
            except TimeoutError:
                event = event_manager.create_heartbeat_event()
            yield event.to_sse()
    finally:
        event_manager.unsubscribe(subscriber.id)


@router.get("/stream")
async def event_stream(
    event_manager: EventManagerDep,
    participant: str | None = Query(
        default=None, description="Only events involving this participant"
    ),
) -> StreamingResponse:
    """Stream order book and swap events.

    With ``participant`` set, the stream carries that participant's own order
    events, the swaps they take part in, and pass summaries. Without it every
    event is sent.
    """
    subscriber = event_manager.subscribe(participant)
    return StreamingResponse(
        _frames(event_manager, subscriber),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
