"""Real-time status channel (Server-Sent Events).

Every StatusEvent published by the handlers is pushed to every connected
client as an SSE event named ``status`` with JSON data ``{action, message}``.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from sse_starlette.sse import EventSourceResponse

from app.core.dependencies import get_broadcaster
from app.gateway.broadcaster import StatusBroadcaster

logger = logging.getLogger(__name__)

router = APIRouter(tags=["status"])

# How often the generator wakes up to notice a disconnected client
_POLL_SECONDS = 15.0


async def status_stream(request: Request, broadcaster: StatusBroadcaster) -> AsyncIterator[dict]:
    async with broadcaster.subscribe() as sub:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(sub.get(), timeout=_POLL_SECONDS)
            except asyncio.TimeoutError:
                continue
            yield {"event": "status", "data": json.dumps(event.to_dict(), ensure_ascii=False)}


@router.get("/events")
async def events(request: Request, broadcaster: StatusBroadcaster = Depends(get_broadcaster)):
    return EventSourceResponse(status_stream(request, broadcaster), ping=20)
