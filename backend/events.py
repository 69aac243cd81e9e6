"""
Live dashboard feed over Server-Sent Events (SSE).

Each SSE client gets its own DashboardController mounted on the entry store.
Every store snapshot re-renders that client's dashboard and queues it; the
async stream generator drains the queue and formats SSE frames.
"""

import asyncio
import json
import logging
import queue
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

from fastapi.concurrency import run_in_threadpool

from config import Settings
from controller import DashboardController
from schemas import DashboardResponse
from store import EntryStore

logger = logging.getLogger(__name__)


def format_sse_event(event_type: str, data: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n"


def format_sse_comment(comment: str) -> str:
    """Format an SSE comment (used for keepalives)."""
    return f": {comment}\n\n"


class DashboardFeed:
    """One client's live view: a mounted controller plus its outgoing queue.

    Only the latest dashboard matters, so when the queue is full the oldest
    pending frame is dropped.
    """

    def __init__(
        self,
        store: EntryStore,
        settings: Settings,
        filter_mode: str = "week",
        selected_date: str | date | None = None,
        active_person: str | None = None,
        maxsize: int = 100,
    ):
        self.events: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=maxsize)
        self.controller = DashboardController(
            store,
            settings,
            filter_mode=filter_mode,
            selected_date=selected_date,
            active_person=active_person,
            on_change=self._push,
        )

    def open(self):
        self.controller.mount()

    def close(self):
        self.controller.unmount()

    def _push(self, view: DashboardResponse):
        event = {"type": "dashboard", "view": view.model_dump(mode="json")}
        while True:
            try:
                self.events.put_nowait(event)
                return
            except queue.Full:
                try:
                    self.events.get_nowait()
                    logger.warning("[Dashboard Feed] Client lagging, dropped a stale frame")
                except queue.Empty:
                    pass


async def generate_sse_stream(
    event_queue: queue.Queue[dict[str, Any]],
    open_callback: Callable[[], None] | None = None,
    cleanup_callback: Callable[[], None] | None = None,
    keepalive_interval: float = 3.0,
    poll_interval: float = 0.1,
) -> AsyncGenerator[str, None]:
    """
    Generate SSE formatted event stream from event queue.

    The open callback (typically the store subscription) runs on the thread
    pool once the client starts reading, inside the same try/finally as the
    cleanup callback. A client that disconnects before the first read never
    subscribes, so there is nothing to leak.

    Sends a "connected" event first, then one frame per queued event, with
    keepalive comments while idle.
    """
    try:
        if open_callback:
            await run_in_threadpool(open_callback)

        yield format_sse_event("connected", {"message": "Connected to dashboard stream"})

        loop = asyncio.get_running_loop()
        last_keepalive = loop.time()

        while True:
            try:
                event = event_queue.get_nowait()
            except queue.Empty:
                now = loop.time()
                if now - last_keepalive >= keepalive_interval:
                    yield format_sse_comment("keepalive")
                    last_keepalive = now
                await asyncio.sleep(poll_interval)
                continue

            yield format_sse_event(event.get("type", "update"), event.get("view", {}))

    finally:
        if cleanup_callback:
            try:
                cleanup_callback()
            except Exception as e:
                logger.error(f"[SSE Stream] Error in cleanup callback: {e}")
