# =======================================================================================
# keycustody/views/live.py - Live Projection over WebSocket
# =======================================================================================
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool
from ..models.enums import CollectionName
from ..services.change_feed import ChangeFeed

logger = logging.getLogger(__name__)


class LiveView(ABC):
    """A view that re-renders whenever its collection changes or its filters do."""

    collection: CollectionName

    @abstractmethod
    def refresh(self):
        """Reload the raw snapshot from the store (blocking)."""

    @abstractmethod
    def apply_filters(self, changes: Dict[str, Any]):
        """Merge filter changes; raises ValidationError on bad input."""

    @abstractmethod
    def render(self) -> BaseModel:
        pass


async def serve_live_view(websocket: WebSocket, view: LiveView, feed: ChangeFeed):
    """
    Push the view after connect, after each change event on its collection
    and after each filter message. The view is the only listener it owns.
    """
    await websocket.accept()
    subscription = feed.subscribe(view.collection)
    receive = change = None
    try:
        await run_in_threadpool(view.refresh)
        await websocket.send_text(view.render().model_dump_json())

        receive = asyncio.ensure_future(websocket.receive_text())
        change = asyncio.ensure_future(subscription.next_event())
        while True:
            done, _ = await asyncio.wait({receive, change}, return_when=asyncio.FIRST_COMPLETED)

            changed = change in done
            if changed:
                event = change.result()
                logger.debug("%s view refresh on %s %s", view.collection.value, event.kind, event.docId)
                await run_in_threadpool(view.refresh)
                change = asyncio.ensure_future(subscription.next_event())

            if receive in done:
                raw = receive.result()
                receive = asyncio.ensure_future(websocket.receive_text())
                try:
                    message = json.loads(raw)
                    if not isinstance(message, dict):
                        raise ValueError("filters must be a JSON object")
                    view.apply_filters(message)
                except (ValueError, ValidationError) as e:
                    await websocket.send_json({"error": "Invalid filters", "detail": str(e)})
                    if not changed:
                        continue

            await websocket.send_text(view.render().model_dump_json())
    except WebSocketDisconnect:
        logger.debug("%s view disconnected", view.collection.value)
    finally:
        subscription.close()
        for task in (receive, change):
            if task is not None and not task.done():
                task.cancel()
