import asyncio
import json
from datetime import datetime, timezone
from fastapi import WebSocketDisconnect
from pydantic import BaseModel
from keycustody.models.enums import CollectionName
from keycustody.models.schemas import ChangeEvent
from keycustody.views.live import LiveView, serve_live_view


class Snapshot(BaseModel):
    version: int


class CountingView(LiveView):
    collection = CollectionName.KEY_RECORDS

    def __init__(self):
        self.version = 0

    def refresh(self):
        self.version += 1

    def apply_filters(self, changes):
        raise ValueError("unknown filter")

    def render(self):
        return Snapshot(version=self.version)


class ScriptedSocket:
    def __init__(self, messages):
        self.messages = list(messages)
        self.sent = []

    async def accept(self):
        pass

    async def receive_text(self):
        if not self.messages:
            raise WebSocketDisconnect()
        return self.messages.pop(0)

    async def send_text(self, text):
        self.sent.append(json.loads(text))

    async def send_json(self, data):
        self.sent.append(data)


class ScriptedSubscription:
    def __init__(self, events):
        self.events = list(events)
        self.closed = False

    async def next_event(self):
        if self.events:
            return self.events.pop(0)
        await asyncio.Event().wait()

    def close(self):
        self.closed = True


class ScriptedFeed:
    def __init__(self, subscription):
        self.subscription = subscription

    def subscribe(self, collection):
        return self.subscription


def test_change_is_pushed_when_filter_message_is_invalid():
    event = ChangeEvent(collection="key_records", kind="added", docId="rec1", at=datetime.now(timezone.utc))
    socket = ScriptedSocket(["{not json"])
    subscription = ScriptedSubscription([event])
    view = CountingView()

    asyncio.run(serve_live_view(socket, view, ScriptedFeed(subscription)))

    assert socket.sent[0] == {"version": 1}
    assert socket.sent[1]["error"] == "Invalid filters"
    assert socket.sent[2] == {"version": 2}
    assert subscription.closed
