# =======================================================================================
# keycustody/services/change_feed.py - Live Change Notifications
# =======================================================================================
import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from ..models.enums import ChangeKind, CollectionName
from ..models.schemas import ChangeEvent

logger = logging.getLogger(__name__)

Listener = Callable[[ChangeEvent], None]


class Subscription:
    """One listener attached to one collection."""

    def __init__(self, feed: "ChangeFeed", collection: str, listener: Listener):
        self.feed = feed
        self.collection = collection
        self._listener = listener
        self.active = True

    def deliver(self, event: ChangeEvent):
        if self.active:
            self._listener(event)

    def close(self):
        if self.active:
            self.active = False
            self.feed._remove(self)


class QueueSubscription(Subscription):
    """
    Subscription that hands events to an asyncio queue owned by a running loop.
    Publishers may call deliver() from any thread.
    """

    def __init__(self, feed: "ChangeFeed", collection: str, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._queue: "asyncio.Queue[ChangeEvent]" = asyncio.Queue()
        super().__init__(feed, collection, self._enqueue)

    def _enqueue(self, event: ChangeEvent):
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
        except RuntimeError:
            # loop already closed; nobody is listening anymore
            self.close()

    async def next_event(self) -> ChangeEvent:
        return await self._queue.get()


class ChangeFeed:
    """Delivers committed-write events per collection to subscribed views."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, List[Subscription]] = {}

    def listen(self, collection: str, listener: Listener) -> Subscription:
        """Attach a plain callback, invoked on the publishing thread."""
        subscription = Subscription(self, _name(collection), listener)
        self._add(subscription)
        return subscription

    def subscribe(self, collection: str) -> QueueSubscription:
        """Attach a queue consumed from the current event loop."""
        subscription = QueueSubscription(self, _name(collection), asyncio.get_running_loop())
        self._add(subscription)
        return subscription

    def publish(self, collection: str, kind: ChangeKind, doc_id: str, at: Optional[datetime] = None):
        event = ChangeEvent(
            collection=_name(collection),
            kind=kind,
            docId=doc_id,
            at=at or datetime.now(timezone.utc),
        )
        with self._lock:
            targets = list(self._subscriptions.get(event.collection, ()))

        logger.debug("change %s/%s %s -> %d listener(s)", event.collection, doc_id, kind, len(targets))
        for subscription in targets:
            try:
                subscription.deliver(event)
            except Exception:
                logger.exception("Change listener failed for %s", event.collection)

    def listener_count(self, collection: str) -> int:
        with self._lock:
            return len(self._subscriptions.get(_name(collection), ()))

    def _add(self, subscription: Subscription):
        with self._lock:
            self._subscriptions.setdefault(subscription.collection, []).append(subscription)

    def _remove(self, subscription: Subscription):
        with self._lock:
            listeners = self._subscriptions.get(subscription.collection, [])
            if subscription in listeners:
                listeners.remove(subscription)


def _name(collection) -> str:
    return collection.value if isinstance(collection, CollectionName) else str(collection)


# Global change feed instance
change_feed = ChangeFeed()
