import json
import queue
import threading
from datetime import datetime, timezone

CHANGE_EVENT = "change"


class EventBus:
    """In-memory pub/sub for change notifications. Each subscriber gets a Queue.

    Subscribers may restrict themselves to a set of table names; they then
    only receive ``change`` events for those tables.
    """

    def __init__(self, maxsize=50):
        self._subscribers = []
        self._maxsize = maxsize
        self._lock = threading.Lock()

    def configure(self, maxsize):
        """Set the queue size used for subscribers created from now on."""
        self._maxsize = maxsize

    def subscribe(self, tables=None):
        """Create a new subscriber queue."""
        q = queue.Queue(maxsize=self._maxsize)
        wanted = frozenset(tables) if tables else None
        with self._lock:
            self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q):
        """Remove a subscriber queue."""
        with self._lock:
            self._subscribers = [(s, w) for s, w in self._subscribers if s is not q]

    def publish(self, event_type, data):
        """Push event to all interested subscribers. Drops full queues."""
        event = {
            "type": event_type,
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        msg = json.dumps(event)
        table = data.get("table") if event_type == CHANGE_EVENT else None
        with self._lock:
            dead = []
            for q, wanted in self._subscribers:
                if wanted is not None and table not in wanted:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    dead.append(q)
            if dead:
                self._subscribers = [
                    (s, w) for s, w in self._subscribers if s not in dead
                ]

    def notify_change(self, table):
        """Signal that something in ``table`` changed. Consumers re-fetch."""
        self.publish(CHANGE_EVENT, {"table": table})

    def is_subscribed(self, q):
        with self._lock:
            return any(s is q for s, _ in self._subscribers)

    @property
    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)

    def clear(self):
        """Remove all subscribers. Used in tests."""
        with self._lock:
            self._subscribers.clear()


event_bus = EventBus()
