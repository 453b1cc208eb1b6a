"""
Message Hub
In-process publish/subscribe feed with cancellable subscriptions
"""
import logging
from threading import Lock

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by MessageHub.subscribe; stop() detaches the callback"""

    def __init__(self, hub, callback):
        self._hub = hub
        self.callback = callback
        self.active = True

    def stop(self):
        """Detach from the hub. Safe to call more than once."""
        if self.active:
            self.active = False
            self._hub._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.stop()


class MessageHub:
    """Fan-out of message snapshots to registered callbacks"""

    def __init__(self):
        self._subscriptions = []
        self._lock = Lock()
        self._last_snapshot = None

    def subscribe(self, callback, replay=True):
        """
        Register a callback receiving every published snapshot.
        When replay is set and a snapshot was already published,
        the callback receives it immediately.
        """
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
            snapshot = self._last_snapshot
        if replay and snapshot is not None:
            callback(list(snapshot))
        return subscription

    def publish(self, snapshot):
        """Deliver a snapshot to subscribers in registration order"""
        with self._lock:
            self._last_snapshot = list(snapshot)
            subscribers = list(self._subscriptions)
        for subscription in subscribers:
            if not subscription.active:
                continue
            try:
                subscription.callback(list(snapshot))
            except Exception:
                logger.exception("Chat subscriber failed")

    def subscriber_count(self):
        with self._lock:
            return len(self._subscriptions)

    def _remove(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
