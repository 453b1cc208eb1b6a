"""
Rate Limiter
Sliding-window request counter keyed by an arbitrary string
"""
from threading import Lock
import time


class RateLimiter:
    """
    Allow at most max_requests per key inside window_seconds.

    The key map is pruned of stale keys once it grows past prune_threshold.
    """

    def __init__(self, max_requests=3, window_seconds=60, prune_threshold=1000, clock=None):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prune_threshold = prune_threshold
        self._clock = clock or time.monotonic
        self._hits = {}
        self._lock = Lock()

    def hit(self, key):
        """Record a request; False when the key is over its limit"""
        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            recent = [t for t in self._hits.get(key, []) if t > cutoff]
            if len(recent) >= self.max_requests:
                self._hits[key] = recent
                return False

            recent.append(now)
            self._hits[key] = recent

            if len(self._hits) > self.prune_threshold:
                self._prune(cutoff)
            return True

    def _prune(self, cutoff):
        for key in list(self._hits):
            fresh = [t for t in self._hits[key] if t > cutoff]
            if fresh:
                self._hits[key] = fresh
            else:
                del self._hits[key]

    def __len__(self):
        return len(self._hits)
