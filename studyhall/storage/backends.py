"""
Storage Backends
Key/value stores with a byte quota, behaving like browser localStorage
"""

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024


class QuotaExceededError(Exception):
    """Write would push the store over its byte quota"""


class StorageUnavailableError(Exception):
    """Store is disabled (private browsing, blocked storage)"""


class MemoryBackend:
    """In-memory string store with a quota on total UTF-8 size"""

    def __init__(self, quota_bytes=DEFAULT_QUOTA_BYTES, available=True):
        self.quota_bytes = quota_bytes
        self.available = available
        self._items = {}

    def _check(self):
        if not self.available:
            raise StorageUnavailableError('storage is not available')

    @staticmethod
    def _size(key, value):
        return len(key.encode('utf-8')) + len(value.encode('utf-8'))

    def used_bytes(self):
        return sum(self._size(k, v) for k, v in self._items.items())

    def get_item(self, key):
        self._check()
        return self._items.get(key)

    def set_item(self, key, value):
        self._check()
        value = str(value)
        current = self.used_bytes()
        if key in self._items:
            current -= self._size(key, self._items[key])
        if current + self._size(key, value) > self.quota_bytes:
            raise QuotaExceededError(f'quota of {self.quota_bytes} bytes exceeded')
        self._items[key] = value

    def remove_item(self, key):
        self._check()
        self._items.pop(key, None)

    def keys(self):
        self._check()
        return list(self._items.keys())

    def __len__(self):
        return len(self._items)

    def __contains__(self, key):
        return key in self._items
