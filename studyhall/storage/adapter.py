"""
Storage Adapter
Safe wrapper around a key/value backend: errors become defaults,
quota overflow triggers a cleanup and one retry
"""
import json
import logging
from datetime import datetime, timezone, timedelta

from studyhall.storage import keys
from studyhall.storage.backends import QuotaExceededError

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_KEYS = (keys.FINGERPRINT_LOGS, keys.EXAM_ATTEMPTS, keys.LEADERBOARD_ATTEMPTS)
TEST_KEY = '__storage_test__'


def _parse_timestamp(value):
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class StorageAdapter:
    """localStorage-style adapter with error handling and quota cleanup"""

    def __init__(self, backend, clock=None):
        self.backend = backend
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_item(self, key, default=None):
        """Stored string or default when missing or unreadable"""
        try:
            value = self.backend.get_item(key)
        except Exception as err:
            logger.warning('storage get_item failed for key "%s": %s', key, err)
            return default
        return value if value is not None else default

    def get_json(self, key, default=None):
        """Parsed JSON value or default when missing, unreadable or corrupt"""
        try:
            value = self.backend.get_item(key)
            return json.loads(value) if value is not None else default
        except Exception as err:
            logger.warning('storage get_json failed for key "%s": %s', key, err)
            return default

    def set_item(self, key, value):
        """Store a string; returns success flag"""
        try:
            self.backend.set_item(key, value)
            return True
        except QuotaExceededError:
            logger.error('storage quota exceeded, attempting cleanup')
            self.cleanup()
            try:
                self.backend.set_item(key, value)
                return True
            except Exception as retry_err:
                logger.error('storage set_item failed after cleanup: %s', retry_err)
                return False
        except Exception as err:
            logger.error('storage set_item failed for key "%s": %s', key, err)
            return False

    def set_json(self, key, value):
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as err:
            logger.error('storage set_json failed for key "%s": %s', key, err)
            return False
        return self.set_item(key, payload)

    def remove_item(self, key):
        try:
            self.backend.remove_item(key)
            return True
        except Exception as err:
            logger.error('storage remove_item failed for key "%s": %s', key, err)
            return False

    def is_available(self):
        try:
            self.backend.set_item(TEST_KEY, 'test')
            self.backend.remove_item(TEST_KEY)
            return True
        except Exception:
            return False

    def cleanup(self, keys_to_check=DEFAULT_CLEANUP_KEYS, max_age_days=30):
        """
        Drop timestamped entries older than max_age_days from JSON arrays.

        Entries without a timestamp are kept.

        Returns:
            int: number of removed entries
        """
        cutoff = self._clock() - timedelta(days=max_age_days)
        cleaned = 0

        for key in keys_to_check:
            data = self.get_json(key)
            if not isinstance(data, list):
                continue

            kept = []
            for item in data:
                stamp = item.get('timestamp') if isinstance(item, dict) else None
                if stamp is None:
                    kept.append(item)
                    continue
                try:
                    if _parse_timestamp(stamp) >= cutoff:
                        kept.append(item)
                except (TypeError, ValueError):
                    kept.append(item)

            if len(kept) < len(data):
                # Direct backend write: a failing write must not recurse into cleanup
                try:
                    self.backend.set_item(key, json.dumps(kept))
                    cleaned += len(data) - len(kept)
                except Exception as err:
                    logger.warning('cleanup failed for key "%s": %s', key, err)

        if cleaned:
            logger.info('storage cleanup: removed %d old entries', cleaned)
        return cleaned

    def usage_stats(self):
        """Size summary of the store, or None when it cannot be read"""
        try:
            sizes = []
            for key in self.backend.keys():
                value = self.backend.get_item(key) or ''
                sizes.append({'key': key, 'size': len(value.encode('utf-8'))})
        except Exception as err:
            logger.error('failed to get storage usage stats: %s', err)
            return None

        sizes.sort(key=lambda item: item['size'], reverse=True)
        total = sum(item['size'] for item in sizes)
        quota = getattr(self.backend, 'quota_bytes', 5 * 1024 * 1024)
        return {
            'totalSize': total,
            'itemCount': len(sizes),
            'largestItems': sizes[:5],
            'estimatedQuota': quota,
            'percentUsed': round(total / quota * 100) if quota else 0,
        }
