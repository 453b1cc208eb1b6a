"""
Leaderboard Client
Browser-side leaderboard helper: local attempt history, optional backend,
sample data when no backend is configured
"""
import json
import logging
import numbers
import os

import requests

from studyhall.storage import keys
from studyhall.utils import now_utc, to_iso, sanitize_username

logger = logging.getLogger(__name__)

LOCAL_ATTEMPT_LIMIT = 100
DEFAULT_SAMPLE_DATA_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    'data', 'leaderboard-sample.json',
)


class LeaderboardClient:
    """Leaderboard widget backed by a REST backend, or by local storage only"""

    def __init__(self, storage, backend_url=None, session=None, sample_data=None,
                 sample_data_path=None, top_n=10, timeout=10):
        self.storage = storage
        self.backend_url = backend_url.rstrip('/') if backend_url else None
        self.session = session or requests.Session()
        self.top_n = top_n
        self.timeout = timeout
        self._sample_data = sample_data
        self._sample_data_path = sample_data_path or DEFAULT_SAMPLE_DATA_PATH

    # ================= USERNAME =================

    def username(self, new_username=None):
        """Get the stored username, or store a sanitized new one and return it"""
        if isinstance(new_username, str) and new_username.strip():
            sanitized = sanitize_username(new_username, fallback='Anonymous')
            if not self.storage.set_item(keys.USERNAME, sanitized):
                logger.warning('Failed to save username')
            return sanitized
        return self.storage.get_item(keys.USERNAME)

    # ================= ATTEMPTS =================

    @staticmethod
    def is_valid_attempt(attempt):
        if not isinstance(attempt, dict):
            return False
        score = attempt.get('score')
        return bool(
            attempt.get('username') and attempt.get('moduleId') and attempt.get('examId')
            and isinstance(score, numbers.Real) and not isinstance(score, bool)
        )

    def submit_attempt(self, attempt):
        """
        Save the attempt locally and forward it to the backend when configured.

        Returns:
            bool: False for invalid data or a failed backend call
        """
        if not self.is_valid_attempt(attempt):
            logger.error('Invalid attempt data: %s', attempt)
            return False

        attempt = dict(attempt)
        attempt['timestamp'] = to_iso(now_utc())
        self._save_locally(attempt)

        if not self.backend_url:
            logger.info('No backend configured. Attempt saved locally only.')
            return True

        try:
            response = self.session.post(
                f'{self.backend_url}/api/attempts', json=attempt, timeout=self.timeout
            )
        except requests.RequestException as err:
            logger.error('Failed to submit to backend: %s', err)
            return False
        return response.ok

    def _save_locally(self, attempt):
        attempts = self.storage.get_json(keys.LEADERBOARD_ATTEMPTS, [])
        if not isinstance(attempts, list):
            attempts = []
        attempts.append(attempt)
        if not self.storage.set_json(keys.LEADERBOARD_ATTEMPTS, attempts[-LOCAL_ATTEMPT_LIMIT:]):
            logger.warning('Failed to save attempt locally')

    def local_attempts(self):
        attempts = self.storage.get_json(keys.LEADERBOARD_ATTEMPTS, [])
        return attempts if isinstance(attempts, list) else []

    # ================= LEADERBOARD =================

    def fetch_leaderboard(self, module_id):
        """Top entries for a module from the backend, else from sample data"""
        if self.backend_url:
            try:
                response = self.session.get(
                    f'{self.backend_url}/api/leaderboard/{module_id}',
                    params={'limit': self.top_n},
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError('leaderboard response is not an object')
                return data.get('entries', [])[:self.top_n]
            except (requests.RequestException, ValueError) as err:
                logger.warning('Failed to fetch from backend, falling back to sample data: %s', err)

        return self.sample_data().get(module_id, [])[:self.top_n]

    def sample_data(self):
        """Sample leaderboards keyed by module id ({} when unavailable)"""
        if self._sample_data is None:
            self._sample_data = {}
            if self._sample_data_path:
                try:
                    with open(self._sample_data_path, encoding='utf-8') as fh:
                        self._sample_data = json.load(fh)
                except (OSError, ValueError) as err:
                    logger.warning('Failed to load sample data: %s', err)
        return self._sample_data
