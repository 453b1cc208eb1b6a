"""
Fingerprint Logger
Posts visit fingerprints to the logging endpoint and keeps a local record
"""
import logging
import time

import requests

from studyhall.services.fingerprint_service import BrowserProperties, compute_fingerprint
from studyhall.storage import keys
from studyhall.utils import now_utc, to_iso

logger = logging.getLogger(__name__)

LOCAL_LOG_LIMIT = 50


class FingerprintLogger:
    """Best-effort visit logger; never raises to the page"""

    def __init__(self, endpoint, storage, session=None, sleep=time.sleep,
                 max_retries=2, base_delay=1, max_delay=5, timeout=10):
        self.endpoint = endpoint
        self.storage = storage
        self.session = session or requests.Session()
        self.sleep = sleep
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout

    def retry_delay(self, attempt):
        return min(self.base_delay * 2 ** attempt, self.max_delay)

    def log(self, props, url, name=None):
        """
        Send one visit record.

        Args:
            props: BrowserProperties or the browser's camelCase dict
            url: page URL
            name: optional display name

        Returns:
            dict: endpoint response on success, None otherwise
        """
        try:
            if isinstance(props, dict):
                props = BrowserProperties.from_dict(props)
            fingerprint = compute_fingerprint(props)
        except (TypeError, ValueError, AttributeError) as err:
            logger.warning('Fingerprint computation failed: %s', err)
            return None

        payload = {
            'fp': fingerprint,
            'ua': props.user_agent,
            'lang': props.language,
            'tz': props.timezone_offset,
            'ts': to_iso(now_utc()),
            'url': url,
        }
        if name:
            payload['name'] = name

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.post(self.endpoint, json=payload, timeout=self.timeout)
            except requests.RequestException as err:
                logger.warning('Fingerprint log attempt %d failed: %s', attempt + 1, err)
            else:
                if response.status_code == 429:
                    logger.warning('Fingerprint log rate limited')
                    self._record(payload, status='rate_limited')
                    return None
                if response.ok:
                    try:
                        data = response.json()
                    except ValueError:
                        data = {}
                    self._record(payload, status='logged', result=data)
                    return data
                logger.warning('Fingerprint log attempt %d failed: HTTP %s',
                               attempt + 1, response.status_code)

            if attempt < self.max_retries:
                self.sleep(self.retry_delay(attempt))

        logger.error('Fingerprint log failed after %d attempts', self.max_retries + 1)
        return None

    def _record(self, payload, status, result=None):
        entry = {
            'fingerprint': payload['fp'],
            'url': payload['url'],
            'name': payload.get('name'),
            'timestamp': payload['ts'],
            'status': status,
        }
        if result:
            entry['clientIp'] = result.get('clientIp')
            entry['ipv4'] = result.get('ipv4')
            entry['ipv6'] = result.get('ipv6')
            entry['issueUrl'] = result.get('issueUrl')

        logs = self.storage.get_json(keys.FINGERPRINT_LOGS, [])
        if not isinstance(logs, list):
            logs = []
        logs.append(entry)
        if not self.storage.set_json(keys.FINGERPRINT_LOGS, logs[-LOCAL_LOG_LIMIT:]):
            logger.warning('Failed to save fingerprint log locally')

    def local_logs(self):
        logs = self.storage.get_json(keys.FINGERPRINT_LOGS, [])
        return logs if isinstance(logs, list) else []
