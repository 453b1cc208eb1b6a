"""
Fingerprint Service
Device fingerprint hashing and the server side of fingerprint logging
"""
from dataclasses import dataclass
import hashlib
import logging

from studyhall.errors import ConfigurationError, RateLimitedError, ValidationError
from studyhall.utils import parse_iso, split_ip_versions

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('fp', 'ua', 'lang', 'tz', 'ts', 'url')
ISSUE_LABEL = 'fingerprint-log'


@dataclass(frozen=True)
class BrowserProperties:
    """Browser/environment properties hashed into a fingerprint"""
    user_agent: str = ''
    language: str = ''
    hardware_concurrency: int = None
    device_memory: float = None
    platform: str = ''
    screen_width: int = 0
    screen_height: int = 0
    color_depth: int = None
    timezone_offset: int = 0
    session_storage: bool = True
    local_storage: bool = True
    indexed_db: bool = True
    cookie_enabled: bool = True

    @classmethod
    def from_dict(cls, data):
        """Build from the camelCase keys a browser would send"""
        screen = data.get('screen')
        if not isinstance(screen, dict):
            screen = {}
        return cls(
            user_agent=data.get('userAgent') or '',
            language=data.get('language') or '',
            hardware_concurrency=data.get('hardwareConcurrency'),
            device_memory=data.get('deviceMemory'),
            platform=data.get('platform') or '',
            screen_width=screen.get('width', data.get('screenWidth', 0)),
            screen_height=screen.get('height', data.get('screenHeight', 0)),
            color_depth=screen.get('colorDepth', data.get('colorDepth')),
            timezone_offset=data.get('timezoneOffset', 0),
            session_storage=bool(data.get('sessionStorage', True)),
            local_storage=bool(data.get('localStorage', True)),
            indexed_db=bool(data.get('indexedDB', True)),
            cookie_enabled=bool(data.get('cookieEnabled', True)),
        )


def _text(value, falsy_empty=True):
    """Render a value the way browser string concatenation does"""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None or (falsy_empty and not value):
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def fingerprint_source(props):
    """
    Pipe-joined property string. The field order is fixed: every caller
    must hash the same concatenation for fingerprints to compare equal.
    """
    parts = [
        _text(props.user_agent),
        _text(props.language),
        _text(props.hardware_concurrency),
        _text(props.device_memory),
        _text(props.platform),
        f'{_text(props.screen_width, False)}x{_text(props.screen_height, False)}',
        _text(props.color_depth),
        _text(props.timezone_offset, False),
        _text(props.session_storage),
        _text(props.local_storage),
        _text(props.indexed_db),
        _text(props.cookie_enabled),
    ]
    return '|'.join(parts)


def compute_fingerprint(props):
    """SHA-256 hex digest of the property string"""
    return hashlib.sha256(fingerprint_source(props).encode('utf-8')).hexdigest()


def build_issue(payload, client_ip):
    """Title and markdown body of the GitHub issue recording one visit"""
    name = payload.get('name')
    display_name = f'**Display Name:** {name}\n' if name else ''
    body = (
        '## Fingerprint Log Entry\n\n'
        f"**Timestamp:** {payload['ts']}\n"
        f"**URL:** {payload['url']}\n"
        f"**Client IP:** {client_ip or 'unknown'} *(tracked for information only, not used for blocking)*\n"
        f'{display_name}\n'
        '### Fingerprint Data\n'
        f"- **Hash (SHA-256):** `{payload['fp']}`\n"
        f"- **User Agent:** {payload['ua']}\n"
        f"- **Language:** {payload['lang']}\n"
        f"- **Timezone Offset:** {payload['tz']} minutes\n"
        f"- **Page URL:** {payload['url']}\n\n"
        '---\n'
        '*This issue was automatically created by the fingerprint logger.*\n'
    )

    try:
        when = parse_iso(payload['ts']).strftime('%Y-%m-%d %H:%M:%S UTC')
    except (TypeError, ValueError, OverflowError):
        when = str(payload['ts'])
    title_name = f' ({name})' if name else ''
    title = f"Fingerprint Log: {str(payload['fp'])[:8]}...{title_name} at {when}"
    return title, body


class FingerprintLogService:
    """Validates, rate limits and records fingerprint log submissions"""

    def __init__(self, github, repo, rate_limiter):
        self.github = github
        self.repo = repo
        self.rate_limiter = rate_limiter

    def log(self, payload, client_ip):
        """
        Record one fingerprint visit as a GitHub issue.

        Raises:
            ValidationError: payload is not an object or lacks a field
            RateLimitedError: fingerprint exceeded its request budget
            ConfigurationError: no GitHub token configured
            BackendError: GitHub rejected the issue
        """
        if not isinstance(payload, dict):
            raise ValidationError('Invalid JSON payload')
        for field in REQUIRED_FIELDS:
            if field not in payload:
                raise ValidationError(f'Missing required field: {field}')

        if not self.rate_limiter.hit(str(payload['fp'])):
            logger.warning('Rate limit exceeded for fingerprint %s', str(payload['fp'])[:8])
            raise RateLimitedError('Too many requests. Please try again later.')

        if not self.github.token:
            raise ConfigurationError('Server configuration error. GITHUB_TOKEN not set.')

        title, body = build_issue(payload, client_ip)
        issue = self.github.create_issue(self.repo, title, body, labels=[ISSUE_LABEL])

        ipv4, ipv6 = split_ip_versions(client_ip)
        logger.info('Fingerprint %s logged as issue #%s', str(payload['fp'])[:8], issue.get('number'))
        return {
            'success': True,
            'clientIp': client_ip,
            'ipv4': ipv4,
            'ipv6': ipv6,
            'issueUrl': issue.get('html_url'),
            'issueNumber': issue.get('number'),
        }
