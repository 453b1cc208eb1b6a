"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
import ipaddress
import math
import re

import pytz

_TAG_RE = re.compile('<[^>]*>')
_UNSAFE_CHARS_RE = re.compile('[<>"\'`&]')
USERNAME_MAX_LENGTH = 30


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def to_iso(dt):
    """Canonical UTC ISO-8601 string with millisecond precision and Z suffix"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f'{dt.microsecond // 1000:03d}Z'


def parse_iso(value):
    """
    Parse an ISO-8601 string (a trailing Z is accepted) or epoch milliseconds.
    Naive values are taken as UTC.

    Raises:
        ValueError: unparseable value
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_to_local(utc_dt, tz_name='UTC'):
    """Convert UTC datetime to the configured display timezone"""
    if not utc_dt:
        return None
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=pytz.utc)
    return utc_dt.astimezone(pytz.timezone(tz_name))


def strip_html_tags(html_text):
    """Strip HTML tags from text"""
    if not html_text:
        return ""
    return _TAG_RE.sub('', html_text)


def sanitize_username(name, fallback=None):
    """
    Remove tags and HTML-significant characters, trim, cut to 30 chars.
    Returns fallback when nothing usable is left.
    """
    if not name or not isinstance(name, str):
        return fallback
    cleaned = _UNSAFE_CHARS_RE.sub('', strip_html_tags(name)).strip()
    cleaned = cleaned[:USERNAME_MAX_LENGTH].strip()
    return cleaned or fallback


def client_ip(headers, remote_addr=None):
    """Client address from proxy headers, falling back to the socket peer"""
    for header in ('X-Forwarded-For', 'X-Real-Ip', 'Client-Ip'):
        value = headers.get(header)
        if value:
            return value.strip()
    return remote_addr or 'unknown'


def split_ip_versions(raw):
    """
    First IPv4 and first IPv6 address found in a comma separated
    forwarded-for value. Either may be None.
    """
    ipv4 = ipv6 = None
    for part in (raw or '').split(','):
        candidate = part.strip()
        try:
            address = ipaddress.ip_address(candidate)
        except ValueError:
            continue
        if address.version == 4 and ipv4 is None:
            ipv4 = candidate
        elif address.version == 6 and ipv6 is None:
            ipv6 = candidate
    return ipv4, ipv6


def round_half_up(value):
    """Round .5 up, matching browser Math.round"""
    return int(math.floor(value + 0.5))
