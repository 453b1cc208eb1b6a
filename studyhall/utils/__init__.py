"""
Utils Package
"""
from studyhall.utils.helpers import (
    now_utc,
    to_iso,
    parse_iso,
    round_half_up,
    utc_to_local,
    strip_html_tags,
    sanitize_username,
    client_ip,
    split_ip_versions,
)
from studyhall.utils.logging_config import configure_logging

__all__ = [
    'now_utc',
    'to_iso',
    'parse_iso',
    'round_half_up',
    'utc_to_local',
    'strip_html_tags',
    'sanitize_username',
    'client_ip',
    'split_ip_versions',
    'configure_logging',
]
