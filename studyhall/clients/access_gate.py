"""
Access Gate
Fingerprint allow-list check run before a page is shown
"""
from dataclasses import dataclass
import logging
import os

from jinja2 import Environment, FileSystemLoader, select_autoescape

from studyhall.services.fingerprint_service import BrowserProperties, compute_fingerprint

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'templates'
)
RESTRICTED_TEMPLATE = 'access_restricted.html'


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    fingerprint: str = None
    reason: str = ''


class AccessGate:
    """Allows a visitor only when its fingerprint is in the allow-list"""

    def __init__(self, allowlist=None, hasher=compute_fingerprint):
        self.allowlist = frozenset(fp.strip().lower() for fp in (allowlist or []) if fp.strip())
        self.hasher = hasher

    @property
    def enabled(self):
        return bool(self.allowlist)

    def check(self, props):
        """
        Decide whether to show the page.

        An empty allow-list disables the gate. Hashing failures fail open.
        """
        if not self.enabled:
            return GateDecision(True, None, 'allow-list empty')

        try:
            if isinstance(props, dict):
                props = BrowserProperties.from_dict(props)
            fingerprint = self.hasher(props)
        except Exception as err:
            logger.error('Fingerprint check failed, allowing access: %s', err)
            return GateDecision(True, None, 'fingerprint error')

        if fingerprint.lower() in self.allowlist:
            return GateDecision(True, fingerprint, 'allowed')

        logger.warning('Access denied for fingerprint %s', fingerprint[:8])
        return GateDecision(False, fingerprint, 'not in allow-list')

    @staticmethod
    def restricted_page():
        """The static "Access Restricted" HTML document"""
        env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape())
        return env.get_template(RESTRICTED_TEMPLATE).render()
