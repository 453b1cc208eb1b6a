"""
Avatar Service
Generated initials avatars and profile picture validation
"""
import base64
import re
from urllib.parse import urlparse

from studyhall.errors import ValidationError
from studyhall.extensions import db
from studyhall.models import UserProfile
from studyhall.utils import sanitize_username

PALETTE = [
    '#667eea', '#764ba2', '#f093fb', '#4facfe',
    '#43e97b', '#fa709a', '#fee140', '#30cfd0',
    '#a8edea', '#fed6e3', '#c471f5', '#17ead9',
    '#6a11cb', '#ff6a00', '#ee0979', '#00c6ff',
]

_IMAGE_EXT_RE = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)(\?|$)', re.IGNORECASE)
_IMAGE_HOST_RE = re.compile(
    r'^https?://(.*\.)?(imgur\.com|cloudinary\.com|googleusercontent\.com|githubusercontent\.com|gravatar\.com)',
    re.IGNORECASE,
)
_NON_WORD_RE = re.compile(r'[^a-zA-Z0-9\s]')


def _int32(value):
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def username_hash(username):
    """32-bit `hash * 31 + code` string hash over UTF-16 code units"""
    h = 0
    raw = username.encode('utf-16-le')
    for i in range(0, len(raw), 2):
        code = raw[i] | (raw[i + 1] << 8)
        h = _int32(code + (_int32(h << 5) - h))
    return h


def color_index(username):
    """Palette index for a username; deterministic, 0 for empty names"""
    if not username:
        return 0
    return abs(username_hash(username)) % len(PALETTE)


def color_for_username(username):
    return PALETTE[color_index(username)]


def initials(username):
    """Up to two upper-case initials ("Jane Doe" -> "JD", "jane" -> "JA")"""
    if not username:
        return '?'
    words = re.split(r'\s+', _NON_WORD_RE.sub('', username))
    if len(words) == 1:
        return words[0][:2].upper()
    return (words[0][:1] + words[1][:1]).upper()


def avatar_data_url(username):
    """SVG initials avatar as a base64 data URL"""
    username = username or 'Anonymous'
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="40" height="40" viewBox="0 0 40 40">'
        f'<rect width="40" height="40" fill="{color_for_username(username)}"/>'
        '<text x="50%" y="50%" text-anchor="middle" dy=".35em" fill="white" '
        'font-family="Arial, sans-serif" font-size="16" font-weight="bold">'
        f'{initials(username)}'
        '</text>'
        '</svg>'
    )
    return 'data:image/svg+xml;base64,' + base64.b64encode(svg.encode('utf-8')).decode('ascii')


def is_valid_image_url(url):
    """data:image URLs, URLs ending in an image extension, or known image hosts"""
    if not url or not isinstance(url, str):
        return False
    if url.startswith('data:image/'):
        return True
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return False
    return bool(_IMAGE_EXT_RE.search(url) or _IMAGE_HOST_RE.match(url))


class AvatarService:
    """Profile picture storage"""

    @staticmethod
    def set_photo(username, url):
        """Save (or clear, with an empty url) a user's profile picture"""
        clean = sanitize_username(username)
        if not clean:
            raise ValidationError('A username is required')

        url = (url or '').strip()
        if url and not is_valid_image_url(url):
            raise ValidationError('Please enter a valid image URL (jpg, png, gif, webp, svg)')

        profile = UserProfile.query.filter_by(username=clean).first()
        if profile is None:
            profile = UserProfile(username=clean)
            db.session.add(profile)
        profile.photo_url = url or None
        db.session.commit()
        return profile

    @staticmethod
    def avatar_url(username):
        """Custom picture when one is saved, generated avatar otherwise"""
        profile = UserProfile.query.filter_by(username=username).first()
        if profile and profile.photo_url:
            return profile.photo_url
        return avatar_data_url(username)
