"""
Chat Widget
Feed listener with unread tracking, rendering, and validated sending
"""
from datetime import datetime, timezone
import logging

import requests
from markupsafe import escape

from studyhall.errors import AuthorizationError, BackendError
from studyhall.services.chat_service import build_reply_preview, validate_message_text
from studyhall.storage import keys
from studyhall.utils import parse_iso, to_iso

logger = logging.getLogger(__name__)


def format_timestamp(timestamp, now=None):
    """Relative age: "Just now", "5m ago", "3h ago", "2d ago", then "M/D" """
    if not timestamp:
        return ''
    now = now or datetime.now(timezone.utc)
    seconds = (now - timestamp).total_seconds()

    if seconds < 60:
        return 'Just now'
    if seconds < 3600:
        return f'{int(seconds // 60)}m ago'
    if seconds < 86400:
        return f'{int(seconds // 3600)}h ago'
    if seconds < 604800:
        return f'{int(seconds // 86400)}d ago'
    return f'{timestamp.month}/{timestamp.day}'


class HttpChatBackend:
    """Chat REST endpoints of the site"""

    def __init__(self, base_url, session=None, admin_token=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.admin_token = admin_token
        self.timeout = timeout

    def send(self, username, text, reply_to_id=None):
        payload = {'username': username, 'message': text}
        if reply_to_id:
            payload['replyTo'] = reply_to_id
        try:
            response = self.session.post(f'{self.base_url}/api/chat/messages',
                                         json=payload, timeout=self.timeout)
        except requests.RequestException as err:
            raise BackendError(f'Failed to send message: {err}')
        if response.status_code != 201:
            raise BackendError(f'Failed to send message: HTTP {response.status_code}')
        return response.json()

    def delete(self, message_id):
        headers = {'X-Admin-Session': self.admin_token} if self.admin_token else {}
        try:
            response = self.session.delete(f'{self.base_url}/api/chat/messages/{message_id}',
                                           params={'confirm': 'true'}, headers=headers,
                                           timeout=self.timeout)
        except requests.RequestException as err:
            raise BackendError(f'Failed to delete message: {err}')
        if response.status_code == 403:
            raise AuthorizationError('Access denied: only admins can delete messages')
        return response.ok


class ChatWidget:
    """
    Chat panel state.

    `feed` must offer subscribe(callback) returning a handle with stop();
    `sender` offers send(username, text, reply_to_id) and delete(message_id);
    `admin_check` resolves whether the current user may delete messages.
    """

    def __init__(self, feed, storage, sender, admin_check=None, clock=None):
        self.feed = feed
        self.storage = storage
        self.sender = sender
        self.admin_check = admin_check or (lambda: False)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.subscription = None
        self.messages = []
        self.unread_count = 0
        self.is_open = False
        self.last_read = self._load_last_read()
        self._render = None

    def _load_last_read(self):
        stored = self.storage.get_item(keys.CHAT_LAST_READ)
        if not stored:
            return None
        try:
            return parse_iso(stored)
        except ValueError:
            return None

    def username(self):
        return self.storage.get_item(keys.USERNAME) or 'Anonymous'

    # ================= FEED =================

    def start(self, render=None):
        """Subscribe to the feed, dropping any earlier subscription first"""
        self.stop()
        self._render = render
        self.subscription = self.feed.subscribe(self._on_snapshot)
        return self.subscription

    def stop(self):
        if self.subscription is not None:
            self.subscription.stop()
            self.subscription = None

    def _on_snapshot(self, snapshot):
        messages = []
        unread = 0
        for raw in snapshot:
            message = dict(raw)
            try:
                message['timestamp'] = parse_iso(raw['timestamp']) if raw.get('timestamp') else None
            except ValueError:
                message['timestamp'] = None
            messages.append(message)

            if (self.last_read and message['timestamp'] and not self.is_open
                    and message['timestamp'] > self.last_read):
                unread += 1

        # Feed arrives newest first; panel shows oldest first
        messages.reverse()
        self.messages = messages
        self.unread_count = unread
        if self._render is not None:
            self._render(messages)

    # ================= PANEL =================

    def open(self):
        self.is_open = True
        self.mark_as_read()

    def close(self):
        self.is_open = False

    def toggle(self):
        if self.is_open:
            self.close()
        else:
            self.open()

    def mark_as_read(self):
        self.last_read = self._clock()
        self.unread_count = 0
        if not self.storage.set_item(keys.CHAT_LAST_READ, to_iso(self.last_read)):
            logger.warning('Failed to save last read timestamp')

    def badge_text(self):
        if self.unread_count <= 0:
            return ''
        return '9+' if self.unread_count > 9 else str(self.unread_count)

    # ================= ACTIONS =================

    def send(self, text, reply_to=None):
        """
        Validate locally, then hand the message to the sender.

        Raises:
            ValidationError: empty or over-long text (the sender is not called)
        """
        text = validate_message_text(text)
        reply_to_id = build_reply_preview(reply_to)['id'] if reply_to else None
        return self.sender.send(self.username(), text, reply_to_id)

    def delete(self, message_id, confirm):
        """
        Delete a message after an interactive confirmation.

        Returns:
            bool: False when the user declined
        """
        if not self.admin_check():
            raise AuthorizationError('Access denied: only admins can delete messages')
        if not confirm():
            return False
        return bool(self.sender.delete(message_id))

    # ================= RENDERING =================

    def render_html(self, messages=None, now=None):
        """HTML for the message list with all user text escaped"""
        messages = self.messages if messages is None else messages
        current = self.username()
        now = now or self._clock()

        parts = []
        for msg in messages:
            css = 'chat-message-own' if msg.get('username') == current else 'chat-message-other'
            parts.append(f'<div class="chat-message {css}" data-id="{escape(msg.get("id", ""))}">')
            reply = msg.get('replyTo')
            if reply:
                parts.append(
                    '<div class="chat-reply-preview">'
                    f'<span class="chat-reply-username">{escape(reply.get("username") or "")}</span> '
                    f'{escape(reply.get("messagePreview") or "")}</div>'
                )
            parts.append('<div class="chat-message-header">')
            parts.append(f'<span class="chat-message-username">{escape(msg.get("username") or "")}</span>')
            parts.append(f'<span class="chat-message-time">{format_timestamp(msg.get("timestamp"), now)}</span>')
            parts.append('</div>')
            parts.append(f'<div class="chat-message-text">{escape(msg.get("message") or "")}</div>')
            parts.append('</div>')

        if not parts:
            return '<div class="chat-empty">No messages yet. Start the conversation!</div>'
        return ''.join(parts)
