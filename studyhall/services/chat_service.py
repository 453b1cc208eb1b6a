"""
Chat Service
Message validation, storage and the live feed snapshot
"""
import json
import logging

from flask import current_app

from studyhall.errors import AuthorizationError, NotFoundError, ValidationError
from studyhall.extensions import db
from studyhall.models import ChatMessage
from studyhall.models.message import MAX_MESSAGE_LENGTH
from studyhall.utils import sanitize_username
from studyhall.services.admin_service import AdminService

logger = logging.getLogger(__name__)

FEED_LIMIT = 50
PREVIEW_LENGTH = 100


def validate_message_text(text):
    """
    Trimmed message text.

    Raises:
        ValidationError: not a string, empty, or longer than 500 characters
    """
    if not isinstance(text, str):
        raise ValidationError('Invalid message')
    text = text.strip()
    if not text:
        raise ValidationError('Message cannot be empty')
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f'Message too long (max {MAX_MESSAGE_LENGTH} characters)')
    return text


def build_reply_preview(message):
    """Reply reference {id, username, messagePreview} with the text cut to 100 chars"""
    text = message.get('message') or ''
    return {
        'id': str(message['id']),
        'username': message.get('username'),
        'messagePreview': text[:PREVIEW_LENGTH],
    }


def get_hub():
    return current_app.extensions['message_hub']


class ChatService:
    """Chat message storage"""

    @staticmethod
    def send(username, text, reply_to_id=None):
        """Validate and store a message, then publish the new feed snapshot"""
        text = validate_message_text(text)
        username = sanitize_username(username, fallback='Anonymous')

        reply_to = None
        if reply_to_id:
            target = ChatService._find(reply_to_id)
            if target is None:
                raise ValidationError('Message being replied to no longer exists')
            reply_to = json.dumps(build_reply_preview(target.to_dict()))

        message = ChatMessage(username=username, message=text, reply_to=reply_to)
        db.session.add(message)
        db.session.commit()
        logger.debug('Chat message %s from %s', message.id, username)

        ChatService.publish()
        return message

    @staticmethod
    def recent(limit=FEED_LIMIT):
        """Most recent messages, newest first"""
        return ChatMessage.query.order_by(ChatMessage.timestamp.desc(), ChatMessage.id.desc())\
            .limit(limit).all()

    @staticmethod
    def snapshot(limit=FEED_LIMIT):
        return [m.to_dict() for m in ChatService.recent(limit)]

    @staticmethod
    def publish():
        get_hub().publish(ChatService.snapshot())

    @staticmethod
    def delete(message_id, actor, confirmed=False, ip=None):
        """
        Remove a message on behalf of an admin.

        Raises:
            AuthorizationError: actor is not a resolved admin
            ValidationError: deletion was not confirmed
            NotFoundError: no such message
        """
        if not actor:
            raise AuthorizationError('Access denied: only admins can delete messages')
        if not confirmed:
            raise ValidationError('Deletion must be confirmed')

        message = ChatService._find(message_id)
        if message is None:
            raise NotFoundError(f'Message not found: {message_id}')

        db.session.delete(message)
        db.session.commit()
        AdminService.log_action(actor, f'deleteMessage: {message_id}', ip=ip)

        ChatService.publish()
        return True

    @staticmethod
    def _find(message_id):
        try:
            return db.session.get(ChatMessage, int(message_id))
        except (TypeError, ValueError):
            return None
