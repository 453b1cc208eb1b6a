"""
Socket.IO Event Handlers
Live chat feed: join, send and admin delete
"""
import logging

from flask import current_app, request
from flask_socketio import emit, join_room

from studyhall.errors import StudyHallError
from studyhall.extensions import socketio
from studyhall.services import ChatService
from studyhall.utils.auth import current_admin

logger = logging.getLogger(__name__)

CHAT_ROOM = 'chat'


def broadcast_snapshot(snapshot):
    """Hub subscriber pushing every feed snapshot to the chat room"""
    socketio.emit('chat_messages', {'messages': snapshot}, room=CHAT_ROOM)


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('chat_join')
    def chat_join(data=None):
        """Visitor opens the chat feed; send the current snapshot"""
        join_room(CHAT_ROOM)
        logger.debug('Socket %s joined chat', request.sid)
        emit('chat_messages', {'messages': ChatService.snapshot()})

    @socketio.on('chat_send')
    def chat_send(data):
        data = data or {}
        try:
            message = ChatService.send(
                data.get('username'),
                data.get('message'),
                reply_to_id=data.get('replyTo'),
            )
        except StudyHallError as err:
            emit('chat_error', err.to_dict())
            return
        emit('chat_sent', message.to_dict())

    @socketio.on('chat_delete')
    def chat_delete(data):
        data = data or {}
        actor = current_admin()
        try:
            ChatService.delete(data.get('id'), actor, confirmed=bool(data.get('confirm')))
        except StudyHallError as err:
            emit('chat_error', err.to_dict())
            return
        emit('chat_deleted', {'id': str(data.get('id'))})

    current_app.extensions['message_hub'].subscribe(broadcast_snapshot, replay=False)
