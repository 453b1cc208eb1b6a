"""
Chat Routes
REST access to the chat feed for clients without a socket
"""
from flask import Blueprint, jsonify, request

from studyhall.services import ChatService
from studyhall.utils import client_ip
from studyhall.utils.auth import current_admin

chat_bp = Blueprint('chat', __name__)


@chat_bp.route('/messages', methods=['GET'])
def list_messages():
    """Most recent 50 messages, newest first"""
    return jsonify({'messages': ChatService.snapshot()})


@chat_bp.route('/messages', methods=['POST'])
def send_message():
    data = request.get_json(silent=True) or {}
    message = ChatService.send(
        data.get('username'),
        data.get('message'),
        reply_to_id=data.get('replyTo'),
    )
    return jsonify(message.to_dict()), 201


@chat_bp.route('/messages/<message_id>', methods=['DELETE'])
def delete_message(message_id):
    """Admin only; requires ?confirm=true"""
    ChatService.delete(
        message_id,
        current_admin(),
        confirmed=request.args.get('confirm', '').lower() == 'true',
        ip=client_ip(request.headers, request.remote_addr),
    )
    return jsonify({'success': True, 'id': message_id})
