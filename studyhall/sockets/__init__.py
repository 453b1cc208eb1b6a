"""
Sockets Package
"""
from studyhall.sockets.chat_events import register_socket_events, broadcast_snapshot

__all__ = ['register_socket_events', 'broadcast_snapshot']
