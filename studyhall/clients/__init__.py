"""
Clients
Widgets that run on the visitor's side of the site
"""
from studyhall.clients.leaderboard_client import LeaderboardClient
from studyhall.clients.chat_widget import ChatWidget, HttpChatBackend, format_timestamp
from studyhall.clients.fingerprint_logger import FingerprintLogger
from studyhall.clients.access_gate import AccessGate, GateDecision

__all__ = [
    'LeaderboardClient',
    'ChatWidget',
    'HttpChatBackend',
    'format_timestamp',
    'FingerprintLogger',
    'AccessGate',
    'GateDecision',
]
