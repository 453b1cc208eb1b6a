"""
Models Package
Exports all database models
"""
from studyhall.models.attempt import Attempt
from studyhall.models.leaderboard import LeaderboardBoard
from studyhall.models.message import ChatMessage
from studyhall.models.profile import UserProfile
from studyhall.models.admin_log import AdminLog

__all__ = ['Attempt', 'LeaderboardBoard', 'ChatMessage', 'UserProfile', 'AdminLog']
