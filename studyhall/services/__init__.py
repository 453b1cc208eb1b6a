"""
Services Package
"""
from studyhall.services.leaderboard_service import LeaderboardService
from studyhall.services.chat_service import ChatService
from studyhall.services.admin_service import AdminService
from studyhall.services.avatar_service import AvatarService
from studyhall.services.fingerprint_service import FingerprintLogService
from studyhall.services.github_client import GitHubClient
from studyhall.services.rate_limiter import RateLimiter

__all__ = [
    'LeaderboardService',
    'ChatService',
    'AdminService',
    'AvatarService',
    'FingerprintLogService',
    'GitHubClient',
    'RateLimiter',
]
