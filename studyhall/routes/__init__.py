"""
Routes Package
Exports all route blueprints
"""
from studyhall.routes.exams import exams_bp
from studyhall.routes.leaderboard import leaderboard_bp
from studyhall.routes.chat import chat_bp
from studyhall.routes.profile import profile_bp
from studyhall.routes.fingerprint import fingerprint_bp
from studyhall.routes.oauth import oauth_bp
from studyhall.routes.admin import admin_bp

__all__ = [
    'exams_bp',
    'leaderboard_bp',
    'chat_bp',
    'profile_bp',
    'fingerprint_bp',
    'oauth_bp',
    'admin_bp',
]
