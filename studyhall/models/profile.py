"""
UserProfile Model
Per-username profile picture and admin claim
"""
from studyhall.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


class UserProfile(db.Model):
    """User profile model"""
    __tablename__ = 'user_profiles'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False)
    photo_url = db.Column(db.Text)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def __repr__(self):
        return f'<UserProfile {self.username}>'

    def to_dict(self):
        return {
            'username': self.username,
            'photoUrl': self.photo_url,
            'isAdmin': bool(self.is_admin),
        }
