"""
ChatMessage Model
Community chat messages; never edited, deleted only by admins
"""
from studyhall.extensions import db
from datetime import datetime, timezone
import json

MAX_MESSAGE_LENGTH = 500


def now_utc():
    return datetime.now(timezone.utc)


class ChatMessage(db.Model):
    """Chat message model"""
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), nullable=False)
    message = db.Column(db.String(MAX_MESSAGE_LENGTH), nullable=False)
    timestamp = db.Column(db.DateTime, default=now_utc, index=True)
    reply_to = db.Column(db.Text)  # JSON {id, username, messagePreview}

    def __repr__(self):
        return f'<ChatMessage {self.id} by {self.username}>'

    def get_reply_to(self):
        if self.reply_to:
            try:
                return json.loads(self.reply_to)
            except ValueError:
                return None
        return None

    def to_dict(self):
        timestamp = self.timestamp
        if timestamp is not None and timestamp.tzinfo is None:
            # SQLite drops tzinfo; stored values are always UTC
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        data = {
            'id': str(self.id),
            'username': self.username,
            'message': self.message,
            'timestamp': timestamp.isoformat() if timestamp else None,
        }
        reply = self.get_reply_to()
        if reply:
            data['replyTo'] = reply
        return data
