"""
Attempt Model
One scored exam submission; immutable once stored
"""
from studyhall.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


class Attempt(db.Model):
    """Exam attempt model"""
    __tablename__ = 'attempts'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), nullable=False, index=True)
    module_id = db.Column(db.String(20), nullable=False, index=True)
    exam_id = db.Column(db.String(30), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    # ISO-8601 UTC string, comparable lexicographically
    timestamp = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    def __repr__(self):
        return f'<Attempt {self.username} {self.exam_id}: {self.score}>'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'moduleId': self.module_id,
            'examId': self.exam_id,
            'score': self.score,
            'timestamp': self.timestamp,
        }
