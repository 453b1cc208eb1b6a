"""
AdminLog Model
Audit trail of privileged actions
"""
from studyhall.extensions import db
from datetime import datetime, timezone


def now_utc():
    return datetime.now(timezone.utc)


class AdminLog(db.Model):
    """Admin audit log entry"""
    __tablename__ = 'admin_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor = db.Column(db.String(100), nullable=False)
    action = db.Column(db.String(255), nullable=False)
    ip = db.Column(db.String(64))
    timestamp = db.Column(db.DateTime, default=now_utc, index=True)

    def __repr__(self):
        return f'<AdminLog {self.actor}: {self.action}>'

    def to_dict(self):
        return {
            'id': self.id,
            'actor': self.actor,
            'action': self.action,
            'ip': self.ip,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }
