"""
LeaderboardBoard Model
Materialized top-N view, one row per module
"""
from studyhall.extensions import db
from datetime import datetime, timezone
import json


def now_utc():
    return datetime.now(timezone.utc)


class LeaderboardBoard(db.Model):
    """Materialized leaderboard document"""
    __tablename__ = 'leaderboard'

    module_id = db.Column(db.String(20), primary_key=True)
    entries = db.Column(db.Text, nullable=False, default='[]')  # JSON list
    updated_at = db.Column(db.DateTime, default=now_utc, onupdate=now_utc)

    def __repr__(self):
        return f'<LeaderboardBoard {self.module_id}>'

    def get_entries(self):
        """Get entries as list of dicts"""
        if self.entries:
            try:
                return json.loads(self.entries)
            except ValueError:
                return []
        return []

    def set_entries(self, entries):
        self.entries = json.dumps(list(entries))
        self.updated_at = now_utc()
