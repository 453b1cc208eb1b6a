"""
Leaderboard Service
Attempt submission, materialized top-50 boards and the fallback aggregation
"""
import logging
import numbers

from sqlalchemy import func

from studyhall.errors import ValidationError
from studyhall.extensions import db, socketio
from studyhall.models import Attempt, LeaderboardBoard
from studyhall.utils import now_utc, to_iso, parse_iso, round_half_up, sanitize_username

logger = logging.getLogger(__name__)

MATERIALIZED_LIMIT = 50
FALLBACK_SCAN_LIMIT = 100
DEFAULT_TOP_N = 10


def ranking_key(entry):
    """Best score descending, then username ascending as the tie-break"""
    return (-entry['bestScore'], entry['username'])


def sanitize_attempt(payload):
    """
    Validate and normalize a submitted attempt.

    Returns:
        dict: username, moduleId, examId, score (int 0-100), timestamp (ISO UTC)

    Raises:
        ValidationError: missing fields, non-numeric score, bad timestamp
    """
    if not isinstance(payload, dict):
        raise ValidationError('Invalid attempt data')

    username = payload.get('username')
    module_id = payload.get('moduleId')
    exam_id = payload.get('examId')
    score = payload.get('score')

    if not username or not module_id or not exam_id:
        raise ValidationError('Invalid attempt data: username, moduleId and examId are required')
    if isinstance(score, bool) or not isinstance(score, numbers.Real):
        raise ValidationError('Invalid attempt data: score must be a number')
    if score != score:  # NaN
        raise ValidationError('Invalid attempt data: score must be a number')

    clean_username = sanitize_username(str(username))
    if not clean_username:
        raise ValidationError('Invalid attempt data: username is empty after sanitizing')

    raw_timestamp = payload.get('timestamp')
    try:
        timestamp = to_iso(parse_iso(raw_timestamp)) if raw_timestamp else to_iso(now_utc())
    except (TypeError, ValueError, OverflowError):
        raise ValidationError('Invalid attempt data: timestamp must be ISO-8601')

    return {
        'username': clean_username,
        'moduleId': str(module_id),
        'examId': str(exam_id),
        'score': round_half_up(max(0, min(100, score))),
        'timestamp': timestamp,
    }


def aggregate_attempts(attempts, limit=DEFAULT_TOP_N):
    """
    Group attempts by username into leaderboard entries.

    Args:
        attempts: iterable of dicts with username, score, timestamp
        limit: number of entries to return (None for all)

    Returns:
        list: entries {username, bestScore, attemptsCount, lastAttempt}
    """
    stats = {}
    for attempt in attempts:
        username = attempt['username']
        entry = stats.get(username)
        if entry is None:
            entry = {
                'username': username,
                'bestScore': attempt['score'],
                'attemptsCount': 0,
                'lastAttempt': attempt['timestamp'],
            }
            stats[username] = entry

        entry['attemptsCount'] += 1
        if attempt['score'] > entry['bestScore']:
            entry['bestScore'] = attempt['score']
        if attempt['timestamp'] > entry['lastAttempt']:
            entry['lastAttempt'] = attempt['timestamp']

    entries = sorted(stats.values(), key=ranking_key)
    return entries if limit is None else entries[:limit]


def upsert_entry(entries, attempt, keep=MATERIALIZED_LIMIT):
    """
    Fold one attempt into a materialized entry list.
    Re-sorts and truncates to `keep` entries.
    """
    entries = [dict(e) for e in entries]
    for entry in entries:
        if entry['username'] == attempt['username']:
            entry['attemptsCount'] += 1
            if attempt['score'] > entry['bestScore']:
                entry['bestScore'] = attempt['score']
            if attempt['timestamp'] > entry['lastAttempt']:
                entry['lastAttempt'] = attempt['timestamp']
            break
    else:
        entries.append({
            'username': attempt['username'],
            'bestScore': attempt['score'],
            'attemptsCount': 1,
            'lastAttempt': attempt['timestamp'],
        })

    entries.sort(key=ranking_key)
    return entries[:keep]


class LeaderboardService:
    """Leaderboard storage and queries"""

    @staticmethod
    def submit_attempt(payload):
        """Store a sanitized attempt and run the materialized-board trigger"""
        data = sanitize_attempt(payload)
        attempt = Attempt(
            username=data['username'],
            module_id=data['moduleId'],
            exam_id=data['examId'],
            score=data['score'],
            timestamp=data['timestamp'],
        )
        db.session.add(attempt)
        db.session.commit()
        logger.info('Attempt %s submitted: %s %s %s', attempt.id, attempt.username,
                    attempt.exam_id, attempt.score)

        LeaderboardService.on_attempt_created(attempt)
        return attempt

    @staticmethod
    def on_attempt_created(attempt):
        """
        Trigger run after each new attempt: upsert the user's entry in the
        module board, keep the top 50 and notify live listeners.
        """
        board = db.session.query(LeaderboardBoard)\
            .filter_by(module_id=attempt.module_id)\
            .with_for_update()\
            .first()
        if board is None:
            board = LeaderboardBoard(module_id=attempt.module_id, entries='[]')
            db.session.add(board)

        entries = upsert_entry(board.get_entries(), attempt.to_dict())
        board.set_entries(entries)
        db.session.commit()

        logger.info('Leaderboard updated for module %s, user %s, score %s',
                    attempt.module_id, attempt.username, attempt.score)
        socketio.emit('leaderboard_updated', {
            'moduleId': attempt.module_id,
            'entries': entries[:DEFAULT_TOP_N],
        })
        return entries

    @staticmethod
    def get_leaderboard(module_id, limit=DEFAULT_TOP_N):
        """Materialized board when present, otherwise aggregate from attempts"""
        board = db.session.get(LeaderboardBoard, module_id)
        if board is not None:
            return board.get_entries()[:limit]
        return LeaderboardService.aggregate_leaderboard(module_id, limit)

    @staticmethod
    def aggregate_leaderboard(module_id, limit=DEFAULT_TOP_N):
        """Fallback: group the 100 highest-scoring attempts of the module"""
        attempts = Attempt.query.filter_by(module_id=module_id)\
            .order_by(Attempt.score.desc(), Attempt.id.asc())\
            .limit(FALLBACK_SCAN_LIMIT).all()
        return aggregate_attempts((a.to_dict() for a in attempts), limit)

    @staticmethod
    def get_user_attempts(username, limit=50):
        """User's attempts, newest first"""
        attempts = Attempt.query.filter_by(username=username)\
            .order_by(Attempt.timestamp.desc(), Attempt.id.desc())\
            .limit(limit).all()
        return [a.to_dict() for a in attempts]

    @staticmethod
    def attempt_history(username=None, module_id=None, limit=50, before_id=None):
        """
        Paginated attempt history for admins, newest first.

        Returns:
            dict: attempts and the id to pass as before_id for the next page
        """
        query = Attempt.query
        if username:
            query = query.filter_by(username=username)
        if module_id:
            query = query.filter_by(module_id=module_id)
        if before_id:
            query = query.filter(Attempt.id < before_id)
        attempts = query.order_by(Attempt.id.desc()).limit(limit).all()
        return {
            'attempts': [a.to_dict() for a in attempts],
            'nextBeforeId': attempts[-1].id if len(attempts) == limit else None,
        }

    @staticmethod
    def regenerate(module_ids):
        """Rebuild every listed module board from all of its attempts"""
        counts = {}
        for module_id in module_ids:
            attempts = Attempt.query.filter_by(module_id=module_id)\
                .order_by(Attempt.id.asc()).all()
            entries = aggregate_attempts((a.to_dict() for a in attempts), MATERIALIZED_LIMIT)

            board = db.session.get(LeaderboardBoard, module_id)
            if board is None:
                board = LeaderboardBoard(module_id=module_id)
                db.session.add(board)
            board.set_entries(entries)
            counts[module_id] = len(entries)
            logger.info('Regenerated leaderboard for module %s: %d entries', module_id, len(entries))

        db.session.commit()
        return counts

    @staticmethod
    def admin_user_stats(limit=200):
        """Per-user exam totals and per-module breakdown over recent attempts"""
        attempts = Attempt.query.order_by(Attempt.timestamp.desc(), Attempt.id.desc())\
            .limit(limit).all()

        stats = {}
        for attempt in attempts:
            user = stats.setdefault(attempt.username, {
                'username': attempt.username,
                'totalExams': 0,
                'moduleBreakdown': {},
            })
            user['totalExams'] += 1
            module = user['moduleBreakdown'].setdefault(attempt.module_id, {
                'attempts': 0,
                'bestScore': 0,
                'totalScore': 0,
            })
            module['attempts'] += 1
            module['totalScore'] += attempt.score
            module['bestScore'] = max(module['bestScore'], attempt.score)
            module['averageScore'] = round(module['totalScore'] / module['attempts'])

        return list(stats.values())

    @staticmethod
    def module_totals():
        """Attempt count, distinct users and top score per module"""
        rows = db.session.query(
            Attempt.module_id,
            func.count(Attempt.id),
            func.count(func.distinct(Attempt.username)),
            func.max(Attempt.score),
        ).group_by(Attempt.module_id).order_by(Attempt.module_id).all()
        return [
            {'moduleId': module_id, 'attempts': attempts, 'users': users, 'topScore': top}
            for module_id, attempts, users, top in rows
        ]
