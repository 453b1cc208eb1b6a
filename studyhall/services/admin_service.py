"""
Admin Service
Admin claims and the audit log
"""
import logging

from studyhall.errors import ValidationError
from studyhall.extensions import db
from studyhall.models import AdminLog, UserProfile
from studyhall.utils import sanitize_username

logger = logging.getLogger(__name__)


class AdminService:
    """Admin claim management and audit logging"""

    @staticmethod
    def has_admin_claim(username):
        profile = UserProfile.query.filter_by(username=username).first()
        return bool(profile and profile.is_admin)

    @staticmethod
    def set_admin_claim(username, is_admin, actor='system'):
        """Grant or revoke the admin claim for a username"""
        if not isinstance(is_admin, bool):
            raise ValidationError('username and isAdmin are required')
        clean = sanitize_username(username)
        if not clean:
            raise ValidationError('username and isAdmin are required')

        profile = UserProfile.query.filter_by(username=clean).first()
        if profile is None:
            profile = UserProfile(username=clean)
            db.session.add(profile)
        profile.is_admin = is_admin
        db.session.commit()

        logger.info('Admin claim %s for %s by %s', 'granted' if is_admin else 'revoked', clean, actor)
        AdminService.log_action(actor, f'setAdminClaim: {clean} = {str(is_admin).lower()}')
        return profile

    @staticmethod
    def log_action(actor, action, ip=None):
        """Append an audit log entry"""
        if not action:
            raise ValidationError('action is required')
        entry = AdminLog(actor=actor, action=str(action)[:255], ip=ip)
        db.session.add(entry)
        db.session.commit()
        logger.info('Admin action logged: %s - %s', actor, action)
        return entry

    @staticmethod
    def recent_logs(limit=100):
        entries = AdminLog.query.order_by(AdminLog.timestamp.desc(), AdminLog.id.desc())\
            .limit(limit).all()
        return entries
