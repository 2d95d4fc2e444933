"""
Audit trail for admin and portal actions
"""
import json
from flask_login import current_user
from caportal.extensions import db
from caportal.models import AuditLog
from caportal.utils.security import client_ip


def log_action(module, action, details=None, user=None):
    """
    Record an audit entry
    :param module: e.g. 'auth', 'documents', 'content'
    :param action: e.g. 'login', 'upload_document'
    :param details: dict
    """
    user = user or (current_user if current_user.is_authenticated else None)
    log = AuditLog(
        user_id=user.id if user else None,
        module=module,
        action=action,
        ip_address=client_ip(),
        details=json.dumps(details, ensure_ascii=False, default=str) if details else None
    )
    db.session.add(log)
    db.session.commit()
