"""
Role checks for API views
"""
from functools import wraps
from flask_login import current_user
from caportal.exceptions import Unauthorized, PermissionDenied


def admin_required(f):
    """Only ADMIN accounts"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthorized()
        if not current_user.is_admin:
            raise PermissionDenied('Forbidden')
        return f(*args, **kwargs)
    return decorated_function
