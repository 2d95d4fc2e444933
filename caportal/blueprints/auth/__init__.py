from flask import Blueprint

# url_prefix is set at registration in caportal/__init__.py
auth_bp = Blueprint('auth', __name__)

from . import routes
