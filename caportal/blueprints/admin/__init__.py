from flask import Blueprint

# url_prefix is set at registration in caportal/__init__.py
admin_bp = Blueprint('admin', __name__)

from . import routes
