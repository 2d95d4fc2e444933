from flask import Blueprint

# url_prefix is set at registration in caportal/__init__.py
portal_bp = Blueprint('portal', __name__)

from . import routes
