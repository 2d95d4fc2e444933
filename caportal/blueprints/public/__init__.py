from flask import Blueprint

# url_prefix is set at registration in caportal/__init__.py
public_bp = Blueprint('public', __name__)

from . import routes
