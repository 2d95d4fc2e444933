from flask import Blueprint

# url_prefix is set at registration in caportal/__init__.py
main_bp = Blueprint('main', __name__)

from . import routes
