import logging
import colorlog
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config import config
from caportal.extensions import db, migrate, login_manager, cache, csrf
from caportal.exceptions import PortalException

from caportal import commands


def create_app(config_name='default'):
    """Application factory"""
    app = Flask(__name__)

    # 1. Configuration
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    # 2. Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    cache.init_app(app)
    csrf.init_app(app)

    # Social publishers keyed by platform name (see services.social_service)
    app.extensions.setdefault('social_publishers', {})

    # 3. Logging
    configure_logging(app)

    # 4. Blueprints
    register_blueprints(app)

    # 5. Error handlers
    register_error_handlers(app)

    # 6. CLI commands
    register_commands(app)

    return app


def register_blueprints(app):
    """Register all blueprints"""
    # Site info, robots, sitemap, public files
    from caportal.blueprints.main import main_bp
    app.register_blueprint(main_bp)

    # Login / password management
    from caportal.blueprints.auth import auth_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')

    # Contact, OTP, calculators, public content
    from caportal.blueprints.public import public_bp
    csrf.exempt(public_bp)
    app.register_blueprint(public_bp, url_prefix='/api')

    # Client documents and folders
    from caportal.blueprints.portal import portal_bp
    csrf.exempt(portal_bp)
    app.register_blueprint(portal_bp, url_prefix='/api')

    # Admin back-office
    from caportal.blueprints.admin import admin_bp
    csrf.exempt(admin_bp)
    app.register_blueprint(admin_bp, url_prefix='/api/admin')


def register_error_handlers(app):
    @app.errorhandler(PortalException)
    def portal_error(e):
        return jsonify(e.to_dict()), e.code

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({'error': e.description or e.name, 'success': False}), e.code

    @app.errorhandler(Exception)
    def internal_server_error(e):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', e)
        return jsonify({'error': 'An error occurred. Please try again later.', 'success': False}), 500


def register_commands(app):
    """Register Flask CLI commands"""
    app.cli.add_command(commands.create_admin)
    app.cli.add_command(commands.status)
    app.cli.add_command(commands.forge)


def configure_logging(app):
    """Coloured console logging in debug mode"""
    if app.debug:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)

        formatter = colorlog.ColoredFormatter(
            "%(log_color)s[%(asctime)s] %(levelname)-8s%(reset)s %(blue)s%(message)s",
            datefmt="%H:%M:%S",
            reset=True,
            log_colors={
                'DEBUG':    'cyan',
                'INFO':     'green',
                'WARNING':  'yellow',
                'ERROR':    'red',
                'CRITICAL': 'red,bg_white',
            },
            secondary_log_colors={},
            style='%'
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
