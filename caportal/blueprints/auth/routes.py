from flask import jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf
from caportal.blueprints.auth import auth_bp
from caportal.blueprints.auth.forms import (
    LoginForm, ChangePasswordForm, ForgotPasswordForm, ResetPasswordForm
)
from caportal.exceptions import Unauthorized, PermissionDenied
from caportal.models import User
from caportal.services.mail_service import MailService
from caportal.services.user_service import UserService
from caportal.utils.audit import log_action
from caportal.utils.forms import validate_form
from caportal.utils.security import rate_limit


@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for the session-protected auth forms"""
    return jsonify({'csrfToken': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
@rate_limit('login', max_requests=10, window=60)
def login():
    form = validate_form(LoginForm)
    identifier = form.loginId.data.strip()
    try:
        user = UserService.authenticate(identifier, form.password.data, form.accountId.data)
    except (Unauthorized, PermissionDenied):
        log_action('auth', 'login_failed', {'loginId': identifier})
        raise

    login_user(user, remember=bool(form.remember.data))
    log_action('auth', 'login_success', {'loginId': user.login_id}, user=user)
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_action('auth', 'logout', {'loginId': current_user.login_id})
    logout_user()
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify(current_user.to_dict())


@auth_bp.route('/change-password', methods=['POST'])
@login_required
def change_password():
    form = validate_form(ChangePasswordForm)
    UserService.change_password(current_user, form.currentPassword.data, form.newPassword.data)
    log_action('auth', 'change_password')
    return jsonify({'success': True, 'message': 'Password updated'})


@auth_bp.route('/forgot-password', methods=['POST'])
@rate_limit('forgot', max_requests=5, window=60)
def forgot_password():
    """Mail reset links; the reply never reveals whether an account exists"""
    form = validate_form(ForgotPasswordForm)
    identifier = form.loginId.data.strip().lower()

    users = User.query.filter(
        (User.login_id == identifier) | (User.email == identifier),
        User.is_deleted.is_(False),
        User.is_active_user.is_(True),
    ).all()
    site_url = current_app.config['SITE_URL'].rstrip('/')
    for user in users:
        if not user.email:
            continue
        token = UserService.reset_token(user)
        MailService.send_password_reset(user, f'{site_url}/reset-password?token={token}')

    return jsonify({
        'success': True,
        'message': 'If an account matches, a reset link has been sent to its email address.',
    })


@auth_bp.route('/reset-password', methods=['POST'])
@rate_limit('reset', max_requests=10, window=60)
def reset_password():
    form = validate_form(ResetPasswordForm)
    user = UserService.reset_password(form.token.data, form.password.data)
    log_action('auth', 'reset_password', {'loginId': user.login_id}, user=user)
    return jsonify({'success': True, 'message': 'Password has been reset. Please sign in.'})
