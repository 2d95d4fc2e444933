"""Users, client groups and authentication"""
import re
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, Unauthorized, PermissionDenied, NotFound, Conflict
from caportal.models import User, ClientGroup
from caportal.models.auth import ROLES, ROLE_CLIENT, MAX_FAILED_LOGINS
from caportal.utils.validators import is_valid_email, to_bool, to_date

DEFAULT_PASSWORD = 'Password123'
MIN_PASSWORD_LENGTH = 8
RESET_SALT = 'password-reset'


def generate_login_id(name, date_of_birth):
    """First 4 letters of the name + day of birth: 'Himanshu M', 25 Apr -> 'hima25'"""
    letters = re.sub(r'[^a-zA-Z]', '', name or '').lower()
    return f'{letters[:4]}{date_of_birth.day:02d}'


def unique_login_id(base):
    login_id = base
    counter = 1
    while User.query.filter_by(login_id=login_id).first() is not None:
        login_id = f'{base}{counter}'
        counter += 1
    return login_id


class UserService:

    @staticmethod
    def list_users(role=None):
        query = User.query.filter_by(is_deleted=False)
        if role:
            query = query.filter_by(role=role)
        return query.order_by(User.created_at.desc()).all()

    @staticmethod
    def get_user(user_id):
        user = db.session.get(User, user_id)
        if user is None or user.is_deleted:
            raise NotFound('User not found')
        return user

    @staticmethod
    def list_groups():
        return ClientGroup.query.filter_by(is_deleted=False).order_by(ClientGroup.name.asc()).all()

    @staticmethod
    def _resolve_group(data):
        """newGroupName creates or reuses a group; groupId picks an existing one"""
        new_name = (data.get('newGroupName') or '').strip()
        if new_name:
            group = ClientGroup.query.filter_by(name=new_name).first()
            if group is None:
                group = ClientGroup(name=new_name)
                db.session.add(group)
                db.session.flush()
            return group.id
        group_id = data.get('groupId')
        if group_id in (None, ''):
            return None
        group = db.session.get(ClientGroup, int(group_id))
        if group is None:
            raise ValidationError('Invalid group')
        return group.id

    @staticmethod
    def create_user(data):
        role = (data.get('role') or ROLE_CLIENT).upper()
        if role not in ROLES:
            raise ValidationError(f'Invalid role: {role}')
        name = (data.get('name') or '').strip()
        email = (data.get('email') or '').strip().lower() or None

        if role == ROLE_CLIENT and (not name or not data.get('dateOfBirth')):
            raise ValidationError('Name and Date of Birth/Incorporation are required for clients')
        if role != ROLE_CLIENT and not email:
            raise ValidationError('Email is required for admin users')
        if email and not is_valid_email(email):
            raise ValidationError('Invalid email format')

        dob = to_date(data['dateOfBirth'], 'dateOfBirth') if data.get('dateOfBirth') else None
        if role == ROLE_CLIENT:
            login_id = unique_login_id(generate_login_id(name, dob))
        else:
            # Staff sign in with their email
            login_id = email
            if User.query.filter_by(login_id=login_id).first() is not None:
                raise Conflict('A user with this login already exists')

        user = User(
            name=name or None,
            email=email,
            login_id=login_id,
            phone=(data.get('phone') or '').strip() or None,
            date_of_birth=dob,
            role=role,
            services=list(data.get('services') or []),
            is_active_user=True,
        )
        user.password = data.get('password') or DEFAULT_PASSWORD
        if role == ROLE_CLIENT:
            user.group_id = UserService._resolve_group(data)
        db.session.add(user)
        db.session.commit()
        current_app.logger.info(f'User created: {user.login_id} ({role})')
        return user

    @staticmethod
    def update_user(user_id, data):
        user = UserService.get_user(user_id)
        if 'name' in data:
            user.name = (data['name'] or '').strip() or None
        if 'email' in data:
            email = (data['email'] or '').strip().lower() or None
            if email and not is_valid_email(email):
                raise ValidationError('Invalid email format')
            user.email = email
        if 'phone' in data:
            user.phone = (data['phone'] or '').strip() or None
        if 'dateOfBirth' in data:
            user.date_of_birth = to_date(data['dateOfBirth'], 'dateOfBirth') if data['dateOfBirth'] else None
        if 'role' in data:
            role = (data['role'] or '').upper()
            if role not in ROLES:
                raise ValidationError(f'Invalid role: {role}')
            user.role = role
        if 'services' in data:
            user.services = list(data['services'] or [])
        if 'isActive' in data:
            user.is_active_user = to_bool(data['isActive'])
        if 'newGroupName' in data or 'groupId' in data:
            user.group_id = UserService._resolve_group(data)
        if data.get('password'):
            if len(data['password']) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
            user.password = data['password']
            user.failed_login_attempts = 0
            user.locked_until = None
        elif to_bool(data.get('resetPassword')):
            user.password = DEFAULT_PASSWORD
            user.failed_login_attempts = 0
            user.locked_until = None
        db.session.commit()
        return user

    @staticmethod
    def delete_user(user_id, actor):
        user = UserService.get_user(user_id)
        if user.id == actor.id:
            raise ValidationError('You cannot delete your own account')
        user.is_active_user = False
        user.delete(soft=True)
        current_app.logger.info(f'User {user.login_id} deleted by {actor.login_id}')

    # ---- authentication ----
    @staticmethod
    def find_for_login(identifier, account_id=None):
        """
        Resolve a login identifier: login id first, then email. Several
        clients can share an email; without an explicit account the caller
        gets the candidate list to choose from.
        """
        identifier = (identifier or '').strip().lower()
        user = User.query.filter_by(login_id=identifier, is_deleted=False).first()
        if user is not None:
            return user

        candidates = User.query.filter_by(email=identifier, is_deleted=False, is_active_user=True) \
            .order_by(User.id.asc()).all()
        if account_id:
            for candidate in candidates:
                if str(candidate.id) == str(account_id):
                    return candidate
            return None
        if len(candidates) > 1:
            raise Conflict('Multiple accounts use this email. Please choose one.', payload={
                'accounts': [{'id': u.id, 'loginId': u.login_id, 'name': u.name} for u in candidates]
            })
        return candidates[0] if candidates else None

    @staticmethod
    def authenticate(identifier, password, account_id=None):
        if not identifier or not password:
            raise ValidationError('Login ID and password are required')
        user = UserService.find_for_login(identifier, account_id)
        if user is None:
            raise Unauthorized('Invalid credentials')
        if user.is_locked():
            raise PermissionDenied('Account temporarily locked after repeated failed logins. '
                                   'Try again in 30 minutes.')
        if not user.verify_password(password):
            user.record_failed_login()
            remaining = max(MAX_FAILED_LOGINS - user.failed_login_attempts, 0)
            current_app.logger.warning(f'Failed login for {user.login_id} ({remaining} attempts left)')
            raise Unauthorized('Invalid credentials', payload={'remainingAttempts': remaining})
        if not user.is_active_user:
            raise PermissionDenied('This account has been deactivated. Please contact the firm.')
        user.reset_failed_attempts()
        return user

    @staticmethod
    def change_password(user, current_password, new_password):
        if not user.verify_password(current_password or ''):
            raise ValidationError('Current password is incorrect')
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        user.password = new_password
        db.session.commit()

    @staticmethod
    def _serializer():
        return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=RESET_SALT)

    @staticmethod
    def reset_token(user):
        # The hash prefix invalidates the token once the password changes
        return UserService._serializer().dumps({'id': user.id, 'h': (user.password_hash or '')[-12:]})

    @staticmethod
    def user_from_reset_token(token):
        try:
            data = UserService._serializer().loads(
                token, max_age=current_app.config['PASSWORD_RESET_MAX_AGE'])
        except SignatureExpired:
            raise ValidationError('Reset link has expired')
        except BadSignature:
            raise ValidationError('Invalid reset link')
        user = db.session.get(User, data.get('id'))
        if user is None or user.is_deleted or (user.password_hash or '')[-12:] != data.get('h'):
            raise ValidationError('Invalid reset link')
        return user

    @staticmethod
    def reset_password(token, new_password):
        user = UserService.user_from_reset_token(token)
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        user.password = new_password
        user.failed_login_attempts = 0
        user.locked_until = None
        db.session.commit()
        return user
