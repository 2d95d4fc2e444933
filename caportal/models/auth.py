from datetime import datetime, timedelta
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from caportal.extensions import db
from .base import BaseModel

ROLE_ADMIN = 'ADMIN'
ROLE_STAFF = 'STAFF'
ROLE_CLIENT = 'CLIENT'
ROLES = (ROLE_ADMIN, ROLE_STAFF, ROLE_CLIENT)

MAX_FAILED_LOGINS = 5
LOCKOUT_MINUTES = 30


class ClientGroup(BaseModel):
    """Family / business group that several clients belong to"""
    __tablename__ = 'auth_client_groups'
    name = db.Column(db.String(128), unique=True, nullable=False)

    users = db.relationship('User', backref='group', lazy='dynamic')

    def __repr__(self):
        return f'<ClientGroup {self.name}>'


class User(UserMixin, BaseModel):
    """Admin, staff member or client"""
    __tablename__ = 'auth_users'
    __private_fields__ = ('password_hash', 'failed_login_attempts', 'locked_until')

    # Several clients of one family may share an email; login_id is unique
    email = db.Column(db.String(128), index=True)
    login_id = db.Column(db.String(128), unique=True, index=True)
    password_hash = db.Column(db.String(256))

    name = db.Column(db.String(128))
    phone = db.Column(db.String(20))
    date_of_birth = db.Column(db.Date)
    role = db.Column(db.String(16), default=ROLE_CLIENT, index=True)
    services = db.Column(db.JSON, default=list)

    is_active_user = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime)

    # Lockout
    failed_login_attempts = db.Column(db.Integer, default=0)
    locked_until = db.Column(db.DateTime, nullable=True)
    last_password_change = db.Column(db.DateTime, default=datetime.utcnow)

    group_id = db.Column(db.Integer, db.ForeignKey('auth_client_groups.id'))

    @property
    def password(self):
        raise AttributeError('password is write-only')

    @password.setter
    def password(self, password):
        self.password_hash = generate_password_hash(password)
        self.last_password_change = datetime.utcnow()

    def verify_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def is_staff(self):
        """Admins and staff both manage client records"""
        return self.role in (ROLE_ADMIN, ROLE_STAFF)

    def is_locked(self):
        if self.locked_until and datetime.utcnow() < self.locked_until:
            return True
        return False

    def record_failed_login(self):
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1
        if self.failed_login_attempts >= MAX_FAILED_LOGINS:
            self.locked_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
        db.session.commit()

    def reset_failed_attempts(self):
        self.failed_login_attempts = 0
        self.locked_until = None
        self.last_login = datetime.utcnow()
        db.session.commit()

    # Flask-Login
    @property
    def is_active(self):
        return bool(self.is_active_user) and not self.is_deleted and not self.is_locked()

    def to_dict(self):
        data = super().to_dict()
        data['isActive'] = bool(self.is_active_user)
        data['group'] = {'id': self.group.id, 'name': self.group.name} if self.group else None
        return data

    def __repr__(self):
        return f'<User {self.login_id}>'
