from caportal.extensions import db
from .base import BaseModel

SOCIAL_PLATFORMS = ('TWITTER', 'LINKEDIN', 'FACEBOOK', 'INSTAGRAM')
POST_PENDING = 'PENDING'
POST_POSTED = 'POSTED'
POST_FAILED = 'FAILED'

APPOINTMENT_PENDING = 'PENDING'
APPOINTMENT_CONFIRMED = 'CONFIRMED'
APPOINTMENT_STATUSES = (APPOINTMENT_PENDING, APPOINTMENT_CONFIRMED, 'COMPLETED', 'CANCELLED', 'NO_SHOW')


class AuditLog(BaseModel):
    """Operation audit trail"""
    __tablename__ = 'sys_audit_logs'

    user_id = db.Column(db.Integer, db.ForeignKey('auth_users.id'))
    module = db.Column(db.String(32))   # e.g. 'auth', 'documents'
    action = db.Column(db.String(64))   # e.g. 'login', 'upload_document'
    ip_address = db.Column(db.String(64))
    details = db.Column(db.Text)        # JSON

    user = db.relationship('User')


class SiteSetting(BaseModel):
    """Key/value site configuration (SMTP, social credentials)"""
    __tablename__ = 'sys_settings'

    key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, default='')
    is_encrypted = db.Column(db.Boolean, default=False)


class EmailVerification(BaseModel):
    """Pending / confirmed OTP for a form submitter's email"""
    __tablename__ = 'sys_email_verifications'

    email = db.Column(db.String(128), nullable=False, index=True)
    otp = db.Column(db.String(8), nullable=False)
    otp_expiry = db.Column(db.DateTime, nullable=False)
    purpose = db.Column(db.String(32), nullable=False)
    verified = db.Column(db.Boolean, default=False)


class ContactSubmission(BaseModel):
    """Contact form message"""
    __tablename__ = 'sys_contact_submissions'

    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(20))
    service = db.Column(db.String(128))
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, default=False, index=True)


class Appointment(BaseModel):
    """Consultation booking request"""
    __tablename__ = 'sys_appointments'

    # Set when a signed-in client books
    user_id = db.Column(db.Integer, db.ForeignKey('auth_users.id'), index=True)
    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(128), nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=False)
    service = db.Column(db.String(128), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    time_slot = db.Column(db.String(32), nullable=False)
    message = db.Column(db.Text)
    status = db.Column(db.String(16), default=APPOINTMENT_PENDING, index=True)


class OutboundEmail(BaseModel):
    """Mail outbox"""
    __tablename__ = 'sys_outbound_emails'

    recipient = db.Column(db.String(128), nullable=False, index=True)
    subject = db.Column(db.String(256), nullable=False)
    html = db.Column(db.Text, nullable=False)
    reply_to = db.Column(db.String(128))
    category = db.Column(db.String(32), index=True)  # otp, contact, auto_reply, password_reset


class SocialPostLog(BaseModel):
    """One auto-post attempt of a content item on a platform"""
    __tablename__ = 'sys_social_post_logs'

    content_kind = db.Column(db.String(16), nullable=False, index=True)  # blog, article, tool
    content_id = db.Column(db.Integer, nullable=False, index=True)
    platform = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), default=POST_PENDING, index=True)
    post_id = db.Column(db.String(128))
    post_url = db.Column(db.String(512))
    error = db.Column(db.String(500))
