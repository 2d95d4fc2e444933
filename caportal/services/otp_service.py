"""Email OTP verification for public forms"""
import secrets
from datetime import datetime, timedelta
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError
from caportal.models import EmailVerification
from caportal.services.mail_service import MailService
from caportal.utils.validators import is_valid_email

OTP_PURPOSES = ('contact',)
OTP_LENGTH = 6


def generate_otp():
    """Six digit numeric code"""
    return f'{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}'


def otp_expiry():
    return datetime.utcnow() + timedelta(minutes=current_app.config['OTP_TTL_MINUTES'])


class OtpService:

    @staticmethod
    def send(email, name, purpose):
        if not email or not name or not purpose:
            raise ValidationError('Email, name, and purpose are required')
        if purpose not in OTP_PURPOSES:
            raise ValidationError('Invalid purpose')
        if not is_valid_email(email):
            raise ValidationError('Invalid email format')

        email = email.strip().lower()
        # A new code supersedes any pending one
        EmailVerification.query.filter_by(email=email, purpose=purpose, verified=False) \
            .delete(synchronize_session=False)

        otp = generate_otp()
        record = EmailVerification(email=email, otp=otp, otp_expiry=otp_expiry(), purpose=purpose)
        db.session.add(record)
        db.session.commit()

        MailService.send_otp(email, name, otp, current_app.config['OTP_TTL_MINUTES'])
        current_app.logger.info(f'OTP issued for {email} ({purpose})')
        return record

    @staticmethod
    def verify(email, otp, purpose):
        if not email or not otp or not purpose:
            raise ValidationError('Email, OTP, and purpose are required')

        record = EmailVerification.query.filter_by(
            email=email.strip().lower(), purpose=purpose, verified=False
        ).order_by(EmailVerification.created_at.desc(), EmailVerification.id.desc()).first()

        if record is None:
            raise ValidationError('No pending verification found. Please request a new OTP.')
        if datetime.utcnow() > record.otp_expiry:
            raise ValidationError('OTP has expired. Please request a new one.')
        if not secrets.compare_digest(record.otp, str(otp).strip()):
            current_app.logger.warning(f'Wrong OTP for {record.email}')
            raise ValidationError('Invalid OTP. Please try again.')

        record.verified = True
        db.session.commit()
        return record

    @staticmethod
    def has_recent_verification(email, purpose, minutes):
        since = datetime.utcnow() - timedelta(minutes=minutes)
        return EmailVerification.query.filter(
            EmailVerification.email == email.strip().lower(),
            EmailVerification.purpose == purpose,
            EmailVerification.verified.is_(True),
            EmailVerification.created_at >= since,
        ).first() is not None

    @staticmethod
    def clear(email, purpose):
        EmailVerification.query.filter_by(email=email.strip().lower(), purpose=purpose) \
            .delete(synchronize_session=False)
