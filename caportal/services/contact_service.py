"""Contact form"""
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, PermissionDenied, NotFound
from caportal.models import ContactSubmission
from caportal.services.mail_service import MailService
from caportal.services.otp_service import OtpService
from caportal.utils.validators import is_valid_email


class ContactService:

    @staticmethod
    def submit(name, email, phone, subject, message):
        """Save a verified contact enquiry and notify the firm"""
        if not all((name, email, phone, subject, message)):
            raise ValidationError('All fields are required')
        if not is_valid_email(email):
            raise ValidationError('Invalid email format')

        window = current_app.config['CONTACT_VERIFICATION_WINDOW_MINUTES']
        if not OtpService.has_recent_verification(email, 'contact', window):
            raise PermissionDenied('Please verify your email address before submitting.')

        submission = ContactSubmission(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            service=subject.strip(),
            message=message.strip(),
        )
        db.session.add(submission)
        OtpService.clear(email, 'contact')
        db.session.commit()

        MailService.send_contact_notification(submission)
        MailService.send_contact_auto_reply(submission)
        current_app.logger.info(f'Contact submission #{submission.id} from {submission.email}')
        return submission

    @staticmethod
    def list(unread_only=False):
        query = ContactSubmission.query.filter_by(is_deleted=False)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(ContactSubmission.created_at.desc()).all()

    @staticmethod
    def get(contact_id):
        submission = db.session.get(ContactSubmission, contact_id)
        if submission is None or submission.is_deleted:
            raise NotFound('Contact not found')
        return submission

    @staticmethod
    def mark_read(contact_id, is_read=True):
        submission = ContactService.get(contact_id)
        submission.is_read = bool(is_read)
        db.session.commit()
        return submission

    @staticmethod
    def delete(contact_id):
        submission = ContactService.get(contact_id)
        db.session.delete(submission)
        db.session.commit()
