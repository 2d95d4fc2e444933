"""
Outbound mail

Messages are composed here and written to the OutboundEmail outbox; a
delivery worker (SMTP settings in SettingsService) drains the table.
"""
from flask import current_app
from markupsafe import escape
from caportal.extensions import db
from caportal.models import OutboundEmail
from caportal.services.settings_service import SettingsService


def _layout(title, body):
    site = escape(current_app.config['SITE_NAME'])
    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">'
        f'<h2 style="color:#1e3a5f">{escape(title)}</h2>'
        f'{body}'
        f'<p style="color:#888;font-size:12px">{site}</p>'
        '</div>'
    )


class MailService:

    @staticmethod
    def send(to, subject, html, reply_to=None, category=None):
        """Queue one message"""
        msg = OutboundEmail(recipient=to, subject=subject, html=html,
                            reply_to=reply_to, category=category)
        db.session.add(msg)
        db.session.commit()
        current_app.logger.info(f'Mail queued [{category}] to {to}: {subject}')
        return msg

    @staticmethod
    def send_otp(to, name, otp, minutes):
        body = (
            f'<p>Dear {escape(name)},</p>'
            f'<p>Your verification code is:</p>'
            f'<p style="font-size:28px;font-weight:bold;letter-spacing:6px">{escape(otp)}</p>'
            f'<p>This code expires in {minutes} minutes. If you did not request it, ignore this email.</p>'
        )
        return MailService.send(to, f'Your verification code: {otp}',
                                _layout('Email verification', body), category='otp')

    @staticmethod
    def send_contact_notification(submission):
        smtp = SettingsService.get_smtp(masked=True)
        recipient = smtp['notificationEmail'] or current_app.config['FIRM_EMAIL']
        rows = ''.join(
            f'<tr><td><strong>{label}</strong></td><td>{escape(value or "-")}</td></tr>'
            for label, value in (
                ('Name', submission.name),
                ('Email', submission.email),
                ('Phone', submission.phone),
                ('Subject', submission.service),
            )
        )
        body = f'<table>{rows}</table><p>{escape(submission.message)}</p>'
        return MailService.send(recipient, f'New Contact Form Submission from {submission.name}',
                                _layout('New contact enquiry', body),
                                reply_to=submission.email, category='contact')

    @staticmethod
    def send_contact_auto_reply(submission):
        site = current_app.config['SITE_NAME']
        body = (
            f'<p>Dear {escape(submission.name)},</p>'
            '<p>Thank you for reaching out. We have received your message and '
            'will get back to you within 24-48 business hours.</p>'
        )
        return MailService.send(submission.email, f'Thank you for contacting {site}',
                                _layout('We received your message', body), category='auto_reply')

    @staticmethod
    def send_download_otp(lead, resource_title, otp, minutes):
        body = (
            f'<p>Dear {escape(lead.name)},</p>'
            f'<p>Use this code to download <strong>{escape(resource_title)}</strong>:</p>'
            f'<p style="font-size:28px;font-weight:bold;letter-spacing:6px">{escape(otp)}</p>'
            f'<p>The code expires in {minutes} minutes.</p>'
        )
        return MailService.send(lead.email, f'Your download code: {otp}',
                                _layout('Download verification', body), category='otp')

    @staticmethod
    def send_password_reset(user, reset_url):
        body = (
            f'<p>Dear {escape(user.name)},</p>'
            f'<p>Your login ID is <strong>{escape(user.login_id)}</strong>.</p>'
            f'<p><a href="{escape(reset_url)}">Reset your password</a>. '
            'The link is valid for one hour.</p>'
        )
        return MailService.send(user.email, 'Password reset request',
                                _layout('Reset your password', body), category='password_reset')

    @staticmethod
    def send_test(to):
        body = '<p>This is a test message. Your mail settings are working.</p>'
        return MailService.send(to, 'Test email', _layout('Test email', body), category='test')
