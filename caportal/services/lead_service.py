"""Lead capture for gated downloads (downloads, articles, tools)"""
import secrets
from datetime import datetime
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, NotFound
from caportal.models import Download, Article, Tool, DownloadLead
from caportal.services.mail_service import MailService
from caportal.services.otp_service import generate_otp, otp_expiry
from caportal.utils.file_helper import public_url
from caportal.utils.validators import is_valid_email, to_bool

RESOURCE_MODELS = {
    'download': Download,
    'article': Article,
    'tool': Tool,
}


def resource_title(resource):
    return getattr(resource, 'title', None) or getattr(resource, 'name', '')


def resource_url(resource):
    if isinstance(resource, Tool):
        return resource.download_url
    return public_url(resource.file_path)


class LeadService:

    @staticmethod
    def get_resource(kind, resource_id):
        model = RESOURCE_MODELS.get(kind)
        if model is None:
            raise NotFound('Resource not found')
        try:
            resource = db.session.get(model, int(resource_id))
        except (TypeError, ValueError):
            resource = None
        if resource is None or resource.is_deleted or not resource.is_active:
            raise NotFound('Resource not found')
        return resource

    @staticmethod
    def is_known_email(email):
        """Most recent verified lead for an email, if any"""
        if not email:
            return None
        return DownloadLead.query.filter_by(email=email.strip().lower(), verified=True) \
            .order_by(DownloadLead.created_at.desc()).first()

    @staticmethod
    def _grant(lead, resource):
        lead.verified = True
        lead.downloaded_at = datetime.utcnow()
        lead.otp = None
        lead.otp_expiry = None
        resource.download_count = (resource.download_count or 0) + 1
        db.session.commit()
        return {
            'downloadUrl': resource_url(resource),
            'resourceName': resource_title(resource),
        }

    @staticmethod
    def request_download(kind, resource_id, name, email, phone=None, company=None, skip_otp=False):
        """
        Start a gated download. Returning visitors asking to skip the OTP get
        the link straight away; everybody else is mailed a code.
        """
        if not name or not email or not resource_id:
            raise ValidationError('Name, email, and resource ID are required')
        if not is_valid_email(email):
            raise ValidationError('Invalid email format')

        resource = LeadService.get_resource(kind, resource_id)
        email = email.strip().lower()

        lead = DownloadLead.query.filter_by(
            email=email, resource_kind=kind, resource_id=resource.id
        ).order_by(DownloadLead.created_at.desc()).first()
        if lead is None:
            lead = DownloadLead(email=email, resource_kind=kind, resource_id=resource.id)
            db.session.add(lead)
        lead.name = name.strip()
        lead.phone = phone or None
        lead.company = company or None

        if to_bool(skip_otp) and LeadService.is_known_email(email):
            result = LeadService._grant(lead, resource)
            current_app.logger.info(f'Returning visitor {email} downloaded {kind} #{resource.id}')
            result.update({'skipOtp': True, 'message': 'Welcome back! Download starting...'})
            return result

        otp = generate_otp()
        lead.otp = otp
        lead.otp_expiry = otp_expiry()
        lead.verified = False
        db.session.commit()

        MailService.send_download_otp(lead, resource_title(resource), otp,
                                      current_app.config['OTP_TTL_MINUTES'])
        return {'leadId': lead.id, 'message': 'OTP sent to your email'}

    @staticmethod
    def verify(kind, lead_id, otp):
        if not lead_id or not otp:
            raise ValidationError('Lead ID and OTP are required')
        try:
            lead = db.session.get(DownloadLead, int(lead_id))
        except (TypeError, ValueError):
            lead = None
        if lead is None or lead.resource_kind != kind:
            raise NotFound('Download request not found')

        model = RESOURCE_MODELS[kind]
        resource = db.session.get(model, lead.resource_id)
        if resource is None or resource.is_deleted:
            raise NotFound('Download request not found')

        if lead.verified:
            return {
                'downloadUrl': resource_url(resource),
                'resourceName': resource_title(resource),
                'message': 'Already verified',
            }
        if not lead.otp_expiry or datetime.utcnow() > lead.otp_expiry:
            raise ValidationError('OTP has expired. Please request a new one.')
        if not lead.otp or not secrets.compare_digest(lead.otp, str(otp).strip()):
            raise ValidationError('Invalid OTP. Please try again.')

        result = LeadService._grant(lead, resource)
        result['message'] = 'Email verified successfully'
        return result

    @staticmethod
    def list_leads(kind=None, verified=None):
        """Leads with the title of what they asked for"""
        query = DownloadLead.query.filter_by(is_deleted=False)
        if kind:
            query = query.filter_by(resource_kind=kind)
        if verified is not None:
            query = query.filter_by(verified=verified)
        leads = query.order_by(DownloadLead.created_at.desc()).all()

        result = []
        for lead in leads:
            data = lead.to_dict()
            model = RESOURCE_MODELS.get(lead.resource_kind)
            resource = db.session.get(model, lead.resource_id) if model else None
            data['resourceTitle'] = resource_title(resource) if resource else None
            result.append(data)
        return result
