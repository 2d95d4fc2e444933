"""
Public API: contact + OTP, appointments, calculators, published content, gated downloads
"""
from flask import request, jsonify
from flask_login import current_user
from caportal.blueprints.public import public_bp
from caportal.blueprints.public.forms import (
    OtpSendForm, OtpVerifyForm, ContactForm, LeadRequestForm, LeadVerifyForm, AppointmentForm
)
from caportal.exceptions import NotFound
from caportal.models import Download
from caportal.services.appointment_service import AppointmentService
from caportal.services.contact_service import ContactService
from caportal.services.content_service import ContentService
from caportal.services.gst_service import GstService
from caportal.services.lead_service import LeadService
from caportal.services.otp_service import OtpService
from caportal.services.tax_service import TaxService
from caportal.utils.forms import validate_form, request_data
from caportal.utils.security import rate_limit
from caportal.utils.validators import round_amounts

# URL segment -> lead resource kind
LEAD_KINDS = {'downloads': 'download', 'articles': 'article', 'tools': 'tool'}

CALCULATORS = {
    'income-tax': lambda d: TaxService.income_tax(
        d.get('income'), d.get('regime', 'new'), d.get('isSalaried', True),
        d.get('financialYear', '2026-27'), d.get('deductions80C'), d.get('deductions80D'),
        d.get('otherDeductions')),
    'advance-tax': lambda d: TaxService.advance_tax(
        d.get('income'), d.get('regime', 'new'), d.get('deductions'), d.get('tdsDeducted')),
    'tds': lambda d: TaxService.tds(
        d.get('category'), d.get('amount'), d.get('panAvailable', True), d.get('annualSalary'),
        d.get('deductions'), d.get('sellerPanAvailable', True)),
    'capital-gains': lambda d: TaxService.capital_gains(
        d.get('assetType'), d.get('purchasePrice'), d.get('salePrice'), d.get('purchaseDate'),
        d.get('saleDate'), d.get('indexation', False)),
    'emi': lambda d: TaxService.emi(
        d.get('loanAmount'), d.get('interestRate'), d.get('tenure'), d.get('tenureType', 'months')),
    'gst': lambda d: GstService.calculate(
        d.get('amount'), d.get('gstRate'), d.get('calculationType', 'exclusive')),
    'gst-composition': lambda d: GstService.composition(
        d.get('turnover'), d.get('purchases'), d.get('expenses'), d.get('businessType', 'trading')),
    'gst-interest': lambda d: GstService.interest_and_late_fee(
        d.get('taxAmount'), d.get('dueDate'), d.get('paymentDate'), d.get('returnType', 'GSTR-3B')),
    'gst-rcm': lambda d: GstService.rcm(d.get('amount'), d.get('category'), d.get('intraState', True)),
    'gst-tcs': lambda d: GstService.ecommerce_tcs(d.get('netValue'), d.get('platformFee')),
    'gst-ffmc': lambda d: GstService.ffmc_slab(d.get('grossAmount'))
    if d.get('method') == 'slab-based' else GstService.ffmc_rbi_rate(
        d.get('amount'), d.get('rbiRate'), d.get('actualRate'), d.get('currency', 'USD'),
        d.get('transactionType', 'buying')),
}


def _public(item):
    """Hide storage paths of gated files"""
    data = item.to_dict()
    data.pop('filePath', None)
    return data


# ---- OTP + contact ----
@public_bp.route('/otp/send', methods=['POST'])
@rate_limit('otp', max_requests=5, window=60)
def otp_send():
    form = validate_form(OtpSendForm)
    OtpService.send(form.email.data, form.name.data, form.purpose.data)
    return jsonify({'success': True, 'message': 'OTP sent to your email'})


@public_bp.route('/otp/verify', methods=['POST'])
@rate_limit('otp-verify', max_requests=10, window=60)
def otp_verify():
    form = validate_form(OtpVerifyForm)
    OtpService.verify(form.email.data, form.otp.data, form.purpose.data)
    return jsonify({'success': True, 'verified': True, 'message': 'Email verified successfully'})


@public_bp.route('/contact', methods=['POST'])
@rate_limit('contact', max_requests=5, window=60)
def contact():
    form = validate_form(ContactForm)
    submission = ContactService.submit(form.name.data, form.email.data, form.phone.data,
                                       form.subject.data, form.message.data)
    return jsonify({
        'success': True,
        'message': 'Thank you for your message. We will get back to you soon!',
        'contactId': submission.id,
    })


@public_bp.route('/appointments', methods=['POST'])
@rate_limit('appointment', max_requests=5, window=60)
def appointment_book():
    form = validate_form(AppointmentForm)
    appointment = AppointmentService.book(
        form.name.data, form.email.data, form.phone.data, form.service.data,
        form.date.data, form.timeSlot.data, form.message.data,
        user=current_user if current_user.is_authenticated else None,
    )
    return jsonify({
        'success': True,
        'message': 'Thank you for booking an appointment! Your request has been received successfully. '
                   'Our team will confirm your appointment shortly.',
        'appointmentId': appointment.id,
    })


# ---- calculators ----
@public_bp.route('/calculators/<name>', methods=['POST'])
def calculate(name):
    calculator = CALCULATORS.get(name)
    if calculator is None:
        raise NotFound('Calculator not found')
    return jsonify(round_amounts(calculator(request_data())))


# ---- content ----
@public_bp.route('/blog')
def blog_list():
    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('limit', 10, type=int), 50)
    pagination = ContentService.published_blog(request.args.get('category'), page, per_page)
    return jsonify({
        'posts': [p.to_dict() for p in pagination.items],
        'pagination': {
            'page': pagination.page,
            'limit': per_page,
            'total': pagination.total,
            'pages': pagination.pages,
        },
    })


@public_bp.route('/blog/<slug>')
def blog_detail(slug):
    post = ContentService.view_blog(slug)
    data = post.to_dict()
    data['author'] = {'name': post.author.name} if post.author else None
    return jsonify(data)


@public_bp.route('/articles')
def article_list():
    grouped = ContentService.articles_by_category()
    return jsonify({cat: [_public(a) for a in items] for cat, items in grouped.items()})


@public_bp.route('/articles/<slug>')
def article_detail(slug):
    return jsonify(_public(ContentService.article_by_slug(slug)))


@public_bp.route('/downloads')
def download_list():
    return jsonify([_public(d) for d in ContentService.list_resources(Download, active_only=True)])


@public_bp.route('/tools')
def tool_list():
    tools = ContentService.list_tools(active_only=True, category=request.args.get('category'))
    return jsonify([t.to_dict() for t in tools])


@public_bp.route('/tools/<slug>')
def tool_detail(slug):
    return jsonify(ContentService.tool_by_slug(slug).to_dict())


# ---- gated downloads ----
@public_bp.route('/<any(downloads, articles, tools):segment>/request', methods=['POST'])
@rate_limit('res-download', max_requests=10, window=60)
def lead_request(segment):
    kind = LEAD_KINDS[segment]
    form = validate_form(LeadRequestForm)
    data = request_data()
    resource_id = form.resourceId.data or data.get(f'{kind}Id')
    result = LeadService.request_download(
        kind, resource_id, form.name.data, form.email.data,
        phone=form.phone.data, company=form.company.data, skip_otp=form.skipOtp.data,
    )
    result['success'] = True
    return jsonify(result)


@public_bp.route('/<any(downloads, articles, tools):segment>/verify-otp', methods=['POST'])
@rate_limit('res-verify', max_requests=10, window=60)
def lead_verify(segment):
    form = validate_form(LeadVerifyForm)
    result = LeadService.verify(LEAD_KINDS[segment], form.leadId.data, form.otp.data)
    result['success'] = True
    return jsonify(result)


@public_bp.route('/leads/check-email', methods=['POST'])
def lead_check_email():
    """Returning visitors are recognised by any verified download"""
    lead = LeadService.is_known_email(request_data().get('email'))
    if lead is None:
        return jsonify({'recognized': False})
    return jsonify({'recognized': True, 'name': lead.name, 'phone': lead.phone, 'company': lead.company})
