"""
Admin back-office: CMS, users, contacts, appointments, leads, settings, social posting
"""
from datetime import date, datetime
from flask import request, jsonify, send_file
from flask_login import current_user
from caportal.blueprints.admin import admin_bp
from caportal.blueprints.admin.forms import TestEmailForm, SocialPostForm
from caportal.exceptions import ValidationError
from caportal.models import (
    BlogPost, Article, Download, Tool, User, Document, DownloadLead,
    ContactSubmission, AuditLog, Appointment
)
from caportal.models.auth import ROLE_CLIENT
from caportal.models.sys import APPOINTMENT_PENDING, APPOINTMENT_CONFIRMED
from caportal.services.appointment_service import AppointmentService
from caportal.services.contact_service import ContactService
from caportal.services.content_service import ContentService
from caportal.services.export_service import (
    ExportService, LEAD_COLUMNS, CONTACT_COLUMNS, EXPORT_FORMATS
)
from caportal.services.lead_service import LeadService
from caportal.services.mail_service import MailService
from caportal.services.settings_service import SettingsService
from caportal.services.social_service import SocialService
from caportal.services.user_service import UserService
from caportal.utils.audit import log_action
from caportal.utils.forms import validate_form, request_data
from caportal.utils.permissions import admin_required
from caportal.utils.validators import to_bool

# URL segment -> file-backed model
RESOURCE_SEGMENTS = {'articles': Article, 'downloads': Download}
# URL segment -> social content kind
SOCIAL_SEGMENTS = {'blog': 'blog', 'articles': 'article', 'tools': 'tool'}


# ---- blog ----
@admin_bp.route('/blog', methods=['GET'])
@admin_required
def blog_list():
    return jsonify([p.to_dict() for p in ContentService.list_blog()])


@admin_bp.route('/blog', methods=['POST'])
@admin_required
def blog_create():
    post = ContentService.create_blog(request_data(), author=current_user)
    log_action('content', 'create_blog', {'id': post.id, 'slug': post.slug})
    return jsonify(post.to_dict()), 201


@admin_bp.route('/blog/<int:post_id>', methods=['GET'])
@admin_required
def blog_detail(post_id):
    return jsonify(ContentService.get_blog(post_id).to_dict())


@admin_bp.route('/blog/<int:post_id>', methods=['PUT'])
@admin_required
def blog_update(post_id):
    post = ContentService.update_blog(post_id, request_data())
    log_action('content', 'update_blog', {'id': post.id})
    return jsonify(post.to_dict())


@admin_bp.route('/blog/<int:post_id>', methods=['DELETE'])
@admin_required
def blog_delete(post_id):
    ContentService.delete_blog(post_id)
    log_action('content', 'delete_blog', {'id': post_id})
    return jsonify({'success': True})


# ---- articles / downloads (multipart) ----
@admin_bp.route('/<any(articles, downloads):segment>', methods=['GET'])
@admin_required
def resource_list(segment):
    return jsonify([r.to_dict() for r in ContentService.list_resources(RESOURCE_SEGMENTS[segment])])


@admin_bp.route('/<any(articles, downloads):segment>', methods=['POST'])
@admin_required
def resource_create(segment):
    item = ContentService.create_resource(
        RESOURCE_SEGMENTS[segment], request.form.to_dict(), request.files.get('file')
    )
    log_action('content', f'create_{segment[:-1]}', {'id': item.id, 'title': item.title})
    return jsonify(item.to_dict()), 201


@admin_bp.route('/<any(articles, downloads):segment>/<int:item_id>', methods=['GET'])
@admin_required
def resource_detail(segment, item_id):
    return jsonify(ContentService.get_resource(RESOURCE_SEGMENTS[segment], item_id).to_dict())


@admin_bp.route('/<any(articles, downloads):segment>/<int:item_id>', methods=['PUT'])
@admin_required
def resource_update(segment, item_id):
    data = request.form.to_dict() if request.files or request.form else request_data()
    item = ContentService.update_resource(
        RESOURCE_SEGMENTS[segment], item_id, data, request.files.get('file')
    )
    log_action('content', f'update_{segment[:-1]}', {'id': item.id})
    return jsonify(item.to_dict())


@admin_bp.route('/<any(articles, downloads):segment>/<int:item_id>', methods=['DELETE'])
@admin_required
def resource_delete(segment, item_id):
    ContentService.delete_resource(RESOURCE_SEGMENTS[segment], item_id)
    log_action('content', f'delete_{segment[:-1]}', {'id': item_id})
    return jsonify({'success': True})


# ---- tools ----
@admin_bp.route('/tools', methods=['GET'])
@admin_required
def tool_list():
    return jsonify([t.to_dict() for t in ContentService.list_tools(category=request.args.get('category'))])


@admin_bp.route('/tools', methods=['POST'])
@admin_required
def tool_create():
    tool = ContentService.create_tool(request_data())
    log_action('content', 'create_tool', {'id': tool.id, 'slug': tool.slug})
    return jsonify(tool.to_dict()), 201


@admin_bp.route('/tools/<int:tool_id>', methods=['GET'])
@admin_required
def tool_detail(tool_id):
    return jsonify(ContentService.get_tool(tool_id).to_dict())


@admin_bp.route('/tools/<int:tool_id>', methods=['PUT'])
@admin_required
def tool_update(tool_id):
    tool = ContentService.update_tool(tool_id, request_data())
    log_action('content', 'update_tool', {'id': tool.id})
    return jsonify(tool.to_dict())


@admin_bp.route('/tools/<int:tool_id>', methods=['DELETE'])
@admin_required
def tool_delete(tool_id):
    ContentService.delete_tool(tool_id)
    log_action('content', 'delete_tool', {'id': tool_id})
    return jsonify({'success': True})


# ---- social posting ----
@admin_bp.route('/<any(blog, articles, tools):segment>/<int:item_id>/social', methods=['GET'])
@admin_required
def social_status(segment, item_id):
    kind = SOCIAL_SEGMENTS[segment]
    SocialService.get_content(kind, item_id)
    return jsonify([log.to_dict() for log in SocialService.status(kind, item_id)])


@admin_bp.route('/<any(blog, articles, tools):segment>/<int:item_id>/social', methods=['POST'])
@admin_required
def social_post_now(segment, item_id):
    kind = SOCIAL_SEGMENTS[segment]
    form = validate_form(SocialPostForm)
    item = SocialService.get_content(kind, item_id)
    log = SocialService.post_now(kind, item, form.platform.data)
    log_action('social', 'post_now', {'kind': kind, 'id': item_id, 'platform': log.platform})
    return jsonify(log.to_dict())


@admin_bp.route('/social/<int:log_id>/retry', methods=['POST'])
@admin_required
def social_retry(log_id):
    log = SocialService.retry(log_id)
    log_action('social', 'retry', {'logId': log_id, 'status': log.status})
    return jsonify(log.to_dict())


# ---- users ----
@admin_bp.route('/users', methods=['GET'])
@admin_required
def user_list():
    role = (request.args.get('role') or '').upper() or None
    return jsonify([u.to_dict() for u in UserService.list_users(role)])


@admin_bp.route('/users', methods=['POST'])
@admin_required
def user_create():
    user = UserService.create_user(request_data())
    log_action('users', 'create_user', {'id': user.id, 'loginId': user.login_id})
    return jsonify(user.to_dict()), 201


@admin_bp.route('/users/<int:user_id>', methods=['GET'])
@admin_required
def user_detail(user_id):
    return jsonify(UserService.get_user(user_id).to_dict())


@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@admin_required
def user_update(user_id):
    data = request_data()
    user = UserService.update_user(user_id, data)
    details = {'id': user.id}
    if data.get('password') or to_bool(data.get('resetPassword')):
        details['passwordReset'] = True
    log_action('users', 'update_user', details)
    return jsonify(user.to_dict())


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def user_delete(user_id):
    UserService.delete_user(user_id, current_user)
    log_action('users', 'delete_user', {'id': user_id})
    return jsonify({'success': True})


@admin_bp.route('/groups')
@admin_required
def group_list():
    groups = UserService.list_groups()
    return jsonify([
        dict(g.to_dict(), memberCount=g.users.filter_by(is_deleted=False).count()) for g in groups
    ])


# ---- contacts ----
@admin_bp.route('/contacts')
@admin_required
def contact_list():
    unread = to_bool(request.args.get('unread'))
    return jsonify([c.to_dict() for c in ContactService.list(unread_only=unread)])


@admin_bp.route('/contacts/<int:contact_id>', methods=['PATCH', 'PUT'])
@admin_required
def contact_mark(contact_id):
    is_read = to_bool(request_data().get('isRead', True), default=True)
    return jsonify(ContactService.mark_read(contact_id, is_read).to_dict())


@admin_bp.route('/contacts/<int:contact_id>', methods=['DELETE'])
@admin_required
def contact_delete(contact_id):
    ContactService.delete(contact_id)
    log_action('contacts', 'delete_contact', {'id': contact_id})
    return jsonify({'success': True})


# ---- appointments ----
@admin_bp.route('/appointments')
@admin_required
def appointment_list():
    return jsonify([a.to_dict() for a in AppointmentService.list(request.args.get('status'))])


@admin_bp.route('/appointments/<int:appointment_id>')
@admin_required
def appointment_detail(appointment_id):
    return jsonify(AppointmentService.get(appointment_id).to_dict())


@admin_bp.route('/appointments/<int:appointment_id>', methods=['PATCH', 'PUT'])
@admin_required
def appointment_update(appointment_id):
    appointment = AppointmentService.update_status(appointment_id, request_data().get('status'))
    log_action('appointments', 'update_appointment', {'id': appointment.id, 'status': appointment.status})
    return jsonify(appointment.to_dict())


@admin_bp.route('/appointments/<int:appointment_id>', methods=['DELETE'])
@admin_required
def appointment_delete(appointment_id):
    AppointmentService.delete(appointment_id)
    log_action('appointments', 'delete_appointment', {'id': appointment_id})
    return jsonify({'success': True, 'message': 'Appointment deleted successfully'})


# ---- leads ----
@admin_bp.route('/leads')
@admin_required
def lead_list():
    verified = request.args.get('verified')
    verified = None if verified in (None, '') else to_bool(verified)
    return jsonify(LeadService.list_leads(request.args.get('kind'), verified))


@admin_bp.route('/leads/export')
@admin_required
def lead_export():
    rows = LeadService.list_leads(request.args.get('kind'))
    return _export(rows, LEAD_COLUMNS, 'Download Leads', 'leads')


@admin_bp.route('/contacts/export')
@admin_required
def contact_export():
    rows = [c.to_dict() for c in ContactService.list()]
    return _export(rows, CONTACT_COLUMNS, 'Contact Submissions', 'contacts')


def _export(rows, columns, title, basename):
    fmt = request.args.get('format', 'xlsx')
    if fmt not in EXPORT_FORMATS:
        raise ValidationError(f'Unsupported format: {fmt}')
    stream, mimetype, ext = ExportService.export(rows, columns, fmt=fmt, title=title)
    log_action('export', f'export_{basename}', {'count': len(rows), 'format': ext})
    return send_file(stream, mimetype=mimetype, as_attachment=True,
                     download_name=f'{basename}_{datetime.now():%Y%m%d_%H%M%S}.{ext}')


# ---- settings ----
@admin_bp.route('/settings/smtp', methods=['GET'])
@admin_required
def smtp_settings():
    return jsonify(SettingsService.get_smtp())


@admin_bp.route('/settings/smtp', methods=['PUT'])
@admin_required
def smtp_settings_save():
    settings = SettingsService.save_smtp(request_data())
    log_action('settings', 'update_smtp')
    return jsonify({'success': True, 'settings': settings})


@admin_bp.route('/settings/smtp/test', methods=['POST'])
@admin_required
def smtp_test():
    form = validate_form(TestEmailForm)
    MailService.send_test(form.email.data)
    return jsonify({'success': True, 'message': f'Test email sent to {form.email.data}'})


@admin_bp.route('/settings/social', methods=['GET'])
@admin_required
def social_settings():
    return jsonify(SettingsService.get_social())


@admin_bp.route('/settings/social', methods=['PUT'])
@admin_required
def social_settings_save():
    settings = SettingsService.save_social(request_data())
    log_action('settings', 'update_social')
    return jsonify({'success': True, 'settings': settings})


# ---- dashboard ----
@admin_bp.route('/stats')
@admin_required
def stats():
    """Dashboard counters"""
    return jsonify({
        'blogPosts': {
            'total': BlogPost.query.filter_by(is_deleted=False).count(),
            'published': BlogPost.query.filter_by(is_deleted=False, is_published=True).count(),
        },
        'tools': {
            'total': Tool.query.filter_by(is_deleted=False).count(),
            'active': Tool.query.filter_by(is_deleted=False, is_active=True).count(),
        },
        'unreadContacts': ContactSubmission.query.filter_by(is_deleted=False, is_read=False).count(),
        'clients': User.query.filter_by(is_deleted=False, role=ROLE_CLIENT).count(),
        'documents': Document.query.filter_by(is_deleted=False).count(),
        'pendingLeads': DownloadLead.query.filter_by(is_deleted=False, verified=False).count(),
        'appointments': {
            'total': Appointment.query.filter_by(is_deleted=False).count(),
            'pending': Appointment.query.filter_by(is_deleted=False, status=APPOINTMENT_PENDING).count(),
            'upcoming': Appointment.query.filter_by(is_deleted=False).filter(
                Appointment.date >= date.today(),
                Appointment.status.in_((APPOINTMENT_PENDING, APPOINTMENT_CONFIRMED)),
            ).count(),
        },
    })


@admin_bp.route('/audit-log')
@admin_required
def audit_log():
    page = request.args.get('page', 1, type=int)
    query = AuditLog.query
    module = request.args.get('module')
    if module:
        query = query.filter_by(module=module)
    logs = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).paginate(
        page=page, per_page=50, error_out=False
    )
    return jsonify({
        'logs': [dict(log.to_dict(), user=log.user.login_id if log.user else None) for log in logs.items],
        'total': logs.total,
        'pages': logs.pages,
        'page': logs.page,
    })
