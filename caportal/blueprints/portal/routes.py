"""
Client portal: document locker, folders and own appointments
"""
from flask import request, jsonify, make_response
from flask_login import login_required, current_user
from caportal.blueprints.portal import portal_bp
from caportal.services.appointment_service import AppointmentService
from caportal.services.document_service import DocumentService
from caportal.utils.audit import log_action
from caportal.utils.forms import request_data
from caportal.utils.validators import to_bool


@portal_bp.route('/documents', methods=['GET'])
@login_required
def document_list():
    kwargs = {}
    if 'folderId' in request.args:
        kwargs['folder_id'] = request.args.get('folderId')
    documents = DocumentService.list_documents(
        current_user, request.args.get('userId'), request.args.get('category'), **kwargs
    )
    return jsonify([d.to_dict() for d in documents])


@portal_bp.route('/documents', methods=['POST'])
@login_required
def document_upload():
    form = request.form
    document = DocumentService.upload(
        current_user, request.files.get('file'), form.get('title'), form.get('category'),
        description=form.get('description'), user_id=form.get('userId'),
        folder_id=form.get('folderId'),
    )
    log_action('documents', 'upload_document', {'id': document.id, 'userId': document.user_id})
    return jsonify(document.to_dict()), 201


@portal_bp.route('/documents/<int:document_id>', methods=['GET'])
@login_required
def document_detail(document_id):
    return jsonify(DocumentService.get(current_user, document_id).to_dict())


@portal_bp.route('/documents/<int:document_id>', methods=['PUT'])
@login_required
def document_update(document_id):
    document = DocumentService.update(current_user, document_id, request_data())
    log_action('documents', 'update_document', {'id': document.id})
    return jsonify(document.to_dict())


@portal_bp.route('/documents/<int:document_id>', methods=['DELETE'])
@login_required
def document_delete(document_id):
    DocumentService.delete(current_user, document_id)
    log_action('documents', 'delete_document', {'id': document_id})
    return jsonify({'success': True})


@portal_bp.route('/documents/<int:document_id>/download')
@login_required
def document_download(document_id):
    """Decrypted file; ?view=1 renders inline"""
    document, data = DocumentService.read_content(current_user, document_id)
    inline = request.args.get('view') in ('1', 'true')

    response = make_response(data)
    response.headers['Content-Type'] = document.file_type or 'application/octet-stream'
    response.headers['Content-Length'] = str(len(data))
    disposition = 'inline' if inline else 'attachment'
    safe_name = document.file_name.replace('"', '')
    response.headers['Content-Disposition'] = f'{disposition}; filename="{safe_name}"'
    response.headers['Cache-Control'] = 'private, no-cache, no-store, must-revalidate'
    response.headers['X-Content-Type-Options'] = 'nosniff'

    log_action('documents', 'view_document' if inline else 'download_document', {'id': document.id})
    return response


# ---- folders ----
@portal_bp.route('/folders', methods=['GET'])
@login_required
def folder_list():
    folders = DocumentService.list_folders(
        current_user, request.args.get('userId'), request.args.get('parentId')
    )
    return jsonify([f.to_dict(counts=True) for f in folders])


@portal_bp.route('/folders', methods=['POST'])
@login_required
def folder_create():
    data = request_data()
    folder = DocumentService.create_folder(
        current_user, data.get('name'), data.get('parentId'), data.get('userId')
    )
    log_action('documents', 'create_folder', {'id': folder.id, 'name': folder.name})
    return jsonify(folder.to_dict()), 201


@portal_bp.route('/folders/<int:folder_id>', methods=['GET'])
@login_required
def folder_detail(folder_id):
    return jsonify(DocumentService.folder_detail(current_user, folder_id))


@portal_bp.route('/folders/<int:folder_id>', methods=['PUT'])
@login_required
def folder_update(folder_id):
    data = request_data()
    kwargs = {'name': data.get('name')}
    if 'parentId' in data:
        kwargs['parent_id'] = data['parentId']
    folder = DocumentService.update_folder(current_user, folder_id, **kwargs)
    log_action('documents', 'update_folder', {'id': folder.id})
    return jsonify(folder.to_dict())


@portal_bp.route('/folders/<int:folder_id>', methods=['DELETE'])
@login_required
def folder_delete(folder_id):
    removed = DocumentService.delete_folder(current_user, folder_id)
    log_action('documents', 'delete_folder', {'id': folder_id, 'removed': removed})
    return jsonify({'success': True, 'deleted': removed})


# ---- appointments ----
@portal_bp.route('/user/appointments')
@login_required
def my_appointments():
    appointments = AppointmentService.for_user(
        current_user, request.args.get('status'), to_bool(request.args.get('upcoming'))
    )
    return jsonify([a.to_dict() for a in appointments])
