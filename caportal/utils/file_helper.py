import os
import uuid
from werkzeug.utils import secure_filename
from flask import current_app
from caportal.exceptions import ValidationError, NotFound
from caportal.utils.crypto import encrypt_document

# Client locker uploads
DOCUMENT_MIME_TYPES = {
    'application/pdf': 'PDF',
    'application/msword': 'Word',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'Word',
    'application/vnd.ms-excel': 'Excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': 'Excel',
    'image/jpeg': 'Image',
    'image/png': 'Image',
    'image/gif': 'Image',
    'text/plain': 'Text',
    'text/csv': 'CSV',
}

# Public articles / downloads
RESOURCE_MIME_TYPES = {
    'application/pdf': 'PDF',
    'application/vnd.ms-excel': 'Excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': 'Excel',
    'application/msword': 'Word',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': 'Word',
    'text/plain': 'Text',
    'application/zip': 'ZIP',
    'application/x-zip-compressed': 'ZIP',
}

DOCUMENTS_DIR = 'documents'
RESOURCES_DIR = 'resources'


def get_file_extension(filename):
    """Extension of a file name, lower case"""
    if not filename or '.' not in filename:
        return None
    return filename.rsplit('.', 1)[1].lower()


def upload_path(relative_path):
    """Absolute path inside the upload folder; refuses anything outside it"""
    root = os.path.realpath(current_app.config['UPLOAD_FOLDER'])
    full = os.path.realpath(os.path.join(root, relative_path))
    if full != root and not full.startswith(root + os.sep):
        raise NotFound('File not found')
    return full


def save_file(file, allowed_types, subdir, max_size=None, encrypt=False):
    """
    Validate and store an uploaded file under UPLOAD_FOLDER/<subdir>.
    Returns a dict with original name, stored relative path, size, MIME type,
    display type and whether the bytes on disk are encrypted.
    """
    if not file or not file.filename:
        raise ValidationError('No file provided')

    mimetype = (file.mimetype or '').split(';')[0].strip().lower()
    if mimetype not in allowed_types:
        current_app.logger.warning(f'save_file: rejected type {mimetype} ({file.filename})')
        raise ValidationError(f'File type not allowed: {mimetype or "unknown"}')

    data = file.read()
    if max_size and len(data) > max_size:
        raise ValidationError(f'File is too large (max {format_size(max_size)})')
    if not data:
        raise ValidationError('File is empty')

    # secure_filename may strip every character of non-ASCII names
    original_name = file.filename
    ext = get_file_extension(secure_filename(original_name)) or get_file_extension(original_name) or 'bin'
    stored_name = f'{uuid.uuid4().hex}.{ext}'
    relative_path = f'{subdir}/{stored_name}'

    folder = upload_path(subdir)
    os.makedirs(folder, exist_ok=True)
    with open(os.path.join(folder, stored_name), 'wb') as fh:
        fh.write(encrypt_document(data) if encrypt else data)

    current_app.logger.info(f'save_file: stored {original_name} as {relative_path} ({len(data)} bytes)')
    return {
        'original_name': original_name,
        'path': relative_path,
        'size': len(data),
        'mimetype': mimetype,
        'display_type': allowed_types[mimetype],
        'encrypted': bool(encrypt),
    }


def read_file(relative_path):
    path = upload_path(relative_path)
    if not os.path.isfile(path):
        raise NotFound('File not found')
    with open(path, 'rb') as fh:
        return fh.read()


def remove_file(relative_path):
    """Delete a stored file; missing files are ignored"""
    if not relative_path:
        return False
    try:
        path = upload_path(relative_path)
    except NotFound:
        return False
    if os.path.isfile(path):
        os.remove(path)
        current_app.logger.info(f'remove_file: {relative_path}')
        return True
    return False


def public_url(relative_path):
    return f'/uploads/{relative_path}' if relative_path else None


def format_size(size):
    """Bytes to a readable string (KB, MB)"""
    power = 2 ** 10
    n = 0
    labels = {0: '', 1: 'K', 2: 'M', 3: 'G', 4: 'T'}
    while size >= power and n < 4:
        size /= power
        n += 1
    return f'{size:.1f} {labels[n]}B'
