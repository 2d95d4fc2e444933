"""Client document locker: documents and folders"""
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, PermissionDenied, NotFound, Conflict
from caportal.models import User, Document, DocumentFolder
from caportal.models.documents import DOCUMENT_CATEGORIES
from caportal.utils.crypto import decrypt_document, document_key
from caportal.utils.file_helper import (
    save_file, read_file, remove_file, DOCUMENT_MIME_TYPES, DOCUMENTS_DIR
)

_UNSET = object()


def _to_id(value, label):
    if value in (None, '', 'null', 'root'):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {label}')


class DocumentService:

    # ---- access ----
    @staticmethod
    def target_user_id(actor, user_id=None):
        """Staff may act for any client; clients only for themselves"""
        user_id = _to_id(user_id, 'user id')
        if actor.is_staff and user_id and user_id != actor.id:
            user = db.session.get(User, user_id)
            if user is None or user.is_deleted:
                raise NotFound('Target user not found')
            return user.id
        return actor.id

    @staticmethod
    def check_owner(actor, owner_id):
        if not actor.is_staff and owner_id != actor.id:
            raise PermissionDenied('Access denied')

    # ---- documents ----
    @staticmethod
    def list_documents(actor, user_id=None, category=None, folder_id=_UNSET):
        owner_id = DocumentService.target_user_id(actor, user_id)
        query = Document.query.filter_by(user_id=owner_id, is_deleted=False)
        if category and category != 'ALL':
            query = query.filter_by(category=category)
        if folder_id is not _UNSET:
            query = query.filter_by(folder_id=_to_id(folder_id, 'folder id'))
        return query.order_by(Document.created_at.desc()).all()

    @staticmethod
    def _folder_for(owner_id, folder_id):
        folder_id = _to_id(folder_id, 'folder id')
        if folder_id is None:
            return None
        folder = db.session.get(DocumentFolder, folder_id)
        if folder is None or folder.user_id != owner_id:
            raise ValidationError('Invalid folder')
        return folder

    @staticmethod
    def upload(actor, file, title, category, description=None, user_id=None, folder_id=None):
        if file is None or not file.filename:
            raise ValidationError('No file provided')
        if not title or not title.strip():
            raise ValidationError('Title is required')
        if not category:
            raise ValidationError('Category is required')
        if category not in DOCUMENT_CATEGORIES:
            raise ValidationError(f'Invalid category: {category}')

        owner_id = DocumentService.target_user_id(actor, user_id)
        folder = DocumentService._folder_for(owner_id, folder_id)

        stored = save_file(file, DOCUMENT_MIME_TYPES, DOCUMENTS_DIR,
                           max_size=current_app.config['DOCUMENT_MAX_SIZE'],
                           encrypt=bool(document_key()))
        document = Document(
            title=title.strip(),
            description=(description or '').strip() or None,
            file_name=stored['original_name'],
            file_path=stored['path'],
            file_size=stored['size'],
            file_type=stored['mimetype'],
            category=category,
            uploaded_by='ADMIN' if actor.is_staff else 'CLIENT',
            is_encrypted=stored['encrypted'],
            user_id=owner_id,
            folder_id=folder.id if folder else None,
        )
        db.session.add(document)
        db.session.commit()
        current_app.logger.info(f'Document #{document.id} uploaded for user {owner_id} by {actor.login_id}')
        return document

    @staticmethod
    def get(actor, document_id):
        document = db.session.get(Document, document_id)
        if document is None or document.is_deleted:
            raise NotFound('Document not found')
        DocumentService.check_owner(actor, document.user_id)
        return document

    @staticmethod
    def update(actor, document_id, data):
        if not actor.is_admin:
            raise PermissionDenied('Admin access required')
        document = DocumentService.get(actor, document_id)

        if 'title' in data:
            if not (data['title'] or '').strip():
                raise ValidationError('Title is required')
            document.title = data['title'].strip()
        if 'description' in data:
            document.description = (data['description'] or '').strip() or None
        if 'category' in data:
            if data['category'] not in DOCUMENT_CATEGORIES:
                raise ValidationError(f"Invalid category: {data['category']}")
            document.category = data['category']
        if 'folderId' in data:
            folder = DocumentService._folder_for(document.user_id, data['folderId'])
            document.folder_id = folder.id if folder else None
        db.session.commit()
        return document

    @staticmethod
    def delete(actor, document_id):
        document = DocumentService.get(actor, document_id)
        if not actor.is_staff and document.uploaded_by != 'CLIENT':
            raise PermissionDenied('You can only delete documents you uploaded')
        path = document.file_path
        db.session.delete(document)
        db.session.commit()
        remove_file(path)
        current_app.logger.info(f'Document #{document_id} deleted by {actor.login_id}')

    @staticmethod
    def read_content(actor, document_id):
        """(document, plaintext bytes)"""
        document = DocumentService.get(actor, document_id)
        data = read_file(document.file_path)
        if document.is_encrypted:
            data = decrypt_document(data)
        return document, data

    # ---- folders ----
    @staticmethod
    def _get_folder(actor, folder_id):
        folder = db.session.get(DocumentFolder, folder_id)
        if folder is None:
            raise NotFound('Folder not found')
        DocumentService.check_owner(actor, folder.user_id)
        return folder

    @staticmethod
    def _ensure_unique_name(owner_id, parent_id, name, exclude_id=None):
        query = DocumentFolder.query.filter_by(user_id=owner_id, parent_id=parent_id, name=name)
        if exclude_id is not None:
            query = query.filter(DocumentFolder.id != exclude_id)
        if query.first() is not None:
            raise Conflict('A folder with this name already exists')

    @staticmethod
    def list_folders(actor, user_id=None, parent_id=None):
        owner_id = DocumentService.target_user_id(actor, user_id)
        return DocumentFolder.query.filter_by(
            user_id=owner_id, parent_id=_to_id(parent_id, 'parent id')
        ).order_by(DocumentFolder.name.asc()).all()

    @staticmethod
    def create_folder(actor, name, parent_id=None, user_id=None):
        name = (name or '').strip()
        if not name:
            raise ValidationError('Folder name is required')
        owner_id = DocumentService.target_user_id(actor, user_id)
        parent_id = _to_id(parent_id, 'parent id')
        if parent_id is not None:
            parent = db.session.get(DocumentFolder, parent_id)
            if parent is None or parent.user_id != owner_id:
                raise ValidationError('Invalid parent folder')
        DocumentService._ensure_unique_name(owner_id, parent_id, name)

        folder = DocumentFolder(name=name, parent_id=parent_id, user_id=owner_id)
        db.session.add(folder)
        db.session.commit()
        return folder

    @staticmethod
    def breadcrumbs(folder):
        """Path from the root down to this folder"""
        trail = []
        seen = set()
        node = folder
        while node is not None and node.id not in seen:
            seen.add(node.id)
            trail.append({'id': node.id, 'name': node.name})
            node = node.parent
        trail.reverse()
        return trail

    @staticmethod
    def folder_detail(actor, folder_id):
        folder = DocumentService._get_folder(actor, folder_id)
        data = folder.to_dict()
        data['children'] = [c.to_dict() for c in folder.children]
        data['documents'] = [
            d.to_dict() for d in folder.documents.filter_by(is_deleted=False)
            .order_by(Document.created_at.desc())
        ]
        data['breadcrumbs'] = DocumentService.breadcrumbs(folder)
        return data

    @staticmethod
    def _is_descendant(candidate, folder):
        """True if candidate is folder itself or lies below it"""
        seen = set()
        node = candidate
        while node is not None and node.id not in seen:
            if node.id == folder.id:
                return True
            seen.add(node.id)
            node = node.parent
        return False

    @staticmethod
    def update_folder(actor, folder_id, name=None, parent_id=_UNSET):
        """Rename and/or move a folder"""
        folder = DocumentService._get_folder(actor, folder_id)
        new_name = folder.name if name is None else name.strip()
        if not new_name:
            raise ValidationError('Folder name is required')

        new_parent_id = folder.parent_id
        if parent_id is not _UNSET:
            new_parent_id = _to_id(parent_id, 'parent id')
            if new_parent_id is not None:
                parent = db.session.get(DocumentFolder, new_parent_id)
                if parent is None or parent.user_id != folder.user_id:
                    raise ValidationError('Invalid parent folder')
                if DocumentService._is_descendant(parent, folder):
                    raise ValidationError('Cannot move a folder into itself or one of its subfolders')

        DocumentService._ensure_unique_name(folder.user_id, new_parent_id, new_name, exclude_id=folder.id)
        folder.name = new_name
        folder.parent_id = new_parent_id
        db.session.commit()
        return folder

    @staticmethod
    def delete_folder(actor, folder_id):
        """Remove the folder and its subtree; contained documents move to the root"""
        folder = DocumentService._get_folder(actor, folder_id)

        subtree = [folder.id]
        frontier = [folder.id]
        while frontier:
            children = [row.id for row in DocumentFolder.query.filter(
                DocumentFolder.parent_id.in_(frontier)).all()]
            children = [c for c in children if c not in subtree]
            subtree.extend(children)
            frontier = children

        Document.query.filter(Document.folder_id.in_(subtree)) \
            .update({Document.folder_id: None}, synchronize_session=False)
        # Deepest first so no row ever points at a deleted parent
        for fid in reversed(subtree):
            DocumentFolder.query.filter_by(id=fid).delete(synchronize_session=False)
        db.session.commit()
        db.session.expire_all()
        current_app.logger.info(f'Folder #{folder_id} deleted with {len(subtree) - 1} subfolders')
        return len(subtree)
