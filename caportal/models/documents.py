from caportal.extensions import db
from .base import BaseModel

DOCUMENT_CATEGORIES = ('TAX_RETURNS', 'AUDIT_REPORTS', 'GST_RETURNS', 'COMPLIANCE', 'INVOICES', 'OTHER')


class DocumentFolder(BaseModel):
    """Client folder (parent-pointer tree per owner)"""
    __tablename__ = 'portal_folders'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'parent_id', 'name', name='uq_folder_name_per_parent'),
    )

    name = db.Column(db.String(128), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('auth_users.id'), nullable=False, index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey('portal_folders.id'), nullable=True, index=True)

    user = db.relationship('User', backref=db.backref('folders', lazy='dynamic'))
    children = db.relationship('DocumentFolder',
                               backref=db.backref('parent', remote_side='DocumentFolder.id'),
                               order_by='DocumentFolder.name')
    documents = db.relationship('Document', backref='folder', lazy='dynamic')

    def to_dict(self, counts=True):
        data = super().to_dict()
        if counts:
            data['_count'] = {
                'documents': self.documents.count(),
                'children': len(self.children),
            }
        return data


class Document(BaseModel):
    """File in a client's document locker"""
    __tablename__ = 'portal_documents'
    __private_fields__ = ('file_path',)

    title = db.Column(db.String(256), nullable=False)
    description = db.Column(db.Text)
    file_name = db.Column(db.String(256), nullable=False)
    file_path = db.Column(db.String(512), nullable=False)  # relative to the upload folder
    file_size = db.Column(db.Integer, default=0)
    file_type = db.Column(db.String(128))                   # MIME type
    category = db.Column(db.String(32), default='OTHER', index=True)
    uploaded_by = db.Column(db.String(16), default='CLIENT')  # ADMIN or CLIENT
    is_encrypted = db.Column(db.Boolean, default=False)

    user_id = db.Column(db.Integer, db.ForeignKey('auth_users.id'), nullable=False, index=True)
    folder_id = db.Column(db.Integer, db.ForeignKey('portal_folders.id'), nullable=True, index=True)

    user = db.relationship('User', backref=db.backref('documents', lazy='dynamic'))

    def to_dict(self):
        data = super().to_dict()
        data['user'] = {'name': self.user.name, 'email': self.user.email} if self.user else None
        return data
