from caportal.extensions import db
from .base import BaseModel

BLOG_CATEGORIES = ('TAX_UPDATES', 'GST_UPDATES', 'AUTOMATION_TIPS', 'COMPLIANCE', 'FFMC_RBI', 'GENERAL')
RESOURCE_CATEGORIES = ('GUIDES_TEMPLATES', 'FORMS', 'CHECKLISTS', 'TOOLS', 'OTHER')
TOOL_CATEGORIES = ('DOCUMENT_AUTOMATION', 'DATA_PROCESSING', 'REDACTION', 'TAX_TOOLS',
                   'COMPLIANCE', 'UTILITY', 'OTHER')
TOOL_TYPES = ('WEB_APP', 'DOWNLOADABLE', 'ONLINE', 'HYBRID')
LICENSE_TYPES = ('FREE', 'ONE_TIME', 'ANNUAL', 'MONTHLY')


class BlogPost(BaseModel):
    """Blog post"""
    __tablename__ = 'cms_blog_posts'

    title = db.Column(db.String(256), nullable=False)
    slug = db.Column(db.String(256), unique=True, index=True, nullable=False)
    excerpt = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)  # Markdown / HTML
    category = db.Column(db.String(32), default='GENERAL')
    cover_image = db.Column(db.String(512))
    tags = db.Column(db.JSON, default=list)

    is_published = db.Column(db.Boolean, default=False, index=True)
    published_at = db.Column(db.DateTime)
    view_count = db.Column(db.Integer, default=0)

    author_id = db.Column(db.Integer, db.ForeignKey('auth_users.id'))
    author = db.relationship('User')


class FileResourceMixin:
    """File metadata shared by downloadable resources"""
    title = db.Column(db.String(256), nullable=False)
    description = db.Column(db.Text)
    file_name = db.Column(db.String(256))  # original name
    file_path = db.Column(db.String(512))  # stored name, relative to the upload folder
    file_size = db.Column(db.Integer, default=0)
    file_type = db.Column(db.String(32))   # display name: PDF, Excel, ...
    category = db.Column(db.String(32), default='OTHER')
    sort_order = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True, index=True)
    download_count = db.Column(db.Integer, default=0)


class Article(FileResourceMixin, BaseModel):
    """Downloadable article (guide, template, checklist ...)"""
    __tablename__ = 'cms_articles'

    slug = db.Column(db.String(256), unique=True, index=True)
    cover_image = db.Column(db.String(512))


class Download(FileResourceMixin, BaseModel):
    """Generic downloadable file"""
    __tablename__ = 'cms_downloads'


class Tool(BaseModel):
    """Tools catalog entry"""
    __tablename__ = 'cms_tools'

    name = db.Column(db.String(256), nullable=False)
    slug = db.Column(db.String(256), unique=True, index=True, nullable=False)
    description = db.Column(db.Text, nullable=False)
    short_desc = db.Column(db.String(512), nullable=False)
    version = db.Column(db.String(32), default='1.0.0')
    category = db.Column(db.String(32), default='UTILITY')
    tool_type = db.Column(db.String(32), default='DOWNLOADABLE')
    price = db.Column(db.Float)
    license_type = db.Column(db.String(32), default='FREE')
    license_duration = db.Column(db.Integer)  # days
    download_url = db.Column(db.String(512))
    requirements = db.Column(db.Text)
    setup_guide = db.Column(db.Text)
    features = db.Column(db.JSON, default=list)
    screenshots = db.Column(db.JSON, default=list)
    cover_image = db.Column(db.String(512))

    download_count = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, default=True, index=True)


class DownloadLead(BaseModel):
    """Visitor who requested a gated resource"""
    __tablename__ = 'cms_download_leads'
    __private_fields__ = ('otp', 'otp_expiry')

    resource_kind = db.Column(db.String(16), nullable=False, index=True)  # download, article, tool
    resource_id = db.Column(db.Integer, nullable=False, index=True)

    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(128), nullable=False, index=True)
    phone = db.Column(db.String(20))
    company = db.Column(db.String(128))

    otp = db.Column(db.String(8))
    otp_expiry = db.Column(db.DateTime)
    verified = db.Column(db.Boolean, default=False, index=True)
    downloaded_at = db.Column(db.DateTime)
