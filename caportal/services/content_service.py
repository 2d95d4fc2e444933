"""CMS content: blog posts, articles, downloads, tools"""
import json
from datetime import datetime
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, NotFound, Conflict
from caportal.models import BlogPost, Article, Download, Tool
from caportal.models.content import (
    BLOG_CATEGORIES, RESOURCE_CATEGORIES, TOOL_CATEGORIES, TOOL_TYPES, LICENSE_TYPES
)
from caportal.services.social_service import SocialService
from caportal.utils.file_helper import save_file, remove_file, RESOURCE_MIME_TYPES, RESOURCES_DIR
from caportal.utils.validators import slugify, to_bool, to_amount

# request field -> column
BLOG_FIELDS = {
    'title': 'title', 'excerpt': 'excerpt', 'content': 'content', 'category': 'category',
    'coverImage': 'cover_image', 'tags': 'tags', 'isPublished': 'is_published',
}
RESOURCE_FIELDS = {
    'title': 'title', 'description': 'description', 'category': 'category',
    'sortOrder': 'sort_order', 'isActive': 'is_active',
}
TOOL_FIELDS = {
    'name': 'name', 'description': 'description', 'shortDesc': 'short_desc', 'version': 'version',
    'category': 'category', 'toolType': 'tool_type', 'price': 'price', 'licenseType': 'license_type',
    'licenseDuration': 'license_duration', 'downloadUrl': 'download_url',
    'requirements': 'requirements', 'setupGuide': 'setup_guide', 'features': 'features',
    'screenshots': 'screenshots', 'coverImage': 'cover_image', 'isActive': 'is_active',
}
LIST_COLUMNS = ('tags', 'features', 'screenshots')
BOOL_COLUMNS = ('is_published', 'is_active')
INT_COLUMNS = ('sort_order', 'license_duration')

CHOICES = {
    BlogPost: {'category': BLOG_CATEGORIES},
    Article: {'category': RESOURCE_CATEGORIES},
    Download: {'category': RESOURCE_CATEGORIES},
    Tool: {'category': TOOL_CATEGORIES, 'tool_type': TOOL_TYPES, 'license_type': LICENSE_TYPES},
}

SOCIAL_KIND = {BlogPost: 'blog', Article: 'article', Tool: 'tool'}


def as_list(value):
    """JSON list, JSON-encoded list or comma separated string"""
    if value is None or value == '':
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if text.startswith('['):
        try:
            return as_list(json.loads(text))
        except ValueError:
            pass
    return [part.strip() for part in text.split(',') if part.strip()]


def _apply(obj, data, fields):
    for name, column in fields.items():
        if name not in data:
            continue
        value = data[name]
        if column in LIST_COLUMNS:
            value = as_list(value)
        elif column in BOOL_COLUMNS:
            value = to_bool(value)
        elif column in INT_COLUMNS:
            value = int(to_amount(value)) if value not in (None, '') else None
        elif column == 'price':
            value = to_amount(value) if value not in (None, '') else None
        elif isinstance(value, str):
            value = value.strip()
        allowed = CHOICES.get(type(obj), {}).get(column)
        if allowed and value not in allowed:
            raise ValidationError(f'Invalid {name}: {value}')
        setattr(obj, column, value)


def _unique_slug(model, slug, exclude_id=None):
    slug = slugify(slug)
    if not slug:
        raise ValidationError('Slug cannot be empty')
    query = model.query.filter_by(slug=slug)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first() is not None:
        raise Conflict(f'A {model.__name__.lower()} with slug "{slug}" already exists')
    return slug


def _get(model, item_id, label):
    item = db.session.get(model, item_id)
    if item is None or item.is_deleted:
        raise NotFound(f'{label} not found')
    return item


def _announce(item, was_live):
    """Auto-post content that has just gone live"""
    kind = SOCIAL_KIND.get(type(item))
    live = item.is_published if isinstance(item, BlogPost) else item.is_active
    if kind and live and not was_live:
        SocialService.auto_post(kind, item)


class ContentService:

    # ---- blog ----
    @staticmethod
    def get_blog(post_id):
        return _get(BlogPost, post_id, 'Post')

    @staticmethod
    def list_blog():
        return BlogPost.query.filter_by(is_deleted=False).order_by(BlogPost.created_at.desc()).all()

    @staticmethod
    def create_blog(data, author=None):
        if not data.get('title') or not data.get('excerpt') or not data.get('content'):
            raise ValidationError('Title, excerpt, and content are required')
        post = BlogPost(author_id=author.id if author else None)
        _apply(post, data, BLOG_FIELDS)
        post.slug = _unique_slug(BlogPost, data.get('slug') or post.title)
        if post.is_published:
            post.published_at = datetime.utcnow()
        db.session.add(post)
        db.session.commit()
        current_app.logger.info(f'Blog post created: {post.slug}')
        _announce(post, False)
        return post

    @staticmethod
    def update_blog(post_id, data):
        post = ContentService.get_blog(post_id)
        was_published = bool(post.is_published)
        _apply(post, data, BLOG_FIELDS)
        if data.get('slug') and slugify(data['slug']) != post.slug:
            post.slug = _unique_slug(BlogPost, data['slug'], exclude_id=post.id)
        # published_at is stamped once, on first publication
        if post.is_published and not post.published_at:
            post.published_at = datetime.utcnow()
        db.session.commit()
        _announce(post, was_published)
        return post

    @staticmethod
    def delete_blog(post_id):
        post = ContentService.get_blog(post_id)
        db.session.delete(post)
        db.session.commit()
        current_app.logger.info(f'Blog post deleted: {post.slug}')

    @staticmethod
    def published_blog(category=None, page=1, per_page=10):
        query = BlogPost.query.filter_by(is_deleted=False, is_published=True)
        if category:
            query = query.filter_by(category=category)
        return query.order_by(BlogPost.published_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )

    @staticmethod
    def view_blog(slug):
        post = BlogPost.query.filter_by(slug=slug, is_published=True, is_deleted=False).first()
        if post is None:
            raise NotFound('Post not found')
        post.view_count = (post.view_count or 0) + 1
        db.session.commit()
        return post

    # ---- articles / downloads ----
    @staticmethod
    def get_resource(model, item_id):
        return _get(model, item_id, model.__name__)

    @staticmethod
    def list_resources(model, active_only=False):
        query = model.query.filter_by(is_deleted=False)
        if active_only:
            query = query.filter_by(is_active=True)
        return query.order_by(model.sort_order.asc(), model.created_at.desc()).all()

    @staticmethod
    def _attach(item, file):
        stored = save_file(file, RESOURCE_MIME_TYPES, RESOURCES_DIR,
                           max_size=current_app.config['MAX_CONTENT_LENGTH'])
        old_path = item.file_path
        item.file_name = stored['original_name']
        item.file_path = stored['path']
        item.file_size = stored['size']
        item.file_type = stored['display_type']
        return old_path

    @staticmethod
    def create_resource(model, data, file):
        if not data.get('title'):
            raise ValidationError('Title is required')
        if file is None:
            raise ValidationError('File is required')
        item = model()
        _apply(item, data, RESOURCE_FIELDS)
        if model is Article:
            item.slug = _unique_slug(Article, data.get('slug') or item.title)
            item.cover_image = data.get('coverImage') or None
        ContentService._attach(item, file)
        db.session.add(item)
        db.session.commit()
        current_app.logger.info(f'{model.__name__} created: {item.title}')
        _announce(item, False)
        return item

    @staticmethod
    def update_resource(model, item_id, data, file=None):
        item = ContentService.get_resource(model, item_id)
        was_active = bool(item.is_active)
        _apply(item, data, RESOURCE_FIELDS)
        if model is Article:
            if data.get('slug') and slugify(data['slug']) != item.slug:
                item.slug = _unique_slug(Article, data['slug'], exclude_id=item.id)
            if 'coverImage' in data:
                item.cover_image = data['coverImage'] or None
        old_path = ContentService._attach(item, file) if file is not None else None
        db.session.commit()
        if old_path:
            remove_file(old_path)
        _announce(item, was_active)
        return item

    @staticmethod
    def delete_resource(model, item_id):
        item = ContentService.get_resource(model, item_id)
        path = item.file_path
        db.session.delete(item)
        db.session.commit()
        remove_file(path)

    @staticmethod
    def articles_by_category():
        grouped = {}
        for article in ContentService.list_resources(Article, active_only=True):
            grouped.setdefault(article.category, []).append(article)
        return grouped

    @staticmethod
    def article_by_slug(slug):
        article = Article.query.filter_by(slug=slug, is_active=True, is_deleted=False).first()
        if article is None:
            raise NotFound('Article not found')
        return article

    # ---- tools ----
    @staticmethod
    def get_tool(tool_id):
        return _get(Tool, tool_id, 'Tool')

    @staticmethod
    def list_tools(active_only=False, category=None):
        query = Tool.query.filter_by(is_deleted=False)
        if active_only:
            query = query.filter_by(is_active=True)
        if category:
            query = query.filter_by(category=category)
        return query.order_by(Tool.created_at.desc()).all()

    @staticmethod
    def tool_by_slug(slug):
        tool = Tool.query.filter_by(slug=slug, is_active=True, is_deleted=False).first()
        if tool is None:
            raise NotFound('Tool not found')
        return tool

    @staticmethod
    def create_tool(data):
        if not data.get('name') or not data.get('description') or not data.get('shortDesc'):
            raise ValidationError('Name, description, and short description are required')
        tool = Tool()
        _apply(tool, data, TOOL_FIELDS)
        tool.slug = _unique_slug(Tool, data.get('slug') or tool.name)
        if tool.is_active is None:
            tool.is_active = True
        db.session.add(tool)
        db.session.commit()
        current_app.logger.info(f'Tool created: {tool.slug}')
        _announce(tool, False)
        return tool

    @staticmethod
    def update_tool(tool_id, data):
        tool = ContentService.get_tool(tool_id)
        was_active = bool(tool.is_active)
        _apply(tool, data, TOOL_FIELDS)
        if data.get('slug') and slugify(data['slug']) != tool.slug:
            tool.slug = _unique_slug(Tool, data['slug'], exclude_id=tool.id)
        db.session.commit()
        _announce(tool, was_active)
        return tool

    @staticmethod
    def delete_tool(tool_id):
        tool = ContentService.get_tool(tool_id)
        db.session.delete(tool)
        db.session.commit()
