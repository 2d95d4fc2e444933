"""
Social media auto-posting

Each platform is served by a publisher registered in
app.extensions['social_publishers'][PLATFORM]: a callable taking
(text, post, credentials) and returning (post_id, post_url). Attempts are
tracked in SocialPostLog as PENDING -> POSTED / FAILED.
"""
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, NotFound, Conflict
from caportal.models import BlogPost, Article, Tool, SocialPostLog
from caportal.models.sys import SOCIAL_PLATFORMS, POST_PENDING, POST_POSTED, POST_FAILED
from caportal.services.settings_service import SettingsService

CONTENT_MODELS = {
    'blog': BlogPost,
    'article': Article,
    'tool': Tool,
}

TWITTER_LIMIT = 280
TWITTER_URL_LENGTH = 23  # t.co links count as 23 characters
INSTAGRAM_LIMIT = 2200
ERROR_LIMIT = 500


def register_publisher(app, platform, publisher):
    app.extensions.setdefault('social_publishers', {})[platform.upper()] = publisher


def _hashtags(tags, limit):
    return ' '.join('#' + ''.join(str(t).split()) for t in (tags or [])[:limit] if t)


def build_post(kind, item):
    """Normalised view of a content item for the text builders"""
    site_url = current_app.config['SITE_URL'].rstrip('/')
    if kind == 'blog':
        return {'title': item.title, 'excerpt': item.excerpt or '', 'tags': item.tags or [],
                'url': f'{site_url}/resources/blog/{item.slug}', 'image': item.cover_image}
    if kind == 'article':
        return {'title': item.title, 'excerpt': item.description or '', 'tags': [],
                'url': f'{site_url}/resources/articles/{item.slug or item.id}', 'image': item.cover_image}
    if kind == 'tool':
        return {'title': item.name, 'excerpt': item.short_desc or '', 'tags': [],
                'category': item.category, 'features': item.features or [],
                'url': f'{site_url}/tools/{item.slug}', 'image': item.cover_image}
    raise ValidationError(f'Unknown content type: {kind}')


def build_twitter_text(post):
    hashtags = _hashtags(post['tags'], 3)
    hashtag_len = len(hashtags) + 1 if hashtags else 0
    max_excerpt = TWITTER_LIMIT - TWITTER_URL_LENGTH - hashtag_len - 10

    excerpt = post['excerpt']
    if len(excerpt) > max_excerpt:
        excerpt = excerpt[:max_excerpt - 3] + '...'
    text = f"{excerpt}\n\n{post['url']}"
    if hashtags:
        text += f'\n{hashtags}'
    return text


def build_facebook_text(post):
    hashtags = _hashtags(post['tags'], 5)
    text = f"{post['title']}\n\n{post['excerpt']}\n\nRead more: {post['url']}"
    if hashtags:
        text += f'\n\n{hashtags}'
    return text


# Same layout; LinkedIn's 3,000 char limit is never reached by title + excerpt
build_linkedin_text = build_facebook_text


def build_instagram_caption(post):
    site_url = current_app.config['SITE_URL'].rstrip('/')
    hashtags = _hashtags(post['tags'], 10)
    # Captions cannot carry clickable links
    text = f"{post['title']}\n\n{post['excerpt']}\n\nLink in bio | {site_url}"
    if hashtags:
        text += f'\n\n{hashtags}'
    if len(text) > INSTAGRAM_LIMIT:
        text = text[:INSTAGRAM_LIMIT - 3] + '...'
    return text


TEXT_BUILDERS = {
    'TWITTER': build_twitter_text,
    'LINKEDIN': build_linkedin_text,
    'FACEBOOK': build_facebook_text,
    'INSTAGRAM': build_instagram_caption,
}


def format_category(category):
    """DOCUMENT_AUTOMATION -> Document Automation"""
    return ' '.join(word.capitalize() for word in (category or '').split('_') if word)


def _category_tag(post):
    return '#' + ''.join(format_category(post['category']).split())


def _feature_list(post):
    features = [f for f in (post['features'] or [])[:5] if f]
    if not features:
        return ''
    return '\n\nKey Features:\n' + '\n'.join(f'• {f}' for f in features)


def build_tool_twitter_text(post):
    hashtags = f'{_category_tag(post)} #tools'
    max_text = TWITTER_LIMIT - TWITTER_URL_LENGTH - len(hashtags) - 1 - 10

    text = f"{post['title']} — {post['excerpt']}"
    if len(text) > max_text:
        text = text[:max_text - 3] + '...'
    return f"{text}\n\n{post['url']}\n{hashtags}"


def build_tool_facebook_text(post):
    text = f"{post['title']}\n\n{post['excerpt']}{_feature_list(post)}"
    text += f"\n\nCheck it out: {post['url']}"
    text += f'\n\n{_category_tag(post)} #tools #automation'
    return text


build_tool_linkedin_text = build_tool_facebook_text


def build_tool_instagram_caption(post):
    site_url = current_app.config['SITE_URL'].rstrip('/')
    text = f"{post['title']}\n\n{post['excerpt']}{_feature_list(post)}"
    text += f'\n\nLink in bio | {site_url}'
    text += f'\n\n{_category_tag(post)} #tools #automation #accounting'
    if len(text) > INSTAGRAM_LIMIT:
        text = text[:INSTAGRAM_LIMIT - 3] + '...'
    return text


TOOL_TEXT_BUILDERS = {
    'TWITTER': build_tool_twitter_text,
    'LINKEDIN': build_tool_linkedin_text,
    'FACEBOOK': build_tool_facebook_text,
    'INSTAGRAM': build_tool_instagram_caption,
}


def build_text(kind, platform, post):
    builders = TOOL_TEXT_BUILDERS if kind == 'tool' else TEXT_BUILDERS
    return builders[platform](post)


class SocialService:

    @staticmethod
    def get_content(kind, content_id):
        model = CONTENT_MODELS.get(kind)
        if model is None:
            raise ValidationError(f'Unknown content type: {kind}')
        item = db.session.get(model, content_id)
        if item is None or item.is_deleted:
            raise NotFound('Content not found')
        return item

    @staticmethod
    def _publish(log, post):
        """Run the platform publisher and record the outcome on the log"""
        publisher = current_app.extensions.get('social_publishers', {}).get(log.platform)
        credentials = SettingsService.get_social(masked=False).get(log.platform.lower(), {})
        try:
            if publisher is None:
                raise RuntimeError(f'No publisher registered for {log.platform}')
            text = build_text(log.content_kind, log.platform, post)
            post_id, post_url = publisher(text, post, credentials)
        except Exception as e:
            current_app.logger.error(f'Failed to post {log.content_kind} #{log.content_id} '
                                     f'to {log.platform}: {e}')
            log.status = POST_FAILED
            log.error = str(e)[:ERROR_LIMIT]
        else:
            log.status = POST_POSTED
            log.post_id = str(post_id) if post_id is not None else None
            log.post_url = post_url
            log.error = None
            current_app.logger.info(f'Posted {log.content_kind} #{log.content_id} to {log.platform}')
        db.session.commit()
        return log

    @staticmethod
    def auto_post(kind, item):
        """Post to every enabled platform that has not carried this item yet"""
        platforms = SettingsService.enabled_platforms()
        if not platforms:
            return []

        posted = {
            row.platform for row in SocialPostLog.query.filter_by(
                content_kind=kind, content_id=item.id, status=POST_POSTED)
        }
        post = build_post(kind, item)
        logs = []
        for platform in platforms:
            if platform in posted:
                continue
            log = SocialPostLog(content_kind=kind, content_id=item.id,
                                platform=platform, status=POST_PENDING)
            db.session.add(log)
            db.session.commit()
            logs.append(SocialService._publish(log, post))
        return logs

    @staticmethod
    def retry(log_id):
        log = db.session.get(SocialPostLog, log_id)
        if log is None:
            raise NotFound('Log entry not found')
        if log.status == POST_POSTED:
            raise Conflict('Already posted successfully')

        item = SocialService.get_content(log.content_kind, log.content_id)
        log.status = POST_PENDING
        log.error = None
        db.session.commit()
        return SocialService._publish(log, build_post(log.content_kind, item))

    @staticmethod
    def post_now(kind, item, platform):
        """Manual post to one platform; always creates a fresh log"""
        platform = (platform or '').upper()
        if platform not in SOCIAL_PLATFORMS:
            raise ValidationError(f'Unknown platform: {platform}')
        log = SocialPostLog(content_kind=kind, content_id=item.id,
                            platform=platform, status=POST_PENDING)
        db.session.add(log)
        db.session.commit()
        return SocialService._publish(log, build_post(kind, item))

    @staticmethod
    def status(kind, content_id):
        return SocialPostLog.query.filter_by(content_kind=kind, content_id=content_id) \
            .order_by(SocialPostLog.created_at.desc(), SocialPostLog.id.desc()).all()
