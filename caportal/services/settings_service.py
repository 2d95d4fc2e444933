"""Site settings: SMTP and social auto-post credentials"""
from flask import current_app
from caportal.extensions import db, cache
from caportal.models import SiteSetting
from caportal.utils.crypto import SettingsCipher
from caportal.utils.validators import to_bool

MASK = '********'
CACHE_TIMEOUT = 300

# request field -> setting key
SMTP_FIELDS = {
    'host': 'smtp_host',
    'port': 'smtp_port',
    'user': 'smtp_user',
    'password': 'smtp_pass',
    'fromName': 'smtp_from_name',
    'notificationEmail': 'notification_email',
}
SMTP_SECRETS = ('smtp_pass',)

SOCIAL_FIELDS = {
    'twitter': {
        'enabled': 'social_twitter_enabled',
        'apiKey': 'social_twitter_api_key',
        'apiSecret': 'social_twitter_api_secret',
        'accessToken': 'social_twitter_access_token',
        'accessSecret': 'social_twitter_access_secret',
    },
    'linkedin': {
        'enabled': 'social_linkedin_enabled',
        'accessToken': 'social_linkedin_access_token',
        'personUrn': 'social_linkedin_person_urn',
    },
    'facebook': {
        'enabled': 'social_facebook_enabled',
        'pageAccessToken': 'social_facebook_page_access_token',
        'pageId': 'social_facebook_page_id',
    },
    'instagram': {
        'enabled': 'social_instagram_enabled',
        'instagramAccountId': 'social_instagram_account_id',
    },
}
SOCIAL_SECRETS = (
    'social_twitter_api_secret',
    'social_twitter_access_token',
    'social_twitter_access_secret',
    'social_linkedin_access_token',
    'social_facebook_page_access_token',
)


def _read(keys):
    """Decrypted {key: value} for the stored keys"""
    rows = SiteSetting.query.filter(SiteSetting.key.in_(list(keys))).all()
    cipher = SettingsCipher()
    return {r.key: cipher.decrypt(r.value) if r.is_encrypted else (r.value or '') for r in rows}


@cache.memoize(timeout=CACHE_TIMEOUT)
def load_smtp_settings():
    stored = _read(SMTP_FIELDS.values())
    user = stored.get('smtp_user', '')
    try:
        port = int(stored.get('smtp_port') or 587)
    except ValueError:
        port = 587
    return {
        'host': stored.get('smtp_host') or 'smtp.gmail.com',
        'port': port,
        'user': user,
        'password': stored.get('smtp_pass', ''),
        'fromName': stored.get('smtp_from_name') or current_app.config['SITE_NAME'],
        'notificationEmail': stored.get('notification_email') or user
                             or current_app.config.get('FIRM_EMAIL', ''),
    }


@cache.memoize(timeout=CACHE_TIMEOUT)
def load_social_settings():
    keys = [k for fields in SOCIAL_FIELDS.values() for k in fields.values()]
    stored = _read(keys)
    settings = {}
    for platform, fields in SOCIAL_FIELDS.items():
        entry = {}
        for name, key in fields.items():
            value = stored.get(key, '')
            entry[name] = value == 'true' if name == 'enabled' else value
        settings[platform] = entry
    # Instagram posts through the Facebook Graph API with the page token
    settings['instagram']['pageAccessToken'] = settings['facebook']['pageAccessToken']
    return settings


class SettingsService:

    @staticmethod
    def get(key, default=None):
        row = SiteSetting.query.filter_by(key=key).first()
        if row is None:
            return default
        return SettingsCipher().decrypt(row.value) if row.is_encrypted else row.value

    @staticmethod
    def set(key, value, encrypted=False):
        """Upsert one setting (caller commits)"""
        row = SiteSetting.query.filter_by(key=key).first()
        if row is None:
            row = SiteSetting(key=key)
            db.session.add(row)
        row.value = SettingsCipher().encrypt(value) if encrypted else (value or '')
        row.is_encrypted = bool(encrypted)
        return row

    @staticmethod
    def _save(fields, secrets, data):
        for name, key in fields.items():
            if name not in data:
                continue
            value = data[name]
            if key in secrets:
                # Empty or masked secret keeps what is stored
                if not value or value == MASK:
                    continue
                SettingsService.set(key, str(value), encrypted=True)
            elif name == 'enabled':
                SettingsService.set(key, 'true' if to_bool(value) else 'false')
            else:
                SettingsService.set(key, '' if value is None else str(value).strip())

    @staticmethod
    def get_smtp(masked=True):
        settings = dict(load_smtp_settings())
        if masked and settings['password']:
            settings['password'] = MASK
        settings['configured'] = bool(settings['user'] and settings['password'])
        return settings

    @staticmethod
    def save_smtp(data):
        SettingsService._save(SMTP_FIELDS, SMTP_SECRETS, data)
        db.session.commit()
        cache.delete_memoized(load_smtp_settings)
        current_app.logger.info('SMTP settings updated')
        return SettingsService.get_smtp()

    @staticmethod
    def get_social(masked=True):
        settings = {p: dict(v) for p, v in load_social_settings().items()}
        if masked:
            for platform, fields in SOCIAL_FIELDS.items():
                for name, key in fields.items():
                    if key in SOCIAL_SECRETS and settings[platform][name]:
                        settings[platform][name] = MASK
            if settings['instagram']['pageAccessToken']:
                settings['instagram']['pageAccessToken'] = MASK
        return settings

    @staticmethod
    def save_social(data):
        for platform, fields in SOCIAL_FIELDS.items():
            section = data.get(platform)
            if isinstance(section, dict):
                SettingsService._save(fields, SOCIAL_SECRETS, section)
        db.session.commit()
        cache.delete_memoized(load_social_settings)
        current_app.logger.info('Social media settings updated')
        return SettingsService.get_social()

    @staticmethod
    def enabled_platforms():
        """Upper-case names of platforms switched on"""
        return [p.upper() for p, cfg in load_social_settings().items() if cfg.get('enabled')]
