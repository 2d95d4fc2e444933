import os
from dotenv import load_dotenv

# Load .env into the environment
load_dotenv()
basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'hard-to-guess-string'

    # Database
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_RECORD_QUERIES = True

    # Firm / site
    SITE_NAME = os.environ.get('SITE_NAME', 'Himanshu Majithiya & Co.')
    SITE_URL = os.environ.get('SITE_URL', 'https://www.himanshumajithiya.com')
    FIRM_EMAIL = os.environ.get('FIRM_EMAIL', 'info@himanshumajithiya.com')

    # Uploads
    UPLOAD_FOLDER = os.environ.get('UPLOADS_PATH') or os.path.join(basedir, 'instance', 'uploads')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # hard request limit 16MB
    DOCUMENT_MAX_SIZE = 10 * 1024 * 1024
    # AES-GCM at-rest encryption of client documents (disabled when empty)
    DOCUMENT_ENCRYPTION_KEY = os.environ.get('DOCUMENT_ENCRYPTION_KEY', '')
    # Fernet key material for SMTP / social secrets; falls back to SECRET_KEY
    SETTINGS_ENCRYPTION_KEY = os.environ.get('SETTINGS_ENCRYPTION_KEY', '')

    # OTP
    OTP_TTL_MINUTES = 10
    CONTACT_VERIFICATION_WINDOW_MINUTES = 30
    PASSWORD_RESET_MAX_AGE = 60 * 60

    # Cache (SimpleCache by default, Redis in production)
    CACHE_TYPE = os.environ.get('CACHE_TYPE', 'SimpleCache')
    CACHE_DEFAULT_TIMEOUT = 300
    RATELIMIT_ENABLED = True

    @staticmethod
    def init_app(app):
        # Make sure the upload folder exists
        os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

class DevelopmentConfig(Config):
    """Development"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'caportal.db')

class ProductionConfig(Config):
    """Production"""
    DEBUG = False

    DATABASE_URL = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'caportal_prod.db')
    # Hosted PostgreSQL URLs still use the legacy scheme
    if DATABASE_URL and DATABASE_URL.startswith('postgres://'):
        DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = DATABASE_URL

    # Session cookies
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False

config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
