import os

APP_DIR = os.path.dirname(os.path.abspath(__file__))
BASE_DIR = os.path.dirname(APP_DIR)
DATA_DIR = os.path.join(BASE_DIR, 'data')
UPLOADS_DIR = os.path.join(BASE_DIR, 'uploads')
PUBLIC_DIR = os.path.join(BASE_DIR, 'public')

SPEAKERS_FILENAME = 'speakers.json'
CONTENT_FILENAME = 'content.json'
USERS_FILENAME = 'users.json'
SECRET_KEY_FILENAME = '.secret_key'

BUILD_VERSION = '20261019_1200'

CACHE_TTL_SECONDS = 60
SESSION_TTL_SECONDS = 24 * 60 * 60
SESSION_COOKIE_NAME = 'cms_session'

MIN_PASSWORD_LENGTH = 8
USERNAME_PATTERN = r'^[A-Za-z0-9_-]+$'

# Only used when nothing else is configured, always logged as a warning
DEFAULT_ADMIN_USERNAME = 'admin'
DEFAULT_ADMIN_PASSWORD = 'changeme123'

MAX_UPLOAD_SIZE = 5 * 1024 * 1024
ALLOWED_IMAGE_EXTENSIONS = ['jpeg', 'jpg', 'png', 'gif']
UPLOADS_URL_PREFIX = '/uploads'

LOGIN_RATE_LIMIT = '20 per minute'

DEFAULT_SPEAKERS = []
DEFAULT_CONTENT = {
    "en": {},
    "fr": {},
}

DEFAULT_SETTINGS = {
    "paths": {
        "data_dir": DATA_DIR,
        "uploads_dir": UPLOADS_DIR,
        "public_dir": PUBLIC_DIR,
    },
    "admin": {
        "username": None,
        "password": None,
        "password_hash": None,
    },
    "session": {
        "secret": None,
        "ttl_seconds": SESSION_TTL_SECONDS,
        "cookie_secure": False,
        "redis_url": None,
    },
    "cache": {
        "ttl_seconds": CACHE_TTL_SECONDS,
    },
    "ratelimit": {
        "enabled": True,
    },
}
