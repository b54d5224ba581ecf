"""DeTransport Ads Django settings."""

import os
from pathlib import Path
from typing import Iterable

from django.core.exceptions import ImproperlyConfigured
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.environ.get(name) or "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def _env_list(name: str, default: Iterable[str] | None = None) -> list[str]:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]


DEBUG = _env_bool("DJANGO_DEBUG", default=True)  # default True for local; set False in production
SECRET_KEY = (os.environ.get("DJANGO_SECRET_KEY") or "").strip() or "dev-change-in-production-detransport"
if not DEBUG and not (os.environ.get("DJANGO_SECRET_KEY") or "").strip():
    raise ImproperlyConfigured("DJANGO_SECRET_KEY must be set when DJANGO_DEBUG is false.")

ALLOWED_HOSTS = _env_list(
    "DJANGO_ALLOWED_HOSTS",
    default=[
        "ads.detransport.com.ua",
        "localhost",
        "127.0.0.1",
    ],
)

CSRF_TRUSTED_ORIGINS = _env_list(
    "DJANGO_CSRF_TRUSTED_ORIGINS",
    default=["https://ads.detransport.com.ua"],
)

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'ads',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'ads.middleware.CorsAllowListMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'detransport.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'detransport.wsgi.application'

# SQLite: timeout reduces lock wait; WAL via connection_created in ads.apps
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.environ.get('DJANGO_DB_PATH') or BASE_DIR / 'db.sqlite3',
        'OPTIONS': {
            'timeout': 15,
        },
        'CONN_MAX_AGE': 0,
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'uk'
TIME_ZONE = 'Europe/Kyiv'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {
        'BACKEND': (
            'django.contrib.staticfiles.storage.StaticFilesStorage' if DEBUG
            else 'whitenoise.storage.CompressedManifestStaticFilesStorage'
        ),
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Security defaults
SESSION_COOKIE_SECURE = not DEBUG
CSRF_COOKIE_SECURE = not DEBUG
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# Telegram
TELEGRAM_BOT_TOKEN = (os.environ.get('TELEGRAM_BOT_TOKEN') or os.environ.get('BOT_TOKEN') or '').strip()
# polling (default): runbot starts the getUpdates loop. webhook: Telegram POSTs to /telegram/webhook/.
TELEGRAM_MODE = os.environ.get('TELEGRAM_MODE', 'polling').lower()
if TELEGRAM_MODE not in ('polling', 'webhook'):
    TELEGRAM_MODE = 'polling'
TELEGRAM_WEBHOOK_SECRET = (os.environ.get('TELEGRAM_WEBHOOK_SECRET') or '').strip()
PUBLIC_URL = (os.environ.get('PUBLIC_URL') or '').strip().rstrip('/')

# Ads
ADS_ADMIN_TELEGRAM_ID = (os.environ.get('ADS_ADMIN_TELEGRAM_ID') or os.environ.get('ADMIN_TG_ID') or '').strip()
ADS_CORS_ALLOWED_ORIGINS = _env_list(
    'ADS_CORS_ALLOWED_ORIGINS',
    default=[
        'https://detransport.com.ua',
        'https://www.detransport.com.ua',
    ],
)
ADS_PAYMENT_CARD = (os.environ.get('ADS_PAYMENT_CARD') or '5375 4111 2233 4455').strip()
ADS_PAYMENT_IBAN = (os.environ.get('ADS_PAYMENT_IBAN') or 'UA12 3456 7890 1234 5678 9012 345').strip()

# Logging: separate rotating file for the bot runtime.
LOGS_DIR = BASE_DIR / 'logs'
LOGS_DIR.mkdir(exist_ok=True)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} [{levelname}] {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
        'bot_log_file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': str(LOGS_DIR / 'bot_log.txt'),
            'maxBytes': 2 * 1024 * 1024,  # 2 MB
            'backupCount': 2,
            'formatter': 'verbose',
            'encoding': 'utf-8',
        },
    },
    'loggers': {
        'ads': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'ads.services.bot_worker': {
            'handlers': ['bot_log_file', 'console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
