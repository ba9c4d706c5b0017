"""
Django settings for ldap_gateway project.

値はすべて環境変数 (.env 可) から読み込む。LDAP / JWT の必須値が欠けている場合は
各アプリの AppConfig.ready() で ImproperlyConfigured となり起動しない。
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_int(name, default):
    value = os.getenv(name)
    return int(value) if value not in (None, '') else default


def env_list(name):
    return [item.strip() for item in os.getenv(name, '').split(',') if item.strip()]


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-me')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = env_list('DJANGO_ALLOWED_HOSTS') or ['localhost', '127.0.0.1']

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'directory',
    'accounts',
    'monitoring',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'ldap_gateway.urls'
ASGI_APPLICATION = 'ldap_gateway.asgi.application'

# ディレクトリ状態は保持しない。DB は Django 本体の要求を満たすためだけに置く
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

LANGUAGE_CODE = 'ja'
TIME_ZONE = 'Asia/Tokyo'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ================== REST framework ==================
REST_FRAMEWORK = {
    # 認証はディレクトリ bind で行うため DRF 側のセッション/ユーザ解決は無効化
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_RENDERER_CLASSES': ['rest_framework.renderers.JSONRenderer'],
    'DEFAULT_THROTTLE_CLASSES': ['rest_framework.throttling.AnonRateThrottle'],
    'DEFAULT_THROTTLE_RATES': {'anon': os.getenv('API_THROTTLE_RATE', '15/min')},
}

# ================== LDAP ==================
LDAP_SERVER_URL = os.getenv('LDAP_SERVER_URL', '')
LDAP_SEARCH_BASE = os.getenv('LDAP_SEARCH_BASE', os.getenv('LDAP_BASE_DN', ''))
LDAP_DOMAIN = os.getenv('LDAP_DOMAIN', '')
LDAP_BIND_FORMAT = os.getenv('LDAP_BIND_FORMAT', 'upn')
LDAP_USER_ATTRIBUTE = os.getenv('LDAP_USER_ATTRIBUTE', 'sAMAccountName')
LDAP_USE_SSL = env_bool('LDAP_USE_SSL', LDAP_SERVER_URL.lower().startswith('ldaps://'))
LDAP_FORCE_STARTTLS = env_bool('LDAP_FORCE_STARTTLS', False)
LDAP_TLS_INSECURE = env_bool('LDAP_TLS_INSECURE', False)
LDAP_CONNECT_TIMEOUT = env_int('LDAP_CONNECT_TIMEOUT', 10)
LDAP_RECEIVE_TIMEOUT = env_int('LDAP_RECEIVE_TIMEOUT', 30)
LDAP_SEARCH_SIZE_LIMIT = env_int('LDAP_SEARCH_SIZE_LIMIT', 0)
LDAP_GROUP_MATCH = os.getenv('LDAP_GROUP_MATCH', 'substring')
LDAP_REPORT_EXCLUDE_DISABLED = env_bool('LDAP_REPORT_EXCLUDE_DISABLED', True)
LDAP_REPORT_INCLUDE_NEVER_LOGGED_ON = env_bool('LDAP_REPORT_INCLUDE_NEVER_LOGGED_ON', False)

# ================== トークン発行 ==================
JWT_SECRET = os.getenv('JWT_SECRET', '')
JWT_ALGORITHM = 'HS256'
JWT_EXPIRES_HOURS = env_int('JWT_EXPIRES_HOURS', 8)
JWT_COMPANY_CLAIM = os.getenv('JWT_COMPANY_CLAIM', '')

# ================== 監視 / メール通知 ==================
EMAIL_HOST = os.getenv('SMTP_HOST', 'localhost')
EMAIL_PORT = env_int('SMTP_PORT', 465)
EMAIL_HOST_USER = os.getenv('SMTP_USER', '')
EMAIL_HOST_PASSWORD = os.getenv('SMTP_PASS', '')
EMAIL_USE_SSL = env_bool('SMTP_USE_SSL', True)
EMAIL_TIMEOUT = env_int('SMTP_TIMEOUT', 10)
DEFAULT_FROM_EMAIL = os.getenv('DEFAULT_FROM_EMAIL', EMAIL_HOST_USER or 'ldap-gateway@localhost')
DIRECTORY_ALERT_RECIPIENTS = env_list('DIRECTORY_ALERT_RECIPIENTS')
DIRECTORY_PROBE_TIMEOUT = env_int('DIRECTORY_PROBE_TIMEOUT', 3)

# ================== Logging ==================
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django.security.authentication': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'directory': {
            'handlers': ['console'],
            'level': os.getenv('LDAP_DEBUG_LEVEL', LOG_LEVEL).upper(),
            'propagate': False,
        },
        'monitoring': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
