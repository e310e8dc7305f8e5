"""
Django settings for academy_panel project.

Все значения, зависящие от окружения, читаются из переменных окружения.
Для локальной разработки используйте settings_dev.py:

    DJANGO_SETTINGS_MODULE=academy_panel.settings_dev python manage.py runserver
"""
import os
from datetime import timedelta
from pathlib import Path

from .safe_logging import build_logging_config

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def env_list(name, default=''):
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(',') if item.strip()]


# === Безопасность ===
SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-insecure-academy-panel-key')
DEBUG = env_bool('DEBUG', False)
ALLOWED_HOSTS = env_list('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver')
CSRF_TRUSTED_ORIGINS = env_list('CSRF_TRUSTED_ORIGINS')

VERSION = os.environ.get('APP_VERSION', '1.0.0')

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework_simplejwt',
    'tenants',
    'accounts',
    'core',
    'schedule',
    'finance',
    'analytics',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    # После AuthenticationMiddleware: нужен request.user
    'tenants.middleware.TenantMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'academy_panel.urls'

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

WSGI_APPLICATION = 'academy_panel.wsgi.application'

# === База данных ===
# PostgreSQL в production (DB_ENGINE=postgresql), SQLite по умолчанию.
if os.environ.get('DB_ENGINE', 'sqlite') == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DB_NAME', 'academy_panel'),
            'USER': os.environ.get('DB_USER', 'academy'),
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '5432'),
            'CONN_MAX_AGE': int(os.environ.get('DB_CONN_MAX_AGE', '60')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }

# === Кеш ===
# Redis для общего кеша запросов между воркерами, иначе локальная память.
REDIS_URL = os.environ.get('REDIS_URL', '')
if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
            'KEY_PREFIX': 'academy',
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'academy-panel',
        }
    }

QUERY_CACHE_TIMEOUT = int(os.environ.get('QUERY_CACHE_TIMEOUT', '300'))

AUTH_USER_MODEL = 'accounts.CustomUser'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# === Локализация ===
LANGUAGE_CODE = os.environ.get('LANGUAGE_CODE', 'en-us')
TIME_ZONE = os.environ.get('TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# === DRF ===
# Аутентификация делегирована внешнему identity provider:
# здесь только проверка JWT и сессии для Django admin.
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'EXCEPTION_HANDLER': 'academy_panel.exceptions.api_exception_handler',
    'DATETIME_FORMAT': '%Y-%m-%dT%H:%M:%S%z',
    # Денежные суммы сортируются в таблицах как числа
    'COERCE_DECIMAL_TO_STRING': False,
    # ?format= используется выгрузкой статистики (xlsx/csv), а не выбором рендерера
    'URL_FORMAT_OVERRIDE': None,
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.environ.get('JWT_ACCESS_MINUTES', '60'))),
    'SIGNING_KEY': os.environ.get('JWT_SIGNING_KEY', SECRET_KEY),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# === Multi-tenant ===
PLATFORM_DOMAINS = env_list('PLATFORM_DOMAINS', 'academy-panel.app,www.academy-panel.app')
DEFAULT_TENANT_SLUG = os.environ.get('DEFAULT_TENANT_SLUG', 'academy')
TENANT_CACHE_TTL = int(os.environ.get('TENANT_CACHE_TTL', '300'))

# === Таблицы (DataTable) ===
DATATABLE_PAGE_SIZE = int(os.environ.get('DATATABLE_PAGE_SIZE', '8'))
DATATABLE_MAX_PAGE_SIZE = int(os.environ.get('DATATABLE_MAX_PAGE_SIZE', '100'))

# === Статистика ===
MONTHLY_REVENUE_TARGET = int(os.environ.get('MONTHLY_REVENUE_TARGET', '10000'))
ATTENDANCE_RATE_TARGET = int(os.environ.get('ATTENDANCE_RATE_TARGET', '90'))
NEW_STUDENTS_TARGET = int(os.environ.get('NEW_STUDENTS_TARGET', '50'))
REPORT_CURRENCY = os.environ.get('REPORT_CURRENCY', 'USD')

# === Логирование ===
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
LOGGING = build_logging_config(LOG_LEVEL)

# === Sentry ===
from .sentry_config import init_sentry  # noqa: E402

init_sentry()
