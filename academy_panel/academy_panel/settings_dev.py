"""
Development settings - локальная разработка
"""
from .settings import *  # noqa: F401,F403

DEBUG = True
ALLOWED_HOSTS = ['*']

# В dev тенант можно выбрать заголовком X-Tenant-ID с localhost
PLATFORM_DOMAINS = ['localhost', '127.0.0.1']

# Кеш запросов короткий, чтобы правки в БД сразу были видны
QUERY_CACHE_TIMEOUT = 5

LOG_LEVEL = 'DEBUG'
LOGGING = build_logging_config(LOG_LEVEL)  # noqa: F405
