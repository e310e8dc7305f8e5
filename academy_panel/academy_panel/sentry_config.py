"""
Sentry Integration для Django.
Отправляет ошибки в Sentry для error tracking.

Настройка:
1. Получить DSN проекта в Sentry
2. Добавить в окружение: SENTRY_DSN=https://xxx@xxx.ingest.sentry.io/xxx
3. init_sentry() вызывается в конце settings.py
"""
import os
import logging

from .safe_logging import REDACTED

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = ('password', 'token', 'secret', 'api_key')


def init_sentry():
    """
    Инициализирует Sentry SDK.
    Без SENTRY_DSN ничего не делает и возвращает False.
    """
    sentry_dsn = os.environ.get('SENTRY_DSN', '')

    if not sentry_dsn:
        logger.info("Sentry: DSN not configured, skipping initialization")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
    from sentry_sdk.integrations.redis import RedisIntegration

    environment = os.environ.get('DJANGO_ENV', 'production')
    if os.environ.get('DEBUG', 'False').lower() in ('true', '1', 'yes'):
        environment = 'development'

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            DjangoIntegration(transaction_style='url'),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            RedisIntegration(),
        ],
        environment=environment,
        release=os.environ.get('APP_VERSION', 'unknown'),
        traces_sample_rate=float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE', '0.1')),
        send_default_pii=False,
        ignore_errors=[
            'django.security.DisallowedHost',
        ],
        before_send=before_send_callback,
    )

    logger.info("Sentry: initialized for %s environment", environment)
    return True


def before_send_callback(event, hint):
    """
    Фильтрация событий перед отправкой в Sentry.

    404 не отправляем; пароли, токены и Authorization маскируем.
    """
    if 'exc_info' in hint:
        exc_type, _exc_value, _tb = hint['exc_info']
        if exc_type.__name__ in ('Http404', 'NotFound'):
            return None

    request_data = event.get('request')
    if request_data:
        data = request_data.get('data')
        if isinstance(data, dict):
            for key in SENSITIVE_KEYS:
                if key in data:
                    data[key] = REDACTED

        headers = request_data.get('headers')
        if isinstance(headers, dict) and 'Authorization' in headers:
            headers['Authorization'] = REDACTED

    return event
