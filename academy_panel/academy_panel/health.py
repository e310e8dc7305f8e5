"""
Health Check Endpoint for Monitoring
=====================================
Используется системой мониторинга для проверки состояния приложения.
"""
import time
import uuid

from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse


def _check_database():
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
        cursor.fetchone()


def _check_cache():
    # Кеш запросов живёт в Redis в production, поэтому он критичен
    probe_key = f'health:{uuid.uuid4().hex}'
    cache.set(probe_key, 'ok', 5)
    if cache.get(probe_key) != 'ok':
        raise RuntimeError('cache read-back mismatch')
    cache.delete(probe_key)


def health_check(request):
    """
    Health check endpoint для мониторинга.

    Возвращает:
    - 200 если всё работает
    - 500 если есть критические проблемы

    Проверяет:
    - Соединение с базой данных
    - Доступность кеша (Redis / locmem)
    - Наличие критических настроек
    """
    status = {
        'status': 'healthy',
        'timestamp': time.time(),
        'version': getattr(settings, 'VERSION', '1.0.0'),
        'checks': {}
    }

    # 1. Проверка базы данных
    try:
        _check_database()
        status['checks']['database'] = 'ok'
    except Exception as e:
        status['status'] = 'unhealthy'
        status['checks']['database'] = f'error: {str(e)[:100]}'

    # 2. Проверка кеша
    try:
        _check_cache()
        status['checks']['cache'] = 'ok'
    except Exception as e:
        status['status'] = 'unhealthy'
        status['checks']['cache'] = f'error: {str(e)[:100]}'

    # 3. Проверка критических настроек
    missing = [
        name for name in ('SECRET_KEY', 'ALLOWED_HOSTS', 'DEFAULT_TENANT_SLUG')
        if not getattr(settings, name, None)
    ]
    if missing:
        status['status'] = 'unhealthy'
        status['checks']['settings'] = f"missing: {', '.join(missing)}"
    else:
        status['checks']['settings'] = 'ok'

    http_status = 200 if status['status'] == 'healthy' else 500

    return JsonResponse(status, status=http_status)


def ready_check(request):
    """
    Readiness probe - проверяет готовность приложения обслуживать запросы.
    Используется для Kubernetes/orchestration систем.
    """
    try:
        _check_database()
        return JsonResponse({'ready': True})
    except Exception:
        return JsonResponse({'ready': False}, status=503)


def live_check(request):
    """
    Liveness probe - проверяет что приложение живо.
    Минимальная проверка для определения необходимости перезапуска.
    """
    return JsonResponse({'alive': True, 'timestamp': time.time()})
