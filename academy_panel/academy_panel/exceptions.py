"""
Единый формат ошибок API.

Все ответы об ошибках содержат ключ `error` (строка для фронтенда),
ошибки валидации полей дополнительно остаются на верхнем уровне.
"""
import logging

from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(data):
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else ''
    if isinstance(data, dict):
        if 'detail' in data:
            return _first_message(data['detail'])
        for key, value in data.items():
            message = _first_message(value)
            if message:
                return message if key == 'non_field_errors' else f'{key}: {message}'
        return ''
    return str(data)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        # Необработанные исключения уходят в Django -> 500 + Sentry
        return None

    data = response.data
    if isinstance(data, dict):
        if 'error' not in data:
            data['error'] = _first_message(data) or 'Request failed'
    else:
        response.data = {'error': _first_message(data) or 'Request failed', 'errors': data}

    if response.status_code >= 500:
        logger.error("API error %s in %s: %s", response.status_code,
                     context.get('view').__class__.__name__, exc)
    return response
