"""
Логирование для многопоточного Gunicorn (gthread).

- ThreadSafeStreamHandler: StreamHandler с дополнительным RLock, чтобы
  избежать `RuntimeError: reentrant call inside <_io.BufferedWriter>`
  при одновременной записи из нескольких потоков.
- RedactingFilter: маскирует токены и пароли в сообщениях логов.
- build_logging_config(): готовый dict для settings.LOGGING.
"""
import logging
import re
import threading

REDACTED = '[FILTERED]'

_SENSITIVE_PATTERN = re.compile(
    r'(?P<key>password|token|secret|api_key|authorization)'
    r'(?P<sep>["\']?\s*[:=]\s*["\']?(?:Bearer\s+)?)'
    r'(?P<value>[^\s"\',;&]+)',
    re.IGNORECASE,
)


class ThreadSafeStreamHandler(logging.StreamHandler):
    """
    Thread-safe версия StreamHandler.

    Использует RLock для предотвращения reentrant ошибок при
    одновременной записи из нескольких потоков.
    """

    _write_lock = threading.RLock()

    def emit(self, record):
        try:
            msg = self.format(record)
            with self._write_lock:
                self.stream.write(msg + self.terminator)
                self.flush()
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)


class RedactingFilter(logging.Filter):
    """Маскирует чувствительные значения (password=..., token: ...) в записи."""

    def filter(self, record):
        try:
            message = record.getMessage()
        except Exception:
            return True
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def redact(text):
    """Заменяет значения чувствительных ключей на [FILTERED]."""
    if not text:
        return text
    return _SENSITIVE_PATTERN.sub(
        lambda m: f"{m.group('key')}{m.group('sep')}{REDACTED}", str(text)
    )


def build_logging_config(level='INFO'):
    """Конфиг для settings.LOGGING: консоль + фильтр чувствительных данных."""
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'redact': {
                '()': 'academy_panel.safe_logging.RedactingFilter',
            },
        },
        'formatters': {
            'verbose': {
                'format': '{levelname} {asctime} {name} {process:d} {thread:d} {message}',
                'style': '{',
            },
            'simple': {
                'format': '{levelname} {name}: {message}',
                'style': '{',
            },
        },
        'handlers': {
            'console': {
                'class': 'academy_panel.safe_logging.ThreadSafeStreamHandler',
                'formatter': 'verbose',
                'filters': ['redact'],
            },
        },
        'root': {
            'handlers': ['console'],
            'level': level,
        },
        'loggers': {
            'django': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False,
            },
            'django.request': {
                'handlers': ['console'],
                'level': 'ERROR',
                'propagate': False,
            },
        },
    }
