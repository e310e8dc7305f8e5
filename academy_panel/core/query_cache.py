"""
Кеш результатов запросов для списков CRM.

Дескриптор запроса - пара (tag, params): tag объединяет все запросы одной
сущности ('students', 'lessons'), params - tenant, пользователь, фильтры.
invalidate(tag) поднимает версию тега, и все закешированные ответы этого
тега становятся недоступны разом (без перебора ключей в Redis).

Кеш передаётся во view явно (атрибут query_cache), а не берётся из глобала:

    class StudentViewSet(DataTableViewSetMixin, ...):
        query_cache = QueryCache(timeout=60)
"""
import hashlib
import json
import logging
import time

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)

KEY_PREFIX = 'qc'


class QueryCache:

    def __init__(self, backend=None, timeout=None, alias='default'):
        self._backend = backend
        self._alias = alias
        self._timeout = timeout

    @property
    def backend(self):
        # Бэкенд берётся лениво: settings.CACHES может меняться в тестах
        return self._backend if self._backend is not None else caches[self._alias]

    @property
    def timeout(self):
        if self._timeout is not None:
            return self._timeout
        return getattr(settings, 'QUERY_CACHE_TIMEOUT', 300)

    def _version_key(self, tag):
        return f'{KEY_PREFIX}:v:{tag}'

    def _fresh_version(self):
        # Растёт со временем: не совпадает с версиями, выданными до вытеснения ключа
        return time.time_ns() // 1000

    def _tag_version(self, tag):
        key = self._version_key(tag)
        version = self.backend.get(key)
        if version is None:
            version = self._fresh_version()
            if not self.backend.add(key, version, None):
                version = self.backend.get(key, version)
        return version

    def make_key(self, descriptor):
        tag, params = descriptor
        payload = json.dumps(params or {}, sort_keys=True, default=str)
        digest = hashlib.sha1(payload.encode('utf-8')).hexdigest()
        return f'{KEY_PREFIX}:{tag}:{self._tag_version(tag)}:{digest}'

    def get(self, descriptor, default=None):
        return self.backend.get(self.make_key(descriptor), default)

    def set(self, descriptor, value):
        self.backend.set(self.make_key(descriptor), value, self.timeout)

    def get_or_set(self, descriptor, producer):
        """Значение из кеша или результат producer() (сохраняется в кеш)."""
        key = self.make_key(descriptor)
        missing = object()
        value = self.backend.get(key, missing)
        if value is not missing:
            return value
        value = producer()
        self.backend.set(key, value, self.timeout)
        return value

    def invalidate(self, tag):
        """Сбросить все закешированные запросы тега."""
        key = self._version_key(tag)
        try:
            self.backend.incr(key)
        except ValueError:
            # Версии нет (не создавалась или вытеснена)
            self.backend.set(key, self._fresh_version(), None)
        logger.debug('Query cache invalidated: %s', tag)
