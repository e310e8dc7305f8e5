"""
Tenant Middleware - определяет тенант из URL и кладёт в request.tenant.

Логика:
  1. riverside.academy-panel.app → Tenant(slug='riverside')   - субдомен
  2. academy-panel.app           → Default Tenant (DEFAULT_TENANT_SLUG)
  3. localhost:3000              → X-Tenant-ID header (только DEV!) или Default Tenant

БЕЗОПАСНОСТЬ:
  - В production X-Tenant-ID header ИГНОРИРУЕТСЯ для remote-хостов.
    Только hostname (subdomain) определяет tenant - нельзя подделать.
  - X-Tenant-ID принимается ТОЛЬКО с localhost / 127.0.0.1 (разработка).

Также сохраняет tenant в contextvar для доступа из сигналов и сервисов
(где нет request).
"""

import logging
import time

from django.conf import settings as django_settings
from django.db import DatabaseError

from .context import set_current_tenant, clear_current_tenant

logger = logging.getLogger(__name__)


def _cache_ttl():
    return getattr(django_settings, 'TENANT_CACHE_TTL', 300)


class TenantMiddleware:
    """
    Определяет Tenant по hostname запроса.

    Ставить в MIDDLEWARE ПОСЛЕ AuthenticationMiddleware,
    чтобы request.user уже был доступен.

    Ставит:
      - request.tenant            = Tenant instance (или None)
      - request.tenant_membership = TenantMembership (или None, для session-пользователя)
    """

    # Кэш тенантов: key → (tenant, timestamp)
    _tenant_cache = {}
    _default_tenant = None
    _default_tenant_ts = 0

    # Домены разработки - X-Tenant-ID header принимается ТОЛЬКО отсюда
    DEV_HOSTS = {'localhost', '127.0.0.1', '0.0.0.0'}

    # Пути, которые всегда обрабатываются с default tenant
    SKIP_PATHS = ('/admin/', '/api/health/')

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        tenant = self._resolve_tenant(request)
        request.tenant = tenant
        set_current_tenant(tenant)

        # JWT-пользователь появится только в DRF; здесь - session (admin)
        request.tenant_membership = None
        user = getattr(request, 'user', None)
        if tenant is not None and user is not None and user.is_authenticated:
            from .models import TenantMembership
            request.tenant_membership = TenantMembership.objects.filter(
                tenant=tenant, user=user, is_active=True
            ).first()

        try:
            response = self.get_response(request)
        finally:
            clear_current_tenant()

        return response

    def _resolve_tenant(self, request):
        """Определяет тенант по hostname. X-Tenant-ID только для localhost."""
        path = request.path
        if path.startswith(self.SKIP_PATHS):
            return self._get_default_tenant()

        host = request.get_host().split(':')[0].lower()

        # Localhost / разработка → проверяем X-Tenant-ID header (фронт шлёт slug)
        if host in self.DEV_HOSTS:
            header_slug = request.META.get('HTTP_X_TENANT_ID', '').strip()
            if header_slug:
                return self._get_tenant_by_slug(header_slug)
            return self._get_default_tenant()

        # ============================================================
        # PRODUCTION: X-Tenant-ID header ИГНОРИРУЕТСЯ для безопасности.
        # Tenant определяется ТОЛЬКО по hostname (subdomain).
        # ============================================================
        header_slug = request.META.get('HTTP_X_TENANT_ID', '')
        if header_slug:
            logger.warning(
                'X-Tenant-ID header "%s" ignored for non-local host "%s" '
                '(tenant is determined by hostname only)',
                header_slug, host,
            )

        cached = self._cache_get(host)
        if cached is not None:
            return cached

        tenant = self._lookup_tenant(host)
        self._tenant_cache[host] = (tenant, time.monotonic())
        return tenant

    def _cache_get(self, key):
        cached = self._tenant_cache.get(key)
        if cached is None:
            return None
        tenant, ts = cached
        if (time.monotonic() - ts) < _cache_ttl():
            return tenant
        # TTL истёк - удаляем из кеша, вызывающий перезапросит
        del self._tenant_cache[key]
        return None

    def _get_tenant_by_slug(self, slug):
        """Ищет активный тенант по slug. С TTL-кешем."""
        cache_key = f'slug:{slug}'
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached
        from .models import Tenant
        try:
            tenant = Tenant.objects.filter(slug=slug, status=Tenant.Status.ACTIVE).first()
        except DatabaseError as e:
            logger.warning('Cannot lookup tenant by slug %s: %s', slug, e)
            return None
        if tenant is not None:
            self._tenant_cache[cache_key] = (tenant, time.monotonic())
        return tenant

    def _lookup_tenant(self, host):
        """Ищет тенант по hostname в БД."""
        platform_domains = getattr(django_settings, 'PLATFORM_DOMAINS', [])

        if host in platform_domains:
            return self._get_default_tenant()

        # Субдомен: riverside.academy-panel.app → slug='riverside'
        for domain in platform_domains:
            suffix = f'.{domain}'
            if host.endswith(suffix):
                slug = host[:-len(suffix)]
                tenant = self._get_tenant_by_slug(slug)
                if tenant is None:
                    logger.warning('Tenant not found for subdomain: %s', slug)
                    return self._get_default_tenant()
                return tenant

        logger.info('Unknown host %s, using default tenant', host)
        return self._get_default_tenant()

    def _get_default_tenant(self):
        """Default tenant (DEFAULT_TENANT_SLUG или первый активный). С TTL-кешем."""
        now = time.monotonic()
        cls = type(self)
        if cls._default_tenant is not None and (now - cls._default_tenant_ts) < _cache_ttl():
            return cls._default_tenant
        from .models import Tenant
        slug = getattr(django_settings, 'DEFAULT_TENANT_SLUG', 'academy')
        try:
            active = Tenant.objects.filter(status=Tenant.Status.ACTIVE)
            tenant = active.filter(slug=slug).first() or active.order_by('created_at').first()
        except DatabaseError as e:
            # Таблица tenants_tenant может не существовать (миграции не прошли)
            logger.error('TenantMiddleware: default tenant lookup failed: %s', e)
            return None
        cls._default_tenant = tenant
        cls._default_tenant_ts = now
        return tenant

    @classmethod
    def clear_cache(cls):
        """Очистить кэш (при изменении Tenant через admin или signals)."""
        cls._tenant_cache.clear()
        cls._default_tenant = None
        cls._default_tenant_ts = 0
