"""
Хелперы для тестов: тенант + сотрудники + аутентифицированный клиент.
"""
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from .middleware import TenantMiddleware
from .models import Tenant, TenantMembership

User = get_user_model()


class TenantTestMixin:
    """
    Создаёт тенант и даёт клиента, привязанного к нему через X-Tenant-ID.

    Использование:
        class MyTests(TenantTestMixin, APITestCase):
            def setUp(self):
                super().setUp()
                self.tenant = self.create_tenant('alpha')
                self.admin = self.create_member('admin@alpha.io', 'admin')
                client = self.client_for(self.admin)
    """

    def setUp(self):
        super().setUp()
        cache.clear()
        TenantMiddleware.clear_cache()

    def create_tenant(self, slug='academy', name=None, **extra):
        return Tenant.objects.create(slug=slug, name=name or slug.title(), **extra)

    def create_member(self, email, role='teacher', tenant=None, **extra):
        tenant = tenant or self.tenant
        user = User.objects.create_user(email=email, password='Test1234', role=role, **extra)
        membership_role = (
            TenantMembership.TenantRole.ADMIN if role == 'admin'
            else TenantMembership.TenantRole.TEACHER
        )
        TenantMembership.objects.create(tenant=tenant, user=user, role=membership_role)
        return user

    def client_for(self, user, tenant=None):
        tenant = tenant or self.tenant
        client = APIClient(HTTP_HOST='localhost', HTTP_X_TENANT_ID=tenant.slug)
        if user is not None:
            client.force_authenticate(user=user)
        return client
