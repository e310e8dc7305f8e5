"""
Тесты tenants app.

Проверяют модели Tenant / TenantMembership, определение tenant'а
в TenantMiddleware и API /api/tenant/.

Запуск: python manage.py test tenants.tests -v2
"""
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import CommandError, call_command
from django.http import HttpResponse
from django.test import RequestFactory, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from core.models import Subject

from .context import clear_current_tenant, get_current_tenant, set_current_tenant
from .middleware import TenantMiddleware
from .models import Tenant, TenantMembership
from .testing import TenantTestMixin

User = get_user_model()


class TenantModelTests(TenantTestMixin, TestCase):

    def test_defaults(self):
        tenant = self.create_tenant('riverside', name='Riverside Academy')
        self.assertTrue(tenant.is_active)
        self.assertEqual(tenant.timezone, 'UTC')
        self.assertEqual(str(tenant), 'Riverside Academy (riverside)')

    def test_currency_from_metadata(self):
        tenant = self.create_tenant('riverside')
        self.assertEqual(tenant.currency, 'USD')
        tenant.metadata = {'currency': 'UZS'}
        self.assertEqual(tenant.currency, 'UZS')

    def test_frontend_config(self):
        tenant = self.create_tenant('riverside', metadata={'features': {'export': False}})
        config = tenant.to_frontend_config()
        self.assertEqual(config['slug'], 'riverside')
        self.assertEqual(config['id'], str(tenant.id))
        self.assertFalse(config['features']['export'])
        self.assertTrue(config['features']['finance'])

    def test_membership_roles(self):
        self.tenant = self.create_tenant('riverside')
        admin = self.create_member('admin@riverside.io', 'admin')
        teacher = self.create_member('teacher@riverside.io', 'teacher')
        self.assertTrue(admin.tenant_memberships.get().is_admin)
        self.assertFalse(teacher.tenant_memberships.get().is_admin)

    def test_for_tenant_scoping(self):
        alpha = self.create_tenant('alpha')
        beta = self.create_tenant('beta')
        Subject.objects.create(tenant=alpha, name='Math')
        Subject.objects.create(tenant=beta, name='Physics')
        self.assertEqual(list(Subject.objects.for_tenant(alpha).values_list('name', flat=True)), ['Math'])
        self.assertFalse(Subject.objects.for_tenant(None).exists())

        set_current_tenant(beta)
        try:
            self.assertEqual(Subject.objects.for_current_tenant().get().name, 'Physics')
        finally:
            clear_current_tenant()


@override_settings(
    ALLOWED_HOSTS=['localhost', '.academy-panel.app', 'academy-panel.app', 'example.org'],
    PLATFORM_DOMAINS=['academy-panel.app'],
    DEFAULT_TENANT_SLUG='academy',
)
class TenantMiddlewareTests(TenantTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.factory = RequestFactory()
        self.default = self.create_tenant('academy')
        self.riverside = self.create_tenant('riverside')
        self.seen = []

        def get_response(request):
            self.seen.append(get_current_tenant())
            return HttpResponse('ok')

        self.middleware = TenantMiddleware(get_response)

    def resolve(self, host, path='/api/me/', **headers):
        request = self.factory.get(path, HTTP_HOST=host, **headers)
        self.middleware(request)
        return request.tenant

    def test_header_accepted_from_localhost(self):
        self.assertEqual(self.resolve('localhost', HTTP_X_TENANT_ID='riverside'), self.riverside)

    def test_localhost_without_header_uses_default(self):
        self.assertEqual(self.resolve('localhost'), self.default)

    def test_subdomain(self):
        self.assertEqual(self.resolve('riverside.academy-panel.app'), self.riverside)

    def test_header_ignored_for_remote_host(self):
        tenant = self.resolve('academy-panel.app', HTTP_X_TENANT_ID='riverside')
        self.assertEqual(tenant, self.default)

    def test_unknown_subdomain_and_host_fall_back_to_default(self):
        self.assertEqual(self.resolve('ghost.academy-panel.app'), self.default)
        self.assertEqual(self.resolve('example.org'), self.default)

    def test_health_paths_use_default(self):
        tenant = self.resolve('riverside.academy-panel.app', path='/api/health/')
        self.assertEqual(tenant, self.default)

    def test_suspended_tenant_not_resolved(self):
        self.assertEqual(self.resolve('localhost', HTTP_X_TENANT_ID='riverside'), self.riverside)
        self.riverside.status = Tenant.Status.SUSPENDED
        # post_save сбрасывает кеш middleware
        self.riverside.save()
        self.assertIsNone(self.resolve('localhost', HTTP_X_TENANT_ID='riverside'))

    def test_context_var_set_during_request_only(self):
        self.resolve('localhost', HTTP_X_TENANT_ID='riverside')
        self.assertEqual(self.seen, [self.riverside])
        self.assertIsNone(get_current_tenant())


class TenantAPITests(TenantTestMixin, APITestCase):

    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('riverside', name='Riverside Academy')
        self.admin = self.create_member('admin@riverside.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member('teacher@riverside.io', 'teacher', first_name='Anna', last_name='Petrova')

    def test_config_is_public(self):
        response = self.client_for(None).get('/api/tenant/config/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['slug'], 'riverside')
        self.assertEqual(response.data['currency'], 'USD')

    def test_config_fallback_without_tenants(self):
        Tenant.objects.all().delete()
        client = APIClient(HTTP_HOST='localhost')
        response = client.get('/api/tenant/config/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['id'])
        self.assertEqual(response.data['name'], 'Academy Panel')

    def test_admin_updates_tenant(self):
        client = self.client_for(self.admin)
        response = client.patch('/api/tenant/detail/', {'name': 'Riverside School', 'slug': 'hacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.name, 'Riverside School')
        self.assertEqual(self.tenant.slug, 'riverside')

    def test_teacher_cannot_edit_tenant(self):
        response = self.client_for(self.teacher).patch('/api/tenant/detail/', {'name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_members(self):
        response = self.client_for(self.admin).get('/api/tenant/members/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            sorted(member['user_email'] for member in response.data),
            ['admin@riverside.io', 'teacher@riverside.io'],
        )
        self.assertEqual(response.data[0]['role'], TenantMembership.TenantRole.ADMIN)

    def test_member_of_other_tenant_denied(self):
        other = self.create_tenant('beta')
        outsider = self.create_member('admin@beta.io', 'admin', tenant=other)
        response = self.client_for(outsider).get('/api/tenant/members/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CreateDefaultTenantCommandTests(TenantTestMixin, TestCase):

    def test_creates_tenant_once(self):
        out = StringIO()
        call_command('create_default_tenant', '--name', 'Riverside Academy', stdout=out)
        call_command('create_default_tenant', stdout=out)
        tenant = Tenant.objects.get(slug='academy')
        self.assertEqual(tenant.name, 'Riverside Academy')
        self.assertEqual(Tenant.objects.count(), 1)
        self.assertIn('Тенант уже существует', out.getvalue())

    def test_assigns_owner(self):
        owner = User.objects.create_user(email='owner@academy.io', password='Test1234', role='admin')
        call_command('create_default_tenant', '--owner-email', 'OWNER@academy.io', stdout=StringIO())
        membership = TenantMembership.objects.get(user=owner)
        self.assertEqual(membership.role, TenantMembership.TenantRole.OWNER)
        self.assertTrue(membership.is_admin)

    def test_unknown_owner(self):
        with self.assertRaises(CommandError):
            call_command('create_default_tenant', '--owner-email', 'ghost@academy.io', stdout=StringIO())
