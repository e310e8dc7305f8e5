from datetime import date

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import Subject
from tenants.models import TenantMembership
from tenants.testing import TenantTestMixin

from .permissions import allowed_sections, effective_role

User = get_user_model()


class RoleSectionsTests(SimpleTestCase):
    def test_admin_sections(self):
        sections = allowed_sections(User(email='a@x.io', role='admin'))
        self.assertIn('payments', sections)
        self.assertIn('statistics', sections)
        self.assertIn('lessons', sections)

    def test_teacher_sections(self):
        sections = allowed_sections(User(email='t@x.io', role='teacher'))
        self.assertEqual(sections, ['dashboard', 'attendances', 'lessons', 'groups', 'students'])

    def test_superuser_is_admin(self):
        self.assertEqual(effective_role(User(email='s@x.io', role='teacher', is_superuser=True)), 'admin')


class MeViewTests(TenantTestMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.teacher = self.create_member('teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova')

    def test_me(self):
        response = self.client_for(self.teacher).get('/api/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'teacher@academy.io')
        self.assertEqual(response.data['full_name'], 'Anna Petrova')
        self.assertEqual(response.data['role'], 'teacher')
        self.assertNotIn('payments', response.data['sections'])
        self.assertEqual(response.data['tenant']['slug'], 'academy')
        self.assertEqual(response.data['tenant_role'], 'teacher')

    def test_update_profile_keeps_role(self):
        response = self.client_for(self.teacher).patch(
            '/api/me/', {'first_name': 'Anya', 'role': 'admin'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.teacher.refresh_from_db()
        self.assertEqual(self.teacher.first_name, 'Anya')
        self.assertEqual(self.teacher.role, 'teacher')

    def test_anonymous(self):
        response = self.client_for(None).get('/api/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class TeacherAPITests(TenantTestMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.admin = self.create_member('admin@academy.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member(
            'teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova',
        )
        self.subject = Subject.objects.create(tenant=self.tenant, name='Math')
        self.client = self.client_for(self.admin)

    def payload(self, **overrides):
        data = {
            'first_name': 'Boris',
            'last_name': 'Ivanov',
            'email': 'Boris@Academy.io',
            'password': 'Kx9!trLm42',
            'phone_number': '+998 90 123 45 67',
            'date_of_birth': '1990-05-01',
            'subject_ids': [self.subject.id],
        }
        data.update(overrides)
        return data

    def test_list_only_own_tenant(self):
        other = self.create_tenant('beta')
        self.create_member('foreign@beta.io', 'teacher', tenant=other)
        response = self.client.get('/api/teachers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['email'] for row in response.data['results']], ['teacher@academy.io'])
        self.assertEqual(response.data['columns'][0], {'key': 'name', 'label': 'Name', 'sortable': True})

    def test_create_teacher(self):
        response = self.client.post('/api/teachers/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        teacher = User.objects.get(email='boris@academy.io')
        self.assertEqual(teacher.role, 'teacher')
        self.assertEqual(teacher.date_of_birth, date(1990, 5, 1))
        self.assertTrue(teacher.check_password('Kx9!trLm42'))
        self.assertEqual(list(teacher.subjects.all()), [self.subject])
        self.assertTrue(TenantMembership.objects.filter(tenant=self.tenant, user=teacher).exists())
        self.assertNotIn('password', response.data)

    def test_created_teacher_appears_in_list(self):
        self.client.get('/api/teachers/')
        self.client.post('/api/teachers/', self.payload(), format='json')
        response = self.client.get('/api/teachers/', {'sort': 'name'})
        self.assertEqual([row['name'] for row in response.data['results']], ['Anna Petrova', 'Boris Ivanov'])

    def test_full_name_too_short(self):
        response = self.client.post('/api/teachers/', self.payload(first_name='Bo', last_name='Li'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('first_name', response.data)
        self.assertEqual(response.data['error'], 'first_name: Full name must be at least 6 characters')

    def test_required_fields_on_create(self):
        response = self.client.post('/api/teachers/', self.payload(phone_number=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone_number', response.data)

    def test_invalid_phone(self):
        response = self.client.post('/api/teachers/', self.payload(phone_number='12-34'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone_number', response.data)

    def test_duplicate_email(self):
        response = self.client.post('/api/teachers/', self.payload(email='TEACHER@academy.io'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_subject_of_other_tenant_rejected(self):
        other = self.create_tenant('beta')
        foreign = Subject.objects.create(tenant=other, name='Chemistry')
        response = self.client.post('/api/teachers/', self.payload(subject_ids=[foreign.id]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('subject_ids', response.data)

    def test_update_rating(self):
        response = self.client.patch(f'/api/teachers/{self.teacher.id}/', {'rating': '4.5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.teacher.refresh_from_db()
        self.assertEqual(str(self.teacher.rating), '4.5')

    def test_delete_removes_membership(self):
        response = self.client.delete(f'/api/teachers/{self.teacher.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.teacher.refresh_from_db()
        self.assertFalse(self.teacher.is_active)
        self.assertFalse(TenantMembership.objects.filter(user=self.teacher).exists())

    def test_teacher_cannot_manage_teachers(self):
        response = self.client_for(self.teacher).get('/api/teachers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_of_other_tenant_denied(self):
        other = self.create_tenant('beta')
        outsider = self.create_member('admin@beta.io', 'admin', tenant=other)
        response = self.client_for(outsider, tenant=self.tenant).get('/api/teachers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
