"""
Tests for finance app.

Covers:
- Services (выручка по месяцам, сравнение с прошлым месяцем)
- API endpoints (/api/payments/)
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from core.models import Student
from tenants.testing import TenantTestMixin

from .models import Payment
from .services import (
    compare_with_last_month,
    month_bounds,
    monthly_revenue,
    percent_of_previous,
    previous_month,
    shift_months,
)


class MonthArithmeticTest(SimpleTestCase):
    def test_month_bounds(self):
        self.assertEqual(month_bounds(date(2024, 2, 14)), (date(2024, 2, 1), date(2024, 2, 29)))
        self.assertEqual(month_bounds(date(2023, 12, 31)), (date(2023, 12, 1), date(2023, 12, 31)))

    def test_previous_month_crosses_year(self):
        self.assertEqual(previous_month(date(2024, 1, 15)), date(2023, 12, 31))

    def test_shift_months(self):
        self.assertEqual(shift_months(date(2024, 3, 31), -1), date(2024, 2, 1))
        self.assertEqual(shift_months(date(2024, 3, 10), -5), date(2023, 10, 1))
        self.assertEqual(shift_months(date(2024, 11, 10), 2), date(2025, 1, 1))

    def test_percent_of_previous(self):
        self.assertEqual(percent_of_previous(Decimal('500'), Decimal('0')), 100.0)
        self.assertEqual(percent_of_previous(Decimal('150'), Decimal('100')), 150.0)
        self.assertEqual(percent_of_previous(Decimal('0'), Decimal('100')), 0.0)


class RevenueServiceTest(TenantTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.other_tenant = self.create_tenant('beta')
        self.student = Student.objects.create(tenant=self.tenant, name='Ivan Sidorov', phone='+998901234567')
        foreign = Student.objects.create(tenant=self.other_tenant, name='Foreign', phone='+998901111111')

        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('300.00'), date=date(2024, 3, 5))
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('200.00'), date=date(2024, 3, 31))
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('400.00'), date=date(2024, 2, 29))
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('100.00'), date=date(2023, 10, 1))
        Payment.objects.create(tenant=self.other_tenant, student=foreign, amount=Decimal('999.00'), date=date(2024, 3, 10))

    def test_compare_with_last_month(self):
        comparison = compare_with_last_month(self.tenant, today=date(2024, 3, 15))
        self.assertEqual(comparison.current, Decimal('500.00'))
        self.assertEqual(comparison.previous, Decimal('400.00'))
        self.assertEqual(comparison.percent, 125.0)
        self.assertEqual(comparison.trend, 'up')

    def test_compare_without_previous_month(self):
        comparison = compare_with_last_month(self.tenant, today=date(2024, 4, 2))
        self.assertEqual(comparison.current, Decimal('0.00'))
        self.assertEqual(comparison.previous, Decimal('500.00'))
        self.assertEqual(comparison.trend, 'down')

        comparison = compare_with_last_month(self.tenant, today=date(2023, 10, 20))
        self.assertEqual(comparison.percent, 100.0)

    def test_monthly_revenue_last_six_months(self):
        months = monthly_revenue(self.tenant, today=date(2024, 3, 15))
        self.assertEqual([row['month'] for row in months], ['Oct', 'Nov', 'Dec', 'Jan', 'Feb', 'Mar'])
        self.assertEqual([row['revenue'] for row in months], [
            Decimal('100.00'), Decimal('0.00'), Decimal('0.00'),
            Decimal('0.00'), Decimal('400.00'), Decimal('500.00'),
        ])


class PaymentAPITest(TenantTestMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.admin = self.create_member('admin@academy.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member('teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova')
        self.student = Student.objects.create(tenant=self.tenant, name='Ivan Sidorov', phone='+998901234567')
        self.client = self.client_for(self.admin)

    def test_create_payment(self):
        response = self.client.post('/api/payments/', {
            'student': self.student.id,
            'amount': '250.00',
            'date': '2024-03-05',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        payment = Payment.objects.get()
        self.assertEqual(payment.tenant, self.tenant)
        self.assertEqual(payment.amount, Decimal('250.00'))

    def test_amount_must_be_positive(self):
        response = self.client.post('/api/payments/', {
            'student': self.student.id,
            'amount': '0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_student_from_other_tenant_rejected(self):
        other = self.create_tenant('beta')
        foreign = Student.objects.create(tenant=other, name='Foreign', phone='+998901111111')
        response = self.client.post('/api/payments/', {
            'student': foreign.id,
            'amount': '10.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('student', response.data)

    def test_list_sorted_by_amount(self):
        for amount in ('50.00', '1000.00', '300.00'):
            Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal(amount))
        response = self.client.get('/api/payments/', {'sort': 'amount', 'direction': 'desc'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [Decimal(str(row['amount'])) for row in response.data['results']],
            [Decimal('1000.00'), Decimal('300.00'), Decimal('50.00')],
        )
        self.assertEqual(response.data['showing'], 'Showing 1 to 3 of 3 entries')

    def test_teacher_has_no_access(self):
        response = self.client_for(self.teacher).get('/api/payments/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_summary(self):
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('120.00'), date=date(2024, 3, 2))
        with patch('finance.services.timezone.localdate', return_value=date(2024, 3, 20)):
            response = self.client.get('/api/payments/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['percent'], 100.0)
        self.assertEqual(response.data['trend'], 'up')
        self.assertEqual(len(response.data['months']), 6)
        self.assertEqual(response.data['months'][-1]['start'], '2024-03-01')

    def test_student_rename_reaches_cached_list(self):
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('100.00'))
        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['results'][0]['student_name'], 'Ivan Sidorov')

        response = self.client.patch(f'/api/students/{self.student.id}/', {'name': 'Renamed Person'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['results'][0]['student_name'], 'Renamed Person')

    def test_list_cells_are_rendered(self):
        Payment.objects.create(tenant=self.tenant, student=self.student, amount=Decimal('75.00'), date=date(2024, 3, 5))
        response = self.client.get('/api/payments/')
        self.assertEqual(response.data['results'][0]['date'], '2024-03-05')
        self.assertEqual(response.data['cells'][0]['date'], 'Mar 05, 2024')
