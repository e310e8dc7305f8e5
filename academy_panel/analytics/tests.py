import io
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from openpyxl import load_workbook
from rest_framework.test import APITestCase

from core.models import Course, Student, StudentSource, Subject
from finance.models import Payment
from schedule.models import Attendance, Group, Lesson
from tenants.testing import TenantTestMixin

from . import export
from .services import (
    admin_dashboard,
    collect_statistics,
    percent,
    performance_score,
    teacher_dashboard,
)


class ScoreTests(SimpleTestCase):
    def test_performance_score(self):
        self.assertEqual(performance_score(4.5, 90.0, 25), 28.95)
        # Нагрузка упирается в 1 после 50 учеников
        self.assertEqual(performance_score(5.0, 100.0, 500), performance_score(5.0, 100.0, 50))

    def test_percent(self):
        self.assertEqual(percent(1, 3), 33.3)
        self.assertEqual(percent(5, 0), 0.0)


class AcademyDataMixin(TenantTestMixin):
    """Небольшая академия: предмет, два курса, группа, ученики, платежи."""

    def setUp(self):
        super().setUp()
        self.today = timezone.localdate()
        self.tenant = self.create_tenant('academy')
        self.admin = self.create_member('admin@academy.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member(
            'teacher@academy.io', 'teacher',
            first_name='Anna', last_name='Petrova', rating=Decimal('4.5'),
        )
        self.junior = self.create_member(
            'junior@academy.io', 'teacher',
            first_name='Boris', last_name='Ivanov', rating=Decimal('3.0'),
        )

        subject = Subject.objects.create(tenant=self.tenant, name='Math')
        self.algebra = Course.objects.create(tenant=self.tenant, name='Algebra', price=Decimal('100'), subject=subject)
        self.geometry = Course.objects.create(tenant=self.tenant, name='Geometry', price=Decimal('80'), subject=subject)
        self.algebra.teachers.add(self.teacher)
        self.geometry.teachers.add(self.junior)

        self.group = Group.objects.create(
            tenant=self.tenant, name='Algebra A', teacher=self.teacher, course=self.algebra,
            start_time=time(9, 0), end_time=time(10, 0), days_of_week=['Monday', 'Wednesday'],
        )
        instagram = StudentSource.objects.create(tenant=self.tenant, name='Instagram')
        friends = StudentSource.objects.create(tenant=self.tenant, name='Friends')
        self.students = [
            Student.objects.create(tenant=self.tenant, name='Ivan', phone='+998901234567', group=self.group, source=instagram),
            Student.objects.create(tenant=self.tenant, name='Maria', phone='+998901234568', group=self.group, source=instagram),
            Student.objects.create(tenant=self.tenant, name='Timur', phone='+998901234569', source=friends),
        ]
        self.algebra.students.add(*self.students[:2])
        self.geometry.students.add(self.students[2])

        self.lesson = Lesson.objects.create(
            tenant=self.tenant, group=self.group, teacher=self.teacher,
            start_time=datetime(2024, 3, 11, 9, 0, tzinfo=dt_timezone.utc),
            end_time=datetime(2024, 3, 11, 10, 0, tzinfo=dt_timezone.utc),
            room='101', days_of_week=['Monday', 'Wednesday'],
        )
        Payment.objects.create(tenant=self.tenant, student=self.students[0], group=self.group,
                               amount=Decimal('300.00'), date=self.today)


class DashboardServiceTests(AcademyDataMixin, TestCase):
    def test_admin_dashboard(self):
        Attendance.objects.create(tenant=self.tenant, lesson=self.lesson, student=self.students[0],
                                  teacher=self.teacher, date=self.today)
        data = admin_dashboard(self.tenant, today=self.today)
        self.assertEqual(data['total_students'], 3)
        self.assertEqual(data['total_teachers'], 2)
        self.assertEqual(data['payments_this_month'], Decimal('300.00'))
        self.assertEqual(data['percent_of_last_month'], 100.0)
        self.assertEqual(data['trend'], 'up')
        self.assertEqual(data['attendance_rate'], 33)
        self.assertEqual(data['new_students_this_month'], 3)

    def test_admin_dashboard_display_date_skips_sunday(self):
        data = admin_dashboard(self.tenant, today=date(2024, 3, 10))
        self.assertEqual(data['display_date'], '2024-03-11')
        self.assertTrue(data['display_date_adjusted'])

    def test_teacher_dashboard_on_sunday_shows_monday_lessons(self):
        data = teacher_dashboard(self.tenant, self.teacher, today=date(2024, 3, 10))
        self.assertEqual(data['students'], 2)
        self.assertEqual(data['groups'], 1)
        self.assertEqual(data['day_of_week'], 'Monday')
        self.assertEqual([lesson['id'] for lesson in data['todays_lessons']], [self.lesson.id])

    def test_teacher_dashboard_attendance_rate(self):
        Attendance.objects.create(tenant=self.tenant, lesson=self.lesson, student=self.students[0],
                                  teacher=self.teacher, date=date(2024, 3, 11), status='present')
        Attendance.objects.create(tenant=self.tenant, lesson=self.lesson, student=self.students[1],
                                  teacher=self.teacher, date=date(2024, 3, 11), status='absent')
        data = teacher_dashboard(self.tenant, self.teacher, today=date(2024, 3, 20))
        self.assertEqual(data['attendance_rate'], 50.0)
        self.assertEqual(teacher_dashboard(self.tenant, self.junior, today=date(2024, 3, 20))['todays_lessons'], [])


class StatisticsServiceTests(AcademyDataMixin, TestCase):
    def test_collect_statistics(self):
        Attendance.objects.create(tenant=self.tenant, lesson=self.lesson, student=self.students[0],
                                  teacher=self.teacher, date=self.today, status='present')
        Attendance.objects.create(tenant=self.tenant, lesson=self.lesson, student=self.students[1],
                                  teacher=self.teacher, date=self.today, status='absent')

        stats = collect_statistics(self.tenant, today=self.today)

        self.assertEqual(stats.dashboard.total_courses, 2)
        self.assertEqual(stats.dashboard.total_groups, 1)
        self.assertEqual(stats.dashboard.monthly_revenue, Decimal('300.00'))
        self.assertEqual(stats.dashboard.attendance_rate, 50.0)

        self.assertEqual(len(stats.revenue), 6)
        self.assertEqual(stats.revenue[-1]['revenue'], Decimal('300.00'))
        self.assertEqual(stats.revenue[-1]['students'], 3)

        self.assertEqual([course['name'] for course in stats.courses], ['Algebra', 'Geometry'])
        self.assertEqual(stats.courses[0]['revenue'], Decimal('300.00'))

        self.assertEqual(len(stats.attendance), 7)
        self.assertEqual(stats.attendance[-1]['date'], self.today)
        self.assertEqual(stats.attendance[-1]['present'], 1)
        self.assertEqual(stats.attendance[-1]['absent'], 1)
        self.assertEqual(stats.attendance[0]['date'], self.today - timedelta(days=6))

        self.assertEqual([teacher.name for teacher in stats.teachers], ['Anna Petrova', 'Boris Ivanov'])
        self.assertEqual(stats.teachers[0].students, 2)
        self.assertEqual(stats.teachers[0].attendance_rate, 50.0)

        self.assertEqual(stats.sources[0]['name'], 'Instagram')
        self.assertEqual(stats.sources[0]['percentage'], 66.7)

        payload = stats.as_dict()
        self.assertEqual(payload['generated_on'], self.today.isoformat())
        self.assertIn('score', payload['teachers'][0])


class ExportTests(AcademyDataMixin, TestCase):
    def test_workbook_has_all_sheets(self):
        stats = collect_statistics(self.tenant, today=self.today)
        workbook = export.build_workbook(stats, 'USD')
        self.assertEqual(workbook.sheetnames, list(export.SHEET_TITLES))

        summary = workbook['Dashboard Summary']
        self.assertEqual(summary['A4'].value, 'Metric')
        self.assertEqual(summary['B5'].value, 3)
        # Самая длинная ячейка колонки A - "New Students (Month)" (20 символов)
        self.assertEqual(summary.column_dimensions['A'].width, 22)

    def test_column_width_is_capped(self):
        Course.objects.filter(pk=self.algebra.pk).update(name='A' * 80)
        stats = collect_statistics(self.tenant, today=self.today)
        workbook = export.build_workbook(stats, 'USD')
        self.assertEqual(workbook['Course Analysis'].column_dimensions['A'].width, 50)

    def test_workbook_bytes_round_trip(self):
        stats = collect_statistics(self.tenant, today=self.today)
        content = export.workbook_bytes(export.build_workbook(stats, 'USD'))
        loaded = load_workbook(io.BytesIO(content))
        self.assertEqual(len(loaded.sheetnames), 7)

    def test_csv_section(self):
        stats = collect_statistics(self.tenant, today=self.today)
        lines = export.csv_content(stats, 'sources').splitlines()
        self.assertEqual(lines[0], 'name,students,value,percentage')
        self.assertEqual(lines[1], 'Instagram,2,2,66.7')
        with self.assertRaises(export.UnknownSection):
            export.csv_content(stats, 'unknown')

    def test_filenames(self):
        self.assertEqual(export.export_filename(date(2024, 3, 15)), 'academy_dashboard_2024-03-15.xlsx')
        self.assertEqual(export.csv_filename('revenue', date(2024, 3, 15)), 'revenue_analysis_2024-03-15.csv')


class AnalyticsAPITests(AcademyDataMixin, APITestCase):
    def test_admin_dashboard_endpoint(self):
        response = self.client_for(self.admin).get('/api/dashboard/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['role'], 'admin')
        self.assertEqual(response.data['total_students'], 3)

    def test_teacher_dashboard_endpoint(self):
        response = self.client_for(self.teacher).get('/api/dashboard/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['role'], 'teacher')
        self.assertEqual(response.data['groups'], 1)

    def test_statistics_admin_only(self):
        self.assertEqual(self.client_for(self.teacher).get('/api/statistics/').status_code, 403)
        response = self.client_for(self.admin).get('/api/statistics/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['dashboard']['total_students'], 3)

    def test_xlsx_export(self):
        response = self.client_for(self.admin).get('/api/statistics/export/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], export.XLSX_CONTENT_TYPE)
        self.assertIn(f'academy_dashboard_{self.today.isoformat()}.xlsx', response['Content-Disposition'])
        loaded = load_workbook(io.BytesIO(response.content))
        self.assertEqual(loaded.sheetnames, list(export.SHEET_TITLES))

    def test_csv_export(self):
        response = self.client_for(self.admin).get('/api/statistics/export/', {'format': 'csv', 'section': 'courses'})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn('course_analysis_', response['Content-Disposition'])
        self.assertTrue(response.content.decode().startswith('name,students,revenue'))

    def test_csv_export_unknown_section(self):
        response = self.client_for(self.admin).get('/api/statistics/export/', {'format': 'csv', 'section': 'nope'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.data)
