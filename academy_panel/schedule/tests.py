from datetime import date, datetime, time, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from rest_framework.test import APITestCase

from core.models import Course, Student, Subject
from tenants.testing import TenantTestMixin

from .calendar_helpers import (
    INVALID_DATE_MESSAGE,
    DisplayDate,
    bucket_by_day,
    day_of_week_excluding_sunday,
    lessons_on_weekday,
    parse_iso_date,
    resolve_display_date,
    shift_day,
    shift_week,
    week_window,
)
from .models import Attendance, Group, Lesson


def utc(*args):
    return datetime(*args, tzinfo=dt_timezone.utc)


class ResolveDisplayDateTests(SimpleTestCase):
    def test_sunday_moves_to_monday(self):
        self.assertEqual(resolve_display_date(date(2024, 3, 10)), DisplayDate(date(2024, 3, 11), True))

    def test_weekday_unchanged(self):
        self.assertEqual(resolve_display_date(date(2024, 3, 13)), DisplayDate(date(2024, 3, 13), False))

    def test_saturday_unchanged(self):
        result = resolve_display_date(date(2024, 3, 16))
        self.assertEqual(result.date, date(2024, 3, 16))
        self.assertFalse(result.adjusted)

    def test_datetime_reference(self):
        result = resolve_display_date(utc(2024, 3, 10, 12, 0))
        self.assertEqual(result, DisplayDate(date(2024, 3, 11), True))

    def test_defaults_to_today(self):
        with patch('schedule.calendar_helpers.today', return_value=date(2024, 3, 10)):
            self.assertEqual(resolve_display_date(), DisplayDate(date(2024, 3, 11), True))

    def test_never_returns_sunday(self):
        for offset in range(14):
            day = date(2024, 3, 1 + offset)
            self.assertNotEqual(resolve_display_date(day).date.weekday(), 6)


class WeekWindowTests(SimpleTestCase):
    def test_wednesday_window(self):
        window = week_window(date(2024, 3, 13))
        self.assertEqual(window, [date(2024, 3, day) for day in range(11, 18)])

    def test_window_is_stable_for_every_day_of_week(self):
        expected = week_window(date(2024, 3, 11))
        for day in range(11, 18):
            self.assertEqual(week_window(date(2024, 3, day)), expected)

    def test_window_across_month_boundary(self):
        window = week_window(date(2024, 3, 1))
        self.assertEqual(window[0], date(2024, 2, 26))
        self.assertEqual(window[-1], date(2024, 3, 3))


class BucketByDayTests(SimpleTestCase):
    def test_entries_grouped_by_start_day(self):
        first = {'id': 1, 'start_time': utc(2024, 3, 13, 9, 0)}
        second = {'id': 2, 'start_time': utc(2024, 3, 13, 18, 0)}
        third = {'id': 3, 'start_time': utc(2024, 3, 14, 9, 0)}

        buckets = bucket_by_day([first, second, third], week_window(date(2024, 3, 13)))

        self.assertEqual(buckets['2024-03-13'], [first, second])
        self.assertEqual(buckets['2024-03-14'], [third])
        for key in ('2024-03-11', '2024-03-12', '2024-03-15', '2024-03-16', '2024-03-17'):
            self.assertEqual(buckets[key], [])
        self.assertEqual(len(buckets), 7)

    def test_objects_and_custom_field(self):
        entry = SimpleNamespace(starts=datetime(2024, 3, 12, 10, 0))
        buckets = bucket_by_day([entry], week_window(date(2024, 3, 12)), start='starts')
        self.assertEqual(buckets['2024-03-12'], [entry])

    def test_entries_outside_window_or_unparseable_are_skipped(self):
        outside = {'start_time': utc(2024, 3, 20, 9, 0)}
        broken = {'start_time': 'not a date'}
        missing = {}
        buckets = bucket_by_day([outside, broken, missing], week_window(date(2024, 3, 13)))
        self.assertTrue(all(entries == [] for entries in buckets.values()))

    def test_iso_string_start(self):
        entry = {'start_time': '2024-03-15T08:30:00Z'}
        buckets = bucket_by_day([entry], week_window(date(2024, 3, 13)))
        self.assertEqual(buckets['2024-03-15'], [entry])


class NavigationHelperTests(SimpleTestCase):
    def test_shift_day_does_not_skip_sunday(self):
        self.assertEqual(shift_day(date(2024, 3, 9), 1), date(2024, 3, 10))
        self.assertEqual(shift_day(date(2024, 3, 11), -1), date(2024, 3, 10))

    def test_shift_week(self):
        self.assertEqual(shift_week(date(2024, 3, 13), 1), date(2024, 3, 20))
        self.assertEqual(shift_week(date(2024, 3, 13), -1), date(2024, 3, 6))

    def test_day_of_week_excluding_sunday(self):
        self.assertEqual(day_of_week_excluding_sunday(date(2024, 3, 13)), 'Wednesday')
        self.assertEqual(day_of_week_excluding_sunday(date(2024, 3, 16)), 'Saturday')
        self.assertIsNone(day_of_week_excluding_sunday(date(2024, 3, 10)))
        self.assertIsNone(day_of_week_excluding_sunday('garbage'))

    def test_parse_iso_date(self):
        self.assertEqual(parse_iso_date('2024-03-13'), date(2024, 3, 13))
        self.assertEqual(parse_iso_date('2024-03-13T10:00:00Z'), date(2024, 3, 13))
        for raw in ('', 'yesterday', '2024-02-31', None):
            with self.assertRaises(ValueError):
                parse_iso_date(raw)

    def test_lessons_on_weekday(self):
        monday = SimpleNamespace(days_of_week=['Monday', 'Wednesday'])
        friday = SimpleNamespace(days_of_week=['Friday'])
        self.assertEqual(lessons_on_weekday([monday, friday], 'Wednesday'), [monday])
        self.assertEqual(lessons_on_weekday([monday, friday], None), [])


class ScheduleModelTests(TenantTestMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.teacher = self.create_member('teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova')
        self.group = Group.objects.create(
            tenant=self.tenant, name='Math A', teacher=self.teacher,
            start_time=time(9, 0), end_time=time(10, 30), days_of_week=['Monday'],
        )

    def test_lesson_end_must_follow_start(self):
        with self.assertRaises(ValidationError):
            Lesson.objects.create(
                tenant=self.tenant, group=self.group, teacher=self.teacher,
                start_time=utc(2024, 3, 13, 10, 0), end_time=utc(2024, 3, 13, 9, 0),
                room='101', days_of_week=['Wednesday'],
            )

    def test_lesson_rejects_sunday(self):
        with self.assertRaises(ValidationError):
            Lesson.objects.create(
                tenant=self.tenant, group=self.group, teacher=self.teacher,
                start_time=utc(2024, 3, 13, 9, 0), end_time=utc(2024, 3, 13, 10, 0),
                room='101', days_of_week=['Sunday'],
            )

    def test_naive_times_become_aware(self):
        lesson = Lesson.objects.create(
            tenant=self.tenant, group=self.group, teacher=self.teacher,
            start_time=datetime(2024, 3, 13, 9, 0), end_time=datetime(2024, 3, 13, 10, 30),
            room='101', days_of_week=['Wednesday'],
        )
        self.assertIsNotNone(lesson.start_time.tzinfo)
        self.assertEqual(lesson.duration(), 90)
        self.assertTrue(lesson.runs_on('Wednesday'))
        self.assertFalse(lesson.runs_on('Monday'))

    def test_group_end_must_follow_start(self):
        group = Group(
            tenant=self.tenant, name='Broken', teacher=self.teacher,
            start_time=time(11, 0), end_time=time(10, 0), days_of_week=['Monday'],
        )
        with self.assertRaises(ValidationError):
            group.full_clean()


class ScheduleAPITests(TenantTestMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.admin = self.create_member('admin@academy.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member('teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova')
        self.other = self.create_member('other@academy.io', 'teacher', first_name='Boris', last_name='Ivanov')

        self.group = Group.objects.create(
            tenant=self.tenant, name='Math A', teacher=self.teacher,
            start_time=time(9, 0), end_time=time(10, 30), days_of_week=['Monday', 'Wednesday'],
        )
        self.other_group = Group.objects.create(
            tenant=self.tenant, name='Physics B', teacher=self.other,
            start_time=time(12, 0), end_time=time(13, 0), days_of_week=['Friday'],
        )
        self.monday_lesson = Lesson.objects.create(
            tenant=self.tenant, group=self.group, teacher=self.teacher,
            start_time=utc(2024, 3, 13, 9, 0), end_time=utc(2024, 3, 13, 10, 30),
            room='101', days_of_week=['Monday', 'Wednesday'],
        )
        self.friday_lesson = Lesson.objects.create(
            tenant=self.tenant, group=self.other_group, teacher=self.other,
            start_time=utc(2024, 3, 15, 12, 0), end_time=utc(2024, 3, 15, 13, 0),
            room='202', days_of_week=['Friday'],
        )
        self.student = Student.objects.create(
            tenant=self.tenant, name='Ivan Sidorov', phone='+998901234567', group=self.group,
        )
        self.admin_client = self.client_for(self.admin)
        self.teacher_client = self.client_for(self.teacher)

    def test_date_endpoint_adjusts_sunday(self):
        response = self.admin_client.get('/api/lessons/date/', {'date': '2024-03-10'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['date'], '2024-03-11')
        self.assertTrue(response.data['adjusted'])
        self.assertEqual(response.data['day_of_week'], 'Monday')
        self.assertEqual([row['id'] for row in response.data['lessons']], [self.monday_lesson.id])

    def test_date_endpoint_weekday(self):
        response = self.admin_client.get('/api/lessons/date/', {'date': '2024-03-15'})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['adjusted'])
        self.assertEqual([row['id'] for row in response.data['lessons']], [self.friday_lesson.id])

    def test_date_endpoint_requires_date(self):
        response = self.admin_client.get('/api/lessons/date/')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'Date parameter is required')

    def test_date_endpoint_rejects_invalid_date(self):
        response = self.admin_client.get('/api/lessons/date/', {'date': 'not-a-date'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {'error': INVALID_DATE_MESSAGE})

    def test_week_endpoint_buckets_lessons(self):
        response = self.admin_client.get('/api/lessons/week/', {'date': '2024-03-13'})
        self.assertEqual(response.status_code, 200)
        data = response.data
        self.assertEqual(data['window'][0], '2024-03-11')
        self.assertEqual(data['window'][-1], '2024-03-17')
        self.assertEqual([row['id'] for row in data['days']['2024-03-13']], [self.monday_lesson.id])
        self.assertEqual([row['id'] for row in data['days']['2024-03-15']], [self.friday_lesson.id])
        self.assertEqual(data['days']['2024-03-17'], [])
        self.assertEqual(data['previous_week'], '2024-03-06')
        self.assertEqual(data['next_week'], '2024-03-20')

    def test_week_endpoint_adjusts_sunday_anchor(self):
        response = self.admin_client.get('/api/lessons/week/', {'date': '2024-03-17'})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['adjusted'])
        self.assertEqual(response.data['window'][0], '2024-03-18')

    def test_lesson_list_range_filter(self):
        response = self.admin_client.get('/api/lessons/', {'start': '2024-03-14', 'end': '2024-03-16'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], self.friday_lesson.id)

    def test_lesson_list_rejects_invalid_range(self):
        response = self.admin_client.get('/api/lessons/', {'start': '2024-13-45'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], INVALID_DATE_MESSAGE)

    def test_teacher_sees_only_own_lessons(self):
        response = self.teacher_client.get('/api/lessons/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['id'] for row in response.data['results']], [self.monday_lesson.id])

    def test_teacher_cannot_touch_foreign_group(self):
        response = self.teacher_client.patch(
            f'/api/groups/{self.other_group.id}/', {'name': 'Hijacked'}, format='json'
        )
        self.assertEqual(response.status_code, 404)
        self.other_group.refresh_from_db()
        self.assertEqual(self.other_group.name, 'Physics B')

    def test_teacher_creates_group_for_self(self):
        response = self.teacher_client.post('/api/groups/', {
            'name': 'Evening',
            'teacher': self.other.id,
            'start_time': '18:00',
            'end_time': '19:30',
            'days_of_week': ['Tuesday', 'Thursday'],
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)
        group = Group.objects.get(pk=response.data['id'])
        self.assertEqual(group.teacher, self.teacher)
        self.assertEqual(group.tenant, self.tenant)

    def test_teacher_cannot_hand_lesson_to_colleague(self):
        response = self.teacher_client.patch(
            f'/api/lessons/{self.monday_lesson.id}/', {'teacher': self.other.id, 'room': '105'}, format='json'
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.monday_lesson.refresh_from_db()
        self.assertEqual(self.monday_lesson.teacher, self.teacher)
        self.assertEqual(self.monday_lesson.room, '105')

    def test_admin_reassigns_lesson(self):
        response = self.admin_client.patch(
            f'/api/lessons/{self.monday_lesson.id}/', {'teacher': self.other.id}, format='json'
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.monday_lesson.refresh_from_db()
        self.assertEqual(self.monday_lesson.teacher, self.other)

    def test_group_rename_reaches_cached_attendance_list(self):
        Attendance.objects.create(
            tenant=self.tenant, lesson=self.monday_lesson, student=self.student,
            teacher=self.teacher, date=date(2024, 3, 13),
        )
        response = self.admin_client.get('/api/attendances/')
        self.assertEqual(response.data['results'][0]['group_name'], 'Math A')

        response = self.admin_client.patch(f'/api/groups/{self.group.id}/', {'name': 'Math Pro'}, format='json')
        self.assertEqual(response.status_code, 200, response.data)

        response = self.admin_client.get('/api/attendances/')
        self.assertEqual(response.data['results'][0]['group_name'], 'Math Pro')

    def test_course_update_reaches_cached_group_list(self):
        subject = Subject.objects.create(tenant=self.tenant, name='Math')
        course = Course.objects.create(tenant=self.tenant, name='Algebra', price=Decimal('100'), subject=subject)
        self.group.course = course
        self.group.save()
        response = self.admin_client.get('/api/groups/', {'sort': 'name'})
        self.assertEqual(response.data['results'][0]['course_name'], 'Algebra')

        response = self.admin_client.patch(f'/api/courses/{course.id}/', {'name': 'Algebra II'}, format='json')
        self.assertEqual(response.status_code, 200, response.data)

        response = self.admin_client.get('/api/groups/', {'sort': 'name'})
        self.assertEqual(response.data['results'][0]['course_name'], 'Algebra II')

    def test_profile_update_reaches_cached_lists(self):
        self.assertEqual(self.admin_client.get('/api/lessons/').data['results'][0]['teacher_name'], 'Anna Petrova')
        groups = self.admin_client.get('/api/groups/', {'sort': 'name'})
        self.assertEqual(groups.data['results'][0]['teacher_name'], 'Anna Petrova')

        response = self.teacher_client.patch('/api/me/', {'last_name': 'Smirnova'}, format='json')
        self.assertEqual(response.status_code, 200, response.data)

        lessons = self.admin_client.get('/api/lessons/', {'sort': 'start_time'})
        self.assertEqual(lessons.data['results'][0]['teacher_name'], 'Anna Smirnova')
        groups = self.admin_client.get('/api/groups/', {'sort': 'name'})
        self.assertEqual(groups.data['results'][0]['teacher_name'], 'Anna Smirnova')

    def test_group_list_renders_clock(self):
        response = self.admin_client.get('/api/groups/', {'sort': 'name'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['cells']), len(response.data['results']))
        self.assertEqual(response.data['cells'][0]['start_time'], '09:00')

    def test_create_lesson_validates_times(self):
        response = self.admin_client.post('/api/lessons/', {
            'group': self.group.id,
            'teacher': self.teacher.id,
            'start_time': '2024-03-18T10:00:00Z',
            'end_time': '2024-03-18T09:00:00Z',
            'room': '101',
            'days_of_week': ['Monday'],
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('end_time', response.data)

    def test_create_lesson_rejects_sunday(self):
        response = self.admin_client.post('/api/lessons/', {
            'group': self.group.id,
            'teacher': self.teacher.id,
            'start_time': '2024-03-18T09:00:00Z',
            'end_time': '2024-03-18T10:00:00Z',
            'room': '101',
            'days_of_week': ['Sunday'],
        }, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('days_of_week', response.data)

    def test_create_lesson(self):
        response = self.admin_client.post('/api/lessons/', {
            'group': self.group.id,
            'teacher': self.teacher.id,
            'start_time': '2024-03-18T09:00:00Z',
            'end_time': '2024-03-18T10:00:00Z',
            'room': '101',
            'days_of_week': ['Wednesday', 'Monday', 'Monday'],
        }, format='json')
        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data['days_of_week'], ['Monday', 'Wednesday'])
        self.assertEqual(response.data['duration_minutes'], 60)

    def test_mark_attendance_once_per_lesson(self):
        url = f'/api/lessons/{self.monday_lesson.id}/attendance/'
        response = self.teacher_client.post(url, {'student': self.student.id, 'status': 'present'}, format='json')
        self.assertEqual(response.status_code, 201, response.data)
        attendance = Attendance.objects.get()
        self.assertEqual(attendance.lesson, self.monday_lesson)
        self.assertEqual(attendance.teacher, self.teacher)
        self.assertEqual(attendance.tenant, self.tenant)

        duplicate = self.teacher_client.post(url, {'student': self.student.id, 'status': 'absent'}, format='json')
        self.assertEqual(duplicate.status_code, 400)
        self.assertEqual(duplicate.data['error'], 'Attendance already recorded for this student')

        listing = self.teacher_client.get(url)
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(len(listing.data), 1)
        self.assertEqual(listing.data[0]['student_name'], 'Ivan Sidorov')

    def test_teacher_cannot_mark_foreign_lesson(self):
        url = f'/api/lessons/{self.friday_lesson.id}/attendance/'
        response = self.teacher_client.post(url, {'student': self.student.id}, format='json')
        self.assertEqual(response.status_code, 404)

    def test_attendance_journal_filters(self):
        Attendance.objects.create(
            tenant=self.tenant, lesson=self.monday_lesson, student=self.student,
            teacher=self.teacher, status='absent', date=date(2024, 3, 13),
        )
        response = self.admin_client.get('/api/attendances/', {'status': 'absent'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        response = self.admin_client.get('/api/attendances/', {'date': '2024-03-14'})
        self.assertEqual(response.data['count'], 0)
        response = self.admin_client.get('/api/attendances/', {'date': 'bad'})
        self.assertEqual(response.status_code, 400)
