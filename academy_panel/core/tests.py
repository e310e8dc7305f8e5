"""
Tests for core app.

Covers:
- DataTable (поиск, сортировка, пагинация в памяти)
- QueryCache
- Форматирование дат
- API endpoints (/api/subjects/, /api/courses/, /api/sources/, /api/students/)
"""
import datetime as dt
from decimal import Decimal
from unittest.mock import patch

from django.core.cache.backends.locmem import LocMemCache
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from finance.models import Payment
from schedule.models import Attendance, Group
from tenants.testing import TenantTestMixin

from .datatable import (
    ASC,
    DESC,
    Column,
    DataTable,
    SortState,
    clamp_page,
    compare_values,
    filter_rows,
    paginate,
    resolve_path,
    sort_rows,
    toggle_sort,
    total_pages,
)
from .formatting import INVALID_DATE, format_date, format_datetime, format_money, format_time
from .mixins import invalidate_with_dependents, parse_table_params
from .models import Course, Student, StudentSource, Subject
from .query_cache import QueryCache

ROWS = [
    {'id': 1, 'name': 'Ivan', 'age': 17, 'group': {'name': 'Algebra A'}},
    {'id': 2, 'name': 'maria', 'age': 15, 'group': {'name': 'Physics'}},
    {'id': 3, 'name': 'Timur', 'age': 17, 'group': None},
    {'id': 4, 'name': 'Anna', 'age': None, 'group': {'name': 'Algebra B'}},
    {'id': 5, 'name': 'Oleg', 'age': 16, 'group': {'name': 'Physics'}},
]

COLUMNS = [
    Column('name', 'Name', sortable=True),
    Column('age', 'Age', sortable=True),
    Column('group.name', 'Group', sortable=True),
    Column('id', 'ID'),
]


def ids(rows):
    return [row['id'] for row in rows]


class FilterRowsTests(SimpleTestCase):
    def test_blank_query_returns_all_rows(self):
        self.assertEqual(filter_rows(ROWS, ''), ROWS)
        self.assertEqual(filter_rows(ROWS, '   '), ROWS)
        self.assertEqual(filter_rows(ROWS, None), ROWS)

    def test_case_insensitive_any_field(self):
        self.assertEqual(ids(filter_rows(ROWS, 'MARIA')), [2])
        # Числа ищутся по строковому представлению
        self.assertEqual(ids(filter_rows(ROWS, '17')), [1, 3])
        # Вложенные значения тоже, по str() словаря
        self.assertEqual(ids(filter_rows(ROWS, 'physics')), [2, 5])

    def test_none_is_empty_string(self):
        self.assertEqual(filter_rows(ROWS, 'none'), [])

    def test_input_not_mutated(self):
        rows = [dict(row) for row in ROWS]
        filter_rows(rows, 'a')
        sort_rows(rows, SortState('name', DESC))
        self.assertEqual(rows, ROWS)


class SortRowsTests(SimpleTestCase):
    def test_no_sort_keeps_order(self):
        self.assertEqual(sort_rows(ROWS, None), ROWS)

    def test_stable_in_both_directions(self):
        self.assertEqual(ids(sort_rows(ROWS, SortState('age', ASC))), [2, 5, 1, 3, 4])
        # Равные значения (1 и 3) сохраняют исходный порядок и в desc
        self.assertEqual(ids(sort_rows(ROWS, SortState('age', DESC))), [4, 1, 3, 5, 2])

    def test_desc_reverses_distinct_values(self):
        rows = [row for row in ROWS if row['age'] is not None]
        asc = [row['age'] for row in sort_rows(rows, SortState('age', ASC))]
        desc = [row['age'] for row in sort_rows(rows, SortState('age', DESC))]
        self.assertEqual(sorted(set(asc)), list(dict.fromkeys(asc)))
        self.assertEqual(list(dict.fromkeys(desc)), list(reversed(list(dict.fromkeys(asc)))))

    def test_dotted_path_with_missing_values(self):
        self.assertEqual(ids(sort_rows(ROWS, SortState('group.name'), COLUMNS)), [1, 4, 2, 5, 3])

    def test_mixed_types(self):
        rows = [{'v': 'b'}, {'v': 2}, {'v': None}, {'v': 1}, {'v': 'a'}]
        result = [row['v'] for row in sort_rows(rows, SortState('v'))]
        self.assertEqual(result, [1, 2, 'a', 'b', None])

    def test_compare_values(self):
        self.assertEqual(compare_values(None, None), 0)
        self.assertEqual(compare_values(None, 1), 1)
        self.assertEqual(compare_values(dt.date(2024, 1, 1), None), -1)
        self.assertEqual(compare_values(1, 'a'), -1)  # 'int' < 'str'

    def test_accessor_preferred_over_key(self):
        column = Column('name', accessor=lambda row: len(row['name']))
        result = sort_rows(ROWS, SortState('name'), [column])
        self.assertEqual(ids(result), [1, 4, 5, 2, 3])

    def test_unknown_direction_rejected(self):
        with self.assertRaises(ValueError):
            SortState('name', 'up')


class PaginationTests(SimpleTestCase):
    def test_slices(self):
        rows = list(range(10))
        self.assertEqual(paginate(rows, 4, 1), [0, 1, 2, 3])
        self.assertEqual(paginate(rows, 4, 3), [8, 9])
        self.assertEqual(paginate(rows, 4, 4), [])
        self.assertEqual(paginate(rows, 4, 0), [])
        self.assertEqual(paginate(rows, 4, -2), [])

    def test_pages_reconstruct_rows(self):
        rows = sort_rows(ROWS, SortState('name'))
        for size in (1, 2, 3, 5, 7):
            pages = total_pages(len(rows), size)
            joined = []
            for page in range(1, pages + 1):
                joined.extend(paginate(rows, size, page))
            self.assertEqual(joined, rows)

    def test_total_pages_and_clamp(self):
        self.assertEqual(total_pages(0, 8), 0)
        self.assertEqual(total_pages(17, 8), 3)
        self.assertEqual(clamp_page(5, 3), 3)
        self.assertEqual(clamp_page(0, 3), 1)
        self.assertEqual(clamp_page(2, 0), 1)


class DataTableStateTests(SimpleTestCase):
    def test_toggle_sort(self):
        first = toggle_sort(None, 'name')
        self.assertEqual(first, SortState('name', ASC))
        second = toggle_sort(first, 'name')
        self.assertEqual(second, SortState('name', DESC))
        self.assertEqual(toggle_sort(second, 'name'), SortState('name', ASC))
        self.assertEqual(toggle_sort(second, 'age'), SortState('age', ASC))

    def test_search_resets_page(self):
        table = DataTable(ROWS, COLUMNS, page_size=2)
        table.on_page_change(3)
        self.assertEqual(table.page, 3)
        table.on_search_change('physics')
        self.assertEqual(table.page, 1)

    def test_page_change_is_clamped(self):
        table = DataTable(ROWS, COLUMNS, page_size=2)
        table.on_page_change(10)
        self.assertEqual(table.page, 3)
        table.on_page_change(-1)
        self.assertEqual(table.page, 1)

    def test_non_sortable_column_ignored(self):
        table = DataTable(ROWS, COLUMNS)
        table.on_sort('id')
        self.assertIsNone(table.sort)
        table.on_sort('name')
        table.on_sort('name')
        self.assertEqual(table.sort, SortState('name', DESC))

    def test_view(self):
        table = DataTable(ROWS, COLUMNS, page_size=2)
        table.on_sort('name')
        table.on_page_change(2)
        view = table.view()
        # 'maria' с маленькой буквы идёт после заглавных
        self.assertEqual(ids(view.rows), [5, 3])
        self.assertEqual(view.count, 5)
        self.assertEqual(view.total_pages, 3)
        self.assertEqual(view.showing, 'Showing 3 to 4 of 5 entries')
        self.assertIsNone(view.empty_message)
        self.assertEqual(view.cells[0]['group.name'], 'Physics')

    def test_render(self):
        column = Column('age', render=lambda value, row: 'n/a' if value is None else f'{value} y.o.')
        view = DataTable(ROWS[2:4], [column]).view()
        self.assertEqual([cell['age'] for cell in view.cells], ['17 y.o.', 'n/a'])

    def test_empty_states(self):
        view = DataTable([], COLUMNS).view()
        self.assertTrue(view.is_empty)
        self.assertEqual(view.showing, '')
        self.assertEqual(view.empty_message, {'title': 'No data found', 'hint': 'No data available'})

        table = DataTable(ROWS, COLUMNS)
        table.on_search_change('nobody')
        self.assertEqual(table.view().empty_message['hint'], 'Try a different search term')

    def test_resolve_path(self):
        self.assertEqual(resolve_path(ROWS[0], 'group.name'), 'Algebra A')
        self.assertIsNone(resolve_path(ROWS[2], 'group.name'))
        self.assertIsNone(resolve_path(ROWS[0], 'missing.deep'))


class TableParamsTests(SimpleTestCase):
    def test_defaults_and_limits(self):
        params = parse_table_params({'page': 'abc', 'page_size': '1000'}, COLUMNS, 10)
        self.assertEqual(params['page'], 1)
        self.assertEqual(params['page_size'], 100)
        self.assertIsNone(params['sort'])

    def test_unknown_sort_key_ignored(self):
        self.assertIsNone(parse_table_params({'sort': 'id'}, COLUMNS)['sort'])
        params = parse_table_params({'sort': 'age', 'direction': 'DESC'}, COLUMNS)
        self.assertEqual(params['sort'], SortState('age', DESC))
        self.assertEqual(params['page_size'], 8)


class QueryCacheTests(SimpleTestCase):
    def setUp(self):
        backend = LocMemCache('query-cache-tests', {})
        backend.clear()
        self.cache = QueryCache(backend=backend, timeout=60)

    def test_get_or_set_calls_producer_once(self):
        calls = []

        def producer():
            calls.append(1)
            return ['row']

        descriptor = ('students', {'tenant': 'a'})
        self.assertEqual(self.cache.get_or_set(descriptor, producer), ['row'])
        self.assertEqual(self.cache.get_or_set(descriptor, producer), ['row'])
        self.assertEqual(len(calls), 1)

    def test_params_are_part_of_key(self):
        self.cache.set(('students', {'tenant': 'a'}), 1)
        self.assertIsNone(self.cache.get(('students', {'tenant': 'b'})))
        self.assertEqual(self.cache.get(('students', {'tenant': 'a'})), 1)

    def test_invalidate_tag(self):
        self.cache.set(('students', {'page': 1}), 'a')
        self.cache.set(('students', {'page': 2}), 'b')
        self.cache.set(('lessons', {}), 'c')
        self.cache.invalidate('students')
        self.assertIsNone(self.cache.get(('students', {'page': 1})))
        self.assertIsNone(self.cache.get(('students', {'page': 2})))
        self.assertEqual(self.cache.get(('lessons', {})), 'c')

    def test_invalidate_unknown_tag(self):
        self.cache.invalidate('never-used')
        self.cache.set(('never-used', {}), 'x')
        self.assertEqual(self.cache.get(('never-used', {})), 'x')


    def test_evicted_version_does_not_revive_stale_rows(self):
        with patch.object(QueryCache, '_fresh_version', side_effect=[1000, 2000]):
            self.cache.set(('students', {}), 'old')
            self.cache.invalidate('students')
            self.cache.backend.delete('qc:v:students')
            self.assertIsNone(self.cache.get(('students', {})))

    def test_dependent_lists_invalidated(self):
        self.cache.set(('payments', {}), 'rows')
        self.cache.set(('lessons', {}), 'rows')
        tags = invalidate_with_dependents(self.cache, 'students')
        self.assertIn('payments', tags)
        self.assertIsNone(self.cache.get(('payments', {})))
        self.assertEqual(self.cache.get(('lessons', {})), 'rows')


class FormattingTests(SimpleTestCase):
    def test_invalid_values(self):
        for value in ('not a date', '2024-02-31', '', None, 42, object()):
            self.assertEqual(format_date(value), INVALID_DATE)
            self.assertEqual(format_datetime(value), INVALID_DATE)
            self.assertEqual(format_time(value), INVALID_DATE)

    def test_valid_values(self):
        self.assertEqual(format_date(dt.date(2024, 3, 10)), 'Mar 10, 2024')
        self.assertEqual(format_date('2024-03-10'), 'Mar 10, 2024')
        self.assertEqual(format_datetime('2024-03-13T09:00:00'), 'Mar 13, 2024 09:00')
        self.assertEqual(format_time(dt.time(18, 30)), '18:30')

    def test_money(self):
        self.assertEqual(format_money(Decimal('12500.5'), 'USD'), '12,500.50 USD')
        self.assertEqual(format_money('abc'), 'abc')




class CoreAPIMixin(TenantTestMixin):
    def setUp(self):
        super().setUp()
        self.tenant = self.create_tenant('academy')
        self.admin = self.create_member('admin@academy.io', 'admin', first_name='Olga', last_name='Admin')
        self.teacher = self.create_member('teacher@academy.io', 'teacher', first_name='Anna', last_name='Petrova')
        self.other_teacher = self.create_member('boris@academy.io', 'teacher', first_name='Boris', last_name='Ivanov')
        self.subject = Subject.objects.create(tenant=self.tenant, name='Math')
        self.course = Course.objects.create(tenant=self.tenant, name='Algebra', price=Decimal('100'), subject=self.subject)
        self.source = StudentSource.objects.create(tenant=self.tenant, name='Instagram')
        self.group = Group.objects.create(
            tenant=self.tenant, name='Algebra A', teacher=self.teacher, course=self.course,
            start_time=dt.time(9, 0), end_time=dt.time(10, 0), days_of_week=['Monday'],
        )
        self.other_group = Group.objects.create(
            tenant=self.tenant, name='Algebra B', teacher=self.other_teacher, course=self.course,
            start_time=dt.time(11, 0), end_time=dt.time(12, 0), days_of_week=['Tuesday'],
        )
        self.client = self.client_for(self.admin)


class SubjectAPITests(CoreAPIMixin, APITestCase):
    def test_create_and_list(self):
        response = self.client.post('/api/subjects/', {'name': ' Physics '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(Subject.objects.get(pk=response.data['id']).tenant, self.tenant)

        response = self.client.get('/api/subjects/', {'sort': 'name'})
        self.assertEqual([row['name'] for row in response.data['results']], ['Math', 'Physics'])
        self.assertEqual(response.data['results'][0]['course_count'], 1)

    def test_duplicate_name_rejected(self):
        response = self.client.post('/api/subjects/', {'name': 'math'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_same_name_in_other_tenant_allowed(self):
        other = self.create_tenant('beta')
        admin = self.create_member('admin@beta.io', 'admin', tenant=other)
        response = self.client_for(admin, tenant=other).post('/api/subjects/', {'name': 'Math'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_teacher_forbidden(self):
        response = self.client_for(self.teacher).get('/api/subjects/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_subject(self):
        response = self.client.get('/api/subjects/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)


class CourseAPITests(CoreAPIMixin, APITestCase):
    def test_create_course(self):
        response = self.client.post('/api/courses/', {
            'name': 'Geometry',
            'price': '80.00',
            'subject': self.subject.id,
            'teachers': [self.teacher.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['teacher_names'], ['Anna Petrova'])
        self.assertEqual(response.data['subject_name'], 'Math')

    def test_subject_of_other_tenant_rejected(self):
        other = self.create_tenant('beta')
        foreign = Subject.objects.create(tenant=other, name='Chemistry')
        response = self.client.post('/api/courses/', {
            'name': 'Organic', 'price': '10.00', 'subject': foreign.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('subject', response.data)

    def test_add_and_remove_student(self):
        student = Student.objects.create(tenant=self.tenant, name='Ivan', phone='+998901234567')
        url = f'/api/courses/{self.course.id}/add_student/'
        response = self.client.post(url, {'student_id': student.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(self.course.students.all()), [student])

        response = self.client.post(f'/api/courses/{self.course.id}/remove_student/', {'student_id': student.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(self.course.students.exists())

    def test_add_student_requires_id(self):
        response = self.client.post(f'/api/courses/{self.course.id}/add_student/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'student_id required')


class StudentSourceAPITests(CoreAPIMixin, APITestCase):
    def test_blank_name_rejected(self):
        response = self.client.post('/api/sources/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_student_count(self):
        Student.objects.create(tenant=self.tenant, name='Ivan', phone='+998901234567', source=self.source)
        response = self.client.get('/api/sources/')
        self.assertEqual(response.data['results'][0]['student_count'], 1)


class StudentAPITests(CoreAPIMixin, APITestCase):
    def setUp(self):
        super().setUp()
        self.ivan = Student.objects.create(tenant=self.tenant, name='Ivan Sidorov', phone='+998901234567',
                                           group=self.group, source=self.source)
        self.maria = Student.objects.create(tenant=self.tenant, name='Maria Kim', phone='+998901234568',
                                            group=self.other_group)
        self.timur = Student.objects.create(tenant=self.tenant, name='Timur Aliev', phone='+998901234569')

    def test_admin_sees_all_students(self):
        response = self.client.get('/api/students/', {'sort': 'name'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [row['name'] for row in response.data['results']],
            ['Ivan Sidorov', 'Maria Kim', 'Timur Aliev'],
        )
        self.assertEqual(response.data['page_size'], 8)
        self.assertEqual(response.data['sort'], {'key': 'name', 'direction': 'asc'})

    def test_teacher_sees_own_group_students(self):
        response = self.client_for(self.teacher).get('/api/students/')
        self.assertEqual([row['name'] for row in response.data['results']], ['Ivan Sidorov'])

    def test_search_and_pagination(self):
        response = self.client.get('/api/students/', {'search': 'ALGEBRA'})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/students/', {'sort': 'name', 'page': 2, 'page_size': 2})
        self.assertEqual([row['name'] for row in response.data['results']], ['Timur Aliev'])
        self.assertEqual(response.data['showing'], 'Showing 3 to 3 of 3 entries')

        response = self.client.get('/api/students/', {'search': 'nobody'})
        self.assertEqual(response.data['results'], [])
        self.assertEqual(response.data['empty_message']['hint'], 'Try a different search term')

    def test_paid_and_last_attendance(self):
        Payment.objects.create(tenant=self.tenant, student=self.ivan, amount=Decimal('300.00'))
        Payment.objects.create(tenant=self.tenant, student=self.ivan, amount=Decimal('200.00'))
        Attendance.objects.create(tenant=self.tenant, student=self.ivan, date=dt.date(2024, 3, 11))
        Attendance.objects.create(tenant=self.tenant, student=self.ivan, date=dt.date(2024, 3, 13),
                                  status=Attendance.Status.ABSENT)

        response = self.client.get('/api/students/', {'sort': 'name'})
        ivan, maria = response.data['results'][:2]
        self.assertEqual(Decimal(str(ivan['total_paid'])), Decimal('500.00'))
        self.assertEqual(ivan['last_attendance'], '2024-03-11')
        self.assertEqual(Decimal(str(maria['total_paid'])), Decimal('0'))
        self.assertIsNone(maria['last_attendance'])

        ivan_cells, maria_cells = response.data['cells'][:2]
        self.assertEqual(ivan_cells['last_attendance'], 'Mar 11, 2024')
        self.assertEqual(maria_cells['last_attendance'], 'No attendance')

    def test_create_student(self):
        self.client.get('/api/students/')
        response = self.client.post('/api/students/', {
            'name': 'Dilnoza',
            'phone': '+998 90 555 44 33',
            'birthday': '2008-09-01',
            'source': self.source.id,
            'group_id': self.group.id,
            'course_ids': [self.course.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        student = Student.objects.get(name='Dilnoza')
        self.assertEqual(student.group, self.group)
        self.assertEqual(list(student.courses.all()), [self.course])

        # Кеш списка сброшен после создания
        response = self.client.get('/api/students/')
        self.assertEqual(response.data['count'], 4)

    def test_invalid_phone(self):
        response = self.client.post('/api/students/', {'name': 'Dilnoza', 'phone': '123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'phone: Phone number must be valid')

    def test_teacher_cannot_use_foreign_group(self):
        response = self.client_for(self.teacher).post('/api/students/', {
            'name': 'Dilnoza', 'phone': '+998905554433', 'group_id': self.other_group.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('group_id', response.data)

    def test_only_admin_deletes(self):
        response = self.client_for(self.teacher).delete(f'/api/students/{self.ivan.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/students/{self.ivan.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Student.objects.filter(pk=self.ivan.pk).exists())
