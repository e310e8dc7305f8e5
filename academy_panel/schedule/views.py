import logging

from django.db.models import Q
from django.utils.dateparse import parse_time
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import IsAdminOrTeacher, is_admin
from core.datatable import Column, SortState
from core.formatting import format_date, format_datetime
from core.mixins import DataTableViewSetMixin, invalidate_with_dependents
from tenants.mixins import TenantViewSetMixin

from .calendar_helpers import (
    INVALID_DATE_MESSAGE,
    bucket_by_day,
    day_of_week_excluding_sunday,
    parse_iso_date,
    resolve_display_date,
    shift_week,
    week_window,
)
from .models import Attendance, Group, Lesson
from .permissions import IsOwnerTeacherOrAdmin
from .serializers import (
    AttendanceSerializer,
    GroupSerializer,
    LessonAttendanceSerializer,
    LessonSerializer,
)

logger = logging.getLogger(__name__)


def _render_clock(value, row):
    parsed = parse_time(value) if isinstance(value, str) else value
    return parsed.strftime('%H:%M') if parsed else ''


def _render_days(value, row):
    return ', '.join(value or [])


class GroupViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """
    Учебные группы. Преподаватель видит и редактирует только свои группы,
    при создании группы преподавателем он же становится её владельцем.
    """
    queryset = Group.objects.select_related('teacher', 'course').prefetch_related('students')
    serializer_class = GroupSerializer
    permission_classes = [IsAdminOrTeacher, IsOwnerTeacherOrAdmin]
    cache_tag = 'groups'
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('teacher_name', 'Teacher', sortable=True),
        Column('course_name', 'Course', sortable=True),
        Column('start_time', 'Starts', sortable=True, render=_render_clock),
        Column('end_time', 'Ends', sortable=True, render=_render_clock),
        Column('days_of_week', 'Days', render=_render_days),
        Column('student_count', 'Students', sortable=True),
    )

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if not is_admin(user):
            qs = qs.filter(teacher=user)
        return qs

    def perform_create(self, serializer):
        if not is_admin(self.request.user):
            serializer.validated_data['teacher'] = self.request.user
        super().perform_create(serializer)

    def perform_update(self, serializer):
        if not is_admin(self.request.user):
            serializer.validated_data['teacher'] = self.request.user
        super().perform_update(serializer)


class LessonViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """
    Занятия.

    GET /api/lessons/?start=YYYY-MM-DD&end=YYYY-MM-DD  - таблица за период
    GET /api/lessons/date/?date=YYYY-MM-DD            - занятия дня недели
    GET /api/lessons/week/?date=YYYY-MM-DD            - неделя по дням
    GET/POST /api/lessons/<id>/attendance/             - посещаемость урока
    """
    queryset = Lesson.objects.select_related('group', 'group__teacher', 'teacher')
    serializer_class = LessonSerializer
    permission_classes = [IsAdminOrTeacher, IsOwnerTeacherOrAdmin]
    cache_tag = 'lessons'
    default_sort = SortState('start_time')
    table_columns = (
        Column('group_name', 'Group', sortable=True),
        Column('teacher_name', 'Teacher', sortable=True),
        Column('start_time', 'Starts', sortable=True, render=lambda value, row: format_datetime(value)),
        Column('end_time', 'Ends', sortable=True, render=lambda value, row: format_datetime(value)),
        Column('room', 'Room', sortable=True),
        Column('days_of_week', 'Days', render=_render_days),
        Column('status', 'Status', sortable=True),
    )

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if not is_admin(user):
            qs = qs.filter(Q(teacher=user) | Q(group__teacher=user)).distinct()
        return qs

    def _date_range(self, request):
        """(start, end) из query-параметров; ValueError при неверной дате."""
        start = request.query_params.get('start')
        end = request.query_params.get('end')
        return (
            parse_iso_date(start) if start else None,
            parse_iso_date(end) if end else None,
        )

    def fetch_rows(self):
        qs = self.filter_queryset(self.get_queryset())
        start, end = self._date_range(self.request)
        if start is not None:
            qs = qs.filter(start_time__date__gte=start)
        if end is not None:
            qs = qs.filter(start_time__date__lte=end)
        serializer = self.get_serializer(qs, many=True)
        return [dict(row) for row in serializer.data]

    def list(self, request, *args, **kwargs):
        try:
            self._date_range(request)
        except ValueError:
            return Response({'error': INVALID_DATE_MESSAGE}, status=status.HTTP_400_BAD_REQUEST)
        return super().list(request, *args, **kwargs)

    def perform_create(self, serializer):
        if not is_admin(self.request.user):
            serializer.validated_data['teacher'] = self.request.user
        super().perform_create(serializer)

    def perform_update(self, serializer):
        if not is_admin(self.request.user):
            serializer.validated_data['teacher'] = self.request.user
        super().perform_update(serializer)

    @action(detail=False, methods=['get'])
    def date(self, request):
        """Занятия, идущие в день недели выбранной даты (воскресенье -> понедельник)."""
        raw = request.query_params.get('date')
        if not raw:
            return Response({'error': 'Date parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            display = resolve_display_date(parse_iso_date(raw))
        except ValueError:
            return Response({'error': INVALID_DATE_MESSAGE}, status=status.HTTP_400_BAD_REQUEST)

        weekday = day_of_week_excluding_sunday(display.date)
        lessons = [
            lesson for lesson in self.get_queryset().order_by('start_time')
            if lesson.runs_on(weekday)
        ]
        return Response({
            'date': display.date.isoformat(),
            'adjusted': display.adjusted,
            'display_date': format_date(display.date),
            'day_of_week': weekday,
            'lessons': self.get_serializer(lessons, many=True).data,
        })

    @action(detail=False, methods=['get'])
    def week(self, request):
        """Неделя (пн-вс) вокруг даты и уроки, разложенные по дням начала."""
        raw = request.query_params.get('date')
        try:
            display = resolve_display_date(parse_iso_date(raw) if raw else None)
        except ValueError:
            return Response({'error': INVALID_DATE_MESSAGE}, status=status.HTTP_400_BAD_REQUEST)

        window = week_window(display.date)
        lessons = self.get_queryset().filter(
            start_time__date__gte=window[0], start_time__date__lte=window[-1]
        ).order_by('start_time')
        days = {
            day: self.get_serializer(entries, many=True).data
            for day, entries in bucket_by_day(lessons, window).items()
        }
        return Response({
            'date': display.date.isoformat(),
            'adjusted': display.adjusted,
            'window': [day.isoformat() for day in window],
            'days': days,
            'previous_week': shift_week(display.date, -1).isoformat(),
            'next_week': shift_week(display.date, 1).isoformat(),
        })

    @action(detail=True, methods=['get', 'post'])
    def attendance(self, request, pk=None):
        """Посещаемость урока: список отметок или новая отметка."""
        lesson = self.get_object()
        if request.method == 'GET':
            records = lesson.attendances.select_related('student', 'teacher').order_by('-date', 'student__name')
            context = self.get_serializer_context()
            return Response(AttendanceSerializer(records, many=True, context=context).data)

        context = self.get_serializer_context()
        context['lesson'] = lesson
        serializer = LessonAttendanceSerializer(data=request.data, context=context)
        serializer.is_valid(raise_exception=True)
        serializer.save(
            tenant=request.tenant,
            teacher=serializer.validated_data.get('teacher') or request.user,
        )
        invalidate_with_dependents(self.query_cache, 'attendances')
        logger.info('attendance marked: lesson=%s student=%s by %s',
                    lesson.pk, serializer.instance.student_id, request.user.email)
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class AttendanceViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """
    Журнал посещаемости. Фильтры: ?lesson=&student=&status=&date=
    """
    queryset = Attendance.objects.select_related(
        'student', 'student__group', 'teacher', 'lesson', 'lesson__group'
    )
    serializer_class = AttendanceSerializer
    permission_classes = [IsAdminOrTeacher, IsOwnerTeacherOrAdmin]
    cache_tag = 'attendances'
    default_sort = SortState('date', 'desc')
    table_columns = (
        Column('student_name', 'Student', sortable=True),
        Column('group_name', 'Group', sortable=True),
        Column('teacher_name', 'Teacher', sortable=True),
        Column('status', 'Status', sortable=True),
        Column('date', 'Date', sortable=True, render=lambda value, row: format_date(value)),
        Column('notes', 'Notes'),
    )

    def get_queryset(self):
        qs = super().get_queryset()
        user = self.request.user
        if not is_admin(user):
            qs = qs.filter(
                Q(teacher=user) | Q(lesson__teacher=user)
                | Q(lesson__group__teacher=user) | Q(student__group__teacher=user)
            ).distinct()

        params = self.request.query_params
        if params.get('lesson'):
            qs = qs.filter(lesson_id=params['lesson'])
        if params.get('student'):
            qs = qs.filter(student_id=params['student'])
        if params.get('status'):
            qs = qs.filter(status=params['status'])
        return qs

    def list(self, request, *args, **kwargs):
        raw = request.query_params.get('date')
        if raw:
            try:
                parse_iso_date(raw)
            except ValueError:
                return Response({'error': INVALID_DATE_MESSAGE}, status=status.HTTP_400_BAD_REQUEST)
        return super().list(request, *args, **kwargs)

    def fetch_rows(self):
        qs = self.filter_queryset(self.get_queryset())
        raw = self.request.query_params.get('date')
        if raw:
            qs = qs.filter(date=parse_iso_date(raw))
        serializer = self.get_serializer(qs, many=True)
        return [dict(row) for row in serializer.data]

    def perform_create(self, serializer):
        if serializer.validated_data.get('teacher') is None:
            serializer.validated_data['teacher'] = self.request.user
        super().perform_create(serializer)

