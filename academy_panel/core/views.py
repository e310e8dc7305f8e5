import logging

from django.db.models import DecimalField, Max, OuterRef, Q, Subquery, Sum, Value
from django.db.models.functions import Coalesce
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from accounts.permissions import IsAdminOrTeacher, IsAdminRole, is_admin
from finance.models import Payment
from tenants.mixins import TenantViewSetMixin

from .datatable import Column, SortState
from .formatting import format_date
from .mixins import DataTableViewSetMixin
from .models import Course, Student, StudentSource, Subject
from .serializers import (
    CourseSerializer,
    StudentSerializer,
    StudentSourceSerializer,
    SubjectSerializer,
)

logger = logging.getLogger(__name__)


def _render_date(value, row):
    return format_date(value) if value else ''


class SubjectViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    queryset = Subject.objects.all()
    serializer_class = SubjectSerializer
    permission_classes = [IsAdminRole]
    cache_tag = 'subjects'
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('teacher_count', 'Teachers', sortable=True),
        Column('course_count', 'Courses', sortable=True),
    )


class CourseViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    queryset = Course.objects.select_related('subject').prefetch_related('teachers')
    serializer_class = CourseSerializer
    permission_classes = [IsAdminRole]
    cache_tag = 'courses'
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('subject_name', 'Subject', sortable=True),
        Column('price', 'Price', sortable=True),
        Column('teacher_names', 'Teachers', render=lambda value, row: ', '.join(value or [])),
        Column('student_count', 'Students', sortable=True),
    )

    @action(detail=True, methods=['post'])
    def add_student(self, request, pk=None):
        course = self.get_object()
        student = self._student_from_request(request)
        if student is None:
            return Response({'error': 'student_id required'}, status=status.HTTP_400_BAD_REQUEST)
        course.students.add(student)
        self.invalidate_cache()
        return Response({'status': 'student added'})

    @action(detail=True, methods=['post'])
    def remove_student(self, request, pk=None):
        course = self.get_object()
        student = self._student_from_request(request)
        if student is None:
            return Response({'error': 'student_id required'}, status=status.HTTP_400_BAD_REQUEST)
        course.students.remove(student)
        self.invalidate_cache()
        return Response({'status': 'student removed'})

    def _student_from_request(self, request):
        student_id = request.data.get('student_id')
        if not student_id:
            return None
        return Student.objects.for_tenant(request.tenant).filter(pk=student_id).first()


class StudentSourceViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """Источники учеников ("откуда пришёл")."""
    queryset = StudentSource.objects.all()
    serializer_class = StudentSourceSerializer
    permission_classes = [IsAdminRole]
    cache_tag = 'sources'
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('student_count', 'Students', sortable=True),
    )


class StudentViewSet(DataTableViewSetMixin, TenantViewSetMixin, viewsets.ModelViewSet):
    """
    Ученики академии. Администратор видит всех, преподаватель -
    учеников своих групп.
    """
    queryset = Student.objects.select_related('source', 'group').prefetch_related('courses')
    serializer_class = StudentSerializer
    permission_classes = [IsAdminOrTeacher]
    cache_tag = 'students'
    default_sort = SortState('created_at', 'desc')
    table_columns = (
        Column('name', 'Name', sortable=True),
        Column('phone', 'Phone'),
        Column('birthday', 'Birthday', sortable=True, render=_render_date),
        Column('group_name', 'Group', sortable=True),
        Column('source_name', 'Came from', sortable=True),
        Column('courses', 'Courses', render=lambda value, row: ', '.join(value or [])),
        Column('last_attendance', 'Last attendance', sortable=True,
               render=lambda value, row: format_date(value) if value else 'No attendance'),
        Column('total_paid', 'Paid', sortable=True),
        Column('created_at', 'Added', sortable=True, render=_render_date),
    )

    def get_queryset(self):
        qs = super().get_queryset()
        paid = (
            Payment.objects.filter(student=OuterRef('pk'))
            .values('student')
            .annotate(total=Sum('amount'))
            .values('total')
        )
        qs = qs.annotate(
            last_attendance=Max('attendances__date', filter=Q(attendances__status='present')),
            total_paid=Coalesce(
                Subquery(paid, output_field=DecimalField(max_digits=12, decimal_places=2)),
                Value(0, output_field=DecimalField(max_digits=12, decimal_places=2)),
            ),
        )
        user = self.request.user
        if not is_admin(user):
            qs = qs.filter(group__teacher=user)
        return qs

    def perform_destroy(self, instance):
        if not is_admin(self.request.user):
            raise PermissionDenied('Удалять учеников может только администратор')
        super().perform_destroy(instance)
