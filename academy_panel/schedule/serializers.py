from django.utils import timezone
from rest_framework import serializers

from core.models import Course, Student
from core.serializers import TenantPrimaryKeyRelatedField, TenantTeacherField

from .models import Attendance, Group, Lesson, Weekday


class DaysOfWeekField(serializers.ListField):
    """Список дней недели 'Monday'..'Saturday' без повторов."""

    child = serializers.ChoiceField(choices=Weekday.choices)

    def to_internal_value(self, data):
        days = super().to_internal_value(data)
        # Порядок - как в неделе, дубликаты убираем
        return [day for day in Weekday.values if day in days]


class GroupSerializer(serializers.ModelSerializer):
    """Сериализатор для группы"""
    teacher = TenantTeacherField()
    teacher_name = serializers.CharField(source='teacher.get_full_name', read_only=True)
    course = TenantPrimaryKeyRelatedField(
        queryset=Course.objects.all(), required=False, allow_null=True
    )
    course_name = serializers.CharField(source='course.name', read_only=True, default='')
    days_of_week = DaysOfWeekField(allow_empty=False)
    student_count = serializers.IntegerField(source='students.count', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name',
            'teacher', 'teacher_name', 'course', 'course_name',
            'start_time', 'end_time', 'days_of_week',
            'student_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_time') or getattr(self.instance, 'start_time', None)
        end = attrs.get('end_time') or getattr(self.instance, 'end_time', None)
        if start and end and end <= start:
            raise serializers.ValidationError({'end_time': 'Время окончания должно быть позже начала'})
        return attrs


class LessonSerializer(serializers.ModelSerializer):
    """Сериализатор для занятия"""
    group = TenantPrimaryKeyRelatedField(queryset=Group.objects.all())
    group_name = serializers.CharField(source='group.name', read_only=True)
    teacher = TenantTeacherField()
    teacher_name = serializers.CharField(source='teacher.get_full_name', read_only=True)
    duration_minutes = serializers.IntegerField(source='duration', read_only=True)
    days_of_week = DaysOfWeekField(allow_empty=False)

    class Meta:
        model = Lesson
        fields = [
            'id', 'group', 'group_name',
            'teacher', 'teacher_name',
            'start_time', 'end_time', 'duration_minutes',
            'room', 'description', 'days_of_week', 'status',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_time') or getattr(self.instance, 'start_time', None)
        end = attrs.get('end_time') or getattr(self.instance, 'end_time', None)
        # Приводим в aware если пришли naive
        if start and timezone.is_naive(start):
            start = timezone.make_aware(start, timezone.get_current_timezone())
            attrs['start_time'] = start
        if end and timezone.is_naive(end):
            end = timezone.make_aware(end, timezone.get_current_timezone())
            attrs['end_time'] = end
        if start and end and end <= start:
            raise serializers.ValidationError({'end_time': 'Время окончания должно быть позже начала'})
        return attrs


class AttendanceSerializer(serializers.ModelSerializer):
    """Отметка посещаемости"""
    lesson = TenantPrimaryKeyRelatedField(
        queryset=Lesson.objects.all(), required=False, allow_null=True
    )
    student = TenantPrimaryKeyRelatedField(queryset=Student.objects.all())
    student_name = serializers.CharField(source='student.name', read_only=True)
    student_phone = serializers.CharField(source='student.phone', read_only=True)
    teacher = TenantTeacherField(required=False, allow_null=True)
    teacher_name = serializers.CharField(source='teacher.get_full_name', read_only=True, default='')
    group_name = serializers.CharField(source='lesson.group.name', read_only=True, default='')

    class Meta:
        model = Attendance
        fields = [
            'id', 'lesson', 'student', 'student_name', 'student_phone',
            'teacher', 'teacher_name', 'group_name',
            'status', 'notes', 'date', 'marked_at',
        ]
        read_only_fields = ['id', 'marked_at']
        # Уникальность (lesson, student) проверяем в validate() с понятным сообщением
        validators = []

    def validate(self, attrs):
        lesson = attrs.get('lesson', getattr(self.instance, 'lesson', None))
        student = attrs.get('student', getattr(self.instance, 'student', None))
        if lesson is not None and student is not None:
            duplicates = Attendance.objects.filter(lesson=lesson, student=student)
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise serializers.ValidationError('Attendance already recorded for this student')
        return attrs


class LessonAttendanceSerializer(AttendanceSerializer):
    """Посещаемость внутри /lessons/<id>/attendance/: урок берётся из URL."""
    lesson = serializers.PrimaryKeyRelatedField(read_only=True)

    def validate(self, attrs):
        attrs['lesson'] = self.context['lesson']
        return super().validate(attrs)
