from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Course, Student, StudentSource, Subject

User = get_user_model()


class TenantPrimaryKeyRelatedField(serializers.PrimaryKeyRelatedField):
    """PK-связь только на объекты текущего tenant (из context['tenant'])."""

    def get_queryset(self):
        queryset = super().get_queryset()
        tenant = self.context.get('tenant')
        if tenant is not None:
            queryset = queryset.filter(tenant=tenant)
        return queryset


class TenantTeacherField(serializers.PrimaryKeyRelatedField):
    """Преподаватель, состоящий в текущем tenant."""

    def __init__(self, **kwargs):
        kwargs.setdefault('queryset', User.objects.filter(role='teacher', is_active=True))
        super().__init__(**kwargs)

    def get_queryset(self):
        queryset = super().get_queryset()
        tenant = self.context.get('tenant')
        if tenant is not None:
            queryset = queryset.filter(
                tenant_memberships__tenant=tenant, tenant_memberships__is_active=True
            )
        return queryset


class SubjectSerializer(serializers.ModelSerializer):
    teacher_count = serializers.IntegerField(source='teachers.count', read_only=True)
    course_count = serializers.IntegerField(source='courses.count', read_only=True)

    class Meta:
        model = Subject
        fields = ['id', 'name', 'teacher_count', 'course_count', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_name(self, value):
        value = value.strip()
        tenant = self.context.get('tenant')
        qs = Subject.objects.filter(tenant=tenant, name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Предмет с таким названием уже существует')
        return value


class CourseSerializer(serializers.ModelSerializer):
    subject = TenantPrimaryKeyRelatedField(queryset=Subject.objects.all())
    subject_name = serializers.CharField(source='subject.name', read_only=True)
    teachers = TenantTeacherField(many=True, required=False)
    teacher_names = serializers.SerializerMethodField()
    student_count = serializers.IntegerField(source='students.count', read_only=True)

    class Meta:
        model = Course
        fields = [
            'id', 'name', 'description', 'price', 'subject', 'subject_name',
            'teachers', 'teacher_names', 'student_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_teacher_names(self, obj):
        return [teacher.get_full_name() for teacher in obj.teachers.all()]


class StudentSourceSerializer(serializers.ModelSerializer):
    student_count = serializers.IntegerField(source='students.count', read_only=True)

    class Meta:
        model = StudentSource
        fields = ['id', 'name', 'student_count']
        read_only_fields = ['id']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Source name is required!')
        return value


class StudentSerializer(serializers.ModelSerializer):
    source = TenantPrimaryKeyRelatedField(
        queryset=StudentSource.objects.all(), required=False, allow_null=True
    )
    source_name = serializers.CharField(source='source.name', read_only=True, default='')
    group = serializers.PrimaryKeyRelatedField(read_only=True)
    group_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)
    group_name = serializers.CharField(source='group.name', read_only=True, default='')
    course_ids = TenantPrimaryKeyRelatedField(
        source='courses', many=True, required=False, queryset=Course.objects.all()
    )
    courses = serializers.SerializerMethodField()
    last_attendance = serializers.DateField(read_only=True, default=None)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, default=0)

    class Meta:
        model = Student
        fields = [
            'id', 'name', 'phone', 'birthday',
            'source', 'source_name', 'group', 'group_id', 'group_name',
            'course_ids', 'courses', 'last_attendance', 'total_paid', 'created_at',
        ]
        read_only_fields = ['id', 'created_at']

    def get_courses(self, obj):
        return [course.name for course in obj.courses.all()]

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_phone(self, value):
        if len(''.join(ch for ch in value if ch.isdigit())) < 9:
            raise serializers.ValidationError('Phone number must be valid')
        return value

    def validate_group_id(self, value):
        if value is None:
            return None
        from schedule.models import Group
        groups = Group.objects.filter(pk=value, tenant=self.context.get('tenant'))
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        if user is not None and not user.is_superuser and getattr(user, 'role', None) == 'teacher':
            groups = groups.filter(teacher=user)
        if not groups.exists():
            raise serializers.ValidationError('Invalid group ID')
        return value

    def create(self, validated_data):
        courses = validated_data.pop('courses', [])
        student = super().create(validated_data)
        student.courses.set(courses)
        return student

    def update(self, instance, validated_data):
        courses = validated_data.pop('courses', None)
        student = super().update(instance, validated_data)
        if courses is not None:
            student.courses.set(courses)
        return student
