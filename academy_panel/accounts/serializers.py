from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from core.models import Subject
from core.serializers import TenantPrimaryKeyRelatedField

User = get_user_model()


def _digits(value):
    return ''.join(ch for ch in value if ch.isdigit())


class UserProfileSerializer(serializers.ModelSerializer):
    """Сериализатор для профиля текущего пользователя"""

    full_name = serializers.CharField(source='get_full_name', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'role',
            'phone_number',
            'date_of_birth',
            'avatar_url',
            'rating',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['email', 'role', 'rating', 'created_at', 'updated_at']
        extra_kwargs = {
            'first_name': {'allow_blank': True, 'required': False},
            'last_name': {'allow_blank': True, 'required': False},
            'avatar_url': {'allow_blank': True, 'required': False},
        }


class TeacherSerializer(serializers.ModelSerializer):
    """Преподаватель академии (CRUD для администратора)."""

    name = serializers.CharField(source='get_full_name', read_only=True)
    password = serializers.CharField(write_only=True, required=False, style={'input_type': 'password'})
    subject_ids = TenantPrimaryKeyRelatedField(
        source='subjects', many=True, required=False,
        queryset=Subject.objects.all(),
    )
    subjects = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'name', 'first_name', 'last_name', 'email', 'password',
            'phone_number', 'date_of_birth', 'avatar_url', 'rating',
            'subject_ids', 'subjects', 'is_active', 'created_at',
        ]
        read_only_fields = ['id', 'is_active', 'created_at']

    def get_subjects(self, obj):
        return [subject.name for subject in obj.subjects.all()]

    def validate(self, attrs):
        first = attrs.get('first_name', getattr(self.instance, 'first_name', ''))
        last = attrs.get('last_name', getattr(self.instance, 'last_name', ''))
        if len(f'{first} {last}'.strip()) < 6:
            raise serializers.ValidationError({'first_name': 'Full name must be at least 6 characters'})
        if self.instance is None:
            for required in ('phone_number', 'date_of_birth', 'password'):
                if not attrs.get(required):
                    raise serializers.ValidationError({required: 'Это поле обязательно.'})
        return attrs

    def validate_phone_number(self, value):
        if value and len(_digits(value)) < 9:
            raise serializers.ValidationError('Phone number must be valid')
        return value

    def validate_email(self, value):
        qs = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Пользователь с таким email уже существует')
        return value.lower()

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        subjects = validated_data.pop('subjects', [])
        password = validated_data.pop('password')
        teacher = User.objects.create_user(role='teacher', password=password, **validated_data)
        teacher.subjects.set(subjects)
        return teacher

    def update(self, instance, validated_data):
        subjects = validated_data.pop('subjects', None)
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        if subjects is not None:
            instance.subjects.set(subjects)
        return instance
