from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tenants.mixins import TenantManager, TenantModelMixin


class Weekday(models.TextChoices):
    """Учебные дни. Воскресенье не бывает днём занятий."""
    MONDAY = 'Monday', _('Понедельник')
    TUESDAY = 'Tuesday', _('Вторник')
    WEDNESDAY = 'Wednesday', _('Среда')
    THURSDAY = 'Thursday', _('Четверг')
    FRIDAY = 'Friday', _('Пятница')
    SATURDAY = 'Saturday', _('Суббота')


def validate_days_of_week(value):
    if not isinstance(value, list):
        raise ValidationError(_('Дни недели должны быть списком'))
    invalid = [day for day in value if day not in Weekday.values]
    if invalid:
        raise ValidationError(
            _('Недопустимые дни недели: %(days)s'),
            params={'days': ', '.join(map(str, invalid))},
        )


class Group(TenantModelMixin, models.Model):
    """Учебная группа"""

    name = models.CharField(_('название группы'), max_length=200)
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='teaching_groups',
        limit_choices_to={'role': 'teacher'},
        verbose_name=_('преподаватель')
    )
    course = models.ForeignKey(
        'core.Course',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='groups',
        verbose_name=_('курс')
    )
    start_time = models.TimeField(_('время начала'))
    end_time = models.TimeField(_('время окончания'))
    days_of_week = models.JSONField(
        _('дни занятий'),
        default=list,
        blank=True,
        validators=[validate_days_of_week],
    )
    created_at = models.DateTimeField(_('дата создания'), auto_now_add=True)
    updated_at = models.DateTimeField(_('дата обновления'), auto_now=True)

    objects = TenantManager()

    class Meta:
        verbose_name = _('группа')
        verbose_name_plural = _('группы')
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.teacher.get_full_name()})"

    def student_count(self):
        """Количество студентов в группе"""
        return self.students.count()

    def clean(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': _('время окончания должно быть позже начала')})


class Lesson(TenantModelMixin, models.Model):
    """Занятие (урок) группы"""

    class Status(models.TextChoices):
        SCHEDULED = 'SCHEDULED', _('Запланировано')
        COMPLETED = 'COMPLETED', _('Проведено')
        CANCELLED = 'CANCELLED', _('Отменено')

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='lessons',
        verbose_name=_('группа')
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='teaching_lessons',
        limit_choices_to={'role': 'teacher'},
        verbose_name=_('преподаватель')
    )
    start_time = models.DateTimeField(_('время начала'))
    end_time = models.DateTimeField(_('время окончания'))
    room = models.CharField(
        _('аудитория'),
        max_length=100,
        help_text=_('Номер или название аудитории')
    )
    description = models.TextField(_('описание'), blank=True)
    days_of_week = models.JSONField(
        _('дни занятий'),
        default=list,
        validators=[validate_days_of_week],
        help_text=_('По каким дням недели проходит занятие')
    )
    status = models.CharField(
        _('статус'),
        max_length=12,
        choices=Status.choices,
        default=Status.SCHEDULED,
    )

    created_at = models.DateTimeField(_('дата создания'), auto_now_add=True)
    updated_at = models.DateTimeField(_('дата обновления'), auto_now=True)

    objects = TenantManager()

    class Meta:
        verbose_name = _('занятие')
        verbose_name_plural = _('занятия')
        ordering = ['start_time']
        indexes = [
            models.Index(fields=['tenant', 'start_time'], name='lesson_tenant_start_idx'),
            models.Index(fields=['teacher', 'start_time'], name='lesson_teacher_start_idx'),
            models.Index(fields=['group', 'start_time'], name='lesson_group_start_idx'),
        ]

    def __str__(self):
        return f"{self.group.name} ({timezone.localtime(self.start_time).strftime('%d.%m.%Y %H:%M')})"

    def duration(self):
        """Длительность урока в минутах"""
        return int((self.end_time - self.start_time).total_seconds() / 60)

    def runs_on(self, weekday_name):
        return weekday_name in (self.days_of_week or [])

    def clean(self):
        """Приводим времена к aware и базовая валидация."""
        if self.start_time and timezone.is_naive(self.start_time):
            self.start_time = timezone.make_aware(self.start_time, timezone.get_current_timezone())
        if self.end_time and timezone.is_naive(self.end_time):
            self.end_time = timezone.make_aware(self.end_time, timezone.get_current_timezone())
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': _('время окончания должно быть позже начала')})
        validate_days_of_week(self.days_of_week)

    def save(self, *args, **kwargs):
        # clean и для программного создания (тесты, сервисы)
        self.clean()
        super().save(*args, **kwargs)


class Attendance(TenantModelMixin, models.Model):
    """Посещаемость ученика на занятии"""

    class Status(models.TextChoices):
        PRESENT = 'present', _('Присутствовал')
        ABSENT = 'absent', _('Отсутствовал')
        EXCUSED = 'excused', _('Уважительная причина')

    lesson = models.ForeignKey(
        Lesson,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='attendances',
        verbose_name=_('занятие')
    )
    student = models.ForeignKey(
        'core.Student',
        on_delete=models.CASCADE,
        related_name='attendances',
        verbose_name=_('ученик')
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marked_attendances',
        verbose_name=_('преподаватель')
    )
    status = models.CharField(
        _('статус'),
        max_length=10,
        choices=Status.choices,
        default=Status.PRESENT
    )
    notes = models.TextField(_('заметки'), blank=True)
    date = models.DateField(_('дата'), default=timezone.localdate)
    marked_at = models.DateTimeField(_('время отметки'), auto_now=True)

    objects = TenantManager()

    class Meta:
        verbose_name = _('посещаемость')
        verbose_name_plural = _('посещаемость')
        unique_together = ['lesson', 'student']
        ordering = ['-date', '-marked_at']
        indexes = [
            models.Index(fields=['tenant', 'date'], name='attendance_tenant_date_idx'),
            models.Index(fields=['student', 'status'], name='attendance_student_status_idx'),
        ]

    def __str__(self):
        return f"{self.student.name} - {self.date} ({self.get_status_display()})"
