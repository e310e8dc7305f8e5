"""Core domain models: предметы, курсы, источники и ученики академии.

Расписание (группы, уроки, посещаемость) живёт в schedule, платежи - в finance.
"""
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from tenants.mixins import TenantManager, TenantModelMixin


class Subject(TenantModelMixin, models.Model):
    name = models.CharField(_('название'), max_length=120)
    teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='subjects',
        blank=True,
        limit_choices_to={'role': 'teacher'},
        verbose_name=_('преподаватели'),
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TenantManager()

    class Meta:
        ordering = ['name']
        verbose_name = 'предмет'
        verbose_name_plural = 'предметы'
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'name'], name='subject_unique_name_per_tenant'),
        ]

    def __str__(self):
        return self.name


class Course(TenantModelMixin, models.Model):
    name = models.CharField(_('название'), max_length=200)
    description = models.TextField(_('описание'), blank=True)
    price = models.DecimalField(
        _('цена'), max_digits=10, decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    subject = models.ForeignKey(
        Subject, on_delete=models.PROTECT,
        related_name='courses', verbose_name=_('предмет'),
    )
    teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name='courses_taught',
        blank=True,
        limit_choices_to={'role': 'teacher'},
        verbose_name=_('преподаватели'),
    )
    students = models.ManyToManyField(
        'core.Student',
        related_name='courses',
        blank=True,
        verbose_name=_('ученики'),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'курс'
        verbose_name_plural = 'курсы'

    def __str__(self):
        return self.name


class StudentSource(TenantModelMixin, models.Model):
    """Откуда ученик узнал об академии (Instagram, друзья, реклама...)."""
    name = models.CharField(_('название'), max_length=120)

    objects = TenantManager()

    class Meta:
        ordering = ['name']
        verbose_name = 'источник ученика'
        verbose_name_plural = 'источники учеников'
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'name'], name='source_unique_name_per_tenant'),
        ]

    def __str__(self):
        return self.name


class Student(TenantModelMixin, models.Model):
    """Ученик. В систему не логинится, ведётся администратором и преподавателями."""
    name = models.CharField(_('имя'), max_length=200)
    phone = models.CharField(_('телефон'), max_length=30)
    birthday = models.DateField(_('дата рождения'), null=True, blank=True)
    source = models.ForeignKey(
        StudentSource, on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='students', verbose_name=_('источник'),
    )
    group = models.ForeignKey(
        'schedule.Group', on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='students', verbose_name=_('группа'),
    )
    created_at = models.DateTimeField(_('дата добавления'), auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'ученик'
        verbose_name_plural = 'ученики'
        indexes = [
            models.Index(fields=['tenant', 'created_at'], name='student_tenant_created_idx'),
        ]

    def __str__(self):
        return self.name
