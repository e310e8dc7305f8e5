"""
Платежи учеников.

Каждый платёж - неизменяемая по смыслу запись "ученик заплатил сумму в дату".
Выручка за месяц и сравнение с прошлым месяцем считаются в finance.services.
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from tenants.mixins import TenantManager, TenantModelMixin


class Payment(TenantModelMixin, models.Model):
    """Оплата ученика (за курс/группу)."""

    amount = models.DecimalField(
        _('сумма'),
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
    )
    student = models.ForeignKey(
        'core.Student',
        on_delete=models.CASCADE,
        related_name='payments',
        verbose_name=_('ученик'),
    )
    group = models.ForeignKey(
        'schedule.Group',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
        verbose_name=_('группа'),
    )
    date = models.DateField(_('дата оплаты'), default=timezone.localdate)
    description = models.TextField(_('описание'), blank=True)

    created_at = models.DateTimeField(_('создан'), auto_now_add=True)
    updated_at = models.DateTimeField(_('обновлён'), auto_now=True)

    objects = TenantManager()

    class Meta:
        verbose_name = _('платёж')
        verbose_name_plural = _('платежи')
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['tenant', 'date'], name='payment_tenant_date_idx'),
            models.Index(fields=['student', 'date'], name='payment_student_date_idx'),
        ]

    def __str__(self):
        return f"{self.student.name}: {self.amount} ({self.date})"
