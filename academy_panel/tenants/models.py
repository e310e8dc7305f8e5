"""
Tenant models - ядро мультитенантной архитектуры.

Подход: shared-database, shared-schema с tenant FK на каждой модели верхнего уровня.
Tenant = академия / учебный центр / школа.
"""

import uuid
from django.db import models
from django.conf import settings


class Tenant(models.Model):
    """
    Организация (академия, учебный центр).
    Все данные CRM привязаны к tenant через FK.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Активен'
        INACTIVE = 'inactive', 'Неактивен'
        SUSPENDED = 'suspended', 'Приостановлен'

    # === Идентификация ===
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(
        max_length=50, unique=True, db_index=True,
        help_text='Уникальный идентификатор (для URL/субдомена)'
    )
    name = models.CharField(max_length=200, help_text='Название организации')
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.ACTIVE,
        help_text='Статус',
    )

    # === Контакты ===
    email = models.EmailField(blank=True, help_text='Контактный email')
    phone = models.CharField(max_length=30, blank=True, help_text='Контактный телефон')
    website = models.URLField(blank=True, help_text='Сайт')
    logo_url = models.URLField(blank=True, help_text='Логотип')

    # === Локализация ===
    timezone = models.CharField(max_length=50, default='UTC', help_text='Часовой пояс')
    locale = models.CharField(max_length=10, default='en', help_text='Локаль')

    # === Дополнительные данные (JSON) ===
    metadata = models.JSONField(default=dict, blank=True, help_text='Дополнительные данные')

    # === Даты ===
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Тенант (орг-я)'
        verbose_name_plural = 'Тенанты (орг-ии)'

    def __str__(self):
        return f'{self.name} ({self.slug})'

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

    @property
    def currency(self):
        return (self.metadata or {}).get(
            'currency', getattr(settings, 'REPORT_CURRENCY', 'USD')
        )

    def to_frontend_config(self):
        """Возвращает конфиг тенанта для фронтенда (используется в /api/me/)."""
        theme = (self.metadata or {}).get('theme', {})
        features_meta = (self.metadata or {}).get('features', {})
        return {
            'id': str(self.id),
            'slug': self.slug,
            'name': self.name,
            'logo_url': self.logo_url or '',
            'timezone': self.timezone,
            'locale': self.locale,
            'currency': self.currency,
            'primary_color': theme.get('primary_color', '#1976d2'),
            'secondary_color': theme.get('secondary_color', '#f5f5f5'),
            'features': {
                'finance': features_meta.get('finance', True),
                'statistics': features_meta.get('statistics', True),
                'export': features_meta.get('export', True),
            },
        }


class TenantMembership(models.Model):
    """
    M2M-связь пользователя с тенантом.
    Один пользователь может работать в нескольких академиях с разными ролями.
    """

    class TenantRole(models.TextChoices):
        OWNER = 'owner', 'Владелец'
        ADMIN = 'admin', 'Администратор'
        TEACHER = 'teacher', 'Преподаватель'

    tenant = models.ForeignKey(
        Tenant, on_delete=models.CASCADE,
        related_name='memberships',
        verbose_name='Тенант',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tenant_memberships',
        verbose_name='Пользователь',
    )
    role = models.CharField(
        max_length=20, choices=TenantRole.choices,
        default=TenantRole.TEACHER,
        verbose_name='Роль в org',
    )
    is_active = models.BooleanField(default=True, verbose_name='Активен')
    joined_at = models.DateTimeField(auto_now_add=True, verbose_name='Дата вступления')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Членство в тенанте'
        verbose_name_plural = 'Членства в тенантах'
        unique_together = ['tenant', 'user']
        indexes = [
            models.Index(fields=['tenant', 'role'], name='membership_tenant_role_idx'),
            models.Index(fields=['user', 'is_active'], name='membership_user_active_idx'),
        ]

    def __str__(self):
        return f'{self.user} → {self.tenant} ({self.role})'

    @property
    def is_admin(self):
        return self.role in (self.TenantRole.OWNER, self.TenantRole.ADMIN)
