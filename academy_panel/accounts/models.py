from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class CustomUserManager(BaseUserManager):
    """Кастомный менеджер для CustomUser, где email - это уникальный идентификатор"""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError(_('Email обязателен'))
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        # Суперпользователь по умолчанию - администратор академии
        extra_fields.setdefault('role', 'admin')

        if extra_fields.get('is_staff') is not True:
            raise ValueError(_('Superuser должен иметь is_staff=True'))
        if extra_fields.get('is_superuser') is not True:
            raise ValueError(_('Superuser должен иметь is_superuser=True'))

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """
    Сотрудник академии: администратор или преподаватель.
    Вход по email (username отключен). Ученики в системе не логинятся.
    """

    ROLE_CHOICES = (
        ('admin', 'Администратор'),
        ('teacher', 'Преподаватель'),
    )

    # Отключаем username, используем email для входа
    username = None
    email = models.EmailField(_('email адрес'), unique=True)

    role = models.CharField(
        _('роль'),
        max_length=20,
        choices=ROLE_CHOICES,
        default='teacher',
        help_text=_('Преподаватель или Администратор')
    )

    phone_number = models.CharField(
        _('номер телефона'),
        max_length=20,
        blank=True,
        default='',
    )

    date_of_birth = models.DateField(
        _('дата рождения'),
        blank=True,
        null=True
    )

    # Ссылка на аватар во внешнем хранилище, файл сюда не загружается
    avatar_url = models.URLField(
        _('аватар'),
        blank=True,
        default='',
    )

    rating = models.DecimalField(
        _('рейтинг'),
        max_digits=3,
        decimal_places=1,
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
        help_text=_('Рейтинг преподавателя от 0 до 5')
    )

    created_at = models.DateTimeField(_('дата регистрации'), auto_now_add=True)
    updated_at = models.DateTimeField(_('дата обновления'), auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['role']  # Поля, запрашиваемые при createsuperuser (кроме email и password)

    objects = CustomUserManager()

    class Meta:
        verbose_name = _('пользователь')
        verbose_name_plural = _('пользователи')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['role', 'is_active'], name='user_role_active_idx'),
        ]

    def __str__(self):
        return f"{self.email} ({self.get_role_display()})"

    def get_full_name(self):
        """Возвращает полное имя пользователя"""
        full = ' '.join(filter(None, [self.first_name or '', self.last_name or ''])).strip()
        return full or self.email
