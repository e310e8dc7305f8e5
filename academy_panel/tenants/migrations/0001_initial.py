from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('slug', models.SlugField(help_text='Уникальный идентификатор (для URL/субдомена)', unique=True)),
                ('name', models.CharField(help_text='Название организации', max_length=200)),
                ('status', models.CharField(choices=[('active', 'Активен'), ('inactive', 'Неактивен'), ('suspended', 'Приостановлен')], default='active', help_text='Статус', max_length=20)),
                ('email', models.EmailField(blank=True, help_text='Контактный email', max_length=254)),
                ('phone', models.CharField(blank=True, help_text='Контактный телефон', max_length=30)),
                ('website', models.URLField(blank=True, help_text='Сайт')),
                ('logo_url', models.URLField(blank=True, help_text='Логотип')),
                ('timezone', models.CharField(default='UTC', help_text='Часовой пояс', max_length=50)),
                ('locale', models.CharField(default='en', help_text='Локаль', max_length=10)),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Дополнительные данные')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Тенант (орг-я)',
                'verbose_name_plural': 'Тенанты (орг-ии)',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='TenantMembership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('owner', 'Владелец'), ('admin', 'Администратор'), ('teacher', 'Преподаватель')], default='teacher', max_length=20, verbose_name='Роль в org')),
                ('is_active', models.BooleanField(default=True, verbose_name='Активен')),
                ('joined_at', models.DateTimeField(auto_now_add=True, verbose_name='Дата вступления')),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='tenants.tenant', verbose_name='Тенант')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tenant_memberships', to=settings.AUTH_USER_MODEL, verbose_name='Пользователь')),
            ],
            options={
                'verbose_name': 'Членство в тенанте',
                'verbose_name_plural': 'Членства в тенантах',
                'unique_together': {('tenant', 'user')},
                'indexes': [
                    models.Index(fields=['tenant', 'role'], name='membership_tenant_role_idx'),
                    models.Index(fields=['user', 'is_active'], name='membership_user_active_idx'),
                ],
            },
        ),
    ]
