from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import schedule.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('tenants', '0001_initial'),
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Group',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200, verbose_name='название группы')),
                ('start_time', models.TimeField(verbose_name='время начала')),
                ('end_time', models.TimeField(verbose_name='время окончания')),
                ('days_of_week', models.JSONField(blank=True, default=list, validators=[schedule.models.validate_days_of_week], verbose_name='дни занятий')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='дата создания')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='дата обновления')),
                ('course', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='groups', to='core.course', verbose_name='курс')),
                ('teacher', models.ForeignKey(limit_choices_to={'role': 'teacher'}, on_delete=django.db.models.deletion.PROTECT, related_name='teaching_groups', to=settings.AUTH_USER_MODEL, verbose_name='преподаватель')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_groups', to='tenants.tenant', verbose_name='Тенант')),
            ],
            options={
                'verbose_name': 'группа',
                'verbose_name_plural': 'группы',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Lesson',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('start_time', models.DateTimeField(verbose_name='время начала')),
                ('end_time', models.DateTimeField(verbose_name='время окончания')),
                ('room', models.CharField(help_text='Номер или название аудитории', max_length=100, verbose_name='аудитория')),
                ('description', models.TextField(blank=True, verbose_name='описание')),
                ('days_of_week', models.JSONField(default=list, help_text='По каким дням недели проходит занятие', validators=[schedule.models.validate_days_of_week], verbose_name='дни занятий')),
                ('status', models.CharField(choices=[('SCHEDULED', 'Запланировано'), ('COMPLETED', 'Проведено'), ('CANCELLED', 'Отменено')], default='SCHEDULED', max_length=12, verbose_name='статус')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='дата создания')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='дата обновления')),
                ('group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lessons', to='schedule.group', verbose_name='группа')),
                ('teacher', models.ForeignKey(limit_choices_to={'role': 'teacher'}, on_delete=django.db.models.deletion.PROTECT, related_name='teaching_lessons', to=settings.AUTH_USER_MODEL, verbose_name='преподаватель')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_lessons', to='tenants.tenant', verbose_name='Тенант')),
            ],
            options={
                'verbose_name': 'занятие',
                'verbose_name_plural': 'занятия',
                'ordering': ['start_time'],
            },
        ),
        migrations.CreateModel(
            name='Attendance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('present', 'Присутствовал'), ('absent', 'Отсутствовал'), ('excused', 'Уважительная причина')], default='present', max_length=10, verbose_name='статус')),
                ('notes', models.TextField(blank=True, verbose_name='заметки')),
                ('date', models.DateField(default=django.utils.timezone.localdate, verbose_name='дата')),
                ('marked_at', models.DateTimeField(auto_now=True, verbose_name='время отметки')),
                ('lesson', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='schedule.lesson', verbose_name='занятие')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='attendances', to='core.student', verbose_name='ученик')),
                ('teacher', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='marked_attendances', to=settings.AUTH_USER_MODEL, verbose_name='преподаватель')),
                ('tenant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='schedule_attendances', to='tenants.tenant', verbose_name='Тенант')),
            ],
            options={
                'verbose_name': 'посещаемость',
                'verbose_name_plural': 'посещаемость',
                'ordering': ['-date', '-marked_at'],
                'unique_together': {('lesson', 'student')},
            },
        ),
        migrations.AddIndex(
            model_name='lesson',
            index=models.Index(fields=['tenant', 'start_time'], name='lesson_tenant_start_idx'),
        ),
        migrations.AddIndex(
            model_name='lesson',
            index=models.Index(fields=['teacher', 'start_time'], name='lesson_teacher_start_idx'),
        ),
        migrations.AddIndex(
            model_name='lesson',
            index=models.Index(fields=['group', 'start_time'], name='lesson_group_start_idx'),
        ),
        migrations.AddIndex(
            model_name='attendance',
            index=models.Index(fields=['tenant', 'date'], name='attendance_tenant_date_idx'),
        ),
        migrations.AddIndex(
            model_name='attendance',
            index=models.Index(fields=['student', 'status'], name='attendance_student_status_idx'),
        ),
    ]
