from django.contrib import admin
from .models import Attendance, Group, Lesson


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    list_display = ('name', 'teacher', 'course', 'start_time', 'end_time', 'student_count', 'tenant')
    list_filter = ('tenant', 'teacher', 'created_at')
    search_fields = ('name', 'teacher__email')
    readonly_fields = ('created_at', 'updated_at')

    fieldsets = (
        ('Основная информация', {
            'fields': ('tenant', 'name', 'teacher', 'course')
        }),
        ('Расписание', {
            'fields': ('start_time', 'end_time', 'days_of_week')
        }),
        ('Системная информация', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Lesson)
class LessonAdmin(admin.ModelAdmin):
    list_display = ('group', 'teacher', 'start_time', 'end_time', 'room', 'status')
    list_filter = ('tenant', 'status', 'teacher')
    search_fields = ('group__name', 'teacher__email', 'room', 'description')
    date_hierarchy = 'start_time'
    readonly_fields = ('created_at', 'updated_at')


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ('student', 'lesson', 'status', 'date', 'teacher', 'marked_at')
    list_filter = ('tenant', 'status', 'date')
    search_fields = ('student__name', 'notes')
    raw_id_fields = ('lesson', 'student')
