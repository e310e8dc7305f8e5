from django.contrib import admin
from .models import Course, Student, StudentSource, Subject


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ('name', 'tenant', 'created_at')
    list_filter = ('tenant',)
    search_fields = ('name',)
    filter_horizontal = ('teachers',)


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ('name', 'subject', 'price', 'tenant', 'created_at')
    list_filter = ('tenant', 'subject')
    search_fields = ('name', 'description')
    filter_horizontal = ('teachers', 'students')


@admin.register(StudentSource)
class StudentSourceAdmin(admin.ModelAdmin):
    list_display = ('name', 'tenant')
    list_filter = ('tenant',)
    search_fields = ('name',)


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'group', 'source', 'tenant', 'created_at')
    list_filter = ('tenant', 'source')
    search_fields = ('name', 'phone')
    raw_id_fields = ('group',)
